from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.order import OrderStatus, PaymentMethod


class OrderItemIn(BaseModel):
    menu_item_id: str
    quantity: int = Field(ge=1, le=99)


class OrderCreate(BaseModel):
    qr_token: str
    payment_method: PaymentMethod
    customer_name: Optional[str] = None
    idempotency_key: Optional[str] = None
    items: List[OrderItemIn] = Field(min_length=1)


class OrderItemRead(BaseModel):
    id: str
    menu_item_id: Optional[str] = None
    quantity: int
    unit_price_kobo: int
    item_snapshot: Dict[str, Any]

    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    id: str
    order_reference: str
    venue_id: str
    table_id: Optional[str] = None
    table_number: int
    table_label: Optional[str] = None
    customer_name: Optional[str] = None
    status: OrderStatus
    payment_method: PaymentMethod
    payment_confirmed: bool
    total_kobo: int
    expires_at: Optional[datetime] = None
    created_at: datetime
    items: List[OrderItemRead] = []

    model_config = ConfigDict(from_attributes=True)


class StaffOrderRead(OrderRead):
    next_statuses: List[OrderStatus] = []
    has_payment_claim: bool = False


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderEventRead(BaseModel):
    id: str
    event_type: str
    old_status: Optional[str] = None
    new_status: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
