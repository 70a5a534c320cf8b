import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PaymentClaimRead(BaseModel):
    id: str
    order_id: str
    proof_key: Optional[str] = None
    sender_name: Optional[str] = None
    bank_name: Optional[str] = None
    notes: Optional[str] = None
    claimed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentConfirm(BaseModel):
    notes: Optional[str] = None


class PaymentConfirmationRead(BaseModel):
    id: str
    order_id: str
    confirmed_by: Optional[uuid.UUID] = None
    method: str
    notes: Optional[str] = None
    confirmed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BankDetailsIn(BaseModel):
    bank_name: str = Field(min_length=1)
    account_name: str = Field(min_length=1)
    account_number: str = Field(min_length=1)


class BankDetailsRead(BaseModel):
    id: str
    venue_id: str
    bank_name: str
    account_name: str
    account_number: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class SignedUrlRead(BaseModel):
    url: str
    expires_in: int
