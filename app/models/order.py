# app/models/order.py
from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, ForeignKey, Enum, JSON, Index,
)
from sqlalchemy.orm import relationship
from fastapi_users_db_sqlalchemy.generics import GUID
import enum, uuid

from app.models.base import Base
from app.utils.timezones import utcnow


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PENDING_PAYMENT = "pending_payment"    # bank transfer awaiting confirmation
    CASH_ON_DELIVERY = "cash_on_delivery"  # cash collected at the table
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class PaymentMethod(str, enum.Enum):
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Order(Base):
    __tablename__ = "orders"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    order_reference = Column(String, nullable=False, unique=True)  # e.g. "ORD-3FA9C1"

    venue_id = Column(String, ForeignKey("venues.id"), nullable=False, index=True)
    table_id = Column(String, ForeignKey("tables.id", ondelete="SET NULL"), nullable=True)
    table_number = Column(Integer, nullable=False, default=0)
    table_label = Column(String, nullable=True)
    customer_name = Column(String, nullable=True)

    status = Column(
        Enum(OrderStatus, name="order_status", values_callable=_enum_values),
        nullable=False,
        default=OrderStatus.PENDING_PAYMENT,
    )
    payment_method = Column(
        Enum(PaymentMethod, name="payment_method", values_callable=_enum_values),
        nullable=False,
    )
    payment_confirmed = Column(Boolean, nullable=False, default=False)
    total_kobo = Column(Integer, nullable=False, default=0)

    idempotency_key = Column(String, nullable=True, unique=True)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    venue = relationship("Venue", back_populates="orders")
    table = relationship("VenueTable")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    events = relationship("OrderEvent", back_populates="order", cascade="all, delete-orphan")
    payment_claims = relationship("PaymentClaim", back_populates="order", cascade="all, delete-orphan")
    payment_confirmation = relationship(
        "PaymentConfirmation", back_populates="order", uselist=False, cascade="all, delete-orphan"
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_item_id = Column(String, ForeignKey("menu_items.id", ondelete="SET NULL"), nullable=True)
    quantity = Column(Integer, nullable=False)

    # Snapshot pricing and name at time of order
    unit_price_kobo = Column(Integer, nullable=False)
    item_snapshot = Column(JSON, nullable=False)  # {"name", "description", "price_kobo"}
    created_at = Column(DateTime, nullable=False, default=utcnow)

    order = relationship("Order", back_populates="items")
    menu_item = relationship("MenuItem", back_populates="order_items")


class OrderEvent(Base):
    __tablename__ = "order_events"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    event_type = Column(String, nullable=False)  # order_created, status_change, payment_confirmed
    old_status = Column(String, nullable=True)
    new_status = Column(String, nullable=True)
    actor_id = Column(GUID, nullable=True)
    meta = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    order = relationship("Order", back_populates="events")


class OrderRateLimit(Base):
    __tablename__ = "order_rate_limits"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    table_id = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)


Index("ix_order_rate_limits_table_created", OrderRateLimit.table_id, OrderRateLimit.created_at)
