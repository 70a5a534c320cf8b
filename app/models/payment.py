# app/models/payment.py
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from fastapi_users_db_sqlalchemy.generics import GUID
import uuid

from app.models.base import Base
from app.utils.timezones import utcnow


class PaymentClaim(Base):
    """Guest-submitted evidence of a bank transfer."""
    __tablename__ = "payment_claims"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    proof_key = Column(String, nullable=True)  # object key in the private proofs bucket
    sender_name = Column(String, nullable=True)
    bank_name = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    claimed_at = Column(DateTime, nullable=False, default=utcnow)

    order = relationship("Order", back_populates="payment_claims")


class PaymentConfirmation(Base):
    __tablename__ = "payment_confirmations"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, unique=True)
    confirmed_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    method = Column(String, nullable=False, default="manual")
    notes = Column(Text, nullable=True)
    confirmed_at = Column(DateTime, nullable=False, default=utcnow)

    order = relationship("Order", back_populates="payment_confirmation")


class BankDetails(Base):
    __tablename__ = "bank_details"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    venue_id = Column(String, ForeignKey("venues.id", ondelete="CASCADE"), nullable=False, index=True)
    bank_name = Column(String, nullable=False)
    account_name = Column(String, nullable=False)
    account_number = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    venue = relationship("Venue", back_populates="bank_details")
