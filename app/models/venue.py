# app/models/venue.py
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from fastapi_users_db_sqlalchemy.generics import GUID
import uuid

from app.models.base import Base
from app.utils.timezones import utcnow


class Venue(Base):
    """A tenant: one independent restaurant business."""
    __tablename__ = "venues"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    venue_slug = Column(String, unique=True, nullable=False)

    is_suspended = Column(Boolean, nullable=False, default=False)
    suspended_at = Column(DateTime, nullable=True)
    suspended_by = Column(GUID, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    tables = relationship("VenueTable", back_populates="venue", cascade="all, delete-orphan")
    menu_items = relationship("MenuItem", back_populates="venue", cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="venue")
    settings = relationship("VenueSetting", back_populates="venue", cascade="all, delete-orphan")
    feature_flags = relationship("TenantFeatureFlag", back_populates="tenant", cascade="all, delete-orphan")
    bank_details = relationship("BankDetails", back_populates="venue", cascade="all, delete-orphan")


class VenueSetting(Base):
    __tablename__ = "venue_settings"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    venue_id = Column(String, ForeignKey("venues.id", ondelete="CASCADE"), nullable=False)
    setting_key = Column(String, nullable=False)  # e.g. "order_expiry_minutes"
    setting_value = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    venue = relationship("Venue", back_populates="settings")

    __table_args__ = (
        UniqueConstraint("venue_id", "setting_key", name="uq_venue_setting_key"),
    )
