from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from app.models.base import Base
from app.utils.timezones import utcnow
import uuid

class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price_kobo = Column(Integer, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)

    venue_id = Column(String, ForeignKey("venues.id", ondelete="CASCADE"), nullable=False, index=True)
    venue = relationship("Venue", back_populates="menu_items")

    category_id = Column(String, ForeignKey("categories.id"), nullable=False)
    category = relationship("MenuCategory", back_populates="items")

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    order_items = relationship("OrderItem", back_populates="menu_item")
