from sqlalchemy import Column, String, Integer, DateTime
from sqlalchemy.orm import relationship
from app.models.base import Base
from app.utils.timezones import utcnow
import uuid

class MenuCategory(Base):
    # Platform-wide; managed by super admins and shared by all venues
    __tablename__ = "categories"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    items = relationship("MenuItem", back_populates="category")
