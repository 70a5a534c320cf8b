from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from fastapi_users_db_sqlalchemy import SQLAlchemyBaseUserTableUUID
from fastapi_users_db_sqlalchemy.generics import GUID
import uuid

from app.models.base import Base
from app.utils.timezones import utcnow


class User(SQLAlchemyBaseUserTableUUID, Base):
    """Login credentials plus the profile fields of a platform user."""
    __tablename__ = "users"

    display_name = Column(String, nullable=True)
    # Null for super admins
    venue_id = Column(String, ForeignKey("venues.id", ondelete="SET NULL"), nullable=True)

    is_archived = Column(Boolean, nullable=False, default=False)
    archived_at = Column(DateTime, nullable=True)
    archived_by = Column(GUID, nullable=True)

    must_change_password = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    roles = relationship("UserRole", back_populates="user", cascade="all, delete-orphan")


class SuperAdmin(Base):
    __tablename__ = "super_admins"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class UserRole(Base):
    __tablename__ = "user_roles"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tenant_id = Column(String, ForeignKey("venues.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String, nullable=False, default="staff")  # "admin", "staff"
    tenant_role = Column(String, nullable=False, default="staff")  # "tenant_admin", "staff"

    user = relationship("User", back_populates="roles")
    venue = relationship("Venue")

    # One tenant role per user per tenant
    __table_args__ = (
        UniqueConstraint("user_id", "tenant_id", name="uq_user_role_tenant"),
    )


class PasswordResetRateLimit(Base):
    __tablename__ = "password_reset_rate_limits"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    target_user_id = Column(GUID, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
