from .base import Base
from .venue import Venue, VenueSetting
from .user import User, SuperAdmin, UserRole, PasswordResetRateLimit
from .menu.menu_category import MenuCategory
from .menu.menu_item import MenuItem
from .table import VenueTable
from .order import Order, OrderItem, OrderEvent, OrderRateLimit, OrderStatus, PaymentMethod
from .payment import PaymentClaim, PaymentConfirmation, BankDetails
from .feature_flag import TenantFeatureFlag
from .invitation import StaffInvitation
from .audit_log import AuditLog  # ← registers the append-only listeners
