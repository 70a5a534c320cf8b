# app/core/constants.py

# Venue setting keys
ORDER_EXPIRY_MINUTES = "order_expiry_minutes"

# Feature flag keys (tenant_feature_flags.feature_key)
FEATURE_FLAGS = (
    "cash_payments",
    "bank_transfers",
    "customer_name_required",
    "show_estimated_time",
    "advanced_analytics",
    "multi_location",
    "loyalty_program",
    "custom_branding",
)

PAYMENT_METHOD_FLAGS = {
    "cash": "cash_payments",
    "bank_transfer": "bank_transfers",
}

# Uploads
MAX_PROOF_SIZE = 10 * 1024 * 1024  # 10MB
ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/png"]
PROOF_PREFIX = "payment-proofs"

# Generated passwords skip look-alike characters (0/O, 1/l/I)
PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghjkmnpqrstuvwxyz23456789!@#$%&*"
GENERATED_PASSWORD_LENGTH = 16
MIN_PASSWORD_LENGTH = 6

# Session keys
SESSION_IMPERSONATED_TENANT = "impersonated_tenant"
SESSION_CURRENT_TENANT = "current_tenant_id"
