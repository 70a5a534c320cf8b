# app/core/config.py
from typing import List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()


class Settings(BaseSettings):
    database_url: Optional[str] = None
    sql_echo: bool = False
    log_level: str = "INFO"
    db_pool_size: int = 5

    session_secret: str = "tableside-session-secret"  # 🔐 Replace in production
    cors_origins: List[str] = ["*"]
    public_app_url: str = "http://localhost:5173"

    # Orders
    order_expiry_minutes_default: int = 15
    order_rate_limit_max: int = 5
    order_rate_limit_window_minutes: int = 10
    order_rate_limit_retention_minutes: int = 60

    # Password resets
    password_reset_limit: int = 3
    password_reset_window_minutes: int = 60
    password_reset_retention_minutes: int = 120

    invitation_ttl_days: int = 7
    proof_url_ttl_seconds: int = 3600

    # Resend (invitation emails)
    resend_api_key: Optional[str] = None
    invitation_from_email: Optional[str] = None

    # DigitalOcean Spaces (payment proofs)
    do_spaces_key: Optional[str] = None
    do_spaces_secret: Optional[str] = None
    do_spaces_region: str = "nyc3"
    do_spaces_bucket: Optional[str] = None
    do_spaces_endpoint: Optional[str] = None  # e.g. https://nyc3.digitaloceanspaces.com
    do_spaces_prefix: str = "prod"


settings = Settings()
