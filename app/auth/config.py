from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="AUTH_")

    secret: str = "tableside-super-secret-key"  # 🔐 Replace with something strong and secure
    jwt_lifetime_seconds: int = 3600
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "fastapi-users:auth"


auth_config = AuthConfig()
