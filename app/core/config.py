"""Application configuration."""

from os import getenv

from pydantic import BaseModel


class Settings(BaseModel):
    """Runtime settings for the application."""

    app_name: str = "Rewards Checkout API"
    app_env: str = getenv("APP_ENV", "dev")
    debug: bool = getenv("DEBUG", "0") == "1"
    database_url: str = getenv("DATABASE_URL", "sqlite:///./checkout.db")
    db_pool_size: int = int(getenv("DB_POOL_SIZE", "10"))
    db_max_overflow: int = int(getenv("DB_MAX_OVERFLOW", "5"))
    db_pool_timeout: int = int(getenv("DB_POOL_TIMEOUT", "30"))
    jwt_secret_key: str = getenv("JWT_SECRET_KEY", "dev-only-change-me-to-a-long-random-secret")
    jwt_algorithm: str = getenv("JWT_ALGORITHM", "HS256")
    jwt_expire_minutes: int = int(getenv("JWT_EXPIRE_MINUTES", "60"))
    admin_user: str = getenv("ADMIN_USER", "")
    admin_pass: str = getenv("ADMIN_PASS", "")
    signup_bonus_window_days: int = int(getenv("SIGNUP_BONUS_WINDOW_DAYS", "7"))
    voucher_default_expiry_days: int = int(getenv("VOUCHER_DEFAULT_EXPIRY_DAYS", "30"))
    currency: str = getenv("CURRENCY", "USD")


settings: Settings = Settings()
