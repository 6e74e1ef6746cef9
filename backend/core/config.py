from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # App settings
    APP_NAME: str = "Gold Collar Site API"
    VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Security settings
    SECRET_KEY: Optional[str] = None
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    PASSWORD_MIN_LENGTH: int = 8

    # Password reset OTP
    OTP_EXPIRE_MINUTES: int = 5

    # Database settings (MySQL)
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 300
    DB_POOL_TIMEOUT: int = 10
    DB_CONNECT_TIMEOUT: int = 10
    DB_PRE_PING: bool = True

    # CORS settings
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:5173",
        "https://goldcollarpartners.com.au",
        "https://www.goldcollarpartners.com.au",
    ]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TTL_DAYS: int = 7

    # Transactional email (Resend HTTP API)
    RESEND_API_KEY: Optional[str] = None
    RESEND_API_BASE: str = "https://api.resend.com"
    EMAIL_FROM: str = "Gold Commercial <onboarding@resend.dev>"
    EMAIL_BRAND_NAME: str = "Gold Commercial"
    EMAIL_TIMEOUT: int = 15

    # SMTP fallback, used when no Resend key is configured
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM_EMAIL: Optional[str] = None
    SMTP_FROM_NAME: str = "Gold Commercial"
    SMTP_USE_TLS: bool = True
    SMTP_USE_SSL: bool = False
    SMTP_TIMEOUT: int = 15

    # MongoDB (optional)
    USE_MONGO: bool = False
    MONGO_URI: Optional[str] = None
    MONGO_DB: str = "goldcollar"

    class Config:
        env_file = ".env"
        case_sensitive = True

def check_required(s: Settings) -> None:
    """Raise ValueError when a setting the app cannot start without is missing."""
    if not s.SECRET_KEY:
        raise ValueError("SECRET_KEY environment variable is required")
    if not s.USE_MONGO and not s.DATABASE_URL:
        raise ValueError("DATABASE_URL environment variable is required")

# Create settings instance
settings = Settings()
check_required(settings)
