# studio_attendance/core/config.py
from typing import List, Optional

from pydantic_settings import BaseSettings

from studio_attendance.core.exceptions import ConfigurationError

DEV_SESSION_SECRET = "attendance-app-secret-key-change-in-production"


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"
    PORT: int = 5000
    LOG_LEVEL: Optional[str] = None

    DATABASE_URL: str = "sqlite:///./attendance.db"
    AUTO_CREATE_TABLES: bool = True

    SESSION_SECRET: str = DEV_SESSION_SECRET
    SESSION_ALGORITHM: str = "HS256"
    SESSION_TTL_DAYS: int = 7
    SESSION_COOKIE_NAME: str = "sid"

    GOOGLE_SERVICE_ACCOUNT_EMAIL: Optional[str] = None
    GOOGLE_PRIVATE_KEY: Optional[str] = None
    GOOGLE_SHEETS_SPREADSHEET_ID: Optional[str] = None

    CACHE_TTL_SECONDS: int = 600

    BASE_URL: str = "http://localhost:5000"
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[str] = None
    SMTP_SECURE: bool = False
    SMTP_FROM: str = "Studio Attendance <noreply@studio-attendance.local>"

    CORS_ORIGINS: List[str] = [
        "http://localhost:5000",
        "http://127.0.0.1:5000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    class Config:
        env_file = ".env"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def sheets_configured(self) -> bool:
        return bool(self.GOOGLE_SERVICE_ACCOUNT_EMAIL and self.GOOGLE_PRIVATE_KEY)

    @property
    def smtp_configured(self) -> bool:
        return bool(self.SMTP_HOST and self.SMTP_USER and self.SMTP_PASS)

    @property
    def log_level(self) -> str:
        if self.LOG_LEVEL:
            return self.LOG_LEVEL.upper()
        return "DEBUG" if self.ENVIRONMENT == "development" else "INFO"

    def validate_for_startup(self) -> None:
        """Refuse to boot a production process on development defaults."""
        if not self.DATABASE_URL:
            raise ConfigurationError("DATABASE_URL must be set")
        if self.is_production and self.SESSION_SECRET == DEV_SESSION_SECRET:
            raise ConfigurationError("SESSION_SECRET must be set in production")
