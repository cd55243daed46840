"""Application configuration."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str

    # Application
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/functions/v1"
    RATE_LIMIT_DEFAULT: str = "120/minute"

    # Payroll token storage
    PAYROLL_ENCRYPTION_KEY: str

    # Gusto
    GUSTO_CLIENT_ID: str = ""
    GUSTO_CLIENT_SECRET: str = ""

    # QuickBooks Payroll
    QUICKBOOKS_CLIENT_ID: str = ""
    QUICKBOOKS_CLIENT_SECRET: str = ""

    # Outbound provider calls (seconds)
    PAYROLL_HTTP_TIMEOUT: float = 30.0

    # Anomaly scheduler
    ANOMALY_SCHEDULER_ENABLED: bool = False
    ANOMALY_SCHEDULE_HOUR: int = 21

    @field_validator("DATABASE_URL", "PAYROLL_ENCRYPTION_KEY")
    @classmethod
    def _require_value(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("ANOMALY_SCHEDULE_HOUR")
    @classmethod
    def _valid_hour(cls, value: int) -> int:
        if not 0 <= value <= 23:
            raise ValueError("must be between 0 and 23")
        return value

    # CORS
    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        # Edge functions are called from the web app, mobile shells and
        # scheduled triggers alike.
        return ["*"]

    @property
    def ASYNC_DATABASE_URL(self) -> str:
        """Database URL with the asyncpg driver."""
        url = self.DATABASE_URL
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True
    )


settings = Settings()
