from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from libs.common.logging import get_logger

logger = get_logger(__name__)

DEFAULT_JWT_SECRET = "your-super-secret-jwt-key-change-in-production"


class ConfigurationError(RuntimeError):
    """Raised when required settings are missing at startup."""


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "test", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    APP_NAME: str = "BOMA 2025"
    FRONTEND_URL: str = "http://localhost:3000"
    SUPPORT_EMAIL: str = "support@boma2025.com"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Auth
    JWT_SECRET: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"

    # Paystack
    PAYSTACK_SECRET_KEY: str = ""
    PAYSTACK_PUBLIC_KEY: str = ""
    PAYSTACK_BASE_URL: str = "https://api.paystack.co"
    PAYSTACK_CALLBACK_URL: Optional[str] = None

    # Email (SMTP)
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    DEFAULT_FROM_EMAIL: str = "noreply@boma2025.com"
    DEFAULT_FROM_NAME: str = "BOMA 2025"

    # Background worker
    REDIS_URL: str = "redis://localhost:6379/0"
    STALE_ORDER_MINUTES: int = 60
    STALE_ORDER_CANCEL_HOURS: int = 24

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def validate_for_startup(self) -> None:
        """
        Check secrets once during bootstrap.

        Local and test environments may run without gateway credentials;
        everything else must be fully configured.
        """
        missing = []
        if not self.JWT_SECRET:
            missing.append("JWT_SECRET")
        if self.ENVIRONMENT not in ("local", "test") and not self.PAYSTACK_SECRET_KEY:
            missing.append("PAYSTACK_SECRET_KEY")
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        if self.is_production:
            if self.JWT_SECRET == DEFAULT_JWT_SECRET:
                raise ConfigurationError("Refusing to start with default JWT_SECRET")
            if self.PAYSTACK_SECRET_KEY.startswith("sk_test_"):
                logger.warning("Using test Paystack keys in production")

        logger.info(
            "Configuration loaded (environment=%s, paystack=%s, email=%s)",
            self.ENVIRONMENT,
            "configured" if self.PAYSTACK_SECRET_KEY else "not configured",
            "configured" if self.SMTP_USERNAME else "not configured",
        )


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
