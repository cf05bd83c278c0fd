"""Application settings, read from the environment and an optional ``.env`` file."""
import logging
from typing import List, Optional, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.constants import ACCESS_TOKEN_EXPIRE_MINUTES as DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES

logger = logging.getLogger(__name__)

DEFAULT_SECRET_KEY = "your-secret-key-change-in-production"
DEFAULT_ADMIN_PASSWORD = "adminpass"
DEVELOPMENT_DATABASE_URL = "sqlite:///./checkin_rewards.db"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    APP_TITLE: str = "Check-in Rewards"
    APP_DESCRIPTION: str = "Daily check-ins, streaks, badges and reward redemptions"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development, staging, production
    LOG_LEVEL: str = "INFO"

    # Either a full URL or the POSTGRES_* parts
    DATABASE_URL: Optional[str] = None
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_HOST: Optional[str] = None
    POSTGRES_PORT: Optional[str] = None
    POSTGRES_DB: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # Employee tokens are issued by the identity provider and signed with the same key
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES
    ADMIN_PASSWORD: str = DEFAULT_ADMIN_PASSWORD  # plain or an argon2 hash from manage.py

    CORS_ORIGINS: Union[List[str], str] = ["*"]

    DEFAULT_COMPANY_ID: int = 1  # company for admin tokens without a company claim
    AUTO_APPROVE_USERS: bool = False  # registrations start "pending" unless set

    # Printed QR codes encode {CHECKIN_URL_BASE}/checkin/{code}
    CHECKIN_URL_BASE: str = "http://localhost:8000"

    CONFIG_CACHE_TTL: float = 30.0
    LEADERBOARD_CACHE_TTL: float = 5.0
    SSE_ADMIN_INTERVAL: int = 3

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def split_cors_origins(cls, value):
        """Accept ``a.com, b.com`` from the environment as well as a list."""
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("CHECKIN_URL_BASE")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def get_database_url(self) -> str:
        """DATABASE_URL, else a URL built from POSTGRES_*, else a local SQLite file in development."""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        parts = (self.POSTGRES_USER, self.POSTGRES_PASSWORD, self.POSTGRES_HOST, self.POSTGRES_DB)
        if all(parts):
            return (
                f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
                f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT or '5432'}/{self.POSTGRES_DB}"
            )

        if self.ENVIRONMENT == "development":
            return DEVELOPMENT_DATABASE_URL

        raise ValueError(
            "Database configuration missing. Set DATABASE_URL or "
            "POSTGRES_USER, POSTGRES_PASSWORD, POSTGRES_HOST and POSTGRES_DB"
        )

    def validate_production_config(self) -> None:
        """Refuse to start in production with default secrets or open CORS."""
        if self.ENVIRONMENT != "production":
            return

        problems = []
        if self.SECRET_KEY == DEFAULT_SECRET_KEY:
            problems.append("SECRET_KEY must be changed from default value")
        if self.ADMIN_PASSWORD == DEFAULT_ADMIN_PASSWORD:
            problems.append("ADMIN_PASSWORD must be changed from default value")
        if self.CORS_ORIGINS == ["*"]:
            problems.append("CORS_ORIGINS should be restricted to specific domains")
        if self.CHECKIN_URL_BASE.startswith("http://localhost"):
            problems.append("CHECKIN_URL_BASE must point at the public check-in page")

        if not self.ADMIN_PASSWORD.startswith("$argon2"):
            logger.warning("ADMIN_PASSWORD is not hashed; generate one with: python manage.py hash-password")

        if problems:
            raise ValueError(
                "Production configuration errors:\n" + "\n".join(f"  - {problem}" for problem in problems)
            )


settings = Settings()
