import os
import sys
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_CODE_ALPHABET = "123456789ABCDEFGHIJKLMNPQRSTUVWXYZ"


def _should_load_env_file() -> str | None:
    """Determine if .env should be loaded.

    Do NOT auto-load `.env` when running under pytest or in CI so tests run
    against a predictable configuration.
    """
    if any("pytest" in str(x) for x in sys.argv if x):
        return None
    if os.environ.get("CI") in ("1", "true", "True"):
        return None
    return ".env"


class FloodConfig(BaseModel):
    """Attempt limits for failed magic code verifications."""

    model_config = ConfigDict(frozen=True)

    ip_limit: int
    ip_window: int
    user_limit: int
    user_window: int


class Settings(BaseSettings):
    # Environment configuration
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment: 'development', 'test', 'staging', or 'production'",
    )

    DATABASE_URL: str = "sqlite:///./data/magic_code.db"
    SECRET_KEY: str = Field(
        ...,  # Required, no default
        description="JWT secret key - must be set via SECRET_KEY environment variable",
    )
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Database connection pool settings
    DB_POOL_SIZE: int = Field(
        default=5,
        description="Number of persistent connections in pool",
    )
    DB_MAX_OVERFLOW: int = Field(
        default=10,
        description="Extra connections when pool exhausted",
    )
    DB_POOL_TIMEOUT: int = Field(
        default=30,
        description="Seconds to wait for connection from pool",
    )
    DB_POOL_RECYCLE: int = Field(
        default=1800,
        description="Recycle connections after N seconds (30 min default)",
    )

    # Safety: avoid creating DB schema automatically unless explicitly enabled.
    AUTO_CREATE_DB: bool = Field(
        default=False,
        description="When true (development only), call Base.metadata.create_all on startup",
    )

    SLOW_REQUEST_THRESHOLD: float = Field(
        default=1.0,
        description="Log warning for requests slower than this (seconds)",
    )
    LOG_FILE: Optional[str] = Field(
        default=None,
        description="Optional path of a rotating log file",
    )

    # Magic code issuance
    MAGIC_CODE_TTL: int = Field(
        default=900,
        description="Seconds until an issued magic code expires",
    )
    MAGIC_CODE_ALPHABET: str = Field(
        default=DEFAULT_CODE_ALPHABET,
        description="Symbols a magic code is drawn from (0 and O left out on purpose)",
    )
    MAGIC_CODE_MAX_GENERATION_ATTEMPTS: int = Field(
        default=10,
        description="Attempts to find an unused code value before giving up",
    )
    MAGIC_CODE_LOGIN_PERMITTED_OPERATIONS: Annotated[List[str], NoDecode] = Field(
        default=["login", "register", "set-password"],
        description="Operations whose codes may also be used to log in (comma-separated in env var)",
    )

    # Magic code flood protection
    MAGIC_CODE_FLOOD_IP_LIMIT: int = Field(
        default=50,
        description="Failed verifications allowed per IP within the IP window",
    )
    MAGIC_CODE_FLOOD_IP_WINDOW: int = Field(
        default=3600,
        description="IP flood window in seconds",
    )
    MAGIC_CODE_FLOOD_USER_LIMIT: int = Field(
        default=5,
        description="Failed verifications allowed per user within the user window",
    )
    MAGIC_CODE_FLOOD_USER_WINDOW: int = Field(
        default=3600,
        description="User flood window in seconds",
    )

    # Housekeeping and API
    MAGIC_CODE_CLEANUP_BATCH_SIZE: int = Field(
        default=500,
        description="Expired codes deleted per batch by the cleanup task",
    )
    MAGIC_CODE_ISSUE_RATE_LIMIT: str = Field(
        default="20/minute",
        description="slowapi limit for the issue endpoint (per client IP)",
    )

    # Client applications
    DEFAULT_CLIENT_ID: str = Field(
        default="default",
        description="Public identifier of the default client application",
    )
    DEFAULT_CLIENT_LABEL: str = Field(
        default="Default client",
        description="Label used when init_db creates the default client application",
    )

    def flood_config(self) -> FloodConfig:
        """Typed view of the flood settings."""
        return FloodConfig(
            ip_limit=self.MAGIC_CODE_FLOOD_IP_LIMIT,
            ip_window=self.MAGIC_CODE_FLOOD_IP_WINDOW,
            user_limit=self.MAGIC_CODE_FLOOD_USER_LIMIT,
            user_window=self.MAGIC_CODE_FLOOD_USER_WINDOW,
        )

    @field_validator("MAGIC_CODE_LOGIN_PERMITTED_OPERATIONS", mode="before")
    @classmethod
    def parse_login_permitted_operations(cls, v: str | List[str]) -> List[str]:
        """Parse login permitted operations from comma-separated string."""
        if isinstance(v, str):
            return [op.strip() for op in v.split(",") if op.strip()]
        return v

    @field_validator("MAGIC_CODE_ALPHABET")
    @classmethod
    def validate_alphabet(cls, v: str) -> str:
        if "-" in v:
            raise ValueError("alphabet must not contain the '-' separator")
        if len(set(v)) < 2:
            raise ValueError("alphabet needs at least two distinct symbols")
        return v

    @field_validator(
        "MAGIC_CODE_TTL",
        "MAGIC_CODE_MAX_GENERATION_ATTEMPTS",
        "MAGIC_CODE_FLOOD_IP_LIMIT",
        "MAGIC_CODE_FLOOD_IP_WINDOW",
        "MAGIC_CODE_FLOOD_USER_LIMIT",
        "MAGIC_CODE_FLOOD_USER_WINDOW",
        "MAGIC_CODE_CLEANUP_BATCH_SIZE",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    model_config = SettingsConfigDict(
        env_file=_should_load_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",  # Allow extra env vars (e.g., SENTRY_DSN) without validation errors
    )


settings = Settings()
