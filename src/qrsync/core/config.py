from functools import lru_cache

from pydantic import AliasChoices, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOCAL_ENVIRONMENTS = frozenset({"development", "dev", "local", "test"})
SUPPORTED_MARKER_BACKENDS = frozenset({"database", "redis", "inmemory"})


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    app_name: str = Field(default="QRSync", validation_alias="APP_NAME")
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    telegram_bot_token: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("TELEGRAM_BOT_TOKEN", "TELEGRAM_TOKEN"),
    )
    telegram_api_base_url: str = Field(
        default="https://api.telegram.org",
        validation_alias="TELEGRAM_API_BASE_URL",
    )
    telegram_timeout_seconds: float = Field(
        default=20.0,
        validation_alias="TELEGRAM_TIMEOUT_SECONDS",
        gt=0,
    )
    telegram_webhook_secret: SecretStr | None = Field(
        default=None,
        validation_alias="TELEGRAM_WEBHOOK_SECRET",
    )
    allow_insecure_telegram_webhook: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "ALLOW_INSECURE_TELEGRAM_WEBHOOK",
            "ALLOW_UNAUTHENTICATED_TELEGRAM_WEBHOOK",
        ),
    )
    max_photo_size: int = Field(default=1280, validation_alias="MAX_PHOTO_SIZE", ge=1)
    duplicate_update_notify: bool = Field(
        default=False,
        validation_alias="DUPLICATE_UPDATE_NOTIFY",
    )
    marker_backend: str = Field(default="database", validation_alias="MARKER_BACKEND")
    marker_key: str = Field(default="latest_update_id", validation_alias="MARKER_KEY")
    redis_url: str | None = Field(default=None, validation_alias="REDIS_URL")
    database_url: SecretStr = Field(
        default="sqlite:///./qrsync.db",
        validation_alias="DATABASE_URL",
    )

    @field_validator("marker_backend", mode="before")
    @classmethod
    def normalize_marker_backend(cls, value: str) -> str:
        """Normalize MARKER_BACKEND to lowercase for stable comparisons."""
        return str(value).strip().lower()

    @field_validator("telegram_api_base_url", mode="before")
    @classmethod
    def normalize_telegram_api_base_url(cls, value: str) -> str:
        """Drop trailing slashes so method URLs can be joined with one '/'."""
        return str(value).strip().rstrip("/")

    @property
    def is_local_environment(self) -> bool:
        return self.environment.strip().lower() in LOCAL_ENVIRONMENTS

    @model_validator(mode="after")
    def validate_backends(self) -> "Settings":
        """Validate marker backend and secret requirements."""
        database_url = self.database_url.get_secret_value().strip().lower()

        if self.marker_backend not in SUPPORTED_MARKER_BACKENDS:
            options = ", ".join(sorted(SUPPORTED_MARKER_BACKENDS))
            raise ValueError(f"MARKER_BACKEND must be one of: {options}")
        if self.marker_backend == "redis" and not self.redis_url:
            raise ValueError("REDIS_URL is required when MARKER_BACKEND=redis")
        if not self.marker_key.strip():
            raise ValueError("MARKER_KEY must not be blank")
        if not self.is_local_environment:
            if self.marker_backend == "inmemory":
                raise ValueError(
                    "MARKER_BACKEND=inmemory is not allowed outside development/local/test"
                )
            if self.marker_backend == "database" and database_url.startswith("sqlite"):
                raise ValueError("DATABASE_URL must not use sqlite outside development/local/test")
            if self.telegram_bot_token is None:
                raise ValueError("TELEGRAM_BOT_TOKEN is required outside development/local/test")
            if self.telegram_webhook_secret is None and not self.allow_insecure_telegram_webhook:
                raise ValueError(
                    "TELEGRAM_WEBHOOK_SECRET is required outside development/local/test unless "
                    "ALLOW_INSECURE_TELEGRAM_WEBHOOK=true"
                )

        return self


@lru_cache
def get_settings() -> Settings:
    """Build settings from environment variables."""
    return Settings()
