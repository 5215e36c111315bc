import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    env: str = Field(default="dev", description="Deployment environment")
    app_name: str = "Store HRMS API"
    database_url: str = Field(
        default="sqlite:///./hrms.db",
        description="SQLAlchemy database URL",
    )
    cors_origins: list[str] = []
    log_level: str = "INFO"
    sentry_dsn: str | None = Field(default=None, description="Sentry DSN for error monitoring")
    otlp_endpoint: str | None = Field(default=None, description="OTLP endpoint for traces/metrics")

    display_timezone: str = Field(
        default="Asia/Kolkata",
        description="Timezone used when rendering stored UTC timestamps",
    )
    default_weekday_off: str = "Sunday"
    cron_secret: str | None = Field(
        default=None, description="Shared secret accepted by the attendance job endpoint"
    )
    attendance_job_batch_size: int = Field(default=100, gt=0)
    attendance_job_max_retries: int = Field(default=3, ge=0)
    attendance_job_retry_backoff_seconds: float = Field(default=1.0, ge=0)

    model_config = SettingsConfigDict(env_prefix="HRMS_", extra="ignore")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin]
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings(_env_file=get_settings_env_file())


def get_settings_env_file() -> str | None:
    """Resolve environment-specific env file if it exists."""
    env = os.getenv("HRMS_ENV", "dev")
    env_file = BASE_DIR / f".env.{env}"
    default_file = BASE_DIR / ".env"
    if env_file.exists():
        return str(env_file)
    if default_file.exists():
        return str(default_file)
    return None


settings = get_settings()
