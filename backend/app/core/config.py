from functools import lru_cache

import json

from typing import Annotated, List, Sequence

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode


DEFAULT_DATABASE_URL = "postgresql+psycopg://walker:changeme@db:5432/schoolwalk"
DEFAULT_FLOORS = ("basement", "first", "second", "third", "fourth", "fifth")


def _split_csv_or_json(value: Sequence[str] | str | None, *, field_name: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            return []

        if cleaned.startswith("["):
            try:
                parsed = json.loads(cleaned)
            except json.JSONDecodeError as exc:
                raise ValueError(f"{field_name} must be valid JSON or CSV") from exc

            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
            if isinstance(parsed, str):
                parsed = parsed.strip()
                return [parsed] if parsed else []
            raise ValueError(f"{field_name} must decode to a list or string")

        return [item.strip() for item in cleaned.split(",") if item.strip()]

    return [str(item).strip() for item in value if str(item).strip()]


class Settings(BaseSettings):
    database_url: str = Field(DEFAULT_DATABASE_URL, alias="DATABASE_URL")
    app_env: str = Field("development", alias="APP_ENV")

    cors_allowed_origins: Annotated[List[str], NoDecode] = Field(
        default_factory=list, alias="CORS_ALLOWED_ORIGINS"
    )
    gzip_min_length: int = Field(1024, alias="GZIP_MIN_LENGTH")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(True, alias="LOG_JSON")
    sentry_dsn: str | None = Field(None, alias="SENTRY_DSN")
    sentry_traces_sample_rate: float = Field(0.1, alias="SENTRY_TRACES_SAMPLE_RATE")
    admin_api_token: str | None = Field(default=None, alias="ADMIN_API_TOKEN")
    metrics_enabled: bool = Field(True, alias="METRICS_ENABLED")

    s3_endpoint: str | None = Field(default=None, alias="S3_ENDPOINT")
    s3_public_endpoint: str | None = Field(default=None, alias="S3_PUBLIC_ENDPOINT")
    s3_access_key: str | None = Field(default=None, alias="S3_ACCESS_KEY")
    s3_secret_key: str | None = Field(default=None, alias="S3_SECRET_KEY")
    s3_region: str | None = Field(default=None, alias="S3_REGION")
    s3_use_path_style: bool = Field(False, alias="S3_USE_PATH_STYLE")
    photos_bucket: str = Field("survey-photos", alias="PHOTOS_BUCKET")
    floor_plans_bucket: str = Field("floor-plans", alias="FLOOR_PLANS_BUCKET")
    floor_plans_public: bool = Field(True, alias="FLOOR_PLANS_PUBLIC")
    signed_url_ttl_seconds: int = Field(3600, alias="SIGNED_URL_TTL_SECONDS")

    floor_plan_max_size: int = Field(10 * 1024 * 1024, alias="FLOOR_PLAN_MAX_SIZE")
    floor_plan_placeholder_url: str = Field(
        "/placeholder.svg", alias="FLOOR_PLAN_PLACEHOLDER_URL"
    )
    floor_plan_upload_rate_limit: str = Field(
        "30/minute", alias="FLOOR_PLAN_UPLOAD_RATE_LIMIT"
    )
    default_floors: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_FLOORS), alias="DEFAULT_FLOORS"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "populate_by_name": True,
    }

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Sequence[str] | str | None) -> Sequence[str]:
        return _split_csv_or_json(value, field_name="CORS_ALLOWED_ORIGINS")

    @field_validator("default_floors", mode="before")
    @classmethod
    def _split_floors(cls, value: Sequence[str] | str | None) -> Sequence[str]:
        floors = [floor.lower() for floor in _split_csv_or_json(value, field_name="DEFAULT_FLOORS")]
        return floors or list(DEFAULT_FLOORS)

    @field_validator("sentry_traces_sample_rate")
    @classmethod
    def _clamp_sample_rate(cls, value: float) -> float:
        return max(0.0, min(1.0, value))

    @field_validator("signed_url_ttl_seconds")
    @classmethod
    def _positive_ttl(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("SIGNED_URL_TTL_SECONDS must be positive")
        return value

    @field_validator(
        "s3_endpoint",
        "s3_public_endpoint",
        "s3_access_key",
        "s3_secret_key",
        "s3_region",
        "sentry_dsn",
        "admin_api_token",
        mode="before",
    )
    @classmethod
    def _empty_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return value

    @field_validator("photos_bucket", "floor_plans_bucket", mode="before")
    @classmethod
    def _require_bucket(cls, value: str | None) -> str:
        if value is None or not str(value).strip():
            raise ValueError("Bucket names cannot be empty")
        return str(value).strip()

    @field_validator("database_url", mode="before")
    @classmethod
    def _ensure_database_url(cls, value: str | None) -> str:
        if value is None:
            return DEFAULT_DATABASE_URL
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                return DEFAULT_DATABASE_URL
            return stripped
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
