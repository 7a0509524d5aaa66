from __future__ import annotations

from dataclasses import dataclass

from pydantic import AnyHttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bureau_intake.errors import ConfigurationError

DEFAULT_MAX_BODY_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class StorageConfig:
    bucket: str
    endpoint: str
    access_key: str
    secret_key: str
    region: str
    force_path_style: bool
    public_base_url: str | None
    timeout_seconds: float
    max_bytes: int


@dataclass(frozen=True)
class IntakeConfig:
    """Everything the intake handler needs, resolved once per process."""

    datastore_url: str
    datastore_service_key: str
    datastore_schema: str
    request_timeout_seconds: float
    write_operational_records: bool
    log_payloads: bool
    storage: StorageConfig | None


class Settings(BaseSettings):
    INTAKE_DATASTORE_URL: AnyHttpUrl | None = None
    INTAKE_DATASTORE_SERVICE_KEY: str | None = None
    INTAKE_DATASTORE_SCHEMA: str = "public"
    INTAKE_REQUEST_TIMEOUT_SECONDS: float = 20.0
    INTAKE_MAX_BODY_BYTES: int = DEFAULT_MAX_BODY_BYTES
    INTAKE_WRITE_OPERATIONAL_RECORDS: bool = False
    INTAKE_LOG_PAYLOADS: bool = False
    INTAKE_LOG_LEVEL: str = "INFO"

    MEDIA_STORAGE_BUCKET: str = "brand-assets"
    MEDIA_STORAGE_ENDPOINT: str | None = None
    MEDIA_STORAGE_ACCESS_KEY: str | None = None
    MEDIA_STORAGE_SECRET_KEY: str | None = None
    MEDIA_STORAGE_REGION: str = "us-east-1"
    MEDIA_STORAGE_FORCE_PATH_STYLE: bool = True
    MEDIA_STORAGE_PUBLIC_BASE_URL: AnyHttpUrl | None = None
    MEDIA_MIRROR_TIMEOUT_SECONDS: float = 15.0
    MEDIA_MIRROR_MAX_BYTES: int = 25 * 1024 * 1024

    @field_validator(
        "INTAKE_DATASTORE_URL",
        "INTAKE_DATASTORE_SERVICE_KEY",
        "MEDIA_STORAGE_ENDPOINT",
        "MEDIA_STORAGE_PUBLIC_BASE_URL",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("INTAKE_LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    @property
    def mirroring_enabled(self) -> bool:
        return bool(
            self.MEDIA_STORAGE_ENDPOINT
            and self.MEDIA_STORAGE_ACCESS_KEY
            and self.MEDIA_STORAGE_SECRET_KEY
        )

    def storage_config(self) -> StorageConfig | None:
        if not self.mirroring_enabled:
            return None
        public_base = (
            str(self.MEDIA_STORAGE_PUBLIC_BASE_URL).rstrip("/")
            if self.MEDIA_STORAGE_PUBLIC_BASE_URL
            else None
        )
        return StorageConfig(
            bucket=self.MEDIA_STORAGE_BUCKET,
            endpoint=self.MEDIA_STORAGE_ENDPOINT or "",
            access_key=self.MEDIA_STORAGE_ACCESS_KEY or "",
            secret_key=self.MEDIA_STORAGE_SECRET_KEY or "",
            region=self.MEDIA_STORAGE_REGION,
            force_path_style=self.MEDIA_STORAGE_FORCE_PATH_STYLE,
            public_base_url=public_base,
            timeout_seconds=self.MEDIA_MIRROR_TIMEOUT_SECONDS,
            max_bytes=self.MEDIA_MIRROR_MAX_BYTES,
        )

    def intake_config(self) -> IntakeConfig:
        if not self.INTAKE_DATASTORE_URL:
            raise ConfigurationError("INTAKE_DATASTORE_URL")
        if not self.INTAKE_DATASTORE_SERVICE_KEY:
            raise ConfigurationError("INTAKE_DATASTORE_SERVICE_KEY")
        return IntakeConfig(
            datastore_url=str(self.INTAKE_DATASTORE_URL).rstrip("/"),
            datastore_service_key=self.INTAKE_DATASTORE_SERVICE_KEY,
            datastore_schema=self.INTAKE_DATASTORE_SCHEMA,
            request_timeout_seconds=self.INTAKE_REQUEST_TIMEOUT_SECONDS,
            write_operational_records=self.INTAKE_WRITE_OPERATIONAL_RECORDS,
            log_payloads=self.INTAKE_LOG_PAYLOADS,
            storage=self.storage_config(),
        )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
