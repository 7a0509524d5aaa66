from __future__ import annotations

import pytest

from bureau_intake.config import Settings
from bureau_intake.errors import ConfigurationError


def _settings(**overrides) -> Settings:
    values = {
        "INTAKE_DATASTORE_URL": "https://intake-test.supabase.co/",
        "INTAKE_DATASTORE_SERVICE_KEY": "service_key",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_intake_config_requires_datastore_url():
    settings = _settings(INTAKE_DATASTORE_URL="")

    with pytest.raises(ConfigurationError, match="Missing env var: INTAKE_DATASTORE_URL"):
        settings.intake_config()


def test_intake_config_requires_service_key():
    settings = _settings(INTAKE_DATASTORE_SERVICE_KEY="   ")

    with pytest.raises(ConfigurationError) as exc_info:
        settings.intake_config()

    assert str(exc_info.value) == "Missing env var: INTAKE_DATASTORE_SERVICE_KEY"
    assert exc_info.value.status_code == 500


def test_intake_config_without_storage_disables_mirroring():
    config = _settings(MEDIA_STORAGE_ENDPOINT=None).intake_config()

    assert config.datastore_url == "https://intake-test.supabase.co"
    assert config.datastore_service_key == "service_key"
    assert config.storage is None


def test_intake_config_with_storage_credentials():
    config = _settings(
        MEDIA_STORAGE_ENDPOINT="https://s3.example.com",
        MEDIA_STORAGE_ACCESS_KEY="access",
        MEDIA_STORAGE_SECRET_KEY="secret",
        MEDIA_STORAGE_PUBLIC_BASE_URL="https://cdn.example.com/brand-assets/",
    ).intake_config()

    assert config.storage is not None
    assert config.storage.bucket == "brand-assets"
    assert config.storage.public_base_url == "https://cdn.example.com/brand-assets"
