"""Unit tests for the configuration module."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from hubwatch.config import DEFAULT_SERVICES, Settings, get_settings
from hubwatch.models import TrackedService


def _make_settings(**overrides) -> Settings:
    """Create a Settings instance with .env loading disabled."""
    return Settings(_env_file=None, **overrides)


class TestDefaults:
    def test_default_services(self) -> None:
        settings = _make_settings()
        assert settings.tracked_services == DEFAULT_SERVICES
        assert [s.service_name for s in settings.tracked_services] == ["backend", "nginx"]

    def test_default_timeouts(self) -> None:
        settings = _make_settings()
        assert settings.connect_timeout == 5.0
        assert settings.read_timeout == 10.0
        assert settings.total_timeout == 15.0

    def test_default_registry(self) -> None:
        settings = _make_settings()
        assert settings.registry_url == "https://hub.docker.com/v2"
        assert settings.registry_platform is None
        assert settings.registry_digest_field == "image"
        assert settings.log_file == "check-updates.log"

    def test_tracked_services_is_immutable_tuple(self) -> None:
        settings = _make_settings()
        assert isinstance(settings.tracked_services, tuple)


class TestEnvironment:
    def test_services_from_env_json(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(
            "HUBWATCH_SERVICES",
            json.dumps(
                [
                    {"image_ref": "acme/api", "service_name": "api"},
                    {"image_ref": "acme/web", "service_name": "web", "tag": "stable"},
                ]
            ),
        )
        settings = _make_settings()
        assert settings.tracked_services == (
            TrackedService(image_ref="acme/api", service_name="api"),
            TrackedService(image_ref="acme/web", service_name="web", tag="stable"),
        )

    def test_scalar_overrides_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HUBWATCH_TOTAL_TIMEOUT", "3")
        monkeypatch.setenv("HUBWATCH_MAX_CONCURRENCY", "2")
        monkeypatch.setenv("HUBWATCH_COMPOSE_FILE", "deploy/compose.yml")
        settings = _make_settings()
        assert settings.total_timeout == 3.0
        assert settings.max_concurrency == 2
        assert settings.compose_file == "deploy/compose.yml"

    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()


class TestValidation:
    def test_duplicate_image_rejected(self) -> None:
        with pytest.raises(ValidationError, match="duplicate image_ref"):
            _make_settings(
                services=[
                    {"image_ref": "acme/api", "service_name": "api"},
                    {"image_ref": "acme/api", "service_name": "api2"},
                ]
            )

    def test_duplicate_service_name_rejected(self) -> None:
        with pytest.raises(ValidationError, match="duplicate service_name"):
            _make_settings(
                services=[
                    {"image_ref": "acme/api", "service_name": "api"},
                    {"image_ref": "acme/web", "service_name": "api"},
                ]
            )

    def test_empty_service_list_rejected(self) -> None:
        with pytest.raises(ValidationError, match="at least one"):
            _make_settings(services=[])

    def test_blank_fields_rejected(self) -> None:
        with pytest.raises(ValidationError, match="non-empty"):
            _make_settings(services=[{"image_ref": "", "service_name": "api"}])

    def test_non_positive_timeout_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _make_settings(connect_timeout=0)

    def test_zero_concurrency_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _make_settings(max_concurrency=0)

    def test_unknown_digest_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _make_settings(registry_digest_field="manifest")


class TestDevelopmentFlag:
    def test_is_development(self) -> None:
        assert _make_settings(environment="Development").is_development is True
        assert _make_settings().is_development is False
