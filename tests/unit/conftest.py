"""Shared fixtures for hubwatch unit tests."""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
import structlog

from hubwatch.config import get_settings
from hubwatch.models import TrackedService


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    """Keep tests independent of the caller's environment and .env file."""
    for key in list(os.environ):
        if key.upper().startswith("HUBWATCH_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()


@pytest.fixture
def backend() -> TrackedService:
    return TrackedService(image_ref="acme/backend", service_name="backend")


@pytest.fixture
def nginx() -> TrackedService:
    return TrackedService(image_ref="acme/nginx", service_name="nginx")


@pytest.fixture
def frontend() -> TrackedService:
    return TrackedService(image_ref="acme/frontend", service_name="frontend")
