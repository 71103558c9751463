"""Pytest fixtures for IsardVDI provisioner tests."""

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests
import structlog

from isard_provisioner.client import LifecycleClient
from isard_provisioner.config import Settings
from isard_provisioner.session import Session


def build_response(status_code: int = 200, body: Any = None) -> requests.Response:
    """Build a real requests.Response with the given status and body.

    Strings and bytes are used verbatim, anything else is JSON-encoded.
    """
    response = requests.Response()
    response.status_code = status_code
    if body is None:
        content = b""
    elif isinstance(body, bytes):
        content = body
    elif isinstance(body, str):
        content = body.encode("utf-8")
    else:
        content = json.dumps(body).encode("utf-8")
    response._content = content
    response.encoding = "utf-8"
    return response


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo logging configuration done by CLI invocations."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def make_response() -> Callable[..., requests.Response]:
    """Factory for fake HTTP responses."""
    return build_response


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        endpoint="isard.example.com",
        auth_method="token",
        category_id="default",
        token="pre-session-token",
        timeout_seconds=60,
        verify_ssl=False,
    )


@pytest.fixture
def mock_http() -> MagicMock:
    """Create a mock requests session."""
    return MagicMock(spec=requests.Session)


@pytest.fixture
def session(mock_http: MagicMock) -> Session:
    """Create an authenticated session over the mock transport."""
    return Session(
        endpoint="isard.example.com",
        token="session-token",
        http=mock_http,
        timeout=60,
    )


@pytest.fixture
def client(session: Session) -> LifecycleClient:
    """Create a lifecycle client over the mock transport."""
    return LifecycleClient(session)


@pytest.fixture
def template_data() -> dict:
    """Create a template response as returned by GET /template/{id}."""
    return {
        "id": "_local-default-admin-admin-ubuntu",
        "name": "Ubuntu 22.04",
        "hardware": {
            "boot_order": ["disk"],
            "disk_bus": "virtio",
            "disks": [{"storage_id": "a1b2c3"}],
            "floppies": [],
            "isos": [],
            "videos": ["default"],
            "vcpus": 4.0,
            "memory": 4194304.0,
        },
        "guest_properties": {
            "credentials": {"username": "isard", "password": "pirineus"},
            "fullscreen": False,
            "viewers": {"browser_vnc": {"options": None}},
        },
        "image": {"id": "ubuntu-image", "type": "stock"},
    }
