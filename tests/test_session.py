"""Tests for session setup."""

import dataclasses
from unittest.mock import MagicMock

import pytest

from isard_provisioner.config import Settings
from isard_provisioner.errors import ConfigurationError
from isard_provisioner.session import Session, base_url, open_session


class TestBaseUrl:
    """Tests for endpoint normalization."""

    def test_bare_host_gets_https(self) -> None:
        assert base_url("isard.example.com") == "https://isard.example.com"

    def test_scheme_is_kept(self) -> None:
        assert base_url("http://localhost:8080/") == "http://localhost:8080"


class TestSession:
    """Tests for Session."""

    def test_url(self, session: Session) -> None:
        assert session.url("/deployments") == "https://isard.example.com/api/v3/deployments"

    def test_headers(self, session: Session) -> None:
        assert session.headers == {
            "Authorization": "Bearer session-token",
            "Content-Type": "application/json",
        }

    def test_token_cannot_change(self, session: Session) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            session.token = "other"  # type: ignore[misc]

    def test_repr_hides_token(self, session: Session) -> None:
        assert "session-token" not in repr(session)


class TestOpenSession:
    """Tests for open_session."""

    def test_negotiates_token(self, settings: Settings, mock_http: MagicMock, make_response) -> None:
        mock_http.request.return_value = make_response(200, {"token": "negotiated"})

        session = open_session(settings, http=mock_http)

        assert session.token == "negotiated"
        assert session.endpoint == "isard.example.com"
        assert session.http is mock_http
        args, kwargs = mock_http.request.call_args
        assert args == ("GET", "https://isard.example.com/authentication/login")
        assert kwargs["headers"] == {"Authorization": "pre-session-token"}

    def test_invalid_config_makes_no_request(self, mock_http: MagicMock) -> None:
        settings = Settings(_env_file=None, endpoint="vdi", auth_method="form")

        with pytest.raises(ConfigurationError):
            open_session(settings, http=mock_http)
        mock_http.request.assert_not_called()

    def test_creates_transport_with_verify_setting(self) -> None:
        settings = Settings(_env_file=None, endpoint="vdi", token="static", verify_ssl=True)

        session = open_session(settings)

        assert session.token == "static"
        assert session.http.verify is True
