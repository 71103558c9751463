"""Session token negotiation against the IsardVDI login endpoint.

The login endpoint answers in one of several shapes depending on the provider
and server version:

    {"data": "<token>"}
    {"token": "<token>"}
    {"data": {"token": "<token>"}}
    <token>                         (plain text)

Each JSON shape is matched by a small probe; the probes run in order and the
first one that finds a string wins. A non-empty body that matches none of them
is taken as a plain-text token.
"""

import json
from collections.abc import Callable
from typing import Any

import requests
import structlog

from .errors import AuthError, TransportError

logger = structlog.get_logger()

TokenShape = Callable[[Any], str | None]


def _data_string(doc: Any) -> str | None:
    if isinstance(doc, dict) and isinstance(doc.get("data"), str):
        return doc["data"]
    return None


def _token_string(doc: Any) -> str | None:
    if isinstance(doc, dict) and isinstance(doc.get("token"), str):
        return doc["token"]
    return None


def _nested_data_token(doc: Any) -> str | None:
    if isinstance(doc, dict) and isinstance(doc.get("data"), dict):
        token = doc["data"].get("token")
        if isinstance(token, str):
            return token
    return None


TOKEN_SHAPES: tuple[TokenShape, ...] = (_data_string, _token_string, _nested_data_token)


def parse_token(body: str) -> str:
    """Extract the session token from a login response body.

    JSON shapes are probed in order; otherwise any non-empty body is the
    token, with surrounding whitespace stripped unless nothing else is left.
    """
    try:
        doc = json.loads(body)
    except ValueError:
        doc = None

    if doc is not None:
        for shape in TOKEN_SHAPES:
            token = shape(doc)
            if token is not None:
                return token

    plain = body.strip()
    if plain:
        return plain
    if body:
        return body

    raise AuthError(f"No token found in login response: {body!r}")


class AuthNegotiator:
    """Exchanges configured credentials for a session token."""

    def __init__(
        self,
        http: requests.Session,
        login_url: str,
        token: str | None = None,
        timeout: float = 60,
    ) -> None:
        self.http = http
        self.login_url = login_url
        self.token = token
        self.timeout = timeout

    def authenticate(
        self,
        method: str | None,
        category_id: str = "default",
        username: str | None = None,
        password: str | None = None,
    ) -> str:
        """Run the configured login flow and return the session token.

        Args:
            method: "token" to trade the configured token for a session token,
                "form" to log in with username/password, or None to use the
                configured token unchanged.
            category_id: Category the login is scoped to.
            username: Username for the form flow.
            password: Password for the form flow.

        Raises:
            AuthError: If the server rejects the login or returns no token.
            TransportError: If the login request gets no response.
        """
        if method is None:
            if not self.token:
                raise AuthError("No authentication method and no token configured")
            return self.token

        if method == "token":
            kwargs: dict[str, Any] = {
                "params": {"provider": "saml", "category_id": category_id},
                "headers": {"Authorization": self.token or ""},
            }
            http_method = "GET"
        elif method == "form":
            # multipart/form-data fields, no file names
            kwargs = {
                "params": {"provider": "form", "category_id": category_id},
                "files": {"username": (None, username or ""), "password": (None, password or "")},
                "headers": {"Accept": "text/plain"},
            }
            http_method = "POST"
        else:
            raise AuthError(f"Unsupported authentication method: {method}")

        logger.info("Authenticating", method=method, category_id=category_id)
        body = self._send(http_method, **kwargs)
        token = parse_token(body)
        logger.info("Authenticated", method=method)
        return token

    def _send(self, http_method: str, **kwargs: Any) -> str:
        try:
            response = self.http.request(http_method, self.login_url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("Login request failed", url=self.login_url, error=str(e))
            raise TransportError(f"Login request to {self.login_url} failed: {e}") from e

        if response.status_code not in (200, 201):
            raise AuthError("Login rejected", status_code=response.status_code, body=response.text)
        return response.text
