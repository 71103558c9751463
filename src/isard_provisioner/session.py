"""Authenticated session shared by all lifecycle calls."""

from dataclasses import dataclass, field

import requests
import structlog

from .auth import AuthNegotiator
from .config import Settings

logger = structlog.get_logger()

API_PREFIX = "/api/v3"
LOGIN_PATH = "/authentication/login"


def base_url(endpoint: str) -> str:
    """Turn a configured endpoint into an https base URL."""
    endpoint = endpoint.rstrip("/")
    if endpoint.startswith(("http://", "https://")):
        return endpoint
    return f"https://{endpoint}"


@dataclass(frozen=True)
class Session:
    """Endpoint, bearer token and transport for lifecycle calls.

    Frozen: the token is fixed once the session is opened, so one Session can
    be shared by threads working on different entities.
    """

    endpoint: str
    token: str = field(repr=False)
    http: requests.Session = field(repr=False)
    timeout: float = 60

    def url(self, path: str) -> str:
        return f"{base_url(self.endpoint)}{API_PREFIX}{path}"

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }


def open_session(settings: Settings, http: requests.Session | None = None) -> Session:
    """Authenticate with the configured flow and return a ready Session.

    Raises:
        ConfigurationError: If the settings lack credentials for the method.
        AuthError: If no token could be negotiated.
        TransportError: If the login request gets no response.
    """
    settings.check_auth()

    if http is None:
        http = requests.Session()
        http.verify = settings.verify_ssl

    negotiator = AuthNegotiator(
        http,
        login_url=f"{base_url(settings.endpoint)}{LOGIN_PATH}",
        token=settings.token,
        timeout=settings.timeout_seconds,
    )
    token = negotiator.authenticate(
        settings.auth_method,
        settings.category_id,
        settings.username,
        settings.password,
    )
    logger.info("Session opened", endpoint=settings.endpoint)
    return Session(
        endpoint=settings.endpoint,
        token=token,
        http=http,
        timeout=settings.timeout_seconds,
    )
