"""Exceptions raised by the IsardVDI provisioner."""


class IsardError(Exception):
    """Base exception for IsardVDI provisioning errors.

    Carries the HTTP status and raw response body when the error came from the
    remote service, so failures can be diagnosed without replaying the call.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (status {self.status_code}): {self.body or ''}"


class ConfigurationError(IsardError):
    """Raised when the provisioner settings are incomplete."""

    pass


class TransportError(IsardError):
    """Raised when the request never got an HTTP response (refused, timed out)."""

    pass


class AuthError(IsardError):
    """Raised when no session token could be negotiated."""

    pass


class TemplateFetchError(IsardError):
    """Raised when the template lookup needed for a creation fails."""

    pass


class CreateError(IsardError):
    """Raised when a deployment or desktop could not be created."""

    pass


class ReadError(IsardError):
    """Raised when an entity read fails for any reason other than 404."""

    pass


class NotFoundError(IsardError):
    """Raised when the remote service reports that an entity no longer exists."""

    def __init__(self, kind: str, entity_id: str, body: str | None = None) -> None:
        super().__init__(f"{kind} not found: {entity_id}", status_code=404, body=body)
        self.kind = kind
        self.entity_id = entity_id


class UpdateError(IsardError):
    """Raised when an update is rejected."""

    pass


class DeleteError(IsardError):
    """Raised when a delete fails with a status other than 200, 204 or 404."""

    pass


class StartStopError(IsardError):
    """Raised when starting or stopping a deployment fails."""

    pass
