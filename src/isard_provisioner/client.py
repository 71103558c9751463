"""IsardVDI REST client for deployment and desktop lifecycles."""

from typing import Any

import requests
import structlog

from .errors import (
    CreateError,
    DeleteError,
    IsardError,
    NotFoundError,
    ReadError,
    StartStopError,
    TemplateFetchError,
    TransportError,
    UpdateError,
)
from .models import Deployment, DeploymentSpec, Desktop, DesktopSpec, Group, ResolvedPayload, Template
from .resolver import resolve_deployment, resolve_desktop
from .session import Session

logger = structlog.get_logger()

DELETE_OK_STATUSES = (200, 204, 404)
CREATE_OK_STATUSES = (200, 201)


class LifecycleClient:
    """Issues lifecycle requests using an authenticated Session.

    Every call is a single request: nothing is retried or cached. HTTP status
    failures raise the operation's IsardError subclass with the status and raw
    body; network failures raise TransportError.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def _request(self, method: str, path: str, payload: Any = None) -> requests.Response:
        url = self.session.url(path)
        try:
            response = self.session.http.request(
                method,
                url,
                json=payload,
                headers=self.session.headers,
                timeout=self.session.timeout,
            )
        except requests.RequestException as e:
            logger.error("Request failed", method=method, url=url, error=str(e))
            raise TransportError(f"{method} {url} failed: {e}") from e
        logger.debug("Request complete", method=method, url=url, status=response.status_code)
        return response

    @staticmethod
    def _parse_json(response: requests.Response, error_cls: type[IsardError], what: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise error_cls(
                f"Invalid JSON in {what} response: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e

    def _parse_created_id(self, response: requests.Response, what: str) -> str:
        if response.status_code not in CREATE_OK_STATUSES:
            raise CreateError(f"Error creating {what}", status_code=response.status_code, body=response.text)
        data = self._parse_json(response, CreateError, what)
        entity_id = data.get("id") if isinstance(data, dict) else None
        if not isinstance(entity_id, str):
            raise CreateError(f"No id in {what} creation response", status_code=response.status_code, body=response.text)
        return entity_id

    def _get_object(self, path: str, kind: str, entity_id: str) -> dict[str, Any]:
        response = self._request("GET", path)
        if response.status_code == 404:
            raise NotFoundError(kind, entity_id, body=response.text)
        if response.status_code != 200:
            raise ReadError(f"Error reading {kind} {entity_id}", status_code=response.status_code, body=response.text)
        data = self._parse_json(response, ReadError, kind)
        if not isinstance(data, dict):
            raise ReadError(f"Unexpected {kind} response", status_code=response.status_code, body=response.text)
        return data

    # === TEMPLATES ===

    def get_template(self, template_id: str) -> Template:
        """Fetch the template a deployment will be created from."""
        response = self._request("GET", f"/template/{template_id}")
        if response.status_code != 200:
            raise TemplateFetchError(
                f"Error fetching template {template_id}",
                status_code=response.status_code,
                body=response.text,
            )
        data = self._parse_json(response, TemplateFetchError, "template")
        if not isinstance(data, dict):
            raise TemplateFetchError(
                f"Unexpected template response for {template_id}",
                status_code=response.status_code,
                body=response.text,
            )
        return Template.from_api(data)

    # === DEPLOYMENTS ===

    def create_deployment(self, payload: ResolvedPayload) -> str:
        """Create a deployment from a resolved payload and return its id."""
        response = self._request("POST", "/deployments", payload.to_dict())
        deployment_id = self._parse_created_id(response, "deployment")
        logger.info("Created deployment", deployment_id=deployment_id, name=payload.name)
        return deployment_id

    def resolve(self, spec: DeploymentSpec) -> ResolvedPayload:
        """Fetch the spec's template and merge it into a creation payload."""
        template = self.get_template(spec.template_id)
        return resolve_deployment(spec, template)

    def provision_deployment(self, spec: DeploymentSpec) -> str:
        """Resolve ``spec`` against its template and create the deployment."""
        return self.create_deployment(self.resolve(spec))

    def get_deployment(self, deployment_id: str) -> Deployment:
        """Read a deployment.

        Raises:
            NotFoundError: If the deployment no longer exists.
            ReadError: For any other failure.
        """
        data = self._get_object(f"/deployment/{deployment_id}", "deployment", deployment_id)
        return Deployment.from_api(data, deployment_id)

    def get_deployment_info(self, deployment_id: str) -> dict[str, Any]:
        """Read the editable deployment details as returned by the API."""
        return self._get_object(f"/deployment/info/{deployment_id}", "deployment", deployment_id)

    def update_deployment(self, deployment_id: str, fields: dict[str, Any]) -> None:
        """Apply a partial update to a deployment."""
        response = self._request("PUT", f"/deployment/{deployment_id}", fields)
        if response.status_code != 200:
            raise UpdateError(
                f"Error updating deployment {deployment_id}",
                status_code=response.status_code,
                body=response.text,
            )
        logger.info("Updated deployment", deployment_id=deployment_id, fields=sorted(fields))

    def delete_deployment(self, deployment_id: str, permanent: bool = False) -> None:
        """Delete a deployment; deleting one that is already gone succeeds."""
        flag = "true" if permanent else "false"
        response = self._request("DELETE", f"/deployments/{deployment_id}/{flag}")
        if response.status_code not in DELETE_OK_STATUSES:
            raise DeleteError(
                f"Error deleting deployment {deployment_id}",
                status_code=response.status_code,
                body=response.text,
            )
        logger.info("Deleted deployment", deployment_id=deployment_id, permanent=permanent)

    def start_deployment(self, deployment_id: str) -> None:
        """Start every desktop in a deployment."""
        self._start_stop("start", deployment_id)

    def stop_deployment(self, deployment_id: str) -> None:
        """Stop every desktop in a deployment."""
        self._start_stop("stop", deployment_id)

    def _start_stop(self, action: str, deployment_id: str) -> None:
        response = self._request("PUT", f"/deployments/{action}/{deployment_id}")
        if response.status_code != 200:
            raise StartStopError(
                f"Error on {action} of deployment {deployment_id}",
                status_code=response.status_code,
                body=response.text,
            )
        logger.info("Deployment action done", action=action, deployment_id=deployment_id)

    # === PERSISTENT DESKTOPS ===

    def create_persistent_desktop(self, spec: DesktopSpec) -> str:
        """Create a persistent desktop and return its id."""
        response = self._request("POST", "/persistent_desktop", resolve_desktop(spec))
        desktop_id = self._parse_created_id(response, "desktop")
        logger.info("Created desktop", desktop_id=desktop_id, name=spec.name)
        return desktop_id

    def get_desktop(self, desktop_id: str) -> Desktop:
        """Read a persistent desktop.

        Raises:
            NotFoundError: If the desktop no longer exists.
            ReadError: For any other failure.
        """
        data = self._get_object(f"/domain/info/{desktop_id}", "desktop", desktop_id)
        return Desktop.from_api(data, desktop_id)

    def delete_desktop(self, desktop_id: str) -> None:
        """Permanently delete a desktop; an already absent desktop is not an error."""
        response = self._request("DELETE", f"/desktop/{desktop_id}/true")
        if response.status_code not in DELETE_OK_STATUSES:
            raise DeleteError(
                f"Error deleting desktop {desktop_id}",
                status_code=response.status_code,
                body=response.text,
            )
        logger.info("Deleted desktop", desktop_id=desktop_id)

    # === GROUPS ===

    def get_groups(self) -> list[Group]:
        """List all user groups."""
        response = self._request("GET", "/admin/groups")
        if response.status_code != 200:
            raise ReadError("Error listing groups", status_code=response.status_code, body=response.text)
        data = self._parse_json(response, ReadError, "groups")
        if not isinstance(data, list):
            raise ReadError("Unexpected groups response", status_code=response.status_code, body=response.text)
        return [Group.from_api(item) for item in data if isinstance(item, dict)]
