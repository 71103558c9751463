"""Resource handlers driving the create/read/update/delete lifecycle.

These are the boundary operations an orchestrator calls: each takes a desired
spec or an entity id and returns the observed state. A read that finds the
entity gone returns None so the caller can drop its record.
"""

from dataclasses import dataclass, field
from typing import Any

import structlog

from .client import LifecycleClient
from .errors import IsardError, NotFoundError
from .models import Deployment, DeploymentSpec, Desktop, DesktopSpec, Group

logger = structlog.get_logger()


@dataclass
class DeploymentState:
    """Observed state of a deployment."""

    id: str
    name: str
    description: str = ""
    template_id: str = ""
    desktop_name: str = ""
    visible: bool = False
    allowed: dict[str, Any] = field(default_factory=dict)
    total_desktops: int = 0
    visible_desktops: int = 0
    started_desktops: int = 0
    creating_desktops: int = 0

    @classmethod
    def from_spec(cls, deployment_id: str, spec: DeploymentSpec) -> "DeploymentState":
        return cls(
            id=deployment_id,
            name=spec.name,
            description=spec.description,
            template_id=spec.template_id,
            desktop_name=spec.desktop_name,
            visible=spec.visible,
            allowed=spec.allowed,
        )

    def refresh(self, deployment: Deployment) -> None:
        """Overwrite with what the server reports."""
        self.name = deployment.name or self.name
        self.description = deployment.description
        self.template_id = deployment.template_id or self.template_id
        self.desktop_name = deployment.desktop_name
        self.visible = deployment.visible
        self.allowed = deployment.allowed
        self.total_desktops = deployment.total_desktops
        self.visible_desktops = deployment.visible_desktops
        self.started_desktops = deployment.started_desktops
        self.creating_desktops = deployment.creating_desktops


@dataclass
class DesktopState:
    """Observed state of a persistent desktop."""

    id: str
    name: str
    template_id: str
    description: str = ""
    vcpus: int | None = None
    memory: float | None = None

    def refresh(self, desktop: Desktop, keep_unset: bool = False) -> None:
        """Overwrite with what the server reports.

        With ``keep_unset`` only server values that are actually present are
        taken, so a sparse response after creation does not blank the plan.
        """
        if keep_unset:
            if desktop.description:
                self.description = desktop.description
        else:
            self.name = desktop.name
            self.description = desktop.description
            self.template_id = desktop.template_id
        if desktop.vcpus:
            self.vcpus = desktop.vcpus
        if desktop.memory:
            self.memory = desktop.memory


class DeploymentResource:
    """Lifecycle of a deployment as seen by the calling orchestrator."""

    def __init__(self, client: LifecycleClient) -> None:
        self.client = client

    def create(self, spec: DeploymentSpec) -> DeploymentState:
        """Create the deployment and refresh its state once.

        A failed refresh is logged and the created deployment is kept.
        """
        deployment_id = self.client.provision_deployment(spec)
        state = DeploymentState.from_spec(deployment_id, spec)
        try:
            state.refresh(self.client.get_deployment(deployment_id))
        except IsardError as e:
            logger.warning("Post-create refresh failed", deployment_id=deployment_id, error=str(e))
        return state

    def read(self, deployment_id: str) -> DeploymentState | None:
        """Return the current state, or None if the deployment is gone."""
        try:
            deployment = self.client.get_deployment(deployment_id)
        except NotFoundError:
            logger.info("Deployment no longer exists", deployment_id=deployment_id)
            return None
        state = DeploymentState(id=deployment_id, name=deployment.name)
        state.refresh(deployment)
        return state

    def update(self, deployment_id: str, spec: DeploymentSpec) -> DeploymentState | None:
        """Push the mutable fields of ``spec`` and return the refreshed state."""
        self.client.update_deployment(deployment_id, spec.update_fields())
        return self.read(deployment_id)

    def delete(self, deployment_id: str, permanent: bool = False) -> None:
        self.client.delete_deployment(deployment_id, permanent)

    def start(self, deployment_id: str) -> None:
        self.client.start_deployment(deployment_id)

    def stop(self, deployment_id: str) -> None:
        self.client.stop_deployment(deployment_id)


class DesktopResource:
    """Lifecycle of a persistent desktop as seen by the calling orchestrator."""

    def __init__(self, client: LifecycleClient) -> None:
        self.client = client

    def create(self, spec: DesktopSpec) -> DesktopState:
        """Create the desktop, then fill server-side defaults from one refresh."""
        desktop_id = self.client.create_persistent_desktop(spec)
        state = DesktopState(
            id=desktop_id,
            name=spec.name,
            template_id=spec.template_id,
            description=spec.description,
            vcpus=spec.vcpus,
            memory=spec.memory,
        )
        try:
            state.refresh(self.client.get_desktop(desktop_id), keep_unset=True)
        except IsardError as e:
            logger.warning("Post-create refresh failed", desktop_id=desktop_id, error=str(e))
        return state

    def read(self, desktop_id: str) -> DesktopState | None:
        """Return the current state, or None if the desktop is gone."""
        try:
            desktop = self.client.get_desktop(desktop_id)
        except NotFoundError:
            logger.info("Desktop no longer exists", desktop_id=desktop_id)
            return None
        state = DesktopState(id=desktop_id, name=desktop.name, template_id=desktop.template_id)
        state.refresh(desktop)
        return state

    def delete(self, desktop_id: str) -> None:
        self.client.delete_desktop(desktop_id)


def filter_groups(groups: list[Group], name_filter: str = "", category_id: str = "") -> list[Group]:
    """Keep groups whose name contains ``name_filter`` (any case) and whose
    parent category equals ``category_id``. Empty filters match everything."""
    needle = name_filter.lower()
    return [
        group
        for group in groups
        if (not needle or needle in group.name.lower())
        and (not category_id or group.parent_category == category_id)
    ]


def query_groups(client: LifecycleClient, name_filter: str = "", category_id: str = "") -> list[Group]:
    """Fetch groups and apply the filters."""
    return filter_groups(client.get_groups(), name_filter, category_id)
