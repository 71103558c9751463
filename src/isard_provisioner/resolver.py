"""Merge template defaults with caller overrides into creation payloads."""

from typing import Any

from .models import (
    DeploymentSpec,
    DesktopSpec,
    ResolvedHardware,
    ResolvedPayload,
    Template,
    TemplateHardware,
)

DEFAULT_VCPUS = 2
DEFAULT_MEMORY_GB = 2
DEFAULT_INTERFACES = ["default", "wireguard"]
DEFAULT_VIDEOS = ["default"]
DEFAULT_IMAGE = {"type": "user"}
KIB_PER_GB = 1024 * 1024


def _reservables() -> dict[str, list[str]]:
    # Forced on every deployment, whatever the template or override says.
    return {"vgpus": ["None"]}


def _resolve_vcpus(spec: DeploymentSpec, hardware: TemplateHardware) -> int:
    if spec.vcpus is not None:
        return int(spec.vcpus)
    if hardware.vcpus is not None:
        return int(hardware.vcpus)
    return DEFAULT_VCPUS


def _resolve_memory(spec: DeploymentSpec, hardware: TemplateHardware) -> int:
    if spec.memory is not None:
        return int(spec.memory)
    if hardware.memory is not None:
        return int(hardware.memory / KIB_PER_GB)
    return DEFAULT_MEMORY_GB


def _resolve_videos(hardware: TemplateHardware) -> list[Any]:
    for candidate in (hardware.videos, hardware.video):
        if isinstance(candidate, list) and candidate:
            return list(candidate)
        if candidate and not isinstance(candidate, list):
            return [candidate]
    return list(DEFAULT_VIDEOS)


def resolve_deployment(spec: DeploymentSpec, template: Template) -> ResolvedPayload:
    """Build the deployment creation payload.

    Explicit values in ``spec`` win, then the template's values, then
    defaults. Template memory is in KiB and is converted to whole GB;
    numbers are truncated, never rounded. ``reservables`` is always forced.

    Args:
        spec: Caller overrides; None fields are unset.
        template: Template fetched for ``spec.template_id``.

    Returns:
        ResolvedPayload ready to be sent to POST /deployments.
    """
    hardware = template.hardware or TemplateHardware()

    resolved_hardware = ResolvedHardware(
        vcpus=_resolve_vcpus(spec, hardware),
        memory=_resolve_memory(spec, hardware),
        interfaces=list(spec.interfaces) if spec.interfaces else list(DEFAULT_INTERFACES),
        videos=_resolve_videos(hardware),
        reservables=_reservables(),
        passthrough=dict(hardware.passthrough),
    )

    guest_properties = dict(template.guest_properties or {})
    guest_properties.update(spec.guest_properties or {})

    if spec.image:
        image = dict(spec.image)
    elif template.image is not None:
        image = dict(template.image)
    else:
        image = dict(DEFAULT_IMAGE)

    return ResolvedPayload(
        name=spec.name,
        description=spec.description,
        template_id=spec.template_id,
        desktop_name=spec.desktop_name,
        visible=spec.visible,
        allowed=spec.allowed,
        hardware=resolved_hardware,
        guest_properties=guest_properties,
        image=image,
        user_permissions=list(spec.user_permissions or []),
    )


def resolve_desktop(spec: DesktopSpec) -> dict[str, Any]:
    """Build the persistent desktop creation payload."""
    payload: dict[str, Any] = {"name": spec.name, "template_id": spec.template_id}
    if spec.description:
        payload["description"] = spec.description

    hardware: dict[str, Any] = {}
    if spec.vcpus is not None:
        hardware["vcpus"] = int(spec.vcpus)
    if spec.memory is not None:
        hardware["memory"] = spec.memory
    if hardware:
        payload["hardware"] = hardware
    return payload
