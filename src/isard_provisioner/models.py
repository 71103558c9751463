"""Data models for IsardVDI templates, specs and provisioned entities."""

from dataclasses import dataclass, field
from typing import Any

# Template hardware keys copied into the creation payload as-is.
PASSTHROUGH_HARDWARE_KEYS = ("boot_order", "disk_bus", "disks", "floppies", "isos")


def _number(value: Any) -> int | float | None:
    """Return value if it is a JSON number (booleans excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _string(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def _mapping(value: Any) -> dict[str, Any] | None:
    return value if isinstance(value, dict) else None


class _SpecReader:
    """Typed accessors over a user-supplied spec mapping.

    Absent and null keys read as None (or the empty default); a value of the
    wrong type raises ValueError naming the key.
    """

    def __init__(self, kind: str, data: dict[str, Any]) -> None:
        self.kind = kind
        self.data = data

    def _invalid(self, key: str, expected: str) -> ValueError:
        return ValueError(f"{self.kind} spec field '{key}' must be {expected}, got {self.data[key]!r}")

    def required(self, *keys: str) -> None:
        missing = [key for key in keys if not self.data.get(key)]
        if missing:
            raise ValueError(f"{self.kind} spec is missing required fields: {', '.join(missing)}")
        for key in keys:
            if not isinstance(self.data[key], str):
                raise self._invalid(key, "a string")

    def text(self, key: str) -> str:
        value = self.data.get(key)
        if value is None:
            return ""
        if not isinstance(value, str):
            raise self._invalid(key, "a string")
        return value

    def flag(self, key: str) -> bool:
        value = self.data.get(key)
        if value is None:
            return False
        if not isinstance(value, bool):
            raise self._invalid(key, "true or false")
        return value

    def number(self, key: str) -> int | float | None:
        value = self.data.get(key)
        if value is None:
            return None
        if _number(value) is None:
            raise self._invalid(key, "a number")
        return value

    def strings(self, key: str) -> list[str] | None:
        value = self.data.get(key)
        if value is None:
            return None
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise self._invalid(key, "a list of strings")
        return list(value)

    def mapping(self, key: str) -> dict[str, Any] | None:
        value = self.data.get(key)
        if value is None:
            return None
        if not isinstance(value, dict):
            raise self._invalid(key, "a mapping")
        return dict(value)


@dataclass(frozen=True)
class TemplateHardware:
    """Hardware section of a template as returned by the API."""

    videos: Any = None
    video: Any = None  # legacy singular key
    vcpus: int | float | None = None
    memory: int | float | None = None  # KiB
    passthrough: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "TemplateHardware":
        """Create TemplateHardware from an untyped JSON object.

        Pass-through keys are kept only when present, null values included.
        """
        return cls(
            videos=data.get("videos"),
            video=data.get("video"),
            vcpus=_number(data.get("vcpus")),
            memory=_number(data.get("memory")),
            passthrough={key: data[key] for key in PASSTHROUGH_HARDWARE_KEYS if key in data},
        )


@dataclass(frozen=True)
class Template:
    """Read-only template fetched from the remote service."""

    id: str = ""
    name: str = ""
    hardware: TemplateHardware | None = None
    guest_properties: dict[str, Any] | None = None
    image: dict[str, Any] | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Template":
        """Create Template from an untyped JSON object."""
        hardware = _mapping(data.get("hardware"))
        return cls(
            id=_string(data.get("id")),
            name=_string(data.get("name")),
            hardware=TemplateHardware.from_api(hardware) if hardware is not None else None,
            guest_properties=_mapping(data.get("guest_properties")),
            image=_mapping(data.get("image")),
        )


@dataclass
class DeploymentSpec:
    """Caller-supplied deployment configuration.

    Optional fields left as None are resolved from the template or from
    defaults; an explicit 0 or empty value is kept as given.
    """

    name: str
    template_id: str
    description: str = ""
    desktop_name: str = ""
    visible: bool = False
    allowed: dict[str, Any] = field(default_factory=dict)
    vcpus: int | float | None = None
    memory: float | None = None  # GB
    interfaces: list[str] | None = None
    guest_properties: dict[str, Any] | None = None
    image: dict[str, Any] | None = None
    user_permissions: list[str] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeploymentSpec":
        """Create DeploymentSpec from a YAML or JSON mapping."""
        reader = _SpecReader("Deployment", data)
        reader.required("name", "template_id")
        return cls(
            name=data["name"],
            template_id=data["template_id"],
            description=reader.text("description"),
            desktop_name=reader.text("desktop_name"),
            visible=reader.flag("visible"),
            allowed=reader.mapping("allowed") or {},
            vcpus=reader.number("vcpus"),
            memory=reader.number("memory"),
            interfaces=reader.strings("interfaces"),
            guest_properties=reader.mapping("guest_properties"),
            image=reader.mapping("image"),
            user_permissions=reader.strings("user_permissions"),
        )

    def update_fields(self) -> dict[str, Any]:
        """Fields sent when updating an existing deployment."""
        return {
            "name": self.name,
            "description": self.description,
            "desktop_name": self.desktop_name,
            "visible": self.visible,
            "allowed": self.allowed,
        }


@dataclass
class DesktopSpec:
    """Caller-supplied persistent desktop configuration."""

    name: str
    template_id: str
    description: str = ""
    vcpus: int | float | None = None
    memory: float | None = None  # GB

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DesktopSpec":
        """Create DesktopSpec from a YAML or JSON mapping."""
        reader = _SpecReader("Desktop", data)
        reader.required("name", "template_id")
        return cls(
            name=data["name"],
            template_id=data["template_id"],
            description=reader.text("description"),
            vcpus=reader.number("vcpus"),
            memory=reader.number("memory"),
        )


@dataclass
class ResolvedHardware:
    """Hardware block of a deployment creation request."""

    vcpus: int
    memory: int  # GB
    interfaces: list[str]
    videos: list[Any]
    reservables: dict[str, list[str]]
    passthrough: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result = dict(self.passthrough)
        result.update(
            vcpus=self.vcpus,
            memory=self.memory,
            interfaces=list(self.interfaces),
            videos=list(self.videos),
            reservables=self.reservables,
        )
        return result


@dataclass
class ResolvedPayload:
    """Fully merged body for a deployment creation request."""

    name: str
    description: str
    template_id: str
    desktop_name: str
    visible: bool
    allowed: dict[str, Any]
    hardware: ResolvedHardware
    guest_properties: dict[str, Any]
    image: dict[str, Any]
    user_permissions: list[str]

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON body expected by POST /deployments."""
        return {
            "name": self.name,
            "description": self.description,
            "template_id": self.template_id,
            "desktop_name": self.desktop_name,
            "visible": self.visible,
            "allowed": self.allowed,
            "user_permissions": list(self.user_permissions),
            "hardware": self.hardware.to_dict(),
            "guest_properties": dict(self.guest_properties),
            "image": dict(self.image),
        }


@dataclass
class Deployment:
    """Deployment as reported by GET /deployment/{id}."""

    id: str
    name: str = ""
    description: str = ""
    desktop_name: str = ""
    visible: bool = False
    template_id: str = ""
    allowed: dict[str, Any] = field(default_factory=dict)
    total_desktops: int = 0
    visible_desktops: int = 0
    started_desktops: int = 0
    creating_desktops: int = 0

    @classmethod
    def from_api(cls, data: dict[str, Any], deployment_id: str = "") -> "Deployment":
        """Create Deployment from an untyped JSON object."""

        def count(key: str) -> int:
            value = _number(data.get(key))
            return int(value) if value is not None else 0

        return cls(
            id=_string(data.get("id"), deployment_id),
            name=_string(data.get("name")),
            description=_string(data.get("description")),
            desktop_name=_string(data.get("desktop_name")),
            visible=data.get("visible") is True,
            template_id=_string(data.get("template")),
            allowed=_mapping(data.get("allowed")) or {},
            total_desktops=count("totalDesktops"),
            visible_desktops=count("visibleDesktops"),
            started_desktops=count("startedDesktops"),
            creating_desktops=count("creatingDesktops"),
        )


@dataclass
class Desktop:
    """Persistent desktop as reported by GET /domain/info/{id}."""

    id: str
    name: str = ""
    description: str = ""
    template_id: str = ""
    vcpus: int | None = None
    memory: float | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any], desktop_id: str) -> "Desktop":
        """Create Desktop from an untyped JSON object."""
        create_dict = _mapping(data.get("create_dict")) or {}
        hardware = _mapping(data.get("hardware")) or {}
        vcpus = _number(hardware.get("vcpus"))
        memory = _number(hardware.get("memory"))
        return cls(
            id=desktop_id,
            name=_string(data.get("name")),
            description=_string(data.get("description")),
            template_id=_string(create_dict.get("origin")),
            vcpus=int(vcpus) if vcpus is not None else None,
            memory=float(memory) if memory is not None else None,
        )


@dataclass
class Group:
    """User group as reported by GET /admin/groups."""

    id: str
    name: str = ""
    description: str = ""
    parent_category: str = ""
    linked_groups: list[str] = field(default_factory=list)
    enrollment: dict[str, Any] | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Group":
        """Create Group from an untyped JSON object."""
        linked = data.get("linked_groups")
        return cls(
            id=_string(data.get("id")),
            name=_string(data.get("name")),
            description=_string(data.get("description")),
            parent_category=_string(data.get("parent_category")),
            linked_groups=list(linked) if isinstance(linked, list) else [],
            enrollment=_mapping(data.get("enrollment")),
        )
