"""Tests for template/override resolution."""

import pytest

from isard_provisioner.models import DeploymentSpec, DesktopSpec, Template
from isard_provisioner.resolver import resolve_deployment, resolve_desktop


def make_spec(**overrides) -> DeploymentSpec:
    return DeploymentSpec(name="Lab 101", template_id="tmpl-1", **overrides)


class TestResolveDeployment:
    """Tests for resolve_deployment."""

    def test_template_values_used_when_no_override(self, template_data: dict) -> None:
        """Test vcpus and memory come from the template, memory in GB."""
        payload = resolve_deployment(make_spec(), Template.from_api(template_data))

        assert payload.hardware.vcpus == 4
        assert payload.hardware.memory == 4
        assert isinstance(payload.hardware.vcpus, int)
        assert isinstance(payload.hardware.memory, int)

    def test_override_wins(self, template_data: dict) -> None:
        payload = resolve_deployment(make_spec(vcpus=8, memory=16.0), Template.from_api(template_data))

        assert payload.hardware.vcpus == 8
        assert payload.hardware.memory == 16

    def test_explicit_zero_is_not_absent(self, template_data: dict) -> None:
        """Test an explicit 0 does not fall back to the template."""
        payload = resolve_deployment(make_spec(vcpus=0, memory=0), Template.from_api(template_data))

        assert payload.hardware.vcpus == 0
        assert payload.hardware.memory == 0

    def test_template_without_hardware_uses_defaults(self) -> None:
        payload = resolve_deployment(make_spec(), Template.from_api({"id": "bare"}))
        hardware = payload.hardware.to_dict()

        assert hardware == {
            "vcpus": 2,
            "memory": 2,
            "interfaces": ["default", "wireguard"],
            "videos": ["default"],
            "reservables": {"vgpus": ["None"]},
        }
        assert payload.image == {"type": "user"}
        assert payload.guest_properties == {}
        assert payload.user_permissions == []

    def test_memory_truncated_not_rounded(self) -> None:
        template = Template.from_api({"hardware": {"memory": 2.9 * 1048576, "vcpus": 3.7}})

        payload = resolve_deployment(make_spec(memory=None), template)

        assert payload.hardware.memory == 2
        assert payload.hardware.vcpus == 3

    def test_override_memory_truncated(self) -> None:
        payload = resolve_deployment(make_spec(memory=3.99), Template())

        assert payload.hardware.memory == 3

    @pytest.mark.parametrize(
        "hardware, expected",
        [
            ({"videos": ["qxl"]}, ["qxl"]),
            ({"video": ["vga"]}, ["vga"]),
            ({"video": "vga"}, ["vga"]),
            ({"videos": [], "video": ["vga"]}, ["vga"]),
            ({"videos": []}, ["default"]),
            ({}, ["default"]),
        ],
    )
    def test_videos_never_empty(self, hardware: dict, expected: list) -> None:
        payload = resolve_deployment(make_spec(), Template.from_api({"hardware": hardware}))

        assert payload.hardware.videos == expected

    def test_reservables_always_forced(self) -> None:
        template = Template.from_api({"hardware": {"reservables": {"vgpus": ["NVIDIA-A40-2Q"]}}})

        payload = resolve_deployment(make_spec(), template)

        assert payload.hardware.reservables == {"vgpus": ["None"]}
        assert payload.to_dict()["hardware"]["reservables"] == {"vgpus": ["None"]}

    def test_guest_properties_merged(self) -> None:
        template = Template.from_api({"guest_properties": {"a": "1", "b": "2"}})

        payload = resolve_deployment(make_spec(guest_properties={"b": "9", "c": "3"}), template)

        assert payload.guest_properties == {"a": "1", "b": "9", "c": "3"}
        assert template.guest_properties == {"a": "1", "b": "2"}

    def test_template_hardware_copied_verbatim(self, template_data: dict) -> None:
        hardware = resolve_deployment(make_spec(), Template.from_api(template_data)).hardware.to_dict()

        assert hardware["boot_order"] == ["disk"]
        assert hardware["disk_bus"] == "virtio"
        assert hardware["disks"] == [{"storage_id": "a1b2c3"}]
        assert hardware["floppies"] == []
        assert hardware["isos"] == []

    def test_present_null_hardware_keys_copied(self) -> None:
        template = Template.from_api({"hardware": {"boot_order": None, "disks": [], "vcpus": 2}})

        hardware = resolve_deployment(make_spec(), template).hardware.to_dict()

        assert "boot_order" in hardware
        assert hardware["boot_order"] is None
        assert hardware["disks"] == []
        assert "disk_bus" not in hardware
        assert "floppies" not in hardware

    def test_interfaces(self) -> None:
        assert resolve_deployment(make_spec(interfaces=["vlan-10"]), Template()).hardware.interfaces == ["vlan-10"]
        assert resolve_deployment(make_spec(interfaces=[]), Template()).hardware.interfaces == [
            "default",
            "wireguard",
        ]

    def test_image_precedence(self, template_data: dict) -> None:
        template = Template.from_api(template_data)

        assert resolve_deployment(make_spec(image={"type": "user", "id": "x"}), template).image == {
            "type": "user",
            "id": "x",
        }
        assert resolve_deployment(make_spec(image={}), template).image == {"id": "ubuntu-image", "type": "stock"}

    def test_pass_through_fields(self) -> None:
        spec = make_spec(
            description="Networking lab",
            desktop_name="net-lab",
            visible=True,
            allowed={"groups": ["g1"], "users": False},
            user_permissions=["recreate"],
        )

        body = resolve_deployment(spec, Template()).to_dict()

        assert body["name"] == "Lab 101"
        assert body["template_id"] == "tmpl-1"
        assert body["description"] == "Networking lab"
        assert body["desktop_name"] == "net-lab"
        assert body["visible"] is True
        assert body["allowed"] == {"groups": ["g1"], "users": False}
        assert body["user_permissions"] == ["recreate"]


class TestResolveDesktop:
    """Tests for resolve_desktop."""

    def test_minimal(self) -> None:
        assert resolve_desktop(DesktopSpec(name="dev-box", template_id="tmpl-1")) == {
            "name": "dev-box",
            "template_id": "tmpl-1",
        }

    def test_with_hardware(self) -> None:
        spec = DesktopSpec(name="dev-box", template_id="tmpl-1", description="Dev", vcpus=4, memory=8.0)

        assert resolve_desktop(spec) == {
            "name": "dev-box",
            "template_id": "tmpl-1",
            "description": "Dev",
            "hardware": {"vcpus": 4, "memory": 8.0},
        }

    def test_only_set_hardware_sent(self) -> None:
        payload = resolve_desktop(DesktopSpec(name="dev-box", template_id="tmpl-1", memory=4.0))

        assert payload["hardware"] == {"memory": 4.0}
