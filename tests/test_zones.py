import pytest

from playlist_switch.errors import ConfigurationInvalid
from playlist_switch.models import RoomGroup, ZoneGroup
from playlist_switch.zones import plan_room_group, resolve_coordinator, resolve_members


def test_coordinator_is_first_configured_room() -> None:
    assert resolve_coordinator(("Kitchen", "Office"), "Bedroom") == "Kitchen"


def test_coordinator_falls_back_for_all_zones_and_blank_first_room() -> None:
    assert resolve_coordinator(None, "Bedroom") == "Bedroom"
    assert resolve_coordinator(("", "Office"), "Bedroom") == "Bedroom"
    assert resolve_coordinator((), "Bedroom") == "Bedroom"


def test_coordinator_without_any_room_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationInvalid):
        resolve_coordinator(None, "")
    with pytest.raises(ConfigurationInvalid):
        resolve_coordinator(("  ",), " ")


def test_explicit_members_are_the_rest_of_the_list_verbatim() -> None:
    groups = [ZoneGroup(coordinator="Kitchen", members=("Kitchen", "Bedroom"))]
    members = resolve_members(("Bedroom", "Kitchen", "Office", "Kitchen"), "Bedroom", groups)
    # No dedup, and the current grouping is ignored for explicit zones.
    assert members == ["Kitchen", "Office", "Kitchen"]


def test_single_room_has_no_members() -> None:
    assert resolve_members(("Office",), "Office") == []


def test_all_zones_uses_group_coordinators_in_api_order() -> None:
    groups = [
        ZoneGroup(coordinator="Office", members=("Office",)),
        ZoneGroup(coordinator="Bedroom", members=("Bedroom", "Bathroom")),
        ZoneGroup(coordinator="Living Room", members=("Living Room",)),
    ]
    assert resolve_members(None, "Bedroom", groups) == ["Office", "Living Room"]


def test_all_zones_with_nothing_reported() -> None:
    assert resolve_members(None, "Bedroom", []) == []


def test_plan_room_group() -> None:
    groups = [ZoneGroup(coordinator="Bedroom"), ZoneGroup(coordinator="Office")]
    assert plan_room_group(None, "Bedroom", groups) == RoomGroup(coordinator="Bedroom", members=("Office",))
    assert plan_room_group(("Den", "Bedroom"), "Bedroom", groups) == RoomGroup(
        coordinator="Den", members=("Bedroom",)
    )
