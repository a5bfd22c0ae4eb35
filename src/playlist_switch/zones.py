from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from playlist_switch.core.logging import get_logger
from playlist_switch.errors import ConfigurationInvalid
from playlist_switch.integrations.sonos_http_api import SonosHttpApi
from playlist_switch.models import PlaylistSwitch, RoomGroup, ZoneGroup


def resolve_coordinator(zones: Optional[Sequence[str]], fallback: str) -> str:
    """
    First configured room, else the fallback room.

    ALL (zones=None) always plays on the fallback room.
    """
    if zones:
        first = (zones[0] or "").strip()
        if first:
            return first
    room = (fallback or "").strip()
    if not room:
        raise ConfigurationInvalid("no coordinator room: zones are empty and no fallback room is configured")
    return room


def resolve_members(
    zones: Optional[Sequence[str]],
    coordinator: str,
    current_groups: Sequence[ZoneGroup] = (),
) -> List[str]:
    """
    Rooms to join to `coordinator`, in the order the joins must be sent.

    Explicit zones: everything after the first entry, as given (no dedup and no
    check against the current grouping).
    ALL: the coordinator room of each current group, in API order, minus ours.
    """
    if zones is not None:
        return [z for z in list(zones)[1:] if z]
    return [g.coordinator for g in current_groups if g.coordinator != coordinator]


def plan_room_group(
    zones: Optional[Sequence[str]],
    fallback: str,
    current_groups: Sequence[ZoneGroup] = (),
) -> RoomGroup:
    coordinator = resolve_coordinator(zones, fallback)
    members = resolve_members(zones, coordinator, current_groups)
    return RoomGroup(coordinator=coordinator, members=tuple(members))


class ZoneCoordinator:
    """
    Turns a switch into Sonos API calls. Every call is awaited before the next one
    is sent; the first failure aborts the rest.
    """

    def __init__(self, *, api: SonosHttpApi, fallback_room: str) -> None:
        self._api = api
        self._fallback_room = fallback_room
        self._log = get_logger(component="zone_coordinator")

    @property
    def fallback_room(self) -> str:
        return self._fallback_room

    def coordinator_for(self, switch: PlaylistSwitch) -> str:
        return resolve_coordinator(switch.zones, self._fallback_room)

    async def activate(self, switch: PlaylistSwitch) -> RoomGroup:
        # Fail on a missing coordinator before any call goes out.
        self.coordinator_for(switch)

        current: Tuple[ZoneGroup, ...] = ()
        if switch.all_zones:
            current = tuple(await self._api.zones())
        group = plan_room_group(switch.zones, self._fallback_room, current)
        coordinator = group.coordinator

        for room in group.members:
            self._log.debug("zone_join", room=room, coordinator=coordinator)
            await self._api.join(room, coordinator)

        # Source first: shuffle/repeat apply to the queue it creates.
        await self._api.play_spotify(coordinator, switch.playlist_id)
        await self._api.shuffle(coordinator, switch.shuffle)
        await self._api.repeat(coordinator, switch.repeat)

        self._log.info(
            "playlist_playing",
            playlist=switch.name,
            coordinator=coordinator,
            members=list(group.members),
            shuffle=switch.shuffle.value,
            repeat=switch.repeat.value,
        )
        return group

    async def deactivate(self, switch: PlaylistSwitch) -> str:
        coordinator = self.coordinator_for(switch)
        # Members stay grouped; only playback stops.
        await self._api.pause(coordinator)
        self._log.info("playlist_paused", playlist=switch.name, coordinator=coordinator)
        return coordinator
