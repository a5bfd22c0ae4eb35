from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

# Config value meaning "every room the Sonos API server currently knows".
ALL_ZONES = "ALL"


class ShuffleMode(str, Enum):
    ON = "on"
    OFF = "off"


class RepeatMode(str, Enum):
    OFF = "off"
    ALL = "all"
    ONE = "one"


@dataclass
class PlaylistSwitch:
    name: str
    playlist_id: str
    # None means ALL_ZONES. Otherwise the first entry is the coordinator room.
    zones: Optional[Tuple[str, ...]] = None
    shuffle: ShuffleMode = ShuffleMode.OFF
    repeat: RepeatMode = RepeatMode.OFF
    is_on: bool = False

    @property
    def all_zones(self) -> bool:
        return self.zones is None


@dataclass(frozen=True)
class ZoneGroup:
    """One entry of GET /zones."""

    coordinator: str
    members: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RoomGroup:
    """The grouping an activation is about to realize."""

    coordinator: str
    members: Tuple[str, ...] = ()
