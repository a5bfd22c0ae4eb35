from __future__ import annotations

import asyncio
from typing import Dict, Iterable, Iterator, List, Optional

from playlist_switch.core.events import EventBus
from playlist_switch.core.logging import get_logger
from playlist_switch.errors import ConfigurationInvalid, UnknownSwitch
from playlist_switch.models import PlaylistSwitch
from playlist_switch.zones import ZoneCoordinator


class SwitchRegistry:
    """
    Owns the configured playlist switches and the single "active playlist".

    set_switch() is the only mutator. Calls are serialized globally: two switches
    share one Sonos session, so their activations must not interleave.
    """

    def __init__(
        self,
        switches: Iterable[PlaylistSwitch],
        *,
        coordinator: ZoneCoordinator,
        events: Optional[EventBus] = None,
    ) -> None:
        self._switches: Dict[str, PlaylistSwitch] = {}
        for s in switches:
            if s.name in self._switches:
                raise ConfigurationInvalid("duplicate switch name: %r" % (s.name,))
            self._switches[s.name] = s
        self._coordinator = coordinator
        self._events = events or EventBus()
        self._active: Optional[str] = None
        # Create lazily inside the running loop (asyncio primitives are loop-bound on 3.8/3.9).
        self._lock: Optional[asyncio.Lock] = None
        self._log = get_logger(component="switch_registry")

    @property
    def events(self) -> EventBus:
        return self._events

    def __iter__(self) -> Iterator[PlaylistSwitch]:
        return iter(list(self._switches.values()))

    def __len__(self) -> int:
        return len(self._switches)

    def names(self) -> List[str]:
        return list(self._switches.keys())

    def get(self, name: str) -> PlaylistSwitch:
        try:
            return self._switches[name]
        except KeyError:
            raise UnknownSwitch(name) from None

    def get_active_playlist(self) -> Optional[str]:
        return self._active

    async def set_switch(self, name: str, on: bool) -> None:
        switch = self.get(name)
        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            if on:
                await self._activate(switch)
            else:
                await self._deactivate(switch)

    async def _activate(self, switch: PlaylistSwitch) -> None:
        # Reflect intent before touching the network. Not undone if activation fails.
        for other in self._switches.values():
            if other is switch or not other.is_on:
                continue
            other.is_on = False
            if self._active == other.name:
                self._active = None
            self._log.info("switch_deactivated", name=other.name, reason="replaced", by=switch.name)
            await self._notify(other)

        await self._coordinator.activate(switch)

        switch.is_on = True
        self._active = switch.name
        await self._notify(switch)

    async def _deactivate(self, switch: PlaylistSwitch) -> None:
        paused = await self._coordinator.deactivate(switch)

        self._active = None
        # Whatever was playing on the paused room has stopped too.
        for s in self._switches.values():
            if not s.is_on:
                continue
            if s is not switch and self._coordinator.coordinator_for(s) != paused:
                continue
            s.is_on = False
            if s is not switch:
                self._log.info("switch_deactivated", name=s.name, reason="paused", by=switch.name)
            await self._notify(s)

    async def _notify(self, switch: PlaylistSwitch) -> None:
        await self._events.publish_switch_state(switch.name, switch.is_on)
