from __future__ import annotations

from typing import Optional, Tuple

import httpx

from playlist_switch.config import AppSettings, load_playlists
from playlist_switch.core.events import EventBus
from playlist_switch.integrations.sonos_http_api import SonosHttpApi
from playlist_switch.registry import SwitchRegistry
from playlist_switch.zones import ZoneCoordinator


def build_registry(
    settings: AppSettings,
    *,
    events: Optional[EventBus] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[SonosHttpApi, SwitchRegistry]:
    """
    Wire settings + playlists file into a ready registry. Raises ConfigurationInvalid.
    """
    api = SonosHttpApi(
        host=settings.sonos_api.host,
        port=settings.sonos_api.port,
        timeout_seconds=settings.sonos_api.timeout_seconds,
        transport=transport,
    )
    coordinator = ZoneCoordinator(api=api, fallback_room=settings.sonos_api.default_coordinator)
    switches = load_playlists(settings.playlists.path)
    registry = SwitchRegistry(switches, coordinator=coordinator, events=events)
    return api, registry
