from __future__ import annotations

from typing import Any, Dict, List, Optional, Set

import httpx
import pytest

from playlist_switch.core.events import EventBus
from playlist_switch.integrations.sonos_http_api import SonosHttpApi
from playlist_switch.models import PlaylistSwitch, RepeatMode, ShuffleMode
from playlist_switch.registry import SwitchRegistry
from playlist_switch.zones import ZoneCoordinator


def zones_payload(*groups: List[str]) -> List[Dict[str, Any]]:
    """zones_payload(["Bedroom", "Bathroom"], ["Office"]) -> GET /zones body."""
    out = []
    for i, rooms in enumerate(groups):
        out.append(
            {
                "uuid": "RINCON_%d" % i,
                "coordinator": {"roomName": rooms[0], "state": {}},
                "members": [{"roomName": r} for r in rooms],
            }
        )
    return out


class FakeSonosServer:
    """
    Stands in for node-sonos-http-api. Records decoded request paths in order.
    """

    def __init__(self, zones: Optional[List[Dict[str, Any]]] = None) -> None:
        self.zones = zones if zones is not None else []
        self.calls: List[str] = []
        self.fail_paths: Set[str] = set()
        self.timeout_paths: Set[str] = set()

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append(path)
        if path in self.timeout_paths:
            raise httpx.ReadTimeout("timed out", request=request)
        if path in self.fail_paths:
            return httpx.Response(500, json={"status": "error", "error": "boom"})
        if path == "/zones":
            return httpx.Response(200, json=self.zones)
        return httpx.Response(200, json={"status": "success"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def server() -> FakeSonosServer:
    return FakeSonosServer()


@pytest.fixture
def api(server: FakeSonosServer) -> SonosHttpApi:
    return SonosHttpApi(host="127.0.0.1", port=5005, timeout_seconds=5.0, transport=server.transport)


@pytest.fixture
def coordinator(api: SonosHttpApi) -> ZoneCoordinator:
    return ZoneCoordinator(api=api, fallback_room="Bedroom")


def make_switches() -> List[PlaylistSwitch]:
    return [
        PlaylistSwitch(
            name="Morning",
            playlist_id="spotify:playlist:morning",
            zones=("Bedroom", "Kitchen", "Office"),
            shuffle=ShuffleMode.ON,
            repeat=RepeatMode.ALL,
        ),
        PlaylistSwitch(name="Party", playlist_id="spotify:playlist:party", zones=None),
        PlaylistSwitch(name="Study", playlist_id="spotify:playlist:study", zones=("Office",)),
    ]


@pytest.fixture
def registry(coordinator: ZoneCoordinator) -> SwitchRegistry:
    return SwitchRegistry(make_switches(), coordinator=coordinator, events=EventBus())


@pytest.fixture
def make_zones():
    return zones_payload
