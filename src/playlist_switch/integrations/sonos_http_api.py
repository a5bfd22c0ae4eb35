from __future__ import annotations

from typing import Any, List, Optional
from urllib.parse import quote

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from playlist_switch.errors import ExternalCallFailed
from playlist_switch.models import RepeatMode, ShuffleMode, ZoneGroup


class SonosHttpApi:
    """
    Async client for a node-sonos-http-api style server.

    Every endpoint is a GET with URL-encoded path segments. Calls are never
    retried here; a failure of any kind surfaces as ExternalCallFailed.
    """

    def __init__(
        self,
        *,
        host: str = "127.0.0.1",
        port: int = 5005,
        timeout_seconds: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = "http://%s:%d" % (host, int(port))
        self._timeout = float(timeout_seconds)
        # Tests inject httpx.MockTransport here.
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    async def zones(self) -> List[ZoneGroup]:
        data = await self._get("zones")
        return parse_zones(data, url="%s/zones" % self._base_url)

    async def join(self, room: str, coordinator: str) -> None:
        await self._get(room, "join", coordinator)

    async def play_spotify(self, coordinator: str, playlist_id: str) -> None:
        await self._get(coordinator, "spotify", "now", playlist_id)

    async def shuffle(self, coordinator: str, mode: ShuffleMode) -> None:
        await self._get(coordinator, "shuffle", ShuffleMode(mode).value)

    async def repeat(self, coordinator: str, mode: RepeatMode) -> None:
        await self._get(coordinator, "repeat", RepeatMode(mode).value)

    async def pause(self, coordinator: str) -> None:
        await self._get(coordinator, "pause")

    @retry(
        wait=wait_exponential(min=1, max=10),
        stop=stop_after_attempt(3),
        retry=retry_if_exception_type(ExternalCallFailed),
    )
    async def probe(self) -> List[ZoneGroup]:
        """
        GET /zones with a few retries, for startup only (the server may still be booting).
        """
        return await self.zones()

    def url_for(self, *segments: str) -> str:
        return "%s/%s" % (self._base_url, "/".join(quote(str(s), safe="") for s in segments))

    async def _get(self, *segments: str) -> Any:
        url = self.url_for(*segments)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(url)
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExternalCallFailed(
                url=url,
                status=e.response.status_code,
                reason=e.response.reason_phrase or "",
            ) from e
        except httpx.TimeoutException as e:
            raise ExternalCallFailed(url=url, reason="timeout after %.1fs" % self._timeout) from e
        except httpx.HTTPError as e:
            raise ExternalCallFailed(url=url, reason="%s: %s" % (type(e).__name__, str(e))) from e

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            # Command endpoints answer {"status":"success"}; body is informational only.
            return None


def parse_zones(data: Any, *, url: str = "/zones") -> List[ZoneGroup]:
    """
    node-sonos-http-api returns:
      [{"uuid": "...", "coordinator": {"roomName": "Bedroom", ...}, "members": [{"roomName": ...}, ...]}, ...]
    """
    if not isinstance(data, list):
        raise ExternalCallFailed(url=url, reason="unexpected /zones payload")

    groups: List[ZoneGroup] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        coord = item.get("coordinator")
        room = str((coord or {}).get("roomName") or "").strip() if isinstance(coord, dict) else ""
        if not room:
            continue
        members: List[str] = []
        for m in item.get("members") or []:
            if isinstance(m, dict):
                name = str(m.get("roomName") or "").strip()
                if name:
                    members.append(name)
        groups.append(ZoneGroup(coordinator=room, members=tuple(members)))
    return groups
