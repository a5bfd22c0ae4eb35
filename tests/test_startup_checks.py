import pytest
from tenacity import wait_none

from playlist_switch.integrations.sonos_http_api import SonosHttpApi
from playlist_switch.registry import SwitchRegistry
from playlist_switch.startup.checks import CheckStatus, run_startup_checks


def _by_name(results):
    return {r.name: r for r in results}


@pytest.mark.asyncio
async def test_all_ok(server, api, registry, make_zones) -> None:
    server.zones = make_zones(["Bedroom"], ["Office"])

    results = _by_name(await run_startup_checks(api=api, registry=registry))

    assert results["playlists"].status is CheckStatus.OK
    assert results["sonos_http_api"].status is CheckStatus.OK
    assert "2 zone group(s)" in results["sonos_http_api"].details
    assert server.calls == ["/zones"]


@pytest.mark.asyncio
async def test_no_zones_is_a_warning(server, api, registry) -> None:
    results = _by_name(await run_startup_checks(api=api, registry=registry))

    assert results["sonos_http_api"].status is CheckStatus.WARN


@pytest.mark.asyncio
async def test_unreachable_server_fails_after_retries(monkeypatch, server, api, registry) -> None:
    monkeypatch.setattr(SonosHttpApi.probe.retry, "wait", wait_none())
    server.fail_paths.add("/zones")

    results = _by_name(await run_startup_checks(api=api, registry=registry))

    check = results["sonos_http_api"]
    assert check.status is CheckStatus.FAIL
    assert "ExternalCallFailed" in check.details
    assert "HTTP 500" in check.details
    assert server.calls == ["/zones", "/zones", "/zones"]


@pytest.mark.asyncio
async def test_empty_registry_fails(server, api, coordinator, make_zones) -> None:
    server.zones = make_zones(["Bedroom"])
    empty = SwitchRegistry([], coordinator=coordinator)

    results = _by_name(await run_startup_checks(api=api, registry=empty))

    assert results["playlists"].status is CheckStatus.FAIL
    assert results["playlists"].details == "No playlists configured"
