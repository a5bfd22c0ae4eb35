import pytest
import pytest_asyncio

from playlist_switch.bus.envelope import BadEvent, make_event, parse_set_request
from playlist_switch.services.switch_gateway import SwitchGateway


def _request(name="Morning", on=True, **overrides):
    evt = make_event(source="test", typ="playlist.set", data={"name": name, "on": on})
    evt.update(overrides)
    return evt


def test_parse_set_request_accepts_string_flags() -> None:
    req = parse_set_request(_request(on="off"))
    assert req.name == "Morning"
    assert req.on is False


@pytest.mark.parametrize(
    "payload,reason",
    [
        ([], "not_an_object"),
        (_request(id=""), "missing_id"),
        (_request(source=None), "missing_source"),
        (_request(type="announce.request"), "unexpected_type"),
        (_request(data="x"), "missing_data"),
        (_request(name=" "), "missing_name"),
        (_request(on="maybe"), "missing_on"),
    ],
)
def test_parse_set_request_rejects(payload, reason) -> None:
    with pytest.raises(BadEvent) as ei:
        parse_set_request(payload)
    assert ei.value.reason == reason


@pytest.fixture
def published():
    return []


@pytest_asyncio.fixture
async def gateway(registry, published):
    gw = SwitchGateway(
        registry=registry,
        base_topic="home",
        publish=lambda topic, payload: published.append((topic, payload)),
    )
    await gw.start()
    return gw


@pytest.mark.asyncio
async def test_successful_request_publishes_state_and_result(gateway, published, server) -> None:
    req = _request(name="Study", on=True)

    result = await gateway.handle_payload(req)

    assert result["type"] == "playlist.set.result"
    assert result["trace_id"] == req["trace_id"]
    assert result["data"] == {"name": "Study", "on": True, "ok": True}
    topics = [t for t, _ in published]
    assert topics == ["home/playlist/state", "home/playlist/result"]
    assert published[0][1]["data"] == {"name": "Study", "on": True}
    assert gateway.ok_total == 1


@pytest.mark.asyncio
async def test_switching_playlists_publishes_the_side_effect_off_state(gateway, published, server) -> None:
    await gateway.handle_payload(_request(name="Study", on=True))
    published.clear()

    await gateway.handle_payload(_request(name="Morning", on=True))

    states = [p["data"] for t, p in published if t == "home/playlist/state"]
    assert states == [{"name": "Study", "on": False}, {"name": "Morning", "on": True}]


@pytest.mark.asyncio
async def test_failures_are_reported_not_raised(gateway, published, server) -> None:
    result = await gateway.handle_payload(_request(name="Nope", on=True))

    assert result["data"]["ok"] is False
    assert result["data"]["error"].startswith("UnknownSwitch")
    assert gateway.err_total == 1
    assert gateway.last_err_kind == "UnknownSwitch"

    server.fail_paths.add("/Office/pause")
    result = await gateway.handle_payload(_request(name="Study", on=False))
    assert result["data"]["ok"] is False
    assert result["data"]["error"].startswith("ExternalCallFailed")


@pytest.mark.asyncio
async def test_malformed_request_is_dropped(gateway, published, server) -> None:
    assert await gateway.handle_payload({"type": "playlist.set"}) is None
    assert published == []
    assert server.calls == []
    assert gateway.bad_total == 1
