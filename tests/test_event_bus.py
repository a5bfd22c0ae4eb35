import pytest

from playlist_switch.core.events import SWITCH_STATE, EventBus


@pytest.mark.asyncio
async def test_event_bus_publish_subscribe() -> None:
    bus = EventBus()
    seen = []

    async def handler(evt):
        seen.append((evt.topic, evt.payload))

    await bus.subscribe(SWITCH_STATE, handler)
    await bus.publish(SWITCH_STATE, {"name": "Morning", "on": False})
    await bus.publish("other", {"ignored": True})
    assert seen == [(SWITCH_STATE, {"name": "Morning", "on": False})]


@pytest.mark.asyncio
async def test_publish_without_subscribers_is_a_noop() -> None:
    await EventBus().publish(SWITCH_STATE, {})


@pytest.mark.asyncio
async def test_switch_state_is_published_and_remembered() -> None:
    bus = EventBus()
    seen = []

    async def handler(evt):
        seen.append(evt.payload)

    await bus.subscribe(SWITCH_STATE, handler)
    await bus.publish_switch_state("Morning", True)
    await bus.unsubscribe(SWITCH_STATE, handler)
    await bus.publish_switch_state("Morning", False)

    assert seen == [{"name": "Morning", "on": True}]
    assert bus.last_switch_state("Morning") is False
    assert bus.last_switch_state("Study") is None
