from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

# Published by the registry whenever a switch's is_on changes.
SWITCH_STATE = "switch.state"


@dataclass(frozen=True)
class Event:
    topic: str
    payload: Dict[str, Any]


Handler = Callable[[Event], Awaitable[None]]


class EventBus:
    """
    Async pub/sub between the registry and whatever host adapter is running.

    publish() awaits every handler, so a caller that awaits it knows
    subscribers have seen the event before it moves on. The last switch.state
    per switch is kept so a late subscriber can be brought up to date.
    """

    def __init__(self) -> None:
        self._subs: Dict[str, List[Handler]] = {}
        self._lock = asyncio.Lock()
        self._switch_states: Dict[str, bool] = {}

    async def subscribe(self, topic: str, handler: Handler) -> None:
        async with self._lock:
            self._subs.setdefault(topic, []).append(handler)

    async def unsubscribe(self, topic: str, handler: Handler) -> None:
        async with self._lock:
            handlers = self._subs.get(topic, [])
            if handler in handlers:
                handlers.remove(handler)

    async def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        event = Event(topic=topic, payload=payload)
        handlers = list(self._subs.get(topic, []))
        if not handlers:
            return
        await asyncio.gather(*(h(event) for h in handlers), return_exceptions=False)

    async def publish_switch_state(self, name: str, on: bool) -> None:
        self._switch_states[name] = bool(on)
        await self.publish(SWITCH_STATE, {"name": name, "on": bool(on)})

    def last_switch_state(self, name: str) -> Optional[bool]:
        return self._switch_states.get(name)
