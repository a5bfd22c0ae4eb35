from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Optional

import paho.mqtt.client as mqtt


@dataclass(frozen=True)
class MqttMessage:
    topic: str
    payload: bytes

    def json(self) -> Any:
        return json.loads(self.payload.decode("utf-8"))


def _rc_value(rc: object) -> Optional[int]:
    # paho 2.x hands out ReasonCode objects; older callbacks gave ints.
    v = getattr(rc, "value", rc)
    try:
        return int(v)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


class MqttClient:
    """
    paho-mqtt bridged onto asyncio: the network thread enqueues, the loop consumes.
    """

    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        client_id: str,
        queue_maxsize: int = 1_000,
    ) -> None:
        self._host = host
        self._port = int(port)
        self._client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            clean_session=True,
        )
        if username:
            self._client.username_pw_set(username=username, password=password or None)

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        # Switch presses are rare; a full queue means something upstream is misbehaving.
        self._queue: "asyncio.Queue[MqttMessage]" = asyncio.Queue(maxsize=max(1, int(queue_maxsize)))
        self._connected = False
        self._connected_event: Optional[asyncio.Event] = None
        self._subs: dict[str, int] = {}
        self._received_total = 0
        self._dropped_total = 0
        self._connect_total = 0
        self._disconnect_total = 0
        self._last_connect_rc: Optional[int] = None
        self._last_disconnect_rc: Optional[int] = None

        def _enqueue(m: MqttMessage) -> None:
            self._received_total += 1
            try:
                self._queue.put_nowait(m)
            except asyncio.QueueFull:
                self._dropped_total += 1

        def on_message(_client, _userdata, msg) -> None:
            if self._loop is None:
                return
            m = MqttMessage(topic=str(msg.topic), payload=bytes(msg.payload))
            self._loop.call_soon_threadsafe(_enqueue, m)

        def on_connect(_client, _userdata, _flags, reason_code, _properties) -> None:
            self._connected = True
            self._connect_total += 1
            self._last_connect_rc = _rc_value(reason_code)
            if self._loop is None:
                return

            def _mark_connected() -> None:
                if self._connected_event is not None:
                    self._connected_event.set()

            # clean_session=True: subscriptions are gone after a reconnect.
            for topic, qos in list(self._subs.items()):
                self._client.subscribe(topic, qos=qos)

            self._loop.call_soon_threadsafe(_mark_connected)

        def on_disconnect(_client, _userdata, _flags, reason_code, _properties) -> None:
            self._connected = False
            self._disconnect_total += 1
            self._last_disconnect_rc = _rc_value(reason_code)

        self._client.on_message = on_message
        self._client.on_connect = on_connect
        self._client.on_disconnect = on_disconnect

    async def connect(self, timeout_seconds: float = 15.0) -> None:
        self._loop = asyncio.get_running_loop()
        self._connected_event = asyncio.Event()
        self._client.reconnect_delay_set(min_delay=1, max_delay=30)
        self._client.connect_async(self._host, self._port, 60)
        self._client.loop_start()
        await asyncio.wait_for(self._connected_event.wait(), timeout=timeout_seconds)

    async def close(self) -> None:
        self._client.disconnect()
        self._client.loop_stop()

    def subscribe(self, topic: str, qos: int = 0) -> None:
        self._subs[str(topic)] = int(qos)
        self._client.subscribe(topic, qos=qos)

    def publish_json(self, topic: str, payload: Any, qos: int = 0, retain: bool = False) -> None:
        data = json.dumps(payload).encode("utf-8")
        self._client.publish(topic, payload=data, qos=qos, retain=retain)

    async def next_message(self) -> MqttMessage:
        return await self._queue.get()

    @property
    def is_connected(self) -> bool:
        return bool(self._connected)

    def stats(self) -> dict[str, int]:
        return {
            "connected": 1 if self._connected else 0,
            "queue_size": int(self._queue.qsize()),
            "received_total": int(self._received_total),
            "dropped_total": int(self._dropped_total),
            "connect_total": int(self._connect_total),
            "disconnect_total": int(self._disconnect_total),
            "last_connect_rc": int(self._last_connect_rc) if self._last_connect_rc is not None else -1,
            "last_disconnect_rc": int(self._last_disconnect_rc) if self._last_disconnect_rc is not None else -1,
        }
