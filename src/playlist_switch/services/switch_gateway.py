from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Optional

from playlist_switch.bus.envelope import (
    SET_RESULT,
    STATE,
    BadEvent,
    SetRequest,
    make_event,
    parse_set_request,
)
from playlist_switch.bus.mqtt_client import MqttClient
from playlist_switch.config import AppSettings
from playlist_switch.core.events import SWITCH_STATE, Event
from playlist_switch.core.logging import configure_logging, get_logger
from playlist_switch.errors import ConfigurationInvalid, PlaylistSwitchError
from playlist_switch.factory import build_registry
from playlist_switch.registry import SwitchRegistry
from playlist_switch.startup.checks import CheckStatus, run_startup_checks

SOURCE = "playlist-switch"

Publish = Callable[[str, Dict[str, Any]], None]


class SwitchGateway:
    """
    Host side of the registry: MQTT set requests in, results and state changes out.

    Kept free of the MQTT client itself so request handling can be driven directly.
    """

    def __init__(self, *, registry: SwitchRegistry, base_topic: str, publish: Publish) -> None:
        self._registry = registry
        self._publish = publish
        self.set_topic = "%s/playlist/set" % base_topic
        self.result_topic = "%s/playlist/result" % base_topic
        self.state_topic = "%s/playlist/state" % base_topic
        self._log = get_logger(service="switch_gateway")

        self.ok_total = 0
        self.err_total = 0
        self.bad_total = 0
        self.last_err_kind: Optional[str] = None

    async def start(self) -> None:
        await self._registry.events.subscribe(SWITCH_STATE, self._on_state)

    async def _on_state(self, evt: Event) -> None:
        self._publish(self.state_topic, make_event(source=SOURCE, typ=STATE, data=dict(evt.payload)))

    async def handle_payload(self, payload: Any) -> Optional[Dict[str, Any]]:
        """
        Process one decoded set request. Returns the published result envelope,
        or None when the message was malformed and dropped.
        """
        try:
            req = parse_set_request(payload)
        except BadEvent as e:
            self.bad_total += 1
            self._log.warning("bad_event", reason=e.reason, topic=self.set_topic)
            return None
        return await self.handle_request(req)

    async def handle_request(self, req: SetRequest) -> Dict[str, Any]:
        self._log.info("set_request", name=req.name, on=req.on, id=req.event_id, source=req.source)
        data: Dict[str, Any] = {"name": req.name, "on": req.on, "ok": True}
        try:
            await self._registry.set_switch(req.name, req.on)
            self.ok_total += 1
        except PlaylistSwitchError as e:
            self.err_total += 1
            self.last_err_kind = type(e).__name__
            data["ok"] = False
            data["error"] = "%s: %s" % (type(e).__name__, e)
            self._log.error("set_switch_failed", name=req.name, on=req.on, error=data["error"])

        result = make_event(source=SOURCE, typ=SET_RESULT, trace_id=req.trace_id, data=data)
        self._publish(self.result_topic, result)
        return result


async def run_switch_gateway() -> None:
    settings = AppSettings()
    configure_logging(settings.log_level)
    log = get_logger(app=settings.name, service="switch_gateway")
    log.info("starting", sonos_api_port=settings.sonos_api.port, playlists_file=settings.playlists.path)

    try:
        api, registry = build_registry(settings)
    except ConfigurationInvalid as e:
        log.error("config_invalid", details=str(e))
        return

    results = await run_startup_checks(api=api, registry=registry)
    if any(r.status == CheckStatus.FAIL for r in results):
        log.error("startup_checks_failed")
        return

    mqttc = MqttClient(
        host=settings.mqtt.host,
        port=settings.mqtt.port,
        username=settings.mqtt.username,
        password=settings.mqtt.password,
        client_id="playlist-switch-gateway",
    )
    await mqttc.connect()
    log.info("mqtt_connected", host=settings.mqtt.host, port=settings.mqtt.port)

    gateway = SwitchGateway(registry=registry, base_topic=settings.mqtt.base_topic, publish=mqttc.publish_json)
    await gateway.start()
    mqttc.subscribe(gateway.set_topic)
    log.info("subscribed", topic=gateway.set_topic)

    async def status_loop() -> None:
        while True:
            await asyncio.sleep(max(1.0, float(settings.status_interval_seconds)))
            mqtt_stats = mqttc.stats()
            log.info(
                "status",
                mqtt_connected=bool(mqtt_stats.get("connected", 0)),
                mqtt_dropped_total=mqtt_stats.get("dropped_total"),
                active_playlist=registry.get_active_playlist(),
                ok_total=gateway.ok_total,
                err_total=gateway.err_total,
                bad_total=gateway.bad_total,
                last_err_kind=gateway.last_err_kind,
            )

    status_task = asyncio.create_task(status_loop())
    log.info("running")

    try:
        while True:
            msg = await mqttc.next_message()
            try:
                payload = msg.json()
            except ValueError:
                gateway.bad_total += 1
                log.warning("bad_json", topic=msg.topic)
                continue
            await gateway.handle_payload(payload)
    finally:
        log.info("stopping")
        status_task.cancel()
        await mqttc.close()


def main() -> int:
    try:
        asyncio.run(run_switch_gateway())
    except KeyboardInterrupt:
        pass
    return 0
