from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

SET_REQUEST = "playlist.set"
SET_RESULT = "playlist.set.result"
STATE = "playlist.state"


def now_rfc3339() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def new_id() -> str:
    return uuid4().hex


def make_event(*, source: str, typ: str, data: Dict[str, Any], trace_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Standard event envelope.
    """
    tid = trace_id or new_id()
    return {
        "id": new_id(),
        "ts": now_rfc3339(),
        "source": source,
        "type": typ,
        "trace_id": tid,
        "data": data,
    }


@dataclass(frozen=True)
class SetRequest:
    event_id: str
    trace_id: str
    source: str
    name: str
    on: bool


class BadEvent(ValueError):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def parse_set_request(payload: Any) -> SetRequest:
    """
    Validate a playlist.set envelope. Raises BadEvent with a short reason.
    """
    if not isinstance(payload, dict):
        raise BadEvent("not_an_object")

    event_id = payload.get("id")
    source = payload.get("source")
    typ = payload.get("type")
    trace_id = payload.get("trace_id")
    data = payload.get("data")

    if not (isinstance(event_id, str) and event_id):
        raise BadEvent("missing_id")
    if not (isinstance(source, str) and source):
        raise BadEvent("missing_source")
    if typ != SET_REQUEST:
        raise BadEvent("unexpected_type")
    if not (isinstance(trace_id, str) and trace_id):
        trace_id = event_id
    if not isinstance(data, dict):
        raise BadEvent("missing_data")

    name = data.get("name")
    if not (isinstance(name, str) and name.strip()):
        raise BadEvent("missing_name")

    on = data.get("on")
    if isinstance(on, str) and on.strip().lower() in ("on", "true", "1", "off", "false", "0"):
        on = on.strip().lower() in ("on", "true", "1")
    if not isinstance(on, bool):
        raise BadEvent("missing_on")

    return SetRequest(event_id=event_id, trace_id=trace_id, source=source, name=name.strip(), on=on)
