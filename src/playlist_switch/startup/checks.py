from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from time import perf_counter
from typing import Dict, List

from tenacity import RetryError

from playlist_switch.core.logging import get_logger
from playlist_switch.errors import ExternalCallFailed
from playlist_switch.integrations.sonos_http_api import SonosHttpApi
from playlist_switch.registry import SwitchRegistry


class CheckStatus(str, Enum):
    OK = "ok"
    WARN = "warn"
    FAIL = "fail"


@dataclass(frozen=True)
class CheckResult:
    name: str
    status: CheckStatus
    details: str


async def run_startup_checks(*, api: SonosHttpApi, registry: SwitchRegistry) -> List[CheckResult]:
    """
    Preflight before accepting switch requests. Read-only: /zones is the only call made.
    """
    log = get_logger(component="startup_checks")
    results: List[CheckResult] = []

    results.append(_check_playlists(registry))
    results.append(await _check_sonos_api(api))

    counts: Dict[CheckStatus, int] = {s: sum(1 for r in results if r.status == s) for s in CheckStatus}
    log.info(
        "startup_checks_complete",
        ok=counts[CheckStatus.OK],
        warn=counts[CheckStatus.WARN],
        fail=counts[CheckStatus.FAIL],
    )
    for r in results:
        log.info("startup_check", name=r.name, status=r.status.value, details=r.details)

    return results


def _check_playlists(registry: SwitchRegistry) -> CheckResult:
    name = "playlists"
    if len(registry) == 0:
        return CheckResult(name=name, status=CheckStatus.FAIL, details="No playlists configured")
    return CheckResult(
        name=name,
        status=CheckStatus.OK,
        details="%d playlist(s): %s" % (len(registry), ", ".join(registry.names())),
    )


async def _check_sonos_api(api: SonosHttpApi) -> CheckResult:
    name = "sonos_http_api"
    start = perf_counter()
    try:
        groups = await api.probe()
    except (RetryError, ExternalCallFailed) as e:
        return CheckResult(
            name=name,
            status=CheckStatus.FAIL,
            details="Sonos API server not reachable at %s: %s" % (api.base_url, format_error(e)),
        )
    latency_ms = int((perf_counter() - start) * 1000)

    if not groups:
        return CheckResult(
            name=name,
            status=CheckStatus.WARN,
            details="Sonos API server answered but reports no zones (%dms)" % latency_ms,
        )

    rooms = [g.coordinator for g in groups]
    get_logger(component="startup_checks").info("zones_discovered", rooms=rooms)
    return CheckResult(
        name=name,
        status=CheckStatus.OK,
        details="%d zone group(s) (%dms)" % (len(groups), latency_ms),
    )


def format_error(err: BaseException) -> str:
    """
    Unwrap tenacity retries down to the last real failure.
    """
    if isinstance(err, RetryError):
        last = getattr(err, "last_attempt", None)
        if last is not None:
            exc = last.exception()
            if exc is not None:
                return format_error(exc)
        return "RetryError (no last exception)"
    return "%s: %s" % (type(err).__name__, str(err) or "(no message)")
