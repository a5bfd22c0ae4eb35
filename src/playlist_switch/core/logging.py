from __future__ import annotations

import logging
from typing import Any, Dict

import structlog
from rich.logging import RichHandler


def configure_logging(level: str) -> None:
    """
    Human-friendly logs; the gateway is meant to be tailed.
    """
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                rich_tracebacks=True,
                markup=True,
                show_time=True,
                show_level=True,
                show_path=False,
            )
        ],
    )

    # Every switch press is several GETs; httpx INFO lines drown the useful ones.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _pretty_rich_renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level.upper())),
        cache_logger_on_first_use=True,
    )


def get_logger(**kwargs: Any) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger().bind(**kwargs)


def _pretty_rich_renderer(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> str:  # pragma: no cover
    event = str(event_dict.pop("event", method_name))
    level = str(event_dict.pop("level", "")).lower()

    icon = _icon_for(event, level)
    title = _style_for(level, "%s %s" % (icon, event)).strip()

    preferred = ("app", "service", "component", "name", "playlist", "coordinator", "status", "details")
    parts: list[str] = []
    for k in preferred:
        if k in event_dict:
            parts.append("%s=%r" % (k, event_dict.pop(k)))

    for k in sorted(event_dict.keys()):
        parts.append("%s=%r" % (k, event_dict[k]))

    if parts:
        return "%s  %s" % (title, " ".join(parts))
    return title


def _style_for(level: str, text: str) -> str:
    if level in ("error", "critical"):
        return "[bold red]%s[/bold red]" % text
    if level == "warning":
        return "[bold yellow]%s[/bold yellow]" % text
    return "[bold cyan]%s[/bold cyan]" % text


def _icon_for(event: str, level: str) -> str:
    if event in ("starting",):
        return "🚀"
    if event in ("running",):
        return "🟢"
    if event in ("stopping",):
        return "🛑"
    if event in ("startup_checks_complete", "startup_check"):
        return "🧪"
    if event in ("playlist_playing",):
        return "🎵"
    if event in ("playlist_paused", "switch_deactivated"):
        return "⏸️"
    if event in ("zones_discovered", "zone_join"):
        return "🔗"
    if event in ("status",):
        return "💓"

    if level in ("error", "critical"):
        return "❌"
    if level == "warning":
        return "⚠️"
    return "✅"
