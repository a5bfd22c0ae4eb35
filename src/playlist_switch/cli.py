from __future__ import annotations

import asyncio

import typer

from playlist_switch.config import AppSettings
from playlist_switch.core.logging import configure_logging
from playlist_switch.errors import ConfigurationInvalid, PlaylistSwitchError
from playlist_switch.factory import build_registry
from playlist_switch.services.switch_gateway import main as switch_gateway_main
from playlist_switch.startup.checks import CheckStatus, run_startup_checks

app = typer.Typer(no_args_is_help=True)


def _build(settings: AppSettings):
    try:
        return build_registry(settings)
    except ConfigurationInvalid as e:
        raise typer.BadParameter(str(e), param_hint="PLAYLISTS_FILE")


@app.command()
def run() -> None:
    """Run the MQTT switch gateway."""
    raise SystemExit(switch_gateway_main())


@app.command()
def playlists() -> None:
    """List configured playlist switches."""
    settings = AppSettings()
    configure_logging(settings.log_level)
    _, registry = _build(settings)
    fallback = settings.sonos_api.default_coordinator

    if len(registry) == 0:
        typer.echo("No playlists configured.")
        raise SystemExit(0)

    from playlist_switch.zones import resolve_coordinator

    for s in registry:
        zones = "ALL" if s.zones is None else ",".join(s.zones)
        try:
            coordinator = resolve_coordinator(s.zones, fallback)
        except ConfigurationInvalid:
            coordinator = "(none)"
        typer.echo(
            "%s | %s | zones=%s | coordinator=%s | shuffle=%s | repeat=%s"
            % (s.name, s.playlist_id, zones, coordinator, s.shuffle.value, s.repeat.value)
        )


@app.command()
def zones() -> None:
    """Show current zone groups reported by the Sonos API server."""
    settings = AppSettings()
    configure_logging(settings.log_level)

    from playlist_switch.integrations.sonos_http_api import SonosHttpApi

    api = SonosHttpApi(
        host=settings.sonos_api.host,
        port=settings.sonos_api.port,
        timeout_seconds=settings.sonos_api.timeout_seconds,
    )
    try:
        groups = asyncio.run(api.zones())
    except PlaylistSwitchError as e:
        typer.echo("Failed: %s" % e, err=True)
        raise SystemExit(1)

    if not groups:
        typer.echo("No zones reported.")
    for g in groups:
        others = [m for m in g.members if m != g.coordinator]
        typer.echo("%s%s" % (g.coordinator, (" + " + ", ".join(others)) if others else ""))


def _set(name: str, on: bool) -> None:
    settings = AppSettings()
    configure_logging(settings.log_level)
    _, registry = _build(settings)
    try:
        asyncio.run(registry.set_switch(name, on))
    except PlaylistSwitchError as e:
        typer.echo("Failed: %s" % e, err=True)
        raise SystemExit(1)
    typer.echo("%s is %s" % (name, "on" if on else "off"))


@app.command()
def on(name: str = typer.Argument(..., help="Playlist switch name")) -> None:
    """Group the playlist's zones and start it."""
    _set(name, True)


@app.command()
def off(name: str = typer.Argument(..., help="Playlist switch name")) -> None:
    """Pause the playlist's coordinator room."""
    _set(name, False)


@app.command()
def check() -> None:
    """Run startup checks (playlists file + Sonos API reachability)."""
    settings = AppSettings()
    configure_logging(settings.log_level)
    api, registry = _build(settings)
    results = asyncio.run(run_startup_checks(api=api, registry=registry))
    for r in results:
        typer.echo("%s | %s | %s" % (r.name, r.status.value, r.details))
    raise SystemExit(1 if any(r.status == CheckStatus.FAIL for r in results) else 0)


if __name__ == "__main__":
    app()
