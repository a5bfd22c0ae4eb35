from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from playlist_switch.core.logging import get_logger
from playlist_switch.errors import ConfigurationInvalid
from playlist_switch.models import ALL_ZONES, PlaylistSwitch, RepeatMode, ShuffleMode


def _strip_quotes(s: str) -> str:
    s = (s or "").strip()
    if len(s) >= 2 and ((s[0] == s[-1]) and s[0] in ("'", '"')):
        s = s[1:-1].strip()
    return s


def _env_files() -> tuple[str, str]:
    """
    Allow running CLI commands from subdirectories.
    We first check for a local .env, then fall back to the repo-root .env.
    """
    repo_root_env = str(Path(__file__).resolve().parents[2] / ".env")
    return (".env", repo_root_env)


class SonosApiSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="127.0.0.1", alias="SONOS_API_HOST")
    port: int = Field(default=5005, alias="SONOS_API_PORT")
    timeout_seconds: float = Field(default=5.0, alias="SONOS_API_TIMEOUT_SECONDS")
    # Plays ALL-zone playlists and any playlist whose zone list has no first room.
    default_coordinator: str = Field(default="Bedroom", alias="SONOS_DEFAULT_COORDINATOR")

    @field_validator("host", "default_coordinator", mode="before")
    @classmethod
    def _norm_str(cls, v: object) -> str:
        return _strip_quotes(str(v or ""))


class PlaylistFileSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    path: str = Field(default="playlists.json", alias="PLAYLISTS_FILE")

    @field_validator("path", mode="before")
    @classmethod
    def _norm_path(cls, v: object) -> str:
        return _strip_quotes(str(v or ""))


class MqttSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="127.0.0.1", alias="MQTT_HOST")
    port: int = Field(default=1883, alias="MQTT_PORT")
    username: Optional[str] = Field(default=None, alias="MQTT_USERNAME")
    password: Optional[str] = Field(default=None, alias="MQTT_PASSWORD")
    base_topic: str = Field(default="playlistswitch", alias="MQTT_BASE_TOPIC")

    @field_validator("host", "base_topic", mode="before")
    @classmethod
    def _norm_str(cls, v: object) -> str:
        return _strip_quotes(str(v or ""))

    @field_validator("username", "password", mode="before")
    @classmethod
    def _norm_opt(cls, v: object) -> Optional[str]:
        if v is None:
            return None
        s = _strip_quotes(str(v))
        return s or None


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    name: str = Field(default="playlist-switch", alias="PLAYLIST_SWITCH_NAME")
    log_level: str = Field(default="INFO", alias="PLAYLIST_SWITCH_LOG_LEVEL")
    status_interval_seconds: float = Field(default=60.0, alias="STATUS_INTERVAL_SECONDS")

    sonos_api: SonosApiSettings = SonosApiSettings()
    playlists: PlaylistFileSettings = PlaylistFileSettings()
    mqtt: MqttSettings = MqttSettings()


class PlaylistEntry(BaseModel):
    """
    One playlist definition. Accepts the Homebridge platform keys
    (SpotifyPlaylistID, Zones) as well as snake_case ones.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    playlist_id: str = Field(alias="SpotifyPlaylistID")
    zones: Optional[Union[str, List[str]]] = Field(default=None, alias="Zones")
    shuffle: ShuffleMode = ShuffleMode.OFF
    repeat: RepeatMode = RepeatMode.OFF

    @field_validator("name", "playlist_id", mode="before")
    @classmethod
    def _required_str(cls, v: object) -> str:
        s = str(v).strip() if v is not None else ""
        if not s:
            raise ValueError("must not be empty")
        return s

    @field_validator("shuffle", "repeat", mode="before")
    @classmethod
    def _lower_mode(cls, v: object) -> object:
        if isinstance(v, bool):
            return "on" if v else "off"
        if isinstance(v, str):
            return v.strip().lower()
        return v

    def zone_tuple(self) -> Optional[Tuple[str, ...]]:
        return parse_zones_spec(self.zones)

    def to_switch(self) -> PlaylistSwitch:
        return PlaylistSwitch(
            name=self.name,
            playlist_id=self.playlist_id,
            zones=self.zone_tuple(),
            shuffle=self.shuffle,
            repeat=self.repeat,
        )


def parse_zones_spec(raw: object) -> Optional[Tuple[str, ...]]:
    """
    "Bedroom, Kitchen" / ["Bedroom", "Kitchen"] -> ("Bedroom", "Kitchen")
    None / "" / "ALL" -> None (all known zones); "All" or "all" is a room name

    A blank first entry is kept so the coordinator falls back to the default room
    while the remaining rooms are still joined.
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        s = _strip_quotes(raw)
        if not s or s == ALL_ZONES:
            return None
        items = [p.strip() for p in s.split(",")]
    else:
        items = [str(p).strip() for p in raw]
        if len(items) == 1 and items[0] == ALL_ZONES:
            return None

    if not any(items):
        return None
    first, rest = items[0], [p for p in items[1:] if p]
    return tuple([first] + rest)


def parse_playlists(raw: Any) -> List[PlaylistSwitch]:
    """
    Build switches from decoded JSON. Invalid entries are logged and skipped,
    as are later entries reusing an earlier name.
    """
    log = get_logger(component="config")
    if isinstance(raw, dict):
        raw = raw.get("playlists")
    if not isinstance(raw, list):
        raise ConfigurationInvalid("playlists must be a JSON array (or an object with a 'playlists' array)")

    out: List[PlaylistSwitch] = []
    seen: set[str] = set()
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            log.error("playlist_invalid", index=index, details="entry is not an object")
            continue
        try:
            entry = PlaylistEntry.model_validate(item)
        except ValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            log.error("playlist_invalid", index=index, details="invalid fields: %s" % ", ".join(fields))
            continue
        if entry.name in seen:
            log.error("playlist_invalid", index=index, name=entry.name, details="duplicate name")
            continue
        seen.add(entry.name)
        out.append(entry.to_switch())
    return out


def load_playlists(path: Union[str, Path]) -> List[PlaylistSwitch]:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationInvalid("cannot read playlists file %s: %s" % (p, e)) from e
    try:
        raw = json.loads(text)
    except ValueError as e:
        raise ConfigurationInvalid("playlists file %s is not valid JSON: %s" % (p, e)) from e
    return parse_playlists(raw)
