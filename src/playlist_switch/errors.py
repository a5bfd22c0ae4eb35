from __future__ import annotations

from typing import Optional


class PlaylistSwitchError(Exception):
    """Base for everything set_switch can raise."""


class UnknownSwitch(PlaylistSwitchError):
    def __init__(self, name: str) -> None:
        super().__init__("unknown switch: %r" % (name,))
        self.name = name


class ExternalCallFailed(PlaylistSwitchError):
    """
    A call to the Sonos API server errored, timed out, or returned non-2xx.
    """

    def __init__(self, *, url: str, reason: str, status: Optional[int] = None) -> None:
        if status is not None:
            msg = "HTTP %d url=%s %s" % (status, url, reason)
        else:
            msg = "url=%s %s" % (url, reason)
        super().__init__(msg.strip())
        self.url = url
        self.reason = reason
        self.status = status


class ConfigurationInvalid(PlaylistSwitchError):
    pass
