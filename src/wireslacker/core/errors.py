"""Error taxonomy shared by pollers, the directory and the processor."""

from __future__ import annotations


class WireslackerError(Exception):
    """Base class for all errors raised by this package."""


class FetchError(WireslackerError):
    """A target or directory source could not be reached in time."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"unable to fetch {url!r}: {reason}")
        self.url = url
        self.reason = reason


class FormatError(WireslackerError):
    """A document could not be parsed into the expected shape."""


class DispatchError(WireslackerError):
    """The notification sink rejected a message or could not be reached."""


class ConfigError(WireslackerError):
    """Invalid or missing configuration, only raised at startup."""
