"""Runtime configuration.

The CLI collects flag values; this module applies environment fallbacks and
validates everything before any loop is started.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx

from .errors import ConfigError
from .fetch import HTTP_SCHEMES, check_target
from .formats.directory_listing import HemisphereConvention

ACTIVE_NODES_URL = "https://www.yaesu.com/jp/en/wires-x/id/active_node.php"
ACTIVE_ROOMS_URL = "https://www.yaesu.com/jp/en/wires-x/id/active_room.php"

DEFAULT_READ_INTERVAL = 10.0
DIRECTORY_REFRESH_INTERVAL = 20 * 60.0
TARGET_TIMEOUT = 5.0
DIRECTORY_TIMEOUT = 30.0

# Every poll creates such an entry on the remote page.
DEFAULT_NOISE: tuple[str, ...] = ("Browser connected from",)

TARGETS_ENV = "WIRESLACKER_TARGETS"
WEBHOOK_ENV = "WIRESLACKER_WEBHOOK"
READ_INTERVAL_ENV = "WIRESLACKER_READ_INTERVAL"
TIMEZONE_ENV = "WIRESLACKER_TIMEZONE"


@dataclass(frozen=True, slots=True)
class WireslackerConfig:
    targets: tuple[str, ...]
    webhook: str
    read_interval: float = DEFAULT_READ_INTERVAL
    dry: bool = False
    timezone: str = "UTC"
    verbose: bool = False
    directory_url: str = ACTIVE_NODES_URL
    room_directory_url: str | None = ACTIVE_ROOMS_URL
    refresh_interval: float = DIRECTORY_REFRESH_INTERVAL
    hemisphere: HemisphereConvention = HemisphereConvention.LEGACY
    per_source_watermark: bool = True
    noise: tuple[str, ...] = DEFAULT_NOISE

    @property
    def tz(self) -> ZoneInfo:
        return resolve_timezone(self.timezone)


def split_targets(raw: str | None) -> tuple[str, ...]:
    """Split a comma-separated target list, dropping empty items."""
    if not raw:
        return ()
    return tuple(t.strip() for t in raw.split(",") if t.strip())


def resolve_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"unknown time zone {name!r}") from exc


def _is_http_url(url: str) -> bool:
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, ValueError):
        return False
    return parsed.scheme in HTTP_SCHEMES and bool(parsed.host)


def _resolve_read_interval(value: float | None) -> float:
    if value is None:
        env = os.getenv(READ_INTERVAL_ENV)
        if not env:
            return DEFAULT_READ_INTERVAL
        try:
            value = float(env)
        except ValueError as exc:
            raise ConfigError(f"{READ_INTERVAL_ENV} must be a number") from exc
    if value <= 0:
        raise ConfigError("read interval must be > 0")
    return value


def build_config(
    *,
    targets: str | Sequence[str] | None = None,
    webhook: str | None = None,
    read_interval: float | None = None,
    dry: bool = False,
    timezone: str | None = None,
    verbose: bool = False,
    directory_url: str | None = None,
    room_directory_url: str | None = None,
    no_rooms: bool = False,
    hemisphere: HemisphereConvention | str = HemisphereConvention.LEGACY,
    global_watermark: bool = False,
) -> WireslackerConfig:
    """Validate flag values, falling back to WIRESLACKER_* env vars."""
    if targets is None:
        targets = os.getenv(TARGETS_ENV)
    if targets is None or isinstance(targets, str):
        target_list = split_targets(targets)
    else:
        target_list = tuple(t.strip() for t in targets if t.strip())
    if not target_list:
        raise ConfigError("provide at least one target")
    for t in target_list:
        check_target(t)

    webhook = webhook or os.getenv(WEBHOOK_ENV)
    if not webhook or not _is_http_url(webhook):
        raise ConfigError("provide a valid webhook URL for slack")

    directory_url = directory_url or ACTIVE_NODES_URL
    room_directory_url = None if no_rooms else (room_directory_url or ACTIVE_ROOMS_URL)
    for url in (directory_url, room_directory_url):
        if url is not None:
            check_target(url)

    tz_name = timezone or os.getenv(TIMEZONE_ENV) or "UTC"
    resolve_timezone(tz_name)

    try:
        convention = HemisphereConvention(hemisphere)
    except ValueError as exc:
        allowed = ", ".join(c.value for c in HemisphereConvention)
        raise ConfigError(f"hemisphere must be one of: {allowed}") from exc

    return WireslackerConfig(
        targets=target_list,
        webhook=webhook,
        read_interval=_resolve_read_interval(read_interval),
        dry=dry,
        timezone=tz_name,
        verbose=verbose,
        directory_url=directory_url,
        room_directory_url=room_directory_url,
        hemisphere=convention,
        per_source_watermark=not global_watermark,
    )
