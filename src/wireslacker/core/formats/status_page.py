"""Wires-X node/room status page parser."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime, tzinfo

from ..errors import FormatError
from ..fetch import redact_url
from ..models import Event, LogSnapshot
from .base import FirstMatch, PatternRule

# Date/time format used in Wires-X logs.
TIME_FORMAT = "%Y/%m/%d %H:%M:%S"
# Entries are separated by <br>; the header block also uses plain line breaks.
LINE_SEPARATOR_RE = re.compile(r"<br\s*/?>|\r?\n", re.IGNORECASE)
# Trimmed from both ends of an event message.
MSG_TRIM = " *-"


@dataclass(slots=True)
class _Draft:
    """Mutable snapshot under construction."""

    tz: tzinfo
    log_type: str = ""
    entity_id: str = ""
    version: str = ""
    connected_to: str = ""
    events: list[Event] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not (self.log_type or self.entity_id or self.version or self.connected_to or self.events)


def _set_log_type(m: re.Match[str], d: _Draft) -> None:
    if not d.log_type:
        d.log_type = m.group("title").strip()


def _set_version(m: re.Match[str], d: _Draft) -> None:
    d.version = m.group("version").strip()


def _set_entity(m: re.Match[str], d: _Draft) -> None:
    d.entity_id = f"{m.group('name')}, {m.group('id')}"


def _set_connected(m: re.Match[str], d: _Draft) -> None:
    d.connected_to = m.group("peer")


def parse_timestamp(value: str, tz: tzinfo) -> datetime | None:
    """Parse a log timestamp in ``tz``; None when it does not parse."""
    try:
        return datetime.strptime(value, TIME_FORMAT).replace(tzinfo=tz)
    except ValueError:
        return None


def _add_event(m: re.Match[str], d: _Draft) -> None:
    ts = parse_timestamp(m.group("ts"), d.tz)
    if ts is None:
        return
    d.events.append(
        Event(
            raw=m.string,
            timestamp=ts,
            message=m.group("msg").strip().strip(MSG_TRIM),
        )
    )


STATUS_PAGE_RULES: FirstMatch[_Draft] = FirstMatch(
    rules=(
        PatternRule("title", re.compile(r"<title>(?P<title>.*)</title>"), _set_log_type),
        PatternRule(
            "version",
            re.compile(r'<body><a href=".*">(?P<version>WIRES-X [^<]*)'),
            _set_version,
        ),
        PatternRule(
            "node",
            re.compile(r"NODE: <b>(?P<name>.*) , (?P<id>.*\([0-9]+\)) </b>"),
            _set_entity,
        ),
        PatternRule(
            "room",
            re.compile(r"ROOM: <b>(?P<name>.*) , (?P<id>.*\([0-9]+\)) </b>"),
            _set_entity,
        ),
        PatternRule("connected", re.compile(r"Connect to <b>(?P<peer>.*)</b>"), _set_connected),
        PatternRule(
            "event",
            re.compile(r"(?P<ts>[0-9]{4}/[0-9]{2}/[0-9]{2} [0-9]{2}:[0-9]{2}:[0-9]{2})\s+(?P<msg>.*)"),
            _add_event,
        ),
    )
)


@dataclass(frozen=True, slots=True)
class StatusPageParser:
    """Parse a Wires-X HTML log page into a LogSnapshot.

    Lines are separated by ``<br>`` or line breaks. Each line is handled by
    the first matching rule only; lines matching nothing are decoration and
    are ignored.
    """

    tz: tzinfo = UTC

    def parse(self, document: str, *, source: str = "") -> LogSnapshot:
        """Parse ``document``; FormatError when nothing at all is recognized."""
        draft = _Draft(tz=self.tz)
        for line in LINE_SEPARATOR_RE.split(document):
            STATUS_PAGE_RULES.apply(line, draft)

        if draft.empty:
            raise FormatError(
                f"no log header or events found in document from {redact_url(source)!r}"
            )

        return LogSnapshot(
            source=source,
            log_type=draft.log_type,
            entity_id=draft.entity_id,
            version=draft.version,
            connected_to=draft.connected_to,
            events=tuple(draft.events),
        )
