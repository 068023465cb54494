"""Resolve node and room references in event messages via the directory.

Rules are evaluated top to bottom per lookup kind; the first pattern that
matches decides which lookup is made, even when the lookup finds nothing.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol, TypeVar

from .models import Event, Location, Node, Room

logger = logging.getLogger(__name__)

T = TypeVar("T")

COLOR_GOOD = "good"
MAP_URL = "https://www.google.com/maps/@{lat:f},{lon:f},12z"


class DirectoryLookup(Protocol):
    def lookup_node(self, *, id: str = "", dtmf_id: str = "", callsign: str = "") -> Node | None: ...

    def lookup_room(self, *, id: str = "", dtmf_id: str = "", name: str = "") -> Room | None: ...


@dataclass(frozen=True, slots=True)
class LookupRule:
    """Message pattern plus the lookup keys built from its match."""

    name: str
    pattern: re.Pattern[str]
    keys: Callable[[re.Match[str]], dict[str, str]]


@dataclass(frozen=True, slots=True)
class Enrichment:
    """Resolved directory information for one event."""

    label: str
    title: str
    text: str
    color: str = COLOR_GOOD


_IN_CALL_RE = re.compile(r"In-Call from No\.\s*(?P<num>[0-9]+)")
_CALL_START_RE = re.compile(r"Call Start No\.\s*(?P<num>[0-9]+)")
_CONNECTED_TO_RE = re.compile(r"Connected to (?P<name>.+?)\((?P<num>[0-9]+)\)")
_IN_OUT_RE = re.compile(r"(?P<name>\S.*?)\((?P<num>[0-9]+)\) (?:IN|OUT)\b")


def _by_number(m: re.Match[str]) -> dict[str, str]:
    # Logs print the number only; it can be either the primary or the DTMF id.
    return {"id": m.group("num"), "dtmf_id": m.group("num")}


NODE_RULES: tuple[LookupRule, ...] = (
    LookupRule("in-call", _IN_CALL_RE, _by_number),
    LookupRule("call-start", _CALL_START_RE, _by_number),
    LookupRule(
        "connected-to",
        _CONNECTED_TO_RE,
        lambda m: {**_by_number(m), "callsign": m.group("name").strip()},
    ),
)

ROOM_RULES: tuple[LookupRule, ...] = (
    LookupRule("call-start", _CALL_START_RE, _by_number),
    LookupRule(
        "connected-to",
        _CONNECTED_TO_RE,
        lambda m: {"dtmf_id": m.group("num"), "name": m.group("name").strip()},
    ),
    LookupRule(
        "in-out",
        _IN_OUT_RE,
        lambda m: {"dtmf_id": m.group("num"), "name": m.group("name").strip()},
    ),
)


def _first_lookup(
    rules: Sequence[LookupRule],
    message: str,
    lookup: Callable[..., T | None],
) -> T | None:
    for rule in rules:
        m = rule.pattern.search(message)
        if m:
            return lookup(**rule.keys(m))
    return None


def _location_line(location: Location | None, *, link: bool) -> str:
    if location is None:
        return "Location: n/a"
    text = location.label()
    if link and location.has_coordinates:
        url = MAP_URL.format(lat=location.latitude, lon=location.longitude)
        text = f"<{url}|{text}>"
    return f"Location: {text}"


def describe_node(n: Node) -> Enrichment:
    lines = [_location_line(n.location, link=True)]
    if n.freq:
        lines.append(f"Frequency: {n.freq} ({n.sql})")
    if n.comment:
        lines.append(f"Comment: {n.comment}")
    return Enrichment(
        label=n.callsign or n.id,
        title=f"{n.id} ({n.mode}):",
        text="\n".join(lines),
    )


def describe_room(r: Room) -> Enrichment:
    lines = [_location_line(r.location, link=False)]
    if r.comment:
        lines.append(f"Comment: {r.comment}")
    return Enrichment(
        label=r.name or r.id,
        title=f"{r.id}: {r.name}",
        text="\n".join(lines),
    )


def enrich(event: Event, directory: DirectoryLookup) -> Enrichment | None:
    """Resolve the node or room an event refers to.

    On a hit the event message is rewritten to carry the resolved label and
    the structured description is returned. A room hit takes precedence over
    a node hit. Without a hit the event is left untouched.
    """
    found: Enrichment | None = None

    node = _first_lookup(NODE_RULES, event.message, directory.lookup_node)
    if node is not None:
        found = describe_node(node)

    room = _first_lookup(ROOM_RULES, event.message, directory.lookup_room)
    if room is not None:
        found = describe_room(room)

    if found is None:
        return None

    logger.debug("Enriched %r with directory entry %r", event.message, found.label)
    event.message = f"{event.message} [{found.label}]"
    return found
