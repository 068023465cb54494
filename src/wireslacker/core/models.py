"""Core data models for Wires-X log polling."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True)
class Event:
    """One timestamped log line from a Wires-X status page.

    ``message`` may be rewritten by enrichment; ``timestamp`` never changes.
    """

    raw: str
    timestamp: datetime
    message: str


@dataclass(frozen=True, slots=True)
class LogSnapshot:
    """Parsed result of a single poll of one target."""

    source: str
    log_type: str = ""
    entity_id: str = ""  # "<name>, <id(12345)>" for the node or room the log belongs to
    version: str = ""
    connected_to: str = ""  # node logs only
    events: tuple[Event, ...] = ()


@dataclass(frozen=True, slots=True)
class Location:
    city: str = ""
    state: str = ""
    country: str = ""
    latitude: float = 0.0
    longitude: float = 0.0

    def label(self) -> str:
        return f"{self.city}, {self.state}, {self.country}"

    @property
    def has_coordinates(self) -> bool:
        return self.latitude != 0.0 and self.longitude != 0.0


@dataclass(frozen=True, slots=True)
class Node:
    """Active node as listed in the Wires-X directory."""

    id: str
    dtmf_id: str
    callsign: str = ""
    mode: str = ""
    location: Location | None = None
    freq: str = ""
    sql: str = ""
    comment: str = ""


@dataclass(frozen=True, slots=True)
class Room:
    """Active room as listed in the Wires-X directory."""

    id: str
    dtmf_id: str
    name: str = ""
    location: Location | None = None
    comment: str = ""


@dataclass(frozen=True, slots=True)
class DirectoryState:
    """Immutable view of the directory, published as a whole."""

    last_update: datetime
    nodes: tuple[Node, ...] = field(default_factory=tuple)
    rooms: tuple[Room, ...] = field(default_factory=tuple)
