"""Parsers for the Wires-X active node and active room listings.

Both listings are machine-rendered HTML pages with one "Update every ..."
banner and one JavaScript object literal per entity, e.g.::

    dataList[0] = {id:"HB9TF-ND", dtmf_id:"12345", call_sign:"HB9TF", ...};

All fields are HTML-unescaped. Coordinates are given as
``N:47 22' 30`` and converted to signed decimal degrees.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta, timezone
from enum import Enum
from typing import Generic, TypeVar

from ..errors import FormatError
from ..models import Location, Node, Room
from .base import FirstMatch, PatternRule

R = TypeVar("R")

LINE_SEPARATOR = "\n"
UPDATE_TIME_FORMAT = "%d %b %Y %H:%M:%S"

# Abbreviations seen in listing banners; anything else is read as UTC.
_ZONE_OFFSETS: dict[str, timedelta] = {
    "UTC": timedelta(0),
    "GMT": timedelta(0),
    "JST": timedelta(hours=9),
}

_UPDATE_TIME_RE = re.compile(
    r"<p class=.*><span>Update every .*</span> <span>(?P<ts>.*)</span></p>"
)
_NODE_RE = re.compile(
    r'dataList\[[0-9]+\] = \{id:"(?P<id>.*?)", dtmf_id:"(?P<dtmf_id>[0-9]+)", '
    r'call_sign:"(?P<call_sign>.*?)", ana_dig:"(?P<ana_dig>.*?)", '
    r'city:"(?P<city>.*?)", state:"(?P<state>.*?)", country:"(?P<country>.*?)", '
    r'freq:"(?P<freq>.*?)", sql:"(?P<sql>.*?)", lat:"(?P<lat>.*?)", lon:"(?P<lon>.*?)", '
    r'comment:"(?P<comment>.*)"\};'
)
_ROOM_RE = re.compile(
    r'dataList\[[0-9]+\] = \{id:"(?P<id>.*?)", dtmf_id:"(?P<dtmf_id>[0-9]+)", '
    r'room_name:"(?P<room_name>.*?)", '
    r'city:"(?P<city>.*?)", state:"(?P<state>.*?)", country:"(?P<country>.*?)", '
    r'comment:"(?P<comment>.*)"\};'
)
_LAT_RE = re.compile(r"(?P<hemi>[NS]):(?P<deg>[0-9]+) (?P<min>[0-9]+)' (?P<sec>[0-9]+(?:\.[0-9]+)?)")
_LON_RE = re.compile(r"(?P<hemi>[EW]):(?P<deg>[0-9]+) (?P<min>[0-9]+)' (?P<sec>[0-9]+(?:\.[0-9]+)?)")


class HemisphereConvention(str, Enum):
    """Which hemispheres get a negative sign.

    ``LEGACY`` matches the historical deployment (south and *east* are
    negative); ``STANDARD`` is the geographic convention (south and west).
    """

    LEGACY = "legacy"
    STANDARD = "standard"

    @property
    def negative(self) -> frozenset[str]:
        if self is HemisphereConvention.LEGACY:
            return frozenset({"S", "E"})
        return frozenset({"S", "W"})


def _sexagesimal(m: re.Match[str], negative: frozenset[str]) -> float:
    value = float(m.group("deg")) + (float(m.group("min")) + float(m.group("sec")) / 60) / 60
    return -value if m.group("hemi") in negative else value


def parse_lat_lon(
    lat: str,
    lon: str,
    *,
    convention: HemisphereConvention = HemisphereConvention.LEGACY,
) -> tuple[float, float]:
    """Convert ``N:47 22' 30`` style coordinates into decimal degrees."""
    m_lat = _LAT_RE.search(lat)
    if not m_lat:
        raise ValueError(f"unable to determine latitude: {lat}")
    m_lon = _LON_RE.search(lon)
    if not m_lon:
        raise ValueError(f"unable to determine longitude: {lon}")
    negative = convention.negative
    return _sexagesimal(m_lat, negative), _sexagesimal(m_lon, negative)


def parse_update_time(value: str) -> datetime | None:
    """Parse a banner timestamp such as ``02 Jan 2006 15:04:05 JST``."""
    stamp, _, zone = value.strip().rpartition(" ")
    if not stamp:
        return None
    try:
        naive = datetime.strptime(stamp, UPDATE_TIME_FORMAT)
    except ValueError:
        return None
    offset = _ZONE_OFFSETS.get(zone.upper(), timedelta(0))
    return naive.replace(tzinfo=timezone(offset)).astimezone(UTC)


@dataclass(slots=True)
class Listing(Generic[R]):
    """Parsed listing: banner time (if any) plus records in page order."""

    last_update: datetime | None
    records: list[R]


def _u(m: re.Match[str], group: str) -> str:
    return html.unescape(m.group(group))


def _set_update_time(m: re.Match[str], listing: Listing) -> None:
    ts = parse_update_time(m.group("ts"))
    if ts is not None:
        listing.last_update = ts


def _node_rule(convention: HemisphereConvention) -> PatternRule[Listing[Node]]:
    def handle(m: re.Match[str], listing: Listing[Node]) -> None:
        try:
            lat, lon = parse_lat_lon(_u(m, "lat"), _u(m, "lon"), convention=convention)
        except ValueError:
            lat, lon = 0.0, 0.0
        listing.records.append(
            Node(
                id=_u(m, "id"),
                dtmf_id=_u(m, "dtmf_id"),
                callsign=_u(m, "call_sign"),
                mode=_u(m, "ana_dig"),
                location=Location(
                    city=_u(m, "city"),
                    state=_u(m, "state"),
                    country=_u(m, "country"),
                    latitude=lat,
                    longitude=lon,
                ),
                freq=_u(m, "freq"),
                sql=_u(m, "sql"),
                comment=_u(m, "comment"),
            )
        )

    return PatternRule("node", _NODE_RE, handle)


def _add_room(m: re.Match[str], listing: Listing[Room]) -> None:
    listing.records.append(
        Room(
            id=_u(m, "id"),
            dtmf_id=_u(m, "dtmf_id"),
            name=_u(m, "room_name"),
            location=Location(
                city=_u(m, "city"),
                state=_u(m, "state"),
                country=_u(m, "country"),
            ),
            comment=_u(m, "comment"),
        )
    )


_UPDATE_RULE: PatternRule[Listing] = PatternRule("update", _UPDATE_TIME_RE, _set_update_time)
_ROOM_RULES: FirstMatch[Listing[Room]] = FirstMatch(
    rules=(_UPDATE_RULE, PatternRule("room", _ROOM_RE, _add_room))
)


def _parse(document: str, rules: FirstMatch[Listing[R]], *, kind: str) -> Listing[R]:
    listing: Listing[R] = Listing(last_update=None, records=[])
    for line in document.split(LINE_SEPARATOR):
        rules.apply(line, listing)
    if not listing.records:
        raise FormatError(f"no {kind} records found in directory listing")
    return listing


def parse_node_listing(
    document: str,
    *,
    convention: HemisphereConvention = HemisphereConvention.LEGACY,
) -> Listing[Node]:
    """Parse the active node listing; FormatError if it has no node record."""
    rules: FirstMatch[Listing[Node]] = FirstMatch(rules=(_UPDATE_RULE, _node_rule(convention)))
    return _parse(document, rules, kind="node")


def parse_room_listing(document: str) -> Listing[Room]:
    """Parse the active room listing; FormatError if it has no room record."""
    return _parse(document, _ROOM_RULES, kind="room")
