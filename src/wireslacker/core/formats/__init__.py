"""Document parsers for Wires-X status pages and directory listings."""

from __future__ import annotations

from .base import FirstMatch, PatternRule
from .directory_listing import (
    HemisphereConvention,
    Listing,
    parse_lat_lon,
    parse_node_listing,
    parse_room_listing,
    parse_update_time,
)
from .status_page import StatusPageParser, parse_timestamp

__all__ = [
    "FirstMatch",
    "HemisphereConvention",
    "Listing",
    "PatternRule",
    "StatusPageParser",
    "parse_lat_lon",
    "parse_node_listing",
    "parse_room_listing",
    "parse_timestamp",
    "parse_update_time",
]
