"""Polling, enrichment and dispatch of Wires-X log events."""

from __future__ import annotations

from .config import WireslackerConfig, build_config
from .directory import DirectoryCache
from .errors import ConfigError, DispatchError, FetchError, FormatError, WireslackerError
from .models import DirectoryState, Event, Location, LogSnapshot, Node, Room
from .orchestrator import Orchestrator
from .processor import EventProcessor, ProcessStats, Watermarks

__all__ = [
    "ConfigError",
    "DirectoryCache",
    "DirectoryState",
    "DispatchError",
    "Event",
    "EventProcessor",
    "FetchError",
    "FormatError",
    "Location",
    "LogSnapshot",
    "Node",
    "Orchestrator",
    "ProcessStats",
    "Room",
    "Watermarks",
    "WireslackerConfig",
    "WireslackerError",
    "build_config",
]
