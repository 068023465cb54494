"""Directory of active Wires-X nodes and rooms.

The cache is replaced wholesale by a background refresh loop and read by the
event processor for enrichment. A refresh builds the new state completely
before publishing it; the write lock is only held for the swap itself.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from .config import DIRECTORY_REFRESH_INTERVAL
from .errors import FetchError, FormatError, WireslackerError
from .fetch import Fetcher
from .formats.directory_listing import HemisphereConvention, parse_node_listing, parse_room_listing
from .models import DirectoryState, Node, Room
from .ticker import wait_for_stop

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ReadWriteLock:
    """Many concurrent readers or a single writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class DirectoryCache:
    """Process-wide cache of active nodes and rooms.

    Constructed once and shared by the refresh loop (the only writer) and the
    event processor (reader). Until the first successful refresh every lookup
    returns None.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        *,
        nodes_url: str,
        rooms_url: str | None = None,
        convention: HemisphereConvention = HemisphereConvention.LEGACY,
        refresh_interval: float = DIRECTORY_REFRESH_INTERVAL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._fetcher = fetcher
        self._nodes_url = nodes_url
        self._rooms_url = rooms_url
        self._convention = convention
        self._refresh_interval = refresh_interval
        self._clock = clock
        self._lock = ReadWriteLock()
        self._state: DirectoryState | None = None

    @property
    def state(self) -> DirectoryState | None:
        """Currently published state, or None before the first refresh."""
        with self._lock.read():
            return self._state

    def publish(self, state: DirectoryState) -> None:
        """Swap in a fully built state."""
        with self._lock.write():
            self._state = state

    async def _fetch_rooms(self, previous: tuple[Room, ...]) -> tuple[Room, ...]:
        if self._rooms_url is None:
            return ()
        try:
            text = await self._fetcher.fetch(self._rooms_url)
            listing = await asyncio.to_thread(parse_room_listing, text)
        except (FetchError, FormatError) as exc:
            logger.warning("Unable to update rooms (temporarily?), keeping %d known: %s", len(previous), exc)
            return previous
        return tuple(listing.records)

    async def refresh(self) -> DirectoryState:
        """Fetch and parse the listings, then publish the result.

        Raises FetchError or FormatError when the node listing cannot be
        loaded; the previously published state is kept in that case. A
        failing room listing only keeps the previous rooms.
        """
        fetched_at = self._clock()
        text = await self._fetcher.fetch(self._nodes_url)
        nodes = await asyncio.to_thread(parse_node_listing, text, convention=self._convention)

        current = self.state
        rooms = await self._fetch_rooms(current.rooms if current is not None else ())

        state = DirectoryState(
            last_update=nodes.last_update or fetched_at,
            nodes=tuple(nodes.records),
            rooms=rooms,
        )
        self.publish(state)
        return state

    async def run(self, stop: asyncio.Event) -> None:
        """Refresh now and then every refresh interval until ``stop`` is set."""
        while not stop.is_set():
            try:
                state = await self.refresh()
            except WireslackerError as exc:
                # Not fatal; retry on the next tick.
                logger.warning("Unable to update directory (temporarily?): %s", exc)
            else:
                logger.debug(
                    "Directory updated: %d nodes, %d rooms (as of %s)",
                    len(state.nodes),
                    len(state.rooms),
                    state.last_update.isoformat(),
                )
            if await wait_for_stop(stop, self._refresh_interval):
                break

    def lookup_node(self, *, id: str = "", dtmf_id: str = "", callsign: str = "") -> Node | None:
        """Return the first node matching any non-empty key."""
        state = self.state
        if state is None:
            return None
        for n in state.nodes:
            if id and n.id == id:
                return n
            if dtmf_id and n.dtmf_id == dtmf_id:
                return n
            if callsign and n.callsign == callsign:
                return n
        return None

    def lookup_room(self, *, id: str = "", dtmf_id: str = "", name: str = "") -> Room | None:
        """Return the first room matching any non-empty key."""
        state = self.state
        if state is None:
            return None
        for r in state.rooms:
            if id and r.id == id:
                return r
            if dtmf_id and r.dtmf_id == dtmf_id:
                return r
            if name and r.name == name:
                return r
        return None
