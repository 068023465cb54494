"""Deduplicate, enrich and dispatch events from polled snapshots.

All snapshots go through a single processor task. Each snapshot is handled
to completion before the next one is taken from the queue, so the
watermarks need no locking.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from .config import DEFAULT_NOISE
from .enrichment import DirectoryLookup, enrich
from .errors import DispatchError
from .fetch import redact_url
from .models import LogSnapshot
from .notifier import Notifier, format_message

logger = logging.getLogger(__name__)

_GLOBAL = ""


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class ProcessStats:
    """Per-snapshot counters, logged in verbose mode."""

    seen: int = 0
    too_old: int = 0
    noise: int = 0
    sent: int = 0
    failed: int = 0

    @property
    def filtered(self) -> int:
        return self.too_old + self.noise


class Watermarks:
    """Last delivered timestamp, per source or shared by all sources.

    Every watermark starts at ``start`` so that the backlog present on the
    first poll is never delivered. Watermarks never move backwards.
    """

    def __init__(self, start: datetime, *, per_source: bool = True) -> None:
        self._start = start
        self._per_source = per_source
        self._marks: dict[str, datetime] = {}

    def _key(self, source: str) -> str:
        return source if self._per_source else _GLOBAL

    def get(self, source: str) -> datetime:
        return self._marks.get(self._key(source), self._start)

    def advance(self, source: str, ts: datetime) -> bool:
        """Move the watermark to ``ts`` if it is later; return True if moved."""
        if ts <= self.get(source):
            return False
        self._marks[self._key(source)] = ts
        return True


class EventProcessor:
    """Turn snapshots into at most one notification per event."""

    def __init__(
        self,
        notifier: Notifier,
        directory: DirectoryLookup,
        *,
        noise: Sequence[str] = DEFAULT_NOISE,
        per_source: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._notifier = notifier
        self._directory = directory
        self._noise = tuple(noise)
        self.watermarks = Watermarks(clock(), per_source=per_source)
        self.processed = 0

    def is_noise(self, message: str) -> bool:
        return any(n in message for n in self._noise)

    async def process(self, snapshot: LogSnapshot) -> ProcessStats:
        """Dispatch every new, non-noise event of ``snapshot``.

        Never raises: a failure on one event is logged and the remaining
        events are still handled.
        """
        self.processed += 1
        stats = ProcessStats()
        not_before = self.watermarks.get(snapshot.source)
        last: datetime | None = None

        for event in sorted(snapshot.events, key=lambda e: e.timestamp):
            stats.seen += 1
            if event.timestamp <= not_before:
                stats.too_old += 1
                continue
            if self.is_noise(event.message):
                stats.noise += 1
                continue

            # Counted as delivered from here on, even if the post fails.
            last = event.timestamp

            try:
                enrichment = enrich(event, self._directory)
                message = format_message(snapshot, event, enrichment)
            except Exception:
                logger.exception("Unable to format event %r", event.raw)
                stats.failed += 1
                continue

            logger.info(
                "New message from %s (%s): %s %s",
                snapshot.entity_id or redact_url(snapshot.source),
                snapshot.log_type,
                event.timestamp.isoformat(),
                event.message,
            )
            try:
                await self._notifier.post(message)
            except DispatchError as exc:
                logger.warning("Unable to post message: %s", exc)
                stats.failed += 1
            except Exception:
                logger.exception("Notifier failed on event %r", event.raw)
                stats.failed += 1
            else:
                stats.sent += 1

        if last is not None:
            self.watermarks.advance(snapshot.source, last)

        logger.debug(
            "Processed log #%d from %s, total of %d events, filtered %d, sent %d",
            self.processed,
            redact_url(snapshot.source),
            stats.seen,
            stats.filtered,
            stats.sent,
        )
        return stats

    async def run(self, queue: asyncio.Queue[LogSnapshot | None]) -> int:
        """Consume snapshots until the ``None`` sentinel; return the count handled."""
        count = 0
        while True:
            snapshot = await queue.get()
            try:
                if snapshot is None:
                    return count
                await self.process(snapshot)
                count += 1
            finally:
                queue.task_done()
