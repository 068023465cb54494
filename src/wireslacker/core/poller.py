"""Periodic polling of one Wires-X log target."""

from __future__ import annotations

import asyncio
import logging

from .errors import WireslackerError
from .fetch import Fetcher, redact_url
from .formats.status_page import StatusPageParser
from .models import LogSnapshot
from .ticker import wait_for_stop

logger = logging.getLogger(__name__)


class SourcePoller:
    """Fetch and parse one target every ``interval`` seconds."""

    def __init__(
        self,
        target: str,
        fetcher: Fetcher,
        parser: StatusPageParser,
        *,
        interval: float,
    ) -> None:
        self.target = target
        self._fetcher = fetcher
        self._parser = parser
        self._interval = interval

    async def poll(self) -> LogSnapshot:
        """Fetch the target once; FetchError or FormatError on failure."""
        text = await self._fetcher.fetch(self.target)
        return self._parser.parse(text, source=self.target)

    async def run(self, queue: asyncio.Queue[LogSnapshot | None], stop: asyncio.Event) -> int:
        """Poll until ``stop`` is set; return the number of snapshots queued."""
        polls = 0
        name = redact_url(self.target)
        logger.debug("Start polling %r every %ss", name, self._interval)
        while not stop.is_set():
            logger.debug("Polling log %r", name)
            try:
                snapshot = await self.poll()
            except WireslackerError as exc:
                logger.warning("Unable to read log %r (retrying next tick): %s", name, exc)
            else:
                await queue.put(snapshot)
                polls += 1
            if await wait_for_stop(stop, self._interval):
                break
        logger.debug("Stopped polling %r after %d snapshots", name, polls)
        return polls
