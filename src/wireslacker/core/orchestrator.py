"""Wire pollers, the directory refresh loop and the processor together.

One task per target feeds a shared queue; one processor task drains it; one
task keeps the directory fresh. Setting the stop event ends the pollers and
the refresher; snapshots already queued are still processed before
:meth:`Orchestrator.run` returns.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from contextlib import AsyncExitStack

import httpx

from .config import DIRECTORY_TIMEOUT, TARGET_TIMEOUT, WireslackerConfig
from .directory import DirectoryCache
from .fetch import SchemeFetcher, redact_url
from .formats.status_page import StatusPageParser
from .models import LogSnapshot
from .notifier import Notifier, SlackNotifier
from .poller import SourcePoller
from .processor import EventProcessor

logger = logging.getLogger(__name__)


class Orchestrator:
    """Owns the shared queue and supervises every loop by logging."""

    def __init__(
        self,
        config: WireslackerConfig,
        *,
        client: httpx.AsyncClient | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.config = config
        self.stop_event = asyncio.Event()
        self._client = client
        self._notifier = notifier
        self.directory: DirectoryCache | None = None
        self.processor: EventProcessor | None = None

    def stop(self) -> None:
        self.stop_event.set()

    def install_signal_handlers(self) -> None:
        """Stop on SIGINT/SIGTERM where the event loop supports it."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.stop)
            except (NotImplementedError, RuntimeError):
                logger.debug("Signal handler for %s not supported", sig)

    async def run(self) -> int:
        """Run until every poller has stopped; return the snapshots processed."""
        cfg = self.config
        async with AsyncExitStack() as stack:
            client = self._client
            if client is None:
                client = await stack.enter_async_context(httpx.AsyncClient())

            self.directory = DirectoryCache(
                SchemeFetcher(timeout=DIRECTORY_TIMEOUT, client=client),
                nodes_url=cfg.directory_url,
                rooms_url=cfg.room_directory_url,
                convention=cfg.hemisphere,
                refresh_interval=cfg.refresh_interval,
            )
            notifier = self._notifier or SlackNotifier(cfg.webhook, dry=cfg.dry, client=client)
            self.processor = EventProcessor(
                notifier,
                self.directory,
                noise=cfg.noise,
                per_source=cfg.per_source_watermark,
            )

            parser = StatusPageParser(tz=cfg.tz)
            target_fetcher = SchemeFetcher(timeout=TARGET_TIMEOUT, client=client)
            pollers = [
                SourcePoller(t, target_fetcher, parser, interval=cfg.read_interval)
                for t in cfg.targets
            ]

            queue: asyncio.Queue[LogSnapshot | None] = asyncio.Queue(maxsize=max(1, len(pollers) * 4))
            processor_task = asyncio.create_task(self.processor.run(queue), name="processor")
            directory_task = asyncio.create_task(self.directory.run(self.stop_event), name="directory")
            poller_tasks = [
                asyncio.create_task(p.run(queue, self.stop_event), name=f"poller-{i}")
                for i, p in enumerate(pollers)
            ]

            def _processor_done(task: asyncio.Task[int]) -> None:
                # A dead processor would leave pollers blocked on a full queue.
                if not task.cancelled() and task.exception() is not None:
                    logger.error("Processor died: %r", task.exception())
                self.stop_event.set()
                for t in poller_tasks:
                    t.cancel()

            processor_task.add_done_callback(_processor_done)

            try:
                results = await asyncio.gather(*poller_tasks, return_exceptions=True)
                for p, result in zip(pollers, results):
                    if isinstance(result, Exception):
                        logger.error("Poller for %r died: %r", redact_url(p.target), result)
            finally:
                self.stop_event.set()
                for task in poller_tasks:
                    task.cancel()
                await asyncio.gather(*poller_tasks, return_exceptions=True)

                # None is the shutdown sentinel; queued snapshots come first.
                if not processor_task.done():
                    sentinel = asyncio.create_task(queue.put(None))
                    await asyncio.wait({sentinel, processor_task}, return_when=asyncio.FIRST_COMPLETED)
                    sentinel.cancel()
                [result] = await asyncio.gather(processor_task, return_exceptions=True)
                processed = result if isinstance(result, int) else self.processor.processed

                directory_task.cancel()
                await asyncio.gather(directory_task, return_exceptions=True)

        logger.debug("Shut down after processing %d snapshots", processed)
        return processed
