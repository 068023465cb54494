"""Sleep helpers for the periodic loops."""

from __future__ import annotations

import asyncio


async def wait_for_stop(stop: asyncio.Event, delay: float) -> bool:
    """Sleep up to ``delay`` seconds; return True if ``stop`` was set meanwhile."""
    try:
        await asyncio.wait_for(stop.wait(), timeout=delay)
    except TimeoutError:
        return False
    return True
