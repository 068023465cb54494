from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Sequence

from wireslacker.core.config import WireslackerConfig, build_config
from wireslacker.core.errors import ConfigError
from wireslacker.core.formats.directory_listing import HemisphereConvention
from wireslacker.core.orchestrator import Orchestrator

LOG_LEVEL_ENV = "WIRESLACKER_LOG_LEVEL"

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    if verbose:
        level = logging.DEBUG
    else:
        level_name = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
        level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Post new Wires-X log events to a Slack webhook.")
    p.add_argument("--targets", default=None, help="Comma-separated URLs (or paths) of the Wires-X logs")
    p.add_argument(
        "--read-interval",
        type=float,
        default=None,
        help="Seconds between polls of each target (default: 10)",
    )
    p.add_argument("--webhook", default=None, help="Slack incoming webhook URL")
    p.add_argument("--dry", action="store_true", help="Log messages instead of posting them")
    p.add_argument("--timezone", default=None, help="IANA time zone of the log timestamps (default: UTC)")
    p.add_argument("-v", "--verbose", action="store_true", help="Log per-poll details")

    p.add_argument("--directory-url", default=None, help="Active node listing URL")
    p.add_argument("--room-directory-url", default=None, help="Active room listing URL")
    p.add_argument("--no-rooms", action="store_true", help="Do not load the active room listing")
    p.add_argument(
        "--hemisphere",
        choices=[c.value for c in HemisphereConvention],
        default=HemisphereConvention.LEGACY.value,
        help="Sign convention for directory coordinates (default: legacy)",
    )
    p.add_argument(
        "--global-watermark",
        action="store_true",
        help="Share one delivery watermark across all targets",
    )
    return p


def parse_config(argv: Sequence[str] | None = None) -> WireslackerConfig:
    """Parse flags into a validated config; ConfigError on invalid input."""
    args = _build_parser().parse_args(argv)
    return build_config(
        targets=args.targets,
        webhook=args.webhook,
        read_interval=args.read_interval,
        dry=args.dry,
        timezone=args.timezone,
        verbose=args.verbose,
        directory_url=args.directory_url,
        room_directory_url=args.room_directory_url,
        no_rooms=args.no_rooms,
        hemisphere=args.hemisphere,
        global_watermark=args.global_watermark,
    )


async def _serve(config: WireslackerConfig) -> None:
    orchestrator = Orchestrator(config)
    orchestrator.install_signal_handlers()
    await orchestrator.run()


def main(argv: Sequence[str] | None = None) -> None:
    try:
        config = parse_config(argv)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    _configure_logging(config.verbose)
    logger.debug("Starting with %d targets (dry=%s)", len(config.targets), config.dry)
    asyncio.run(_serve(config))


if __name__ == "__main__":
    main()
