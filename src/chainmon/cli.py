"""Command-line entry point: serve ``/state`` and ``/ws`` while polling."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Any

from aiohttp import web

from chainmon.config import MonitorConfig
from chainmon.exceptions import ChainMonConfigError
from chainmon.models.ids import SourceId
from chainmon.monitor import ChainMonitor
from chainmon.server import create_app

_logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="chainmon",
        description="Poll blockchain data providers and stream the best known chain tips.",
    )
    parser.add_argument(
        "--listen",
        "-l",
        type=int,
        default=None,
        help="Port to listen on (default: CHAINMON_LISTEN_PORT or an ephemeral port).",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Interface to bind (default: CHAINMON_LISTEN_HOST or 0.0.0.0).",
    )
    parser.add_argument(
        "--source",
        action="append",
        dest="sources",
        choices=[source.value for source in SourceId if source is not SourceId.CHAIN_MONITOR],
        help="Source to poll; repeat for several (default: all).",
    )
    parser.add_argument(
        "--mirror",
        default=None,
        metavar="URL",
        help="Also mirror another chainmon instance at URL.",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between poll cycles.",
    )
    parser.add_argument(
        "--no-periodic-check",
        action="store_true",
        help="Only re-check a chain when a source is behind.",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("CHAINMON_LOG_LEVEL", "INFO"),
        help="Logging level (default: CHAINMON_LOG_LEVEL or INFO).",
    )
    return parser.parse_args(argv)


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.listen is not None:
        overrides["listen_port"] = args.listen
    if args.host is not None:
        overrides["listen_host"] = args.host
    if args.sources:
        overrides["sources"] = args.sources
    if args.mirror is not None:
        overrides["mirror_url"] = args.mirror
    if args.interval is not None:
        overrides["poll_interval"] = args.interval
    if args.no_periodic_check:
        overrides["periodic_check"] = False
    return overrides


async def serve(config: MonitorConfig) -> None:
    """Run the web server and the poll loop until cancelled."""
    async with ChainMonitor(config) as monitor:
        runner = web.AppRunner(create_app(monitor))
        await runner.setup()
        try:
            site = web.TCPSite(runner, config.listen_host, config.listen_port)
            await site.start()
            for address in runner.addresses:
                _logger.info("Listening on %s", address)
            await monitor.run_forever()
        finally:
            await runner.cleanup()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = MonitorConfig.from_env(**_overrides(args))
    except ChainMonConfigError as exc:
        print(f"chainmon: {exc}", file=sys.stderr)
        return 2

    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        pass
    return 0
