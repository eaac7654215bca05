"""Command-line entry point for page-replica."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Iterable, List, Sequence

from .capture import capture
from .config import CaptureConfig
from .errors import CaptureError
from .models import CaptureResult

logger = logging.getLogger("page_replica.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or first.startswith("-"):
        return argv
    return ("capture", *argv)


def _add_capture_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("urls", nargs="+", help="One or more URLs to capture")
    parser.add_argument(
        "--output",
        default="output",
        type=Path,
        help="Directory where capture folders should be written",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Navigation timeout in seconds",
    )
    parser.add_argument(
        "--asset-timeout",
        type=float,
        default=30.0,
        help="Per-asset download timeout in seconds",
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=2.0,
        help="Seconds to wait after the initial load before scrolling",
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window instead of running headless",
    )
    parser.add_argument(
        "--parallel",
        action="store_true",
        help="Run captures for all URLs concurrently",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging, including browser console and network lines",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Render web pages with Playwright and save them as offline replicas.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    capture_parser = subparsers.add_parser(
        "capture", help="Capture pages and rewrite their assets to local copies"
    )
    _add_capture_arguments(capture_parser)

    mcp_parser = subparsers.add_parser("mcp", help="Serve capture tools over MCP (stdio)")
    mcp_parser.add_argument(
        "--output",
        default=None,
        type=Path,
        help="Directory where capture folders should be written",
    )

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


async def _capture_all(urls: List[str], config: CaptureConfig, parallel: bool) -> List[object]:
    if parallel:
        return list(
            await asyncio.gather(*(capture(url, config) for url in urls), return_exceptions=True)
        )
    outcomes: List[object] = []
    for url in urls:
        try:
            outcomes.append(await capture(url, config))
        except Exception as exc:  # pylint: disable=broad-except
            outcomes.append(exc)
    return outcomes


def _run_capture(args: argparse.Namespace) -> int:
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    config = CaptureConfig(
        output_root=Path(args.output).resolve(),
        headless=not args.headed,
        navigation_timeout=args.timeout,
        asset_timeout=args.asset_timeout,
        hydration_wait=args.wait,
    )

    overall_start = time.perf_counter()
    outcomes = asyncio.run(_capture_all(args.urls, config, args.parallel))
    total_elapsed = time.perf_counter() - overall_start

    failures = 0
    for url, outcome in zip(args.urls, outcomes):
        if isinstance(outcome, CaptureResult):
            logger.info(
                "%s -> %s (%d assets)",
                url,
                config.output_root / outcome.entry_document,
                outcome.asset_count,
            )
            continue
        failures += 1
        if isinstance(outcome, CaptureError):
            logger.error("%s failed: %s", url, outcome)
        else:
            logger.error("%s failed unexpectedly: %r", url, outcome)

    logger.info(
        "Finished in %.2fs (%d/%d succeeded, %d failed)",
        total_elapsed,
        len(args.urls) - failures,
        len(args.urls),
        failures,
    )
    return 1 if failures else 0


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    if args.command == "capture":
        sys.exit(_run_capture(args))

    from .mcp_server import main as serve_mcp

    serve_mcp(args.output)


if __name__ == "__main__":
    main()
