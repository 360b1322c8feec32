"""Search Craigslist job boards worldwide and write one HTML report per country and term."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from functools import partial
from pathlib import Path
from typing import NoReturn, Sequence

from .config import (
    CATEGORY_PATHS,
    DEFAULT_CATEGORY,
    DEFAULT_CONCURRENCY,
    DEFAULT_REGIONS,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    parse_regions,
)
from .crawler import AsyncCrawler
from .orchestrator import JobSearchRunner
from .report import ReportWriteError, ReportWriter

USAGE = "craigslist-jobs <directory> <search term>[,<search term>...]"


class _UsageParser(argparse.ArgumentParser):
    """Argument parser that prints usage and exits 0 on bad arguments."""

    def error(self, message: str) -> NoReturn:
        print(f"Error: {message}\n", file=sys.stderr)
        self.print_usage(sys.stderr)
        raise SystemExit(0)


def main(argv: Sequence[str] | None = None) -> None:
    """Execute the CLI."""

    args = _parse_args(argv)
    _configure_logging(args.log_level)

    output_dir = Path(args.directory)
    if not output_dir.is_dir():
        print(
            f"Error ensure directory that results are being saved to exists. Directory {args.directory}",
            file=sys.stderr,
        )
        print(f"usage: {USAGE}", file=sys.stderr)
        raise SystemExit(0)

    try:
        regions = parse_regions(args.regions) if args.regions else DEFAULT_REGIONS
    except ValueError as exc:
        print(f"Error: {exc}\n", file=sys.stderr)
        print(f"usage: {USAGE}", file=sys.stderr)
        raise SystemExit(0)

    terms = split_terms(args.terms)
    logging.info(
        "Searching %s for %s in %d regions (telecommute=%s)",
        args.category,
        ", ".join(repr(term) for term in terms),
        len(regions),
        args.telecommute,
    )

    writer = ReportWriter(output_dir, strict=args.strict_writes)
    crawler_factory = partial(
        AsyncCrawler,
        user_agent=args.user_agent,
        concurrency=args.concurrency,
        read_timeout=args.timeout,
    )
    runner = JobSearchRunner(writer, crawler_factory, regions=regions)

    try:
        outcomes = asyncio.run(runner.run(terms, args.category, args.telecommute))
    except ReportWriteError as exc:
        logging.error("%s", exc)
        raise SystemExit(1) from exc

    logging.info("Wrote %d reports to %s", len(outcomes), output_dir)


def split_terms(value: str) -> list[str]:
    """Split a comma separated list of search terms; blanks are kept."""

    return [term.strip() for term in value.split(",")]


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = _UsageParser(description=__doc__, usage=USAGE)
    parser.add_argument("directory", help="Existing directory the reports are written to")
    parser.add_argument("terms", help="Comma-separated search terms")
    parser.add_argument(
        "--category",
        choices=sorted(CATEGORY_PATHS),
        default=DEFAULT_CATEGORY,
        help="Job category to search",
    )
    parser.add_argument(
        "--telecommute",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Only return telecommute listings",
    )
    parser.add_argument(
        "--regions",
        default=None,
        help="Override the country list, e.g. 'USA=us,Canada=ca'",
    )
    parser.add_argument(
        "--user-agent",
        default=DEFAULT_USER_AGENT,
        help="User-Agent header to send with HTTP requests",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=DEFAULT_CONCURRENCY,
        help="Maximum concurrent HTTP requests",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="Read timeout in seconds for each request",
    )
    parser.add_argument(
        "--strict-writes",
        action="store_true",
        help="Exit non-zero at the end of the run if any report write failed",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. INFO, DEBUG)",
    )

    args = parser.parse_args(argv)
    if args.concurrency < 1:
        parser.error("--concurrency must be >= 1")
    return args


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(levelname)s %(message)s",
    )
    if level.upper() != "DEBUG":
        logging.getLogger("httpx").setLevel(logging.WARNING)


if __name__ == "__main__":
    main()
