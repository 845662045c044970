"""
Command-line interface for the crawler.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence
from urllib.parse import urlparse

from webcrawl.config import (
    DEFAULT_TIMEOUT_S,
    DEFAULT_USER_AGENT,
    DEFAULT_WORKERS,
    CrawlConfig,
    parse_workers,
)
from webcrawl.core import CrawlStats, PageResult, WorkerPool
from webcrawl.errors import ConfigError
from webcrawl.fetcher import HttpFetcher

# argparse already exits with 2 on usage errors
EXIT_CONFIG_ERROR = 3
EXIT_INTERRUPTED = 130

LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"


def print_summary(stats: CrawlStats) -> None:
    """Print crawl summary to stderr."""
    sys.stderr.write("=" * 50 + "\n")
    sys.stderr.write("CRAWL SUMMARY\n")
    sys.stderr.write("=" * 50 + "\n\n")

    sys.stderr.write(f"Total pages crawled:    {stats.pages_crawled}\n")
    sys.stderr.write(f"Pages failed:           {stats.pages_failed}\n")
    sys.stderr.write(f"Links seen:             {stats.links_seen}\n")
    sys.stderr.write(f"Links admitted:         {stats.links_admitted}\n")
    sys.stderr.write(f"Links off-domain:       {stats.links_rejected}\n")
    sys.stderr.write(f"Links malformed:        {stats.links_malformed}\n\n")

    if stats.error_counts:
        sys.stderr.write("Errors by type:\n")
        for error_type, count in sorted(stats.error_counts.items()):
            sys.stderr.write(f"  {error_type}: {count}\n")
    else:
        sys.stderr.write("No errors encountered.\n")

    sys.stderr.write("\n")


def generate_output_path(start_url: str) -> Path:
    """Generate output path: crawls/{hostname}_{datetime}.json"""
    parsed = urlparse(start_url)
    hostname = parsed.hostname or "unknown"
    # Sanitize hostname for filename (replace dots with underscores)
    hostname_safe = hostname.replace(".", "_").replace(":", "_")
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    crawls_dir = Path("crawls")
    crawls_dir.mkdir(exist_ok=True)

    return crawls_dir / f"{hostname_safe}_{timestamp}.json"


def write_results(results: List[PageResult], out: Optional[str], seed: str, pretty: bool, verbose: bool) -> None:
    """Write results as JSON to stdout ('-'), the given path, or an auto-generated path."""
    payload = [asdict(r) for r in results]
    json_text = json.dumps(payload, ensure_ascii=False, indent=2 if pretty else None)

    if out == "-":
        print(json_text)
        return

    # Auto-generate path if not specified
    output_path = Path(out) if out else generate_output_path(seed)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json_text, encoding="utf-8")
    if verbose:
        sys.stderr.write(f"Results written to: {output_path}\n")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the webcrawl command."""
    parser = argparse.ArgumentParser(
        prog="webcrawl",
        description="Crawl every page reachable from a seed URL with a pool of concurrent workers.",
    )
    parser.add_argument("start_url", help="Seed URL (e.g. https://example.com)")
    parser.add_argument(
        "-a", "--any-domain",
        action="store_true",
        help="Follow links to any host, not only the seed's host",
    )
    # Parsed leniently: a bad value falls back to the default with a warning
    parser.add_argument(
        "-w", "--workers",
        default=str(DEFAULT_WORKERS),
        help=f"Number of concurrent workers (default: {DEFAULT_WORKERS})",
    )
    parser.add_argument("--max-pages", type=int, default=None, help="Stop after fetching this many pages")
    parser.add_argument(
        "--timeout", type=float, default=DEFAULT_TIMEOUT_S,
        help=f"Request timeout in seconds (default: {DEFAULT_TIMEOUT_S:g})",
    )
    parser.add_argument("--user-agent", default=DEFAULT_USER_AGENT, help="User-Agent header")
    parser.add_argument("--out", help="Output file path, or '-' for stdout (default: auto-generated in crawls/)")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    parser.add_argument("--verbose", action="store_true", help="Log progress and print a summary")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the crawler CLI."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )

    try:
        config = CrawlConfig.create(
            seed=args.start_url,
            any_domain=args.any_domain,
            workers=parse_workers(args.workers),
            max_pages=args.max_pages,
            timeout_s=args.timeout,
            user_agent=args.user_agent,
        )
    except ConfigError as e:
        sys.stderr.write(f"error: {e}\n")
        return EXIT_CONFIG_ERROR

    exit_code = 0
    with HttpFetcher(timeout_s=config.timeout_s, user_agent=config.user_agent) as fetcher:
        pool = WorkerPool(config, fetcher)
        pool.start()
        try:
            results, stats = pool.join()
        except KeyboardInterrupt:
            sys.stderr.write("\nInterrupted, waiting for in-flight fetches to finish...\n")
            pool.cancel()
            results, stats = pool.join()
            exit_code = EXIT_INTERRUPTED

    if args.verbose:
        print_summary(stats)

    write_results(results, args.out, config.seed, args.pretty, args.verbose)
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
