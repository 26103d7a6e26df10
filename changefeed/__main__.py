"""CLI entry point: python -m changefeed SOURCE [options]"""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from changefeed import settings
from changefeed.items import Feed
from changefeed.query import generate_feed
from changefeed.sources import FeedSource, get_source, load_sources

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_ERROR_FEED = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="changefeed",
        description=(
            "Build a feed from a changelog or release-notes page.\n"
            "Prints the feed as JSON (default) or as a table."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("source", nargs="?", metavar="SOURCE",
                        help="Source name (see --list)")
    parser.add_argument("--list", action="store_true", default=False,
                        help="List configured sources and exit")
    parser.add_argument("--limit", default=None, metavar="N",
                        help="Maximum number of entries (clamped to the source's maximum)")
    parser.add_argument("--config", default=None, metavar="FILE",
                        help="YAML file with additional or overriding source definitions")
    parser.add_argument("--format", choices=["json", "table"], default="json",
                        help="Output format (default: json)")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        metavar="{DEBUG,INFO,WARNING,ERROR}",
                        help=f"Logging level (default: {settings.LOG_LEVEL})")
    return parser


def _print_sources(sources: dict[str, FeedSource]) -> None:
    from rich.console import Console
    from rich.table import Table

    tbl = Table(title="Configured sources")
    tbl.add_column("Name", style="cyan", no_wrap=True)
    tbl.add_column("Kind", style="dim")
    tbl.add_column("Limit", justify="right")
    tbl.add_column("URL", style="blue")
    for name, source in sorted(sources.items()):
        tbl.add_row(name, source.kind, f"{source.default_limit}/{source.max_limit}", source.url)
    Console().print(tbl)


def _print_table(feed: Feed) -> None:
    from rich import box
    from rich.console import Console
    from rich.table import Table

    tbl = Table(
        title=f"[bold]{feed.title}[/bold] ({len(feed.items)} items)",
        caption=feed.link,
        box=box.SIMPLE_HEAVY,
    )
    tbl.add_column("#", style="dim", justify="right", width=4, no_wrap=True)
    tbl.add_column("Published", style="yellow", width=10, no_wrap=True)
    tbl.add_column("Title", style="cyan", max_width=50, no_wrap=True)
    tbl.add_column("Link", style="blue", max_width=60, no_wrap=True)
    for i, item in enumerate(feed.items, 1):
        published = item.pub_date.strftime("%Y-%m-%d") if item.pub_date else "-"
        tbl.add_row(str(i), published, item.title, item.link)
    Console().print(tbl)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level, format=settings.LOG_FORMAT, stream=sys.stderr)

    try:
        sources = load_sources(args.config)
    except (OSError, ValueError, ValidationError) as exc:
        print(f"ERROR: could not load sources from {args.config}: {exc}", file=sys.stderr)
        return EXIT_USAGE

    if args.list:
        _print_sources(sources)
        return EXIT_OK

    if not args.source:
        parser.print_usage(sys.stderr)
        print("ERROR: SOURCE is required unless --list is given", file=sys.stderr)
        return EXIT_USAGE

    try:
        source = get_source(args.source, sources)
    except KeyError as exc:
        print(f"ERROR: {exc.args[0]}", file=sys.stderr)
        return EXIT_USAGE

    feed = generate_feed(source, args.limit)

    if args.format == "table":
        _print_table(feed)
    else:
        print(feed.model_dump_json(by_alias=True, indent=2))

    return EXIT_ERROR_FEED if feed.is_error else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
