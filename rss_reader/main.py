#!/usr/bin/env python3
"""
Command line entry point for the RSS reader.
Fetches each feed URL and prints its items with their publication dates.
"""
import argparse
import logging
import sys
from typing import IO, List, Optional

from rss_reader.context import Context, background, with_timeout
from rss_reader.errors import FeedError
from rss_reader.fetcher import FeedFetcher
from rss_reader.models import Channel, Feed
from rss_reader.reader import read_channel, read_feed
from rss_reader.settings import Settings
from rss_reader.utils.helpers import is_reddit_url
from rss_reader.utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)

DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M"


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Fetch RSS 2.0 or Atom 1.0 feeds and print their items'
    )
    parser.add_argument(
        'urls',
        nargs='*',
        help='Feed URLs to read'
    )
    parser.add_argument(
        '--list',
        dest='list_path',
        type=str,
        help='File with one feed URL per line (# starts a comment)'
    )
    parser.add_argument(
        '--atom',
        action='store_true',
        help='Parse the feeds as Atom instead of RSS'
    )
    parser.add_argument(
        '--reddit',
        action='store_true',
        help='Use the reddit user agent for every URL (automatic for reddit.com)'
    )
    parser.add_argument(
        '--insecure',
        action='store_true',
        help='Do not verify TLS certificates'
    )
    parser.add_argument(
        '--timeout',
        type=float,
        default=None,
        help='Overall time limit in seconds for reading all feeds'
    )
    parser.add_argument(
        '--date-format',
        default=DEFAULT_DATE_FORMAT,
        help=f'strftime format for item dates (default: {DEFAULT_DATE_FORMAT.replace("%", "%%")})'
    )
    parser.add_argument(
        '--settings',
        dest='settings_path',
        type=str,
        help='Path to a JSON settings file'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Override the configured logging level'
    )
    return parser.parse_args(argv)


def read_url_list(list_path: str) -> List[str]:
    """Read feed URLs from a file, skipping blank lines and comments."""
    urls = []
    with open(list_path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith('#'):
                urls.append(line)
    return urls


def print_channel(channel: Channel, date_format: str, out: IO[str]) -> None:
    out.write(f"{channel.title}\n")
    for item in channel.items:
        out.write(f"  {item.pub_date.format_or_error_text(date_format)}  {item.title}\n")


def print_feed(feed: Feed, date_format: str, out: IO[str]) -> None:
    for entry in feed.entries:
        out.write(f"  {entry.updated.format_or_error_text(date_format)}  {entry.title}\n")


def read_one(ctx: Context, fetcher: FeedFetcher, url: str, args: argparse.Namespace, out: IO[str]) -> bool:
    """Fetch, parse and print a single feed. Returns False on failure."""
    reddit = args.reddit or is_reddit_url(url)
    out.write(f"\n{url}\n")
    try:
        response = fetcher.fetch(ctx, url, reddit=reddit)
        if args.atom:
            print_feed(read_feed(ctx, response), args.date_format, out)
        else:
            print_channel(read_channel(ctx, response), args.date_format, out)
    except FeedError as e:
        logger.error(f"Error reading {url}: {e}")
        return False
    return True


def main(argv: Optional[List[str]] = None, out: IO[str] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    out = out if out is not None else sys.stdout

    try:
        settings = Settings(args.settings_path)
    except (OSError, ValueError, TypeError) as e:
        print(f"Invalid settings: {e}", file=sys.stderr)
        return 2

    setup_logging(args.log_level or settings.log_level, settings.log_dir)

    urls = list(args.urls)
    if args.list_path:
        try:
            urls.extend(read_url_list(args.list_path))
        except OSError as e:
            logger.error(f"Cannot read URL list {args.list_path}: {e}")
            return 2
    if not urls:
        logger.error("No feed URLs given")
        return 2

    fetcher = FeedFetcher(timeout=settings.timeout, verify=settings.verify_tls and not args.insecure)
    ctx = with_timeout(args.timeout) if args.timeout is not None else background()

    failures = 0
    try:
        with ctx:
            for url in urls:
                if ctx.done():
                    logger.error(f"Stopping: {ctx.err()}")
                    failures += 1
                    break
                if not read_one(ctx, fetcher, url, args, out):
                    failures += 1
    finally:
        fetcher.close()

    return 1 if failures else 0


if __name__ == '__main__':
    sys.exit(main())
