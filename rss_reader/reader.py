"""
Feed readers: decode RSS channels and Atom feeds from streams or responses.
"""
import logging
from typing import IO, Optional

from rss_reader.context import Context
from rss_reader.decoder import decode_channel, decode_feed
from rss_reader.errors import MalformedFeedError
from rss_reader.fetcher import FeedResponse, HTTPClient, fetch
from rss_reader.models import Channel, Feed

logger = logging.getLogger(__name__)


READ_CHUNK_SIZE = 64 * 1024


def _read_all(ctx: Context, stream: IO[bytes]) -> bytes:
    """
    Read the whole stream in chunks, checking the context between them.

    Fails fast without touching the stream if the context is already done.
    Once the context is done, its error is raised whatever the stream did.
    """
    ctx.raise_if_done()
    chunks = []
    while True:
        try:
            chunk = stream.read(READ_CHUNK_SIZE)
        except Exception as e:
            err = ctx.err()
            if err is not None:
                raise err from e
            raise MalformedFeedError(f"cannot read feed: {e}") from e
        ctx.raise_if_done()
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


def parse_channel(ctx: Context, stream: IO[bytes]) -> Channel:
    """
    Parse an RSS 2.0 channel from a binary stream.

    The stream is not closed.

    Raises:
        MalformedFeedError: If the stream cannot be read or is not well-formed XML
        CancelledError, DeadlineExceededError: If the context is done
    """
    return decode_channel(_read_all(ctx, stream))


def parse_feed(ctx: Context, stream: IO[bytes]) -> Feed:
    """
    Parse an Atom 1.0 feed from a binary stream.

    The stream is not closed.
    """
    return decode_feed(_read_all(ctx, stream))


def read_channel(ctx: Context, response: FeedResponse) -> Channel:
    """
    Parse an RSS 2.0 channel from a response and close it.

    The reader owns the response from here on; the caller must not close it.
    """
    try:
        return parse_channel(ctx, response.raw)
    finally:
        response.close()


def read_feed(ctx: Context, response: FeedResponse) -> Feed:
    """Parse an Atom 1.0 feed from a response and close it."""
    try:
        return parse_feed(ctx, response.raw)
    finally:
        response.close()


def fetch_channel(ctx: Context, url: str, client: Optional[HTTPClient] = None,
                  reddit: bool = False) -> Channel:
    """Fetch and parse an RSS 2.0 channel."""
    channel = read_channel(ctx, fetch(ctx, url, client=client, reddit=reddit))
    logger.info(f"Read RSS channel {channel.title!r} from {url}: {len(channel.items)} items")
    return channel


def fetch_feed(ctx: Context, url: str, client: Optional[HTTPClient] = None,
               reddit: bool = False) -> Feed:
    """Fetch and parse an Atom 1.0 feed."""
    feed = read_feed(ctx, fetch(ctx, url, client=client, reddit=reddit))
    logger.info(f"Read Atom feed from {url}: {len(feed.entries)} entries")
    return feed
