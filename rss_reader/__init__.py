"""
RSS Reader Package

Fetches RSS 2.0 and Atom 1.0 feeds with cancellable, timeout-aware requests
and decodes them into immutable records.
"""

__version__ = "1.0.0"

# Package-level imports for convenience
from .context import Context, background, call_until_done, with_cancel, with_timeout
from .dates import LAYOUTS, RFC822, RFC3339, WORDPRESS, RawDate
from .decoder import decode_channel, decode_feed
from .errors import (
    CancelledError,
    DateFormatError,
    DeadlineExceededError,
    FeedError,
    FetchError,
    InvalidRequestError,
    MalformedFeedError,
)
from .fetcher import (
    DEFAULT_USER_AGENT,
    REDDIT_USER_AGENT,
    ContextResponse,
    FeedFetcher,
    HTTPClient,
    RequestsClient,
    fetch,
    fetch_insecure,
)
from .models import Channel, Enclosure, Entry, Feed, Item
from .reader import fetch_channel, fetch_feed, parse_channel, parse_feed, read_channel, read_feed

__all__ = [
    'Context',
    'background',
    'with_cancel',
    'with_timeout',
    'call_until_done',
    'RawDate',
    'LAYOUTS',
    'WORDPRESS',
    'RFC822',
    'RFC3339',
    'decode_channel',
    'decode_feed',
    'FeedError',
    'InvalidRequestError',
    'FetchError',
    'CancelledError',
    'DeadlineExceededError',
    'MalformedFeedError',
    'DateFormatError',
    'DEFAULT_USER_AGENT',
    'REDDIT_USER_AGENT',
    'FeedFetcher',
    'HTTPClient',
    'RequestsClient',
    'ContextResponse',
    'fetch',
    'fetch_insecure',
    'Channel',
    'Item',
    'Enclosure',
    'Feed',
    'Entry',
    'parse_channel',
    'parse_feed',
    'read_channel',
    'read_feed',
    'fetch_channel',
    'fetch_feed',
]
