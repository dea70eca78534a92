"""
Date handling for feed-supplied date strings.

Feeds carry dates as free text. They are kept as RawDate values at decode time
and only interpreted when the caller asks for it, trying a fixed list of
layouts in order.
"""
import logging
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Callable, Dict

from dateutil import parser as date_parser

from rss_reader.errors import DateFormatError

logger = logging.getLogger(__name__)

# Layout used by WordPress and most blog platforms: "Mon, 02 Jan 2006 15:04:05 -0700"
WORDPRESS = "%a, %d %b %Y %H:%M:%S %z"

# Named layouts, handled by dedicated parsers instead of strptime
RFC822 = "RFC822"
RFC3339 = "RFC3339"

# Tried in this order by parse()
LAYOUTS = (WORDPRESS, RFC822, RFC3339)


def _parse_rfc822(value: str) -> datetime:
    parsed = parsedate_to_datetime(value)
    if parsed.tzinfo is None:
        # "-0000" means UTC with unknown local offset
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_rfc3339(value: str) -> datetime:
    parsed = date_parser.isoparse(value)
    if parsed.tzinfo is None:
        raise ValueError("missing UTC offset")
    return parsed


def _format_rfc3339(moment: datetime) -> str:
    text = moment.isoformat()
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


_PARSERS: Dict[str, Callable[[str], datetime]] = {
    RFC822: _parse_rfc822,
    RFC3339: _parse_rfc3339,
}

_FORMATTERS: Dict[str, Callable[[datetime], str]] = {
    RFC822: format_datetime,
    RFC3339: _format_rfc3339,
}


def parse_with_layout(raw: str, layout: str) -> datetime:
    """
    Parse a raw date with a single layout.

    Args:
        raw: Raw date text from the feed
        layout: RFC822, RFC3339 or a strptime pattern

    Returns:
        The parsed datetime

    Raises:
        DateFormatError: If the value does not match the layout
    """
    value = (raw or "").strip()
    if not value:
        raise DateFormatError(raw, layout, "empty date")
    try:
        parser = _PARSERS.get(layout)
        if parser is not None:
            return parser(value)
        return datetime.strptime(value, layout)
    except (ValueError, TypeError, OverflowError) as e:
        raise DateFormatError(raw, layout, str(e)) from e


def parse(raw: str) -> datetime:
    """
    Parse a raw date trying each of LAYOUTS in order.

    Raises:
        DateFormatError: carrying the failure of the last layout tried
    """
    last_error = None
    for layout in LAYOUTS:
        try:
            return parse_with_layout(raw, layout)
        except DateFormatError as e:
            last_error = e
    logger.debug(f"No date layout matched {raw!r}")
    raise last_error


def format(raw: str, layout: str) -> str:
    """Parse a raw date and render it with `layout`."""
    moment = parse(raw)
    formatter = _FORMATTERS.get(layout)
    if formatter is not None:
        return formatter(moment)
    return moment.strftime(layout)


def format_or_error_text(raw: str, layout: str) -> str:
    """
    Like format(), but returns the error text instead of raising.

    Intended for display: the result is either the formatted date or the
    description of why it could not be parsed.
    """
    try:
        return format(raw, layout)
    except DateFormatError as e:
        return str(e)


class RawDate(str):
    """
    A date string exactly as found in the feed.

    It is never interpreted at decode time; use parse() or format() when the
    value is needed as a timestamp.
    """

    __slots__ = ()

    def parse(self) -> datetime:
        return parse(self)

    def parse_with_layout(self, layout: str) -> datetime:
        return parse_with_layout(self, layout)

    def format(self, layout: str) -> str:
        return format(self, layout)

    def format_or_error_text(self, layout: str) -> str:
        return format_or_error_text(self, layout)
