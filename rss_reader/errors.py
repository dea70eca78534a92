"""
Error types raised by the RSS reader.
All errors derive from FeedError so callers can catch the whole family at once.
"""
from typing import Optional


class FeedError(Exception):
    """Base class for every error raised by this package."""


class InvalidRequestError(FeedError, ValueError):
    """The request was rejected before any network I/O took place."""


class FetchError(FeedError):
    """
    A network failure or a non-2xx HTTP response.

    Attributes:
        status_code: HTTP status code, None when no response was received
        status_text: HTTP reason phrase, empty when no response was received
    """

    def __init__(self, message: str, status_code: Optional[int] = None, status_text: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text


class CancelledError(FeedError):
    """The context was cancelled."""

    def __init__(self, message: str = "context canceled"):
        super().__init__(message)


class DeadlineExceededError(FeedError, TimeoutError):
    """The context deadline, or the transport timeout, elapsed."""

    def __init__(self, message: str = "context deadline exceeded"):
        super().__init__(message)


class MalformedFeedError(FeedError, ValueError):
    """The byte stream is not well-formed XML or could not be transcoded."""


class DateFormatError(FeedError, ValueError):
    """
    A raw date matched none of the layouts tried.

    Attributes:
        value: the raw date string
        layout: the last layout attempted
    """

    def __init__(self, value: str, layout: str, detail: str = ""):
        message = f"cannot parse {value!r} as {layout!r}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.value = value
        self.layout = layout
