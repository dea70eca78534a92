#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
fetcher.py - Module for fetching feeds over HTTP with cancellation support.
"""

import logging
import socket
import time
from typing import IO, Mapping, Optional, Protocol

import requests

from rss_reader.context import Context, call_until_done
from rss_reader.errors import DeadlineExceededError, FetchError, InvalidRequestError
from rss_reader.utils.helpers import validate_url
from rss_reader.utils.logging_utils import log_fetch_attempt, log_fetch_failure, log_fetch_success

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
# Reddit throttles generic browser agents; it asks for a descriptive one
REDDIT_USER_AGENT = "python:rss-reader:v1.0.0 (feed reader)"

ACCEPT = "application/rss+xml, application/atom+xml, application/xml;q=0.9, text/xml;q=0.8, */*;q=0.5"


class FeedResponse(Protocol):
    """The part of an HTTP response the readers rely on."""

    status_code: int
    reason: str
    raw: IO[bytes]

    def close(self) -> None:
        ...


class HTTPClient(Protocol):
    """
    Anything able to GET a URL and return an open FeedResponse.

    The fetcher passes the request headers it has chosen (User-Agent, Accept);
    clients must send them.
    """

    def get(self, ctx: Context, url: str, headers: Mapping[str, str]) -> FeedResponse:
        ...


class ContextResponse:
    """
    A requests response bound to a context.

    When the context finishes before the response is closed, the underlying
    socket is shut down so that a read blocked on it returns at once.
    """

    def __init__(self, ctx: Context, response: requests.Response):
        self.response = response
        self._stop = ctx.after_done(self.abort)

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def reason(self) -> str:
        return self.response.reason

    @property
    def raw(self) -> IO[bytes]:
        return self.response.raw

    @property
    def headers(self):
        return self.response.headers

    def abort(self) -> None:
        """Shut down the connection under the response body."""
        connection = getattr(self.response.raw, 'connection', None)
        sock = getattr(connection, 'sock', None)
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug(f"Connection already gone while aborting: {e}")

    def close(self) -> None:
        self._stop()
        self.response.close()


class RequestsClient:
    """
    HTTPClient backed by a requests session.

    The effective timeout of a request is the smaller of the client timeout
    and the time left before the context deadline. The wait for the response
    headers ends as soon as the context does, and the returned response is
    aborted if the context finishes while its body is being read.
    """

    def __init__(self, timeout: Optional[float] = 30, verify: bool = True,
                 session: Optional[requests.Session] = None):
        """
        Args:
            timeout: Per-request timeout in seconds, None to rely on the context only
            verify: Verify TLS certificates
            session: Session to reuse, a new one is created otherwise
        """
        self.timeout = timeout
        self.verify = verify
        self.session = session if session is not None else requests.Session()

    def _timeout_for(self, ctx: Context) -> Optional[float]:
        remaining = ctx.remaining()
        if remaining is None:
            return self.timeout
        if self.timeout is None:
            return remaining
        return min(self.timeout, remaining)

    def get(self, ctx: Context, url: str, headers: Mapping[str, str]) -> ContextResponse:
        """
        Issue a streaming GET request.

        Raises:
            InvalidRequestError: If requests rejects the URL before connecting
            DeadlineExceededError: On request timeout
            FetchError: For any other network failure
            The context error: If the context is done before or during the request
        """
        ctx.raise_if_done()
        timeout = self._timeout_for(ctx)

        def send() -> requests.Response:
            return self.session.get(
                url, headers=dict(headers), timeout=timeout, stream=True, verify=self.verify
            )

        try:
            # A response arriving after the context is done is closed unread
            response = call_until_done(ctx, send, release=lambda late: late.close())
        except (requests.exceptions.MissingSchema, requests.exceptions.InvalidSchema,
                requests.exceptions.InvalidURL) as e:
            raise InvalidRequestError(f"invalid URL {url!r}: {e}") from e
        except requests.exceptions.Timeout as e:
            err = ctx.err()
            if err is not None:
                raise err from e
            raise DeadlineExceededError(f"request to {url} timed out after {timeout}s") from e
        except requests.exceptions.RequestException as e:
            err = ctx.err()
            if err is not None:
                raise err from e
            raise FetchError(f"request to {url} failed: {e}") from e

        # Transparent gzip/deflate when the body is read through .raw
        response.raw.decode_content = True
        return ContextResponse(ctx, response)

    def close(self) -> None:
        """Close the session and its idle connections."""
        self.session.close()


class FeedFetcher:
    """
    Fetches feeds, returning the open response for a reader to consume.
    """

    def __init__(self, client: Optional[HTTPClient] = None, timeout: Optional[float] = 30,
                 verify: bool = True):
        """
        Initialize the fetcher.

        Args:
            client: HTTPClient to use; a RequestsClient is created when omitted
            timeout: Request timeout in seconds for the default client
            verify: Verify TLS certificates in the default client
        """
        self._owns_client = client is None
        self.client = client if client is not None else RequestsClient(timeout=timeout, verify=verify)
        logger.debug(f"FeedFetcher initialized with {type(self.client).__name__}")

    @staticmethod
    def user_agent(reddit: bool) -> str:
        return REDDIT_USER_AGENT if reddit else DEFAULT_USER_AGENT

    def fetch(self, ctx: Context, url: str, reddit: bool = False) -> FeedResponse:
        """
        GET a feed URL.

        Args:
            ctx: Cancellation context
            url: URL of the feed
            reddit: Send the user agent reddit.com requires

        Returns:
            The open response; the caller (or a reader) must close it

        Raises:
            InvalidRequestError: If the URL is empty or unparseable
            FetchError: On network failure or a non-2xx status
            CancelledError, DeadlineExceededError: If the context is done
        """
        if not url or not url.strip():
            raise InvalidRequestError("URL cannot be empty")
        if not validate_url(url):
            raise InvalidRequestError(f"invalid URL {url!r}")
        ctx.raise_if_done()

        headers = {
            'User-Agent': self.user_agent(reddit),
            'Accept': ACCEPT,
        }
        log_fetch_attempt(logger, url, headers['User-Agent'])

        start_time = time.monotonic()
        try:
            response = self.client.get(ctx, url, headers)
        except Exception as e:
            log_fetch_failure(logger, url, e)
            raise

        if ctx.done():
            response.close()
            err = ctx.err()
            log_fetch_failure(logger, url, err)
            raise err

        if not 200 <= response.status_code < 300:
            response.close()
            err = FetchError(
                f"{url}: HTTP {response.status_code} {response.reason}",
                status_code=response.status_code,
                status_text=response.reason or "",
            )
            log_fetch_failure(logger, url, err)
            raise err

        log_fetch_success(logger, url, response.status_code, time.monotonic() - start_time)
        return response

    def close(self) -> None:
        """Close the default client. An injected client is left to its owner."""
        if self._owns_client:
            self.client.close()


def _fetch_once(fetcher: FeedFetcher, ctx: Context, url: str, reddit: bool) -> FeedResponse:
    # An open response keeps its own connection after the session is closed
    try:
        return fetcher.fetch(ctx, url, reddit=reddit)
    finally:
        fetcher.close()


def fetch(ctx: Context, url: str, client: Optional[HTTPClient] = None, reddit: bool = False) -> FeedResponse:
    """Fetch a feed with `client`, or with a throwaway RequestsClient."""
    return _fetch_once(FeedFetcher(client=client), ctx, url, reddit)


def fetch_insecure(ctx: Context, url: str, reddit: bool = False) -> FeedResponse:
    """Fetch a feed without verifying the server's TLS certificate."""
    return _fetch_once(FeedFetcher(verify=False), ctx, url, reddit)
