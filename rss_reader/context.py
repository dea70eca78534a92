"""
Cancellation context for fetch and decode operations.

A Context is cancelled either manually or when its deadline passes. Once done,
err() keeps returning the same error instance, so callers can compare the
error they caught against ctx.err().

Blocking work is interrupted through after_done() callbacks: the transport
registers one that tears down its connection, and a timer thread fires them
when the deadline passes.
"""
import logging
import threading
import time
from concurrent.futures import Future
from typing import Callable, Dict, Optional, TypeVar

from rss_reader.errors import CancelledError, DeadlineExceededError, FeedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Context:
    """
    Thread-safe cancellation and deadline holder.

    Contexts can be chained: a child is done as soon as its parent is, and its
    deadline is never later than the parent's.
    """

    def __init__(self, timeout: Optional[float] = None, parent: Optional["Context"] = None):
        """
        Args:
            timeout: Seconds from now until the deadline, None for no deadline
            parent: Optional parent context
        """
        self._parent = parent
        # Reentrant: a callback may finish the context that is registering it
        self._lock = threading.RLock()
        self._done = threading.Event()
        self._err: Optional[FeedError] = None
        self._callbacks: Dict[object, Callable[[], None]] = {}
        self._timer: Optional[threading.Timer] = None
        self._parent_stop: Optional[Callable[[], bool]] = None

        deadline = None
        if timeout is not None:
            deadline = time.monotonic() + max(timeout, 0.0)
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline = deadline

    def __enter__(self) -> "Context":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()

    def cancel(self) -> None:
        """Cancel the context. Cancelling a done context has no effect."""
        self._finish(CancelledError())

    def _finish(self, err: FeedError) -> None:
        with self._lock:
            if self._err is not None:
                return
            self._err = err
            callbacks = list(self._callbacks.values())
            self._callbacks.clear()
            self._unwatch()
        self._done.set()
        for callback in callbacks:
            self._run_callback(callback)

    @staticmethod
    def _run_callback(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            logger.error(f"Error in context callback {callback!r}: {e}", exc_info=True)

    def err(self) -> Optional[FeedError]:
        """Return the cancellation error, or None while the context is live."""
        if self._err is not None:
            return self._err
        if self._parent is not None:
            parent_err = self._parent.err()
            if parent_err is not None:
                self._finish(parent_err)
                return self._err
        if self.deadline is not None and time.monotonic() >= self.deadline:
            self._finish(DeadlineExceededError())
        return self._err

    def done(self) -> bool:
        return self.err() is not None

    def raise_if_done(self) -> None:
        """Raise the context's error if it is done."""
        err = self.err()
        if err is not None:
            raise err

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline, or None when there is no deadline."""
        if self.deadline is None:
            return None
        return max(self.deadline - time.monotonic(), 0.0)

    def after_done(self, callback: Callable[[], None]) -> Callable[[], bool]:
        """
        Arrange for `callback` to run once when the context is done.

        The callback runs in the thread that finishes the context: the one
        calling cancel(), a timer thread when the deadline passes, or the
        thread cancelling a parent. It runs at once if the context is
        already done. Exceptions it raises are logged.

        Returns:
            A stop function. Calling it unregisters the callback and returns
            True if the callback had not run yet, False otherwise.
        """
        if self.err() is None:
            key = object()
            with self._lock:
                if self._err is None:
                    self._callbacks[key] = callback
                    self._watch()
                    return lambda: self._stop(key)
        self._run_callback(callback)
        return lambda: False

    def _stop(self, key: object) -> bool:
        with self._lock:
            if self._callbacks.pop(key, None) is None:
                return False
            if not self._callbacks:
                self._unwatch()
            return True

    def _watch(self) -> None:
        # Deadline and parent are only watched while someone is listening
        if self.deadline is not None and self._timer is None:
            self._timer = threading.Timer(self.remaining(), self._expire)
            self._timer.daemon = True
            self._timer.start()
        if self._parent is not None and self._parent_stop is None:
            self._parent_stop = self._parent.after_done(self._inherit)

    def _unwatch(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._parent_stop is not None:
            self._parent_stop()
            self._parent_stop = None

    def _expire(self) -> None:
        if self.err() is None:
            self._finish(DeadlineExceededError())

    def _inherit(self) -> None:
        self._finish(self._parent.err())

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the context is done or timeout elapses.

        Returns:
            True if the context is done
        """
        woken = threading.Event()
        stop = self.after_done(woken.set)
        try:
            return woken.wait(timeout)
        finally:
            stop()


def background() -> Context:
    """A context that is never cancelled and has no deadline."""
    return Context()


def with_cancel(parent: Optional[Context] = None) -> Context:
    return Context(parent=parent)


def with_timeout(timeout: float, parent: Optional[Context] = None) -> Context:
    """A context that expires after `timeout` seconds."""
    return Context(timeout=timeout, parent=parent)


def call_until_done(ctx: Context, func: Callable[[], T],
                    release: Optional[Callable[[T], None]] = None) -> T:
    """
    Run a blocking call in a worker thread, returning early if `ctx` finishes.

    Used for calls that offer no way to be interrupted, such as waiting for
    response headers. Exceptions raised by `func` are re-raised here.

    Args:
        ctx: Context to watch
        func: The blocking call
        release: Called with the late result of an abandoned call, to free it

    Returns:
        What `func` returned

    Raises:
        The context error: If the context finished before `func` returned
    """
    ctx.raise_if_done()

    future: Future = Future()

    def worker():
        try:
            result = func()
        except BaseException as e:
            future.set_exception(e)
        else:
            future.set_result(result)

    woken = threading.Event()
    future.add_done_callback(lambda f: woken.set())
    stop = ctx.after_done(woken.set)
    try:
        if not woken.is_set():
            threading.Thread(target=worker, name="rss-reader-call", daemon=True).start()
        woken.wait()
    finally:
        stop()

    if future.done():
        return future.result()

    if release is not None:
        def release_late_result(f: Future) -> None:
            if f.exception() is None:
                release(f.result())

        future.add_done_callback(release_late_result)
    logger.debug(f"Abandoned blocking call: {ctx.err()}")
    raise ctx.err()
