"""
Unit tests for the cancellation context.
"""

import threading
import time
import unittest

from rss_reader.context import Context, background, call_until_done, with_cancel, with_timeout
from rss_reader.errors import CancelledError, DeadlineExceededError


class TestContext(unittest.TestCase):

    def test_background_is_never_done(self):
        ctx = background()

        self.assertFalse(ctx.done())
        self.assertIsNone(ctx.err())
        self.assertIsNone(ctx.remaining())
        ctx.raise_if_done()

    def test_cancel(self):
        ctx = with_cancel()
        ctx.cancel()

        self.assertTrue(ctx.done())
        self.assertIsInstance(ctx.err(), CancelledError)
        self.assertEqual(str(ctx.err()), "context canceled")

    def test_err_is_stable(self):
        ctx = with_cancel()
        ctx.cancel()
        first = ctx.err()
        ctx.cancel()

        self.assertIs(ctx.err(), first)
        with self.assertRaises(CancelledError) as cm:
            ctx.raise_if_done()
        self.assertIs(cm.exception, first)

    def test_expired_deadline(self):
        ctx = with_timeout(0)

        self.assertTrue(ctx.done())
        self.assertIsInstance(ctx.err(), DeadlineExceededError)
        self.assertIsInstance(ctx.err(), TimeoutError)
        self.assertEqual(str(ctx.err()), "context deadline exceeded")
        self.assertEqual(ctx.remaining(), 0.0)

    def test_cancel_after_deadline_keeps_deadline_error(self):
        ctx = with_timeout(0)
        ctx.err()
        ctx.cancel()

        self.assertIsInstance(ctx.err(), DeadlineExceededError)

    def test_remaining_is_bounded_by_timeout(self):
        ctx = with_timeout(60)

        self.assertFalse(ctx.done())
        self.assertLessEqual(ctx.remaining(), 60)
        self.assertGreater(ctx.remaining(), 0)

    def test_child_inherits_parent_cancellation(self):
        parent = with_cancel()
        child = with_timeout(60, parent=parent)
        parent.cancel()

        self.assertTrue(child.done())
        self.assertIs(child.err(), parent.err())

    def test_child_cancel_does_not_affect_parent(self):
        parent = with_cancel()
        child = with_cancel(parent)
        child.cancel()

        self.assertTrue(child.done())
        self.assertFalse(parent.done())

    def test_child_deadline_capped_by_parent(self):
        parent = with_timeout(1)
        child = Context(timeout=60, parent=parent)

        self.assertEqual(child.deadline, parent.deadline)

    def test_context_manager_cancels_on_exit(self):
        with with_cancel() as ctx:
            self.assertFalse(ctx.done())

        self.assertIsInstance(ctx.err(), CancelledError)

    def test_wait_returns_when_cancelled_from_another_thread(self):
        ctx = with_cancel()
        timer = threading.Timer(0.05, ctx.cancel)
        timer.start()
        try:
            self.assertTrue(ctx.wait(timeout=5))
        finally:
            timer.cancel()

    def test_wait_times_out(self):
        self.assertFalse(with_cancel().wait(timeout=0.01))

    def test_wait_for_deadline(self):
        ctx = with_timeout(0.05)

        self.assertTrue(ctx.wait(timeout=5))
        self.assertIsInstance(ctx.err(), DeadlineExceededError)


class TestAfterDone(unittest.TestCase):

    def test_runs_once_on_cancel(self):
        ctx = with_cancel()
        calls = []
        ctx.after_done(lambda: calls.append(ctx.err()))

        ctx.cancel()
        ctx.cancel()

        self.assertEqual(len(calls), 1)
        self.assertIs(calls[0], ctx.err())

    def test_runs_at_once_when_already_done(self):
        ctx = with_cancel()
        ctx.cancel()
        calls = []

        stop = ctx.after_done(lambda: calls.append(True))

        self.assertEqual(calls, [True])
        self.assertFalse(stop())

    def test_stop_unregisters(self):
        ctx = with_cancel()
        calls = []
        stop = ctx.after_done(lambda: calls.append(True))

        self.assertTrue(stop())
        ctx.cancel()

        self.assertEqual(calls, [])
        self.assertFalse(stop())

    def test_fires_when_deadline_passes(self):
        ctx = with_timeout(0.05)
        fired = threading.Event()
        ctx.after_done(fired.set)

        self.assertTrue(fired.wait(5))
        self.assertIsInstance(ctx.err(), DeadlineExceededError)

    def test_fires_when_parent_is_cancelled(self):
        parent = with_cancel()
        child = with_timeout(60, parent=parent)
        fired = threading.Event()
        child.after_done(fired.set)

        parent.cancel()

        self.assertTrue(fired.is_set())
        self.assertIs(child.err(), parent.err())

    def test_stopped_child_does_not_react_to_parent(self):
        parent = with_cancel()
        child = with_cancel(parent)
        calls = []
        child.after_done(lambda: calls.append(True))()

        parent.cancel()

        self.assertEqual(calls, [])
        self.assertTrue(child.done())

    def test_failing_callback_is_logged_and_others_still_run(self):
        ctx = with_cancel()
        calls = []

        def broken():
            raise RuntimeError("boom")

        ctx.after_done(broken)
        ctx.after_done(lambda: calls.append(True))

        with self.assertLogs('rss_reader.context', level='ERROR') as cm:
            ctx.cancel()

        self.assertEqual(calls, [True])
        self.assertIn("boom", cm.output[0])


class TestCallUntilDone(unittest.TestCase):

    def test_returns_result(self):
        self.assertEqual(call_until_done(background(), lambda: 42), 42)

    def test_reraises_errors(self):
        def failing():
            raise OSError("unreachable")

        with self.assertRaises(OSError):
            call_until_done(background(), failing)

    def test_done_context_skips_call(self):
        ctx = with_cancel()
        ctx.cancel()
        calls = []

        with self.assertRaises(CancelledError):
            call_until_done(ctx, lambda: calls.append(True))

        self.assertEqual(calls, [])

    def test_cancel_abandons_call_and_releases_late_result(self):
        ctx = with_cancel()
        proceed = threading.Event()
        released = []
        release_done = threading.Event()

        def slow():
            proceed.wait(5)
            return "late"

        def release(value):
            released.append(value)
            release_done.set()

        timer = threading.Timer(0.05, ctx.cancel)
        timer.start()
        start = time.monotonic()
        try:
            with self.assertRaises(CancelledError) as cm:
                call_until_done(ctx, slow, release=release)
        finally:
            timer.cancel()

        self.assertLess(time.monotonic() - start, 1.0)
        self.assertIs(cm.exception, ctx.err())
        proceed.set()
        self.assertTrue(release_done.wait(5))
        self.assertEqual(released, ["late"])

    def test_deadline_abandons_call(self):
        proceed = threading.Event()
        start = time.monotonic()
        try:
            with self.assertRaises(DeadlineExceededError):
                call_until_done(with_timeout(0.1), lambda: proceed.wait(5))
        finally:
            proceed.set()

        self.assertLess(time.monotonic() - start, 1.0)


if __name__ == '__main__':
    unittest.main()
