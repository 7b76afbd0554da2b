"""Notification sinks - where session notifications are delivered.

All sinks run notifications in submission order:
- ImmediateNotificationSink runs them inline on the submitting thread
- ThreadNotificationSink runs them on one background thread
- AsyncioNotificationSink runs them on an asyncio event loop
"""

import asyncio
from queue import Empty, Queue
import threading
from typing import Callable, Optional

from ..domain.contracts.notification_sink import NotificationSink
from ..logging_config import get_logger

logger = get_logger(__name__)

_STOP = object()


def _run(notification: Callable[[], None]) -> None:
    try:
        notification()
    except Exception:
        logger.exception("notification_failed")


class ImmediateNotificationSink(NotificationSink):
    """Runs each notification inline, inside the session lock.

    Listeners may call back into the session; they must not block waiting
    for another thread that needs the session.
    """

    def submit(self, notification: Callable[[], None]) -> None:
        _run(notification)


class ThreadNotificationSink(NotificationSink):
    """Delivers notifications on a dedicated daemon thread, FIFO."""

    def __init__(self, name: str = "dnssd-notifications", autostart: bool = True):
        self._queue: Queue = Queue()
        self._thread = threading.Thread(target=self._loop, daemon=True, name=name)
        self._started = False
        self._closed = False
        self._start_lock = threading.Lock()
        if autostart:
            self.start()

    @property
    def running(self) -> bool:
        return self._started and self._thread.is_alive()

    def start(self) -> None:
        """Start the delivery thread."""
        with self._start_lock:
            if self._started:
                return
            self._started = True
            self._thread.start()
        logger.debug("notification_thread_started", thread=self._thread.name)

    def submit(self, notification: Callable[[], None]) -> None:
        if self._closed:
            logger.warning("notification_dropped_sink_closed")
            return
        self._queue.put(notification)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until everything submitted so far has run.

        Returns:
            False if the timeout elapsed first.
        """
        if not self.running:
            return self._queue.empty()
        done = threading.Event()
        self._queue.put(done.set)
        return done.wait(timeout)

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Deliver what is queued, then stop the thread."""
        if self._closed:
            return
        self._closed = True
        self._queue.put(_STOP)
        if self._started and threading.current_thread() is not self._thread:
            self._thread.join(timeout)
        logger.debug("notification_thread_stopped", thread=self._thread.name)

    def _loop(self) -> None:
        while True:
            try:
                notification = self._queue.get(timeout=1.0)
            except Empty:
                continue
            if notification is _STOP:
                return
            _run(notification)


class AsyncioNotificationSink(NotificationSink):
    """Delivers notifications on an asyncio event loop.

    ``loop.call_soon_threadsafe`` preserves submission order, so callbacks
    from provider threads reach coroutine-based hosts in event order.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def submit(self, notification: Callable[[], None]) -> None:
        try:
            self._loop.call_soon_threadsafe(_run, notification)
        except RuntimeError:
            logger.warning("notification_dropped_loop_closed")
