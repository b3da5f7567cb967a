"""
Reporter that decouples span hand-off from delivery with a bounded queue.
"""

import logging
import queue
import threading
import time
from typing import Optional

from .interfaces import Reporter
from ..models import Span

_STOP = object()


class QueuedReporter(Reporter):
    """
    Forwards spans to a delegate reporter from a background worker thread.

    ``report`` never blocks: when the queue is full the span is dropped and
    counted in ``dropped_count``.
    """

    def __init__(self, delegate: Reporter, queue_size: int = 100, close_timeout: float = 5.0):
        """
        Initialize the QueuedReporter and start its worker thread.

        Args:
            delegate: Reporter that receives spans on the worker thread
            queue_size: Maximum number of spans waiting for delivery
            close_timeout: Seconds close() waits for the queue to drain
        """
        if queue_size <= 0:
            raise ValueError(f"queue_size must be positive, got {queue_size}")

        self.delegate = delegate
        self.close_timeout = close_timeout
        self.dropped_count = 0
        self.logger = logging.getLogger(self.__class__.__name__)

        self._queue: "queue.Queue" = queue.Queue(maxsize=queue_size)
        self._lock = threading.Lock()
        self._closed = False
        self._worker = threading.Thread(
            target=self._run, name="span-reporter", daemon=True
        )
        self._worker.start()

    def report(self, span: Span) -> None:
        with self._lock:
            closed = self._closed
            queued = False
            if not closed:
                try:
                    self._queue.put_nowait(span)
                    queued = True
                except queue.Full:
                    pass
            if not queued:
                self.dropped_count += 1
                dropped = self.dropped_count

        if closed:
            self.logger.warning(f"Reporter closed, dropping span '{span.name}' ({span.span_id})")
        elif not queued:
            self.logger.warning(
                f"Span queue full, dropping span '{span.name}' ({span.span_id}); "
                f"{dropped} dropped so far"
            )

    def report_leak(self, span: Span) -> None:
        self.delegate.report_leak(span)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until every queued span has been handed to the delegate.

        Args:
            timeout: Maximum seconds to wait; None waits indefinitely

        Returns:
            True if the queue drained, False if the timeout expired
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._queue.all_tasks_done:
            while self._queue.unfinished_tasks:
                if deadline is None:
                    self._queue.all_tasks_done.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._queue.all_tasks_done.wait(remaining)
        return True

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True

        if not self.flush(self.close_timeout):
            self.logger.warning(
                f"Timed out after {self.close_timeout}s with {self._queue.qsize()} spans undelivered"
            )
        try:
            self._queue.put(_STOP, timeout=self.close_timeout)
        except queue.Full:
            self.logger.error("Could not stop span reporter worker, queue still full")
        else:
            self._worker.join(self.close_timeout)
        self.delegate.close()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self.delegate.report(item)
            except Exception as e:
                self.logger.error(f"Failed to deliver span '{item.name}' ({item.span_id}): {e}")
            finally:
                self._queue.task_done()
