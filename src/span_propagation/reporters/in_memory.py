"""
Reporter that keeps finished spans in memory, for tests and local inspection.
"""

import threading
from typing import List

from .interfaces import Reporter
from ..models import Span, Trace


class InMemoryReporter(Reporter):
    """Collects reported and leaked spans in thread-safe lists."""

    def __init__(self):
        self._lock = threading.Lock()
        self._spans: List[Span] = []
        self._leaks: List[Span] = []
        self.closed = False

    def report(self, span: Span) -> None:
        with self._lock:
            self._spans.append(span)

    def report_leak(self, span: Span) -> None:
        with self._lock:
            self._leaks.append(span)

    def close(self) -> None:
        self.closed = True

    @property
    def spans(self) -> List[Span]:
        """Reported spans in the order they were finished."""
        with self._lock:
            return list(self._spans)

    @property
    def leaks(self) -> List[Span]:
        with self._lock:
            return list(self._leaks)

    def get_span_by_name(self, name: str) -> Span:
        """
        Return the first reported span with the given name.

        Raises:
            KeyError: If no span with that name was reported
        """
        for span in self.spans:
            if span.name == name:
                return span
        raise KeyError(name)

    def get_trace(self, trace_id: str) -> Trace:
        """
        Assemble the reported spans of one trace.

        Raises:
            KeyError: If no span of that trace was reported
        """
        spans = [span for span in self.spans if span.trace_id == trace_id]
        if not spans:
            raise KeyError(trace_id)
        return Trace.from_spans(spans)

    def clear(self) -> None:
        with self._lock:
            self._spans.clear()
            self._leaks.clear()
