"""
Interfaces for the collaborators a tracer hands spans to.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from ..models import Span

logger = logging.getLogger(__name__)


class Reporter(ABC):
    """Abstract sink that receives finished spans for export."""

    @abstractmethod
    def report(self, span: "Span") -> None:
        """
        Accept a finished span.

        Implementations must return quickly; the tracer calls this on the
        thread that finished the span.

        Args:
            span: The finished span
        """
        pass

    def report_leak(self, span: "Span") -> None:
        """
        Receive a span that was never finished before the tracer closed.

        Args:
            span: The unfinished span
        """
        logger.warning(
            f"Span '{span.name}' ({span.trace_id}:{span.span_id}) was never finished"
        )

    def close(self) -> None:
        """Flush pending spans and release resources."""
        pass


class Sampler(ABC):
    """Abstract policy deciding whether a new trace is retained for export."""

    @abstractmethod
    def is_sampled(self, trace_id: str, name: str) -> bool:
        """
        Decide whether spans of a trace are reported.

        Args:
            trace_id: Trace ID of the root span being started
            name: Operation name of the root span

        Returns:
            True to report the trace, False to drop it
        """
        pass
