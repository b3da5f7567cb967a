"""
Reporters that need no buffering: discard or log.
"""

import logging
from typing import Optional

from .interfaces import Reporter
from ..models import Span


class NullReporter(Reporter):
    """Discards every span."""

    def report(self, span: Span) -> None:
        pass


class LoggingReporter(Reporter):
    """
    Writes one log line per finished span.

    Lines have the form
    ``Reporting span <trace_id>:<span_id>:<parent_span_id or 0>:<flag> <service>.<name>``
    where the flag is 1 for sampled spans.
    """

    def __init__(self, level: int = logging.INFO, logger: Optional[logging.Logger] = None):
        """
        Initialize the LoggingReporter.

        Args:
            level: Log level used for span lines
            logger: Logger to write to; defaults to one named after this class
        """
        self.level = level
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    def report(self, span: Span) -> None:
        name = f"{span.service_name}.{span.name}" if span.service_name else span.name
        self.logger.log(
            self.level,
            f"Reporting span {format_span_context(span)} {name} "
            f"duration_ms={span.duration_ms} tags={span.tags}",
        )

    def report_leak(self, span: Span) -> None:
        self.logger.warning(f"Leaked span {format_span_context(span)} {span.name} was never finished")


def format_span_context(span: Span) -> str:
    """Format span identity as ``trace:span:parent:flag``."""
    parent = span.parent_span_id or "0"
    flag = 1 if span.sampled else 0
    return f"{span.trace_id}:{span.span_id}:{parent}:{flag}"
