"""
Tracer: creates spans, tracks the open ones and reports the finished ones.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Iterator, List, Mapping, Optional, Tuple
import logging
import threading

from .context import PropagationContext, start_span_from_context
from .models import Span, TagValue
from .reporters import ConstSampler, NullReporter, Reporter, Sampler
from .utils import generate_span_id, generate_trace_id, utc_now


class Tracer:
    """
    Creates spans and hands finished ones to a Reporter.

    A tracer is built once per process and passed explicitly to every call
    site that records spans.
    """

    def __init__(
        self,
        service_name: str,
        reporter: Optional[Reporter] = None,
        sampler: Optional[Sampler] = None,
    ):
        """
        Initialize the Tracer.

        Args:
            service_name: Name of the service recorded on every span
            reporter: Sink for finished spans; defaults to NullReporter
            sampler: Sampling policy for new traces; defaults to sampling all
        """
        self.service_name = service_name
        self.reporter = reporter or NullReporter()
        self.sampler = sampler or ConstSampler(True)
        self.logger = logging.getLogger(self.__class__.__name__)

        self._lock = threading.Lock()
        self._open_spans: Dict[str, Span] = {}
        self._closed = False

        self.logger.info(
            f"Tracer created for service '{service_name}' with "
            f"{type(self.reporter).__name__} and {self.sampler!r}"
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def start_span(
        self,
        name: str,
        child_of: Optional[Span] = None,
        tags: Optional[Mapping[str, TagValue]] = None,
        start_time: Optional[datetime] = None,
    ) -> Span:
        """
        Start a new span.

        Args:
            name: Operation name
            child_of: Parent span; None starts a new trace
            tags: Optional initial tags
            start_time: Explicit start time; defaults to now

        Returns:
            The started span, owned by the caller until it is finished
        """
        start_time = start_time or utc_now()

        if child_of is None:
            trace_id = generate_trace_id()
            parent_span_id = None
            sampled = self._is_sampled(trace_id, name)
        else:
            trace_id = child_of.trace_id
            parent_span_id = child_of.span_id
            sampled = child_of.sampled
            # A child never starts before its parent.
            start_time = max(start_time, child_of.start_time)

        span = Span(
            trace_id=trace_id,
            span_id=generate_span_id(),
            parent_span_id=parent_span_id,
            name=name,
            service_name=self.service_name,
            start_time=start_time,
            sampled=sampled,
        )
        span._on_finish = self._on_span_finished
        if child_of is not None:
            span._ancestor_ids = child_of._ancestor_ids + (child_of.span_id,)
        for key, value in (tags or {}).items():
            span.set_tag(key, value)

        with self._lock:
            self._open_spans[span.span_id] = span

        self.logger.debug(f"Started span '{name}' {trace_id}:{span.span_id}:{parent_span_id or 0}")
        return span

    def finish_span(self, span: Span, finish_time: Optional[datetime] = None) -> None:
        """Finish a span; equivalent to ``span.finish()``."""
        span.finish(finish_time)

    def start_span_from_context(
        self,
        context: Optional[PropagationContext],
        name: str,
        tags: Optional[Mapping[str, TagValue]] = None,
    ) -> Tuple[Span, PropagationContext]:
        """Start a child of the context's active span; see ``context.start_span_from_context``."""
        return start_span_from_context(self, context, name, tags=tags)

    @contextmanager
    def scoped_span(
        self,
        name: str,
        context: Optional[PropagationContext] = None,
        tags: Optional[Mapping[str, TagValue]] = None,
    ) -> Iterator[Tuple[Span, PropagationContext]]:
        """
        Run a block inside a span that is finished on every exit path.

        Usage::

            with tracer.scoped_span("DatabaseArea", ctx) as (span, db_ctx):
                span.set_tag("db.type", "sql")
                redis(tracer, db_ctx)

        An exception leaving the block tags the span as errored and is
        re-raised after the span is finished.

        Yields:
            Tuple of the new span and the context for nested calls
        """
        span, child_context = self.start_span_from_context(context, name, tags=tags)
        try:
            yield span, child_context
        except BaseException as e:
            if not span.is_finished:
                span.mark_error(e)
            raise
        finally:
            if not span.is_finished:
                span.finish()

    def open_spans(self) -> List[Span]:
        """Return spans started by this tracer that have not been finished."""
        with self._lock:
            return list(self._open_spans.values())

    def open_descendants(self, span: Span) -> List[Span]:
        """Return unfinished spans started below the given span, at any depth."""
        with self._lock:
            return [
                other for other in self._open_spans.values() if span.span_id in other._ancestor_ids
            ]

    def report_leaks(self) -> List[Span]:
        """
        Hand every unfinished span to the reporter as a leak.

        Returns:
            The leaked spans
        """
        leaked = self.open_spans()
        for span in leaked:
            try:
                self.reporter.report_leak(span)
            except Exception as e:
                self.logger.error(f"Reporter failed to record leaked span '{span.name}': {e}")
        if leaked:
            self.logger.warning(f"{len(leaked)} span(s) were never finished")
        return leaked

    def close(self, report_leaks: bool = True) -> None:
        """
        Shut the tracer down: report leaks, then flush and close the reporter.

        Args:
            report_leaks: Whether unfinished spans are reported as leaks
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True

        if report_leaks:
            self.report_leaks()
        try:
            self.reporter.close()
        except Exception as e:
            self.logger.error(f"Failed to close reporter: {e}")
        self.logger.info(f"Tracer for service '{self.service_name}' closed")

    def __enter__(self) -> "Tracer":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def _is_sampled(self, trace_id: str, name: str) -> bool:
        try:
            return bool(self.sampler.is_sampled(trace_id, name))
        except Exception as e:
            self.logger.error(f"Sampler failed for trace {trace_id}, sampling it: {e}")
            return True

    def _on_span_finished(self, span: Span) -> None:
        with self._lock:
            self._open_spans.pop(span.span_id, None)
        open_descendants = self.open_descendants(span)
        if open_descendants:
            self.logger.debug(
                f"Span '{span.name}' ({span.span_id}) finished with "
                f"{len(open_descendants)} open descendant span(s)"
            )
        self.logger.debug(f"Finished span '{span.name}' ({span.span_id}) in {span.duration_ms}ms")

        if not span.sampled:
            return
        try:
            self.reporter.report(span)
        except Exception as e:
            self.logger.error(f"Reporter failed for span '{span.name}' ({span.span_id}): {e}")
