"""
Trace model for representing complete traces as trees of spans.
"""

from typing import List, Optional, Sequence
from pydantic import BaseModel, Field

from .span import Span


class Trace(BaseModel):
    """Represents a complete trace as a tree of spans."""
    trace_id: str = Field(..., description="Unique identifier for the trace")
    spans: List[Span] = Field(default_factory=list, description="List of spans in the trace")
    total_duration_ms: float = Field(..., description="Total duration of the trace in milliseconds")
    span_count: int = Field(..., description="Number of spans in the trace")
    error_count: int = Field(..., description="Number of spans tagged as errors")

    class Config:
        """Pydantic configuration."""
        extra = "allow"

    @classmethod
    def from_spans(cls, spans: Sequence[Span]) -> "Trace":
        """
        Build a trace from spans that share one trace ID.

        Args:
            spans: Spans belonging to the trace, in any order

        Returns:
            Trace with spans ordered by start time

        Raises:
            ValueError: If no spans are given or they span several trace IDs
        """
        if not spans:
            raise ValueError("Cannot build a trace from an empty list of spans")

        trace_ids = {span.trace_id for span in spans}
        if len(trace_ids) > 1:
            raise ValueError(f"Spans belong to more than one trace: {sorted(trace_ids)}")

        ordered = sorted(spans, key=lambda span: span.start_time)
        finished = [span for span in ordered if span.end_time is not None]
        if finished:
            start = ordered[0].start_time
            end = max(span.end_time for span in finished)
            total_duration_ms = max((end - start).total_seconds() * 1000.0, 0.0)
        else:
            total_duration_ms = 0.0

        return cls(
            trace_id=trace_ids.pop(),
            spans=ordered,
            total_duration_ms=total_duration_ms,
            span_count=len(ordered),
            error_count=sum(1 for span in ordered if span.tags.get("error") is True),
        )

    @property
    def root(self) -> Optional[Span]:
        """The parentless span of the trace, if it has been collected."""
        for span in self.spans:
            if span.parent_span_id is None:
                return span
        return None

    def get_span(self, span_id: str) -> Optional[Span]:
        for span in self.spans:
            if span.span_id == span_id:
                return span
        return None

    def children_of(self, span_id: str) -> List[Span]:
        """Return the direct children of a span, ordered by start time."""
        return [span for span in self.spans if span.parent_span_id == span_id]
