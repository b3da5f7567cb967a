"""
Span model for representing individual units of traced work.
"""

import threading
from typing import Any, Callable, Dict, Optional, Tuple, Union
from datetime import datetime
from pydantic import BaseModel, Field, PrivateAttr

from ..errors import InvalidStateError
from ..utils import calculate_duration_ms, utc_now

TagValue = Union[bool, int, float, str]


class SpanTags(dict):
    """Tag mapping that can only be written through ``Span.set_tag``."""

    def _read_only(self, *args, **kwargs):
        raise TypeError("Span tags are read-only, use Span.set_tag")

    __setitem__ = _read_only
    __delitem__ = _read_only
    __ior__ = _read_only
    clear = _read_only
    pop = _read_only
    popitem = _read_only
    setdefault = _read_only
    update = _read_only

    def __reduce__(self):
        return (SpanTags, (dict(self),))


class Span(BaseModel):
    """Represents a single span in a distributed trace."""
    trace_id: str = Field(..., description="Identifier for the trace this span belongs to")
    span_id: str = Field(..., description="Unique identifier for the span")
    parent_span_id: Optional[str] = Field(None, description="Identifier of the parent span, None for roots")
    name: str = Field(..., description="Operation name of the span")
    service_name: Optional[str] = Field(None, description="Service that recorded the span")
    start_time: datetime = Field(..., description="Start time of the span")
    end_time: Optional[datetime] = Field(None, description="End time of the span, unset until finished")
    tags: Dict[str, TagValue] = Field(default_factory=dict, description="Span tags")
    sampled: bool = Field(True, description="Whether the span is retained for export")

    _lock: Any = PrivateAttr(default_factory=threading.Lock)
    _on_finish: Optional[Callable[["Span"], None]] = PrivateAttr(default=None)
    _ancestor_ids: Tuple[str, ...] = PrivateAttr(default=())

    class Config:
        """Pydantic configuration."""
        extra = "forbid"

    def model_post_init(self, __context: Any) -> None:
        self.__dict__["tags"] = SpanTags(self.tags)

    def __setattr__(self, name: str, value: Any) -> None:
        if not name.startswith("_"):
            if name in ("tags", "end_time"):
                raise AttributeError(
                    f"'{name}' is managed by the span lifecycle, use set_tag() or finish()"
                )
            if self.end_time is not None:
                raise InvalidStateError(
                    f"Cannot change '{name}' of finished span '{self.name}' ({self.span_id})"
                )
        super().__setattr__(name, value)

    @property
    def is_finished(self) -> bool:
        return self.end_time is not None

    @property
    def is_root(self) -> bool:
        return self.parent_span_id is None

    @property
    def duration_ms(self) -> Optional[float]:
        """Elapsed milliseconds, or None while the span is open."""
        return calculate_duration_ms(self.start_time, self.end_time)

    def set_tag(self, key: str, value: TagValue) -> "Span":
        """
        Insert or overwrite a tag on an open span.

        Args:
            key: Tag name
            value: String, number or boolean tag value

        Returns:
            The span itself, so calls can be chained

        Raises:
            InvalidStateError: If the span has already been finished
            TypeError: If the value is not a string, number or boolean
        """
        if not isinstance(value, (bool, int, float, str)):
            raise TypeError(
                f"Tag '{key}' must be a string, number or boolean, got {type(value).__name__}"
            )
        with self._lock:
            if self.end_time is not None:
                raise InvalidStateError(
                    f"Cannot set tag '{key}' on finished span '{self.name}' ({self.span_id})"
                )
            dict.__setitem__(self.tags, key, value)
        return self

    def finish(self, finish_time: Optional[datetime] = None) -> None:
        """
        Record the end time and hand the span to its tracer for reporting.

        Args:
            finish_time: Explicit end time; defaults to now. Clamped so it is
                never earlier than the start time.

        Raises:
            InvalidStateError: If the span was already finished
        """
        with self._lock:
            if self.end_time is not None:
                raise InvalidStateError(
                    f"Span '{self.name}' ({self.span_id}) is already finished"
                )
            end_time = finish_time or utc_now()
            self.__dict__["end_time"] = max(end_time, self.start_time)

        if self._on_finish is not None:
            self._on_finish(self)

    def mark_error(self, error: BaseException) -> None:
        """Tag an open span with the details of an exception."""
        self.set_tag("error", True)
        self.set_tag("error.kind", type(error).__name__)
        self.set_tag("error.message", str(error))

    def __enter__(self) -> "Span":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if self.is_finished:
            return
        if exc_value is not None:
            self.mark_error(exc_value)
        self.finish()
