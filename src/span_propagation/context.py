"""
Propagation of the active span from caller to callee.

A PropagationContext is an immutable value. Deriving a context for a nested
call never modifies the context it was derived from, so sibling calls that
receive the same context each see the same parent.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, TYPE_CHECKING
import logging

from .errors import PropagationError
from .models import Span, TagValue

if TYPE_CHECKING:
    from .tracer import Tracer

logger = logging.getLogger(__name__)

_EMPTY_BAGGAGE: Mapping[str, str] = MappingProxyType({})


@dataclass(frozen=True, eq=False)
class PropagationContext:
    """Carrier of the currently active span and the baggage of a call scope."""
    span: Optional[Span] = None
    parent: Optional["PropagationContext"] = None
    baggage: Mapping[str, str] = field(default_factory=lambda: _EMPTY_BAGGAGE)

    def with_baggage_item(self, key: str, value: str) -> "PropagationContext":
        """
        Return a new context carrying an extra baggage item.

        The active span is unchanged; this context keeps its own baggage.
        """
        baggage = dict(self.baggage)
        baggage[key] = value
        return PropagationContext(span=self.span, parent=self.parent, baggage=MappingProxyType(baggage))

    def baggage_item(self, key: str) -> Optional[str]:
        return self.baggage.get(key)


def with_span(parent_context: Optional[PropagationContext], span: Span) -> PropagationContext:
    """
    Derive a context whose active span is the given span.

    Args:
        parent_context: Context to derive from; None or a foreign value
            yields a root context
        span: Span to make active

    Returns:
        New PropagationContext; parent_context is left untouched
    """
    if not isinstance(parent_context, PropagationContext):
        if parent_context is not None:
            logger.debug(f"Deriving root context from foreign context of type {type(parent_context).__name__}")
        return PropagationContext(span=span)
    return PropagationContext(span=span, parent=parent_context, baggage=parent_context.baggage)


def active_span(context: Optional[PropagationContext]) -> Optional[Span]:
    """
    Return the span embedded in a context.

    Missing, empty and foreign contexts all yield None; an absent active span
    is the normal state at the root of a call chain.
    """
    if context is None:
        return None
    if not isinstance(context, PropagationContext):
        logger.debug(f"Ignoring foreign context of type {type(context).__name__}")
        return None
    if not isinstance(context.span, Span):
        if context.span is not None:
            logger.debug(f"Ignoring malformed active span of type {type(context.span).__name__}")
        return None
    return context.span


def require_active_span(context: Optional[PropagationContext]) -> Span:
    """
    Return the active span of a context, failing when there is none.

    Raises:
        PropagationError: If the context carries no usable span
    """
    span = active_span(context)
    if span is None:
        raise PropagationError("Context does not carry an active span")
    return span


def start_span_from_context(
    tracer: "Tracer",
    context: Optional[PropagationContext],
    name: str,
    tags: Optional[Mapping[str, TagValue]] = None,
) -> Tuple[Span, PropagationContext]:
    """
    Start a child of the context's active span and derive the context for it.

    Args:
        tracer: Tracer that creates the span
        context: Context of the caller; may be None or carry no span
        name: Operation name of the new span
        tags: Optional initial tags

    Returns:
        Tuple of the new span and the context to pass to nested calls
    """
    parent = active_span(context)
    span = tracer.start_span(name, child_of=parent, tags=tags)
    return span, with_span(context, span)
