"""
span_propagation - A minimal tracing client core.

This package provides:
- A Span value type with an explicit Started -> Finished lifecycle
- Immutable propagation contexts that carry the active span to nested calls
- A Tracer that creates spans, reports finished ones and detects leaked ones
- Reporter and Sampler collaborators (logging, in-memory, queued, constant)
- Environment-driven configuration and a traced demo call chain
"""

__version__ = "0.1.0"

from .errors import TracingError, InvalidStateError, PropagationError, ConfigurationError
from .models import Span, Trace
from .context import (
    PropagationContext,
    with_span,
    active_span,
    require_active_span,
    start_span_from_context,
)
from .tracer import Tracer
from .reporters import (
    Reporter,
    Sampler,
    NullReporter,
    LoggingReporter,
    InMemoryReporter,
    QueuedReporter,
    ConstSampler,
)
from .config import TracerConfig

__all__ = [
    "Span",
    "Trace",
    "Tracer",
    "TracerConfig",
    # Context propagation
    "PropagationContext",
    "with_span",
    "active_span",
    "require_active_span",
    "start_span_from_context",
    # Collaborators
    "Reporter",
    "Sampler",
    "NullReporter",
    "LoggingReporter",
    "InMemoryReporter",
    "QueuedReporter",
    "ConstSampler",
    # Errors
    "TracingError",
    "InvalidStateError",
    "PropagationError",
    "ConfigurationError",
]
