# Reporters module
from .interfaces import Reporter, Sampler
from .basic import NullReporter, LoggingReporter, format_span_context
from .in_memory import InMemoryReporter
from .queued import QueuedReporter
from .samplers import ConstSampler

__all__ = [
    "Reporter",
    "Sampler",
    "NullReporter",
    "LoggingReporter",
    "InMemoryReporter",
    "QueuedReporter",
    "ConstSampler",
    "format_span_context",
]
