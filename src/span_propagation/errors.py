"""
Error types raised by the tracing core.
"""


class TracingError(Exception):
    """Base class for all tracing errors."""


class InvalidStateError(TracingError):
    """Raised when an operation is applied to a span in the wrong lifecycle state."""


class PropagationError(TracingError):
    """Raised when a context does not carry a usable active span."""


class ConfigurationError(TracingError, ValueError):
    """Raised when tracer configuration values are invalid."""
