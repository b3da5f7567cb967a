"""
Core data models for traced work.
"""

from .span import Span, SpanTags, TagValue
from .trace import Trace

__all__ = [
    "Span",
    "SpanTags",
    "TagValue",
    "Trace",
]
