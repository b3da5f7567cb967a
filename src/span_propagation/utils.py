"""
Identifier and time helpers shared by spans and the tracer.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional


def generate_trace_id() -> str:
    """Return a new 128-bit trace identifier as 32 hex characters."""
    return uuid.uuid4().hex


def generate_span_id() -> str:
    """Return a new 64-bit span identifier as 16 hex characters."""
    return uuid.uuid4().hex[:16]


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def calculate_duration_ms(start_time: datetime, end_time: Optional[datetime]) -> Optional[float]:
    """
    Calculate the elapsed time between two datetimes.

    Args:
        start_time: Start of the interval
        end_time: End of the interval, or None if still open

    Returns:
        Duration in milliseconds, or None when end_time is None
    """
    if end_time is None:
        return None
    return (end_time - start_time).total_seconds() * 1000.0
