"""
Sampler implementations.
"""

from .interfaces import Sampler


class ConstSampler(Sampler):
    """Makes the same sampling decision for every trace."""

    def __init__(self, decision: bool = True):
        self.decision = decision

    def is_sampled(self, trace_id: str, name: str) -> bool:
        return self.decision

    def __repr__(self) -> str:
        return f"ConstSampler(decision={self.decision})"
