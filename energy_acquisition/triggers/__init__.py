"""Sweep trigger strategies."""

from .base_trigger import TriggerStrategy
from .time_trigger import AlignedIntervalTrigger

__all__ = [
    'TriggerStrategy',
    'AlignedIntervalTrigger'
]
