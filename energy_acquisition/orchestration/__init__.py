# energy_acquisition/orchestration/__init__.py
"""Sweep scheduling and engine wiring."""

from .scheduler import AcquisitionScheduler
from .engine import AcquisitionEngine, transport_config

__all__ = [
    'AcquisitionScheduler',
    'AcquisitionEngine',
    'transport_config'
]
