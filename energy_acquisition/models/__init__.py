"""Data models and domain objects."""

from .measurement_models import (
    Encoding,
    ByteOrderMode,
    RegisterDescriptor,
    Measurement
)

__all__ = [
    'Encoding',
    'ByteOrderMode',
    'RegisterDescriptor',
    'Measurement'
]
