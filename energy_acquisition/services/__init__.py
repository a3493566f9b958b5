"""Connection, reading and sink services."""

from .connection_manager import ConnectionManager
from .mock_generator import MockGenerator
from .meter_reader import MeterReader
from .sinks import MeasurementSink, LoggingSink, JsonLinesSink

__all__ = [
    'ConnectionManager',
    'MockGenerator',
    'MeterReader',
    'MeasurementSink',
    'LoggingSink',
    'JsonLinesSink'
]
