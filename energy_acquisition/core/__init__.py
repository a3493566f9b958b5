# energy_acquisition/core/__init__.py
"""Core infrastructure components for the acquisition engine."""

# Import order: most fundamental to most specific

from .exceptions import (
    AcquisitionError,
    ConfigurationError,
    TransportError,
    ReadTimeout,
    DecodeError,
    NotConnected,
    UnknownRegisterKey,
    InvalidAddress,
    SinkError,
    WriteNotSupported,
)

from .patterns.state_machine import ConnectionStateMachine, ConnectionState


__all__ = [
    "ConnectionStateMachine",
    "ConnectionState",
    "AcquisitionError",
    "ConfigurationError",
    "TransportError",
    "ReadTimeout",
    "DecodeError",
    "NotConnected",
    "UnknownRegisterKey",
    "InvalidAddress",
    "SinkError",
    "WriteNotSupported",
]
