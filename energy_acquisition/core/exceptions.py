"""
Centralised exception definitions for the energy acquisition engine.
All custom exceptions should inherit from AcquisitionError.
"""

class AcquisitionError(Exception):
    """Base class for every custom exception thrown by this project."""

class ConfigurationError(AcquisitionError):
    """Raised when configuration values or the register table are invalid."""

class TransportError(AcquisitionError):
    """Connect/open failure or a link that dropped mid-operation."""

class ReadTimeout(TransportError):
    """A single request/response exchange exceeded the read timeout."""

class DecodeError(AcquisitionError):
    """Response buffer is short, malformed or does not hold a finite number."""

class NotConnected(AcquisitionError):
    """Operation attempted while the connection is not established."""

class UnknownRegisterKey(AcquisitionError, KeyError):
    """Requested register key is not part of the catalog."""

    def __str__(self):
        return Exception.__str__(self)

class InvalidAddress(AcquisitionError, ValueError):
    """Holding-register address maps to a negative register number."""

class SinkError(AcquisitionError):
    """Downstream store refused or failed to persist a measurement."""

class WriteNotSupported(AcquisitionError):
    """Register writes are disabled on this engine."""
