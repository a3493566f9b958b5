"""Wire codec and transport implementations."""

from .codec import (
    FrameCodec,
    ReadRequest,
    register_number,
    registers_to_bytes,
    decode_float32,
    encode_float32,
    decode_int16
)

from .base_transport import (
    BaseTransport,
    TransportType,
    TransportConfig
)

from .modbus_transport import ModbusTcpTransport, ModbusRtuTransport
from .transport_factory import TransportFactory

__all__ = [
    # Codec
    'FrameCodec',
    'ReadRequest',
    'register_number',
    'registers_to_bytes',
    'decode_float32',
    'encode_float32',
    'decode_int16',

    # Base classes
    'BaseTransport',
    'TransportType',
    'TransportConfig',

    # Implementations
    'ModbusTcpTransport',
    'ModbusRtuTransport',

    # Factory
    'TransportFactory'
]
