"""
Modbus frame codec.

Builds "read holding registers" requests for catalog descriptors and turns
the raw register bytes of a response into numbers.

Registers travel as 16-bit big-endian words. A 32-bit float occupies two of
them; how the four bytes are reassembled depends on the meter firmware and
is selected with ``ByteOrderMode``:

    BE    [b0 b1 b2 b3] read as big-endian float
    LE    [b0 b1 b2 b3] read as little-endian float
    SWAP  [b2 b3 b0 b1] read as big-endian float (word swap)
"""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from typing import Iterable, Union

from energy_acquisition.core.exceptions import DecodeError, InvalidAddress
from energy_acquisition.models import ByteOrderMode, Encoding, RegisterDescriptor

HOLDING_REGISTER_BASE = 400001
FC_READ_HOLDING_REGISTERS = 0x03
DECIMALS = 3


@dataclass(frozen=True, slots=True)
class ReadRequest:
    """One "read holding registers" request (function 0x03)."""
    unit_id: int
    register: int
    count: int
    function_code: int = FC_READ_HOLDING_REGISTERS


def register_number(address: int) -> int:
    """Protocol register number of a 4xxxxx holding-register address."""
    number = address - HOLDING_REGISTER_BASE
    if number < 0:
        raise InvalidAddress(
            f"Address {address} is below the holding register base {HOLDING_REGISTER_BASE}"
        )
    return number


def registers_to_bytes(registers: Iterable[int]) -> bytes:
    """Pack 16-bit register words big-endian, as they are sent on the wire."""
    try:
        return b"".join(struct.pack(">H", int(r) & 0xFFFF) for r in registers)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Invalid register word in response: {e}") from e


def _reorder(buffer: bytes, mode: ByteOrderMode) -> bytes:
    if mode is ByteOrderMode.SWAP:
        return bytes((buffer[2], buffer[3], buffer[0], buffer[1]))
    return buffer


def decode_float32(buffer: bytes, mode: ByteOrderMode = ByteOrderMode.BE) -> float:
    if len(buffer) != 4:
        raise DecodeError(f"Float32 needs 4 bytes, got {len(buffer)}")
    fmt = "<f" if mode is ByteOrderMode.LE else ">f"
    value = struct.unpack(fmt, _reorder(buffer, mode))[0]
    if not math.isfinite(value):
        raise DecodeError(f"Non-finite float32 value from {buffer.hex()}")
    return value


def encode_float32(value: float, mode: ByteOrderMode = ByteOrderMode.BE) -> bytes:
    """Inverse of ``decode_float32``; used by simulated devices."""
    if mode is ByteOrderMode.LE:
        return struct.pack("<f", value)
    return _reorder(struct.pack(">f", value), mode)


def decode_int16(buffer: bytes) -> int:
    if len(buffer) != 2:
        raise DecodeError(f"Int16 needs 2 bytes, got {len(buffer)}")
    return struct.unpack(">h", buffer)[0]


class FrameCodec:
    """Request builder and response decoder bound to one byte-order mode."""

    def __init__(self, byte_order: ByteOrderMode = ByteOrderMode.BE):
        self.byte_order = byte_order

    @staticmethod
    def register_number(address: int) -> int:
        return register_number(address)

    def build_request(self, descriptor: RegisterDescriptor, unit_id: int) -> ReadRequest:
        return ReadRequest(
            unit_id=unit_id,
            register=register_number(descriptor.address),
            count=descriptor.register_count,
        )

    def decode(self, buffer: bytes, encoding: Encoding) -> Union[float, int]:
        """Decode ``buffer`` and round to the meter's precision."""
        if buffer is None:
            raise DecodeError("Empty response buffer")
        if encoding is Encoding.INT16:
            return decode_int16(bytes(buffer))
        return round(decode_float32(bytes(buffer), self.byte_order), DECIMALS)
