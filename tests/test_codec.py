import math
import struct

import pytest

from energy_acquisition.core.exceptions import DecodeError, InvalidAddress
from energy_acquisition.models import ByteOrderMode, Encoding, RegisterDescriptor
from energy_acquisition.protocols import (
    FrameCodec,
    decode_float32,
    decode_int16,
    encode_float32,
    register_number,
    registers_to_bytes,
)


@pytest.mark.parametrize("mode", list(ByteOrderMode))
def test_float_encode_decode_is_identity_per_mode(mode):
    for value in (230.5, -12.25, 0.0, 4321.125):
        assert decode_float32(encode_float32(value, mode), mode) == value


@pytest.mark.parametrize("mode, raw", [
    (ByteOrderMode.BE,   bytes.fromhex("3f800000")),
    (ByteOrderMode.LE,   bytes.fromhex("0000803f")),
    (ByteOrderMode.SWAP, bytes.fromhex("00003f80")),
])
def test_byte_layouts_of_one(mode, raw):
    assert decode_float32(raw, mode) == 1.0
    assert encode_float32(1.0, mode) == raw


def test_register_numbering():
    assert register_number(400001) == 0
    assert register_number(404609) == 4608
    assert FrameCodec.register_number(404821) == 4820


def test_address_below_base_is_rejected():
    with pytest.raises(InvalidAddress):
        register_number(400000)
    with pytest.raises(ValueError):
        register_number(30001)


def test_short_buffer_is_a_decode_error():
    with pytest.raises(DecodeError):
        decode_float32(b"\x43\x66\x80")
    with pytest.raises(DecodeError):
        decode_int16(b"\x01")


def test_non_finite_values_are_rejected():
    with pytest.raises(DecodeError):
        decode_float32(struct.pack(">f", math.nan))
    with pytest.raises(DecodeError):
        decode_float32(struct.pack(">f", math.inf))


def test_int16_is_signed():
    assert decode_int16(b"\xff\xfe") == -2
    assert decode_int16(b"\x01\x00") == 256


def test_registers_to_bytes_packs_big_endian_words():
    assert registers_to_bytes([0x4366, 0x8000]) == b"\x43\x66\x80\x00"
    assert decode_float32(registers_to_bytes([0x4366, 0x8000])) == 230.5


def test_build_request_for_descriptor():
    descriptor = RegisterDescriptor.float32("VOLTAGE_L1N", 404609, "V", "voltage", "L1-N")
    request = FrameCodec().build_request(descriptor, unit_id=7)
    assert request.register == 4608
    assert request.count == 2
    assert request.function_code == 0x03
    assert request.unit_id == 7


def test_build_request_with_bad_address():
    descriptor = RegisterDescriptor.float32("BAD", 399999, "V", "voltage")
    with pytest.raises(InvalidAddress):
        FrameCodec().build_request(descriptor, unit_id=1)


def test_decode_rounds_to_three_decimals():
    codec = FrameCodec(ByteOrderMode.SWAP)
    raw = encode_float32(230.12345, ByteOrderMode.SWAP)
    assert codec.decode(raw, Encoding.FLOAT32) == 230.123


def test_decode_int16_encoding():
    assert FrameCodec().decode(b"\x00\x2a", Encoding.INT16) == 42


def test_decode_without_buffer():
    with pytest.raises(DecodeError):
        FrameCodec().decode(None, Encoding.FLOAT32)
