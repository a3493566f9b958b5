import asyncio

import pytest

from energy_acquisition.core.exceptions import DecodeError, TransportError
from energy_acquisition.models import ByteOrderMode
from energy_acquisition.protocols import (
    BaseTransport,
    TransportConfig,
    TransportType,
    encode_float32,
    register_number,
)
from energy_acquisition.registers import RegisterCatalog


class FakeTransport(BaseTransport):
    """In-memory meter: register number -> raw bytes of the reply."""

    def __init__(self, registers=None, *, fail_open=False, read_timeout=1.0, delay=0.0):
        super().__init__(TransportConfig(TransportType.TCP, {}, read_timeout=read_timeout))
        self.registers = dict(registers or {})
        self.fail_open = fail_open
        self.fail_reads = False
        self.delay = delay
        self.open_calls = 0
        self.requests = []
        self.in_flight = 0
        self.max_in_flight = 0

    def describe(self):
        return "fake://meter"

    async def _open_channel(self):
        self.open_calls += 1
        if self.fail_open:
            raise TransportError("connection refused")

    async def _close_channel(self):
        pass

    async def _exchange(self, request):
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail_reads:
                raise TransportError("socket closed")
            try:
                return self.registers[request.register]
            except KeyError:
                raise DecodeError(f"illegal data address {request.register}") from None
        finally:
            self.in_flight -= 1


def meter_image(catalog, values, mode=ByteOrderMode.BE):
    """Register map holding ``values[key]`` for every key given."""
    return {
        register_number(catalog.lookup(key).address): encode_float32(value, mode)
        for key, value in values.items()
    }


@pytest.fixture
def catalog():
    return RegisterCatalog()


@pytest.fixture
def full_image(catalog):
    """Every catalog register readable, value = 100 + position."""
    return meter_image(catalog, {d.key: 100.0 + i for i, d in enumerate(catalog)})


@pytest.fixture
def make_transport():
    return FakeTransport


@pytest.fixture
def make_image():
    return meter_image
