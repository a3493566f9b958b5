# meter_reader.py - single register reads over the connection manager

import logging

from energy_acquisition.core.exceptions import DecodeError, NotConnected, TransportError
from energy_acquisition.models import Measurement, RegisterDescriptor
from energy_acquisition.protocols.codec import FrameCodec
from energy_acquisition.registers import RegisterCatalog
from energy_acquisition.services.connection_manager import ConnectionManager
from energy_acquisition.services.mock_generator import MockGenerator

READ_FAILURES = (NotConnected, TransportError, DecodeError)


class MeterReader:
    """
    Reads one catalog register: build request, exchange it on the live channel,
    decode the reply into a Measurement.

    In mock mode reads are served by the MockGenerator instead of the wire.
    """

    def __init__(self, catalog: RegisterCatalog, connection: ConnectionManager,
                 codec: FrameCodec, unit_id: int = 1,
                 mock_generator: MockGenerator = None, location: str = "sala-sport"):
        self.catalog = catalog
        self.connection = connection
        self.codec = codec
        self.unit_id = unit_id
        self.mock_generator = mock_generator
        self.location = location
        self.log = logging.getLogger(self.__class__.__name__)

    async def read_register(self, descriptor: RegisterDescriptor) -> Measurement:
        """
        Read and decode one register.

        Raises:
            NotConnected: link is not established
            TransportError: the exchange failed; the link is dropped
            DecodeError: the reply could not be decoded
            InvalidAddress: the descriptor address is below 400001
        """
        if self.connection.mock_mode and self.mock_generator:
            return self.mock_generator.generate_for(descriptor, self.location)

        request = self.codec.build_request(descriptor, self.unit_id)
        buffer = await self.connection.with_channel(lambda t: t.exchange(request))
        value = self.codec.decode(buffer, descriptor.encoding)
        return Measurement.from_descriptor(descriptor, float(value))

    async def read_or_null(self, descriptor: RegisterDescriptor) -> Measurement:
        """Like read_register, but a failed read yields a null-valued Measurement."""
        try:
            return await self.read_register(descriptor)
        except READ_FAILURES as e:
            self.log.warning(f"Error reading {descriptor.key} ({descriptor.address}): {e}")
            return Measurement.null(descriptor)

    async def read_by_key(self, key: str) -> Measurement:
        """On-demand read; UnknownRegisterKey and read errors reach the caller."""
        return await self.read_register(self.catalog.lookup(key))
