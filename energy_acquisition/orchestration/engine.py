from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from energy_acquisition.core.exceptions import WriteNotSupported
from energy_acquisition.models import Measurement
from energy_acquisition.protocols import (
    BaseTransport,
    FrameCodec,
    TransportConfig,
    TransportFactory,
    TransportType,
)
from energy_acquisition.registers import RegisterCatalog
from energy_acquisition.services import (
    ConnectionManager,
    JsonLinesSink,
    LoggingSink,
    MeasurementSink,
    MeterReader,
    MockGenerator,
)
from .scheduler import AcquisitionScheduler

if TYPE_CHECKING:
    from config.app_config import AcquisitionConfig


def transport_config(config: AcquisitionConfig) -> TransportConfig:
    """Map the flat configuration onto a TCP or RTU transport configuration."""
    if config.mode == "rtu":
        return TransportConfig(
            TransportType.RTU,
            {
                "port": config.serial_port,
                "baudrate": config.baud_rate,
                "bytesize": config.data_bits,
                "stopbits": config.stop_bits,
                "parity": config.parity,
            },
            connect_timeout=config.read_timeout,
            read_timeout=config.read_timeout,
        )
    return TransportConfig(
        TransportType.TCP,
        {"host": config.host, "port": config.port},
        connect_timeout=config.read_timeout,
        read_timeout=config.read_timeout,
    )


class AcquisitionEngine:
    """Wires catalog, codec, transport, connection, reader and scheduler together"""

    def __init__(self, config: AcquisitionConfig,
                 sink: Optional[MeasurementSink] = None,
                 transport: Optional[BaseTransport] = None,
                 catalog: Optional[RegisterCatalog] = None,
                 mock_generator: Optional[MockGenerator] = None,
                 clock: Callable[[], float] = time.time):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)
        self.catalog = catalog or RegisterCatalog()

        if config.mock_mode:
            transport = None
            mock_generator = mock_generator or MockGenerator()
        elif transport is None:
            transport = TransportFactory.create(transport_config(config))

        self.connection = ConnectionManager(
            transport,
            mock_mode=config.mock_mode,
            reconnect_delay=config.reconnect_delay,
        )
        self.codec = FrameCodec(config.byte_order)
        self.reader = MeterReader(
            self.catalog, self.connection, self.codec,
            unit_id=config.unit_id,
            mock_generator=mock_generator,
            location=config.location,
        )
        if sink is None:
            sink = JsonLinesSink(config.output_path) if config.output_path else LoggingSink()
        self.sink = sink
        self.scheduler = AcquisitionScheduler(
            self.catalog, self.connection, self.reader, self.sink,
            location=config.location,
            mock_generator=mock_generator,
            read_delay=config.read_delay,
            clock=clock,
        )
        self.started = False

    async def startup(self, poll: bool = True) -> bool:
        """Connect to the meter and start periodic polling. Returns the initial link state."""
        connected = await self.connection.connect()
        if not connected:
            self.logger.warning("initial connection failed, retrying every %ss",
                                self.config.reconnect_delay)
            self.connection.schedule_reconnect()
        if poll:
            await self.scheduler.start(self.config.poll_interval)
        self.started = True
        self.logger.info("acquisition engine started (%s, location=%s)",
                         self.config.mode, self.config.location)
        return connected

    async def shutdown(self):
        """Stop polling first, then release the transport."""
        await self.scheduler.stop()
        self.started = False
        self.logger.info("acquisition engine stopped")

    async def read_register(self, key: str) -> Measurement:
        return await self.reader.read_by_key(key)

    async def read_snapshot(self) -> Dict[str, Measurement]:
        return await self.scheduler.snapshot()

    async def trigger_sweep(self) -> List[Measurement]:
        return await self.scheduler.trigger_once()

    async def write_register(self, key: str, value: Any):
        raise WriteNotSupported(f"Writing {key!r} is not supported by this engine")

    def status(self) -> Dict[str, Any]:
        return {
            "location": self.config.location,
            "mode": self.config.mode,
            "byte_order": self.codec.byte_order.value,
            "registers": len(self.catalog),
            "started": self.started,
            "connection": self.connection.status(),
            "scheduler": self.scheduler.stats(),
        }
