"""
Modbus TCP and RTU transports built on pymodbus asynchronous clients.

Both variants share the request path; they only differ in how the pymodbus
client is constructed. Automatic reconnection inside pymodbus is disabled:
reconnecting is the ConnectionManager's job. A peer hang-up is picked up
through the pymodbus connect tracer and reported to the close listener.
"""

import asyncio
from abc import abstractmethod
from functools import partial
from typing import Callable, Optional, Union

from pymodbus.client import AsyncModbusSerialClient, AsyncModbusTcpClient
from pymodbus.exceptions import ModbusException

from energy_acquisition.core.exceptions import DecodeError, TransportError
from energy_acquisition.protocols.base_transport import (
    BaseTransport,
    TransportConfig,
    TransportType,
)
from energy_acquisition.protocols.codec import ReadRequest, registers_to_bytes

PARITY_CODES = {"none": "N", "n": "N", "even": "E", "e": "E", "odd": "O", "o": "O"}

ModbusClient = Union[AsyncModbusTcpClient, AsyncModbusSerialClient]
LinkTracer = Callable[[bool], None]


class ModbusTransport(BaseTransport):
    """Common request path for pymodbus based transports."""

    def __init__(self, config: TransportConfig):
        super().__init__(config)
        self.client: Optional[ModbusClient] = None
        self._link_id = 0

    @abstractmethod
    def _create_client(self, trace_connect: LinkTracer) -> ModbusClient:
        """Build the unconnected pymodbus client for this link."""

    async def _open_channel(self):
        self._link_id += 1
        self.client = self._create_client(partial(self._on_link_change, self._link_id))
        try:
            connected = await self.client.connect()
        except (ModbusException, OSError) as e:
            self.client.close()
            self.client = None
            raise TransportError(f"Could not connect to {self.describe()}: {e}") from e
        if not connected:
            self.client.close()
            self.client = None
            raise TransportError(f"Could not connect to {self.describe()}")

    async def _close_channel(self):
        if self.client:
            self.client.close()
            self.client = None

    def _on_link_change(self, link_id: int, connected: bool):
        """pymodbus connect tracer; runs inside the protocol callbacks."""
        if connected or link_id != self._link_id or not self._open:
            return
        asyncio.get_running_loop().call_soon(self._peer_closed, link_id)

    def _peer_closed(self, link_id: int):
        if link_id != self._link_id or not self._open:
            return
        self._channel_lost(ConnectionError(f"{self.describe()} closed the connection"))
        if self.client:
            self.client.close()
            self.client = None

    async def _exchange(self, request: ReadRequest) -> bytes:
        if not self.client or not self.client.connected:
            raise TransportError(f"Link to {self.describe()} is down")
        try:
            rr = await self.client.read_holding_registers(
                request.register, count=request.count, device_id=request.unit_id
            )
        except (ModbusException, ConnectionError, OSError) as e:
            raise TransportError(f"Read of register {request.register} failed: {e}") from e

        if rr.isError():
            # Exception response from the device; the link itself is fine.
            raise DecodeError(f"Device rejected read of register {request.register}: {rr}")
        if len(rr.registers) != request.count:
            raise DecodeError(
                f"Expected {request.count} registers at {request.register}, "
                f"got {len(rr.registers)}"
            )
        return registers_to_bytes(rr.registers)


class ModbusTcpTransport(ModbusTransport):
    """Modbus TCP over a socket."""

    def __init__(self, config: TransportConfig):
        if config.transport_type != TransportType.TCP:
            raise ValueError("Config must be for the TCP transport")
        super().__init__(config)
        params = config.connection_params
        self.host = params.get("host", "192.168.1.100")
        self.port = int(params.get("port", 502))

    def describe(self) -> str:
        return f"tcp://{self.host}:{self.port}"

    def _create_client(self, trace_connect: LinkTracer) -> AsyncModbusTcpClient:
        return AsyncModbusTcpClient(
            self.host,
            port=self.port,
            timeout=self.config.connect_timeout,
            retries=0,
            reconnect_delay=0,
            trace_connect=trace_connect,
        )


class ModbusRtuTransport(ModbusTransport):
    """Modbus RTU over an RS-485/RS-232 serial line."""

    def __init__(self, config: TransportConfig):
        if config.transport_type != TransportType.RTU:
            raise ValueError("Config must be for the RTU transport")
        super().__init__(config)
        params = config.connection_params
        self.serial_port = params.get("port", "/dev/ttyUSB0")
        self.baudrate = int(params.get("baudrate", 9600))
        self.bytesize = int(params.get("bytesize", 8))
        self.stopbits = int(params.get("stopbits", 1))
        parity = str(params.get("parity", "none")).lower()
        if parity not in PARITY_CODES:
            raise ValueError(f"Unknown serial parity: {parity}")
        self.parity = PARITY_CODES[parity]

    def describe(self) -> str:
        return f"rtu://{self.serial_port}@{self.baudrate}"

    def _create_client(self, trace_connect: LinkTracer) -> AsyncModbusSerialClient:
        return AsyncModbusSerialClient(
            self.serial_port,
            baudrate=self.baudrate,
            bytesize=self.bytesize,
            parity=self.parity,
            stopbits=self.stopbits,
            timeout=self.config.connect_timeout,
            retries=0,
            reconnect_delay=0,
            trace_connect=trace_connect,
        )
