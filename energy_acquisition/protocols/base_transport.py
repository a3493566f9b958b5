"""
Meter Transport Framework
Base abstract class and configuration for the physical channel to the meter
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional
import asyncio
import logging
from enum import Enum

from energy_acquisition.core.exceptions import ReadTimeout, TransportError
from energy_acquisition.protocols.codec import ReadRequest


class TransportType(Enum):
    """Enumeration of supported transport types."""
    TCP = "tcp"
    RTU = "rtu"


class TransportConfig:
    """Configuration class for transports."""

    def __init__(self,
                 transport_type: TransportType,
                 connection_params: Dict[str, Any],
                 connect_timeout: float = 3.0,
                 read_timeout: float = 3.0):
        self.transport_type = transport_type
        self.connection_params = connection_params
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout


CloseListener = Callable[[Optional[BaseException]], None]


class BaseTransport(ABC):
    """
    Abstract base class for meter transports.

    A transport owns exactly one physical channel (TCP socket or serial line)
    and exchanges one request/response pair at a time. Implements the Template
    Method pattern: subclasses provide ``_open``, ``_close`` and ``_exchange``;
    the base class bounds every exchange by the read timeout and reports a
    dropped channel to the registered close listener.
    """

    def __init__(self, config: TransportConfig):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)
        self.on_close: Optional[CloseListener] = None
        self._open = False

    # Public lifecycle -------------------------------------------------------
    @property
    def is_open(self) -> bool:
        return self._open

    async def open(self):
        """Open the channel; raises TransportError on failure."""
        try:
            await self._open_channel()
        except TransportError:
            raise
        except Exception as e:
            raise TransportError(f"Could not open {self.describe()}: {e}") from e
        self._open = True
        self.logger.info(f"Channel open: {self.describe()}")

    async def close(self):
        """Close the channel. Safe to call on an already closed channel."""
        was_open, self._open = self._open, False
        try:
            await self._close_channel()
        except Exception as e:
            self.logger.warning(f"Error while closing {self.describe()}: {e}")
        if was_open:
            self.logger.info(f"Channel closed: {self.describe()}")

    async def exchange(self, request: ReadRequest) -> bytes:
        """Send one request and return the raw register bytes of the reply."""
        if not self._open:
            raise TransportError(f"Channel {self.describe()} is closed")
        try:
            return await asyncio.wait_for(self._exchange(request),
                                          timeout=self.config.read_timeout)
        except asyncio.TimeoutError:
            exc = ReadTimeout(
                f"No reply for register {request.register} within {self.config.read_timeout}s"
            )
            await self._drop(exc)
            raise exc from None
        except TransportError as e:
            await self._drop(e)
            raise

    def describe(self) -> str:
        """Human readable endpoint, used in logs and status reports."""
        return self.config.transport_type.value

    # Helpers ------------------------------------------------------------------
    async def _drop(self, reason: Optional[BaseException]):
        """Close after a channel failure and notify the listener once."""
        if not self._open:
            return
        self.logger.warning(f"Channel {self.describe()} dropped: {reason}")
        await self.close()
        self._notify_closed(reason)

    def _channel_lost(self, reason: Optional[BaseException] = None):
        """Out-of-band close reported by the channel itself (peer hung up)."""
        if not self._open:
            return
        self._open = False
        self.logger.warning(f"Channel {self.describe()} closed by peer: {reason or 'no reason given'}")
        self._notify_closed(reason)

    def _notify_closed(self, reason: Optional[BaseException]):
        if self.on_close:
            try:
                self.on_close(reason)
            except Exception as e:
                self.logger.error(f"Error in close listener: {e}")

    # Abstract methods that subclasses must implement (Strategy pattern)
    @abstractmethod
    async def _open_channel(self):
        """Open the protocol-specific channel."""
        pass

    @abstractmethod
    async def _close_channel(self):
        """Release the protocol-specific channel."""
        pass

    @abstractmethod
    async def _exchange(self, request: ReadRequest) -> bytes:
        """Perform one request/response exchange."""
        pass
