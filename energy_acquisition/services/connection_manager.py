"""Connection lifecycle over a single transport: connect, detect loss, reconnect."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from energy_acquisition.core.exceptions import NotConnected, TransportError
from energy_acquisition.core.patterns import ConnectionState, ConnectionStateMachine
from energy_acquisition.protocols.base_transport import BaseTransport

T = TypeVar("T")

DEFAULT_RECONNECT_DELAY = 10.0


class ConnectionManager:
    """
    Owns the transport and drives the connection state machine.

        DISCONNECTED --connect()--> CONNECTING --ok--> CONNECTED
        CONNECTING   --failure-->   DISCONNECTED
        CONNECTED    --lost------>  DISCONNECTED  (+ reconnect after delay)
        CONNECTED    --disconnect()-> DISCONNECTED (reconnect cancelled)

    In mock mode there is no transport; ``is_connected()`` always reports True
    and ``with_channel`` is unavailable.
    """

    def __init__(self, transport: Optional[BaseTransport], *,
                 mock_mode: bool = False,
                 reconnect_delay: float = DEFAULT_RECONNECT_DELAY):
        if transport is None and not mock_mode:
            raise ValueError("A transport is required outside mock mode")
        self.transport = transport
        self.mock_mode = mock_mode
        self.reconnect_delay = reconnect_delay
        self.log = logging.getLogger(self.__class__.__name__)
        self._sm = ConnectionStateMachine(ConnectionState.DISCONNECTED)
        self._exchange_lock = asyncio.Lock()
        self._reconnect_task: Optional[asyncio.Task] = None
        self._closing = False
        self.reconnect_attempts = 0
        if transport is not None:
            transport.on_close = self.connection_lost

    # --------------------------------------------------------------------- #
    #  Public API
    # --------------------------------------------------------------------- #
    @property
    def state(self) -> ConnectionState:
        return self._sm.state

    def is_connected(self) -> bool:
        return True if self.mock_mode else self._sm.state == ConnectionState.CONNECTED

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    async def connect(self) -> bool:
        """Open the transport. Returns False on failure; never retries itself."""
        if self.mock_mode:
            self.log.info("mock mode enabled, using simulated data")
            return True
        self._closing = False
        if self._sm.state != ConnectionState.DISCONNECTED:
            return self._sm.state == ConnectionState.CONNECTED

        self._sm.transition(ConnectionState.CONNECTING)
        self.log.info("connecting to %s", self.transport.describe())
        try:
            await self.transport.open()
        except TransportError as e:
            self._sm.transition(ConnectionState.DISCONNECTED)
            self.log.error("connection to %s failed: %s", self.transport.describe(), e)
            return False

        if self._sm.state != ConnectionState.CONNECTING:
            # disconnect() ran while the channel was opening
            await self.transport.close()
            return False
        self._sm.transition(ConnectionState.CONNECTED)
        self.log.info("connected to %s", self.transport.describe())
        return True

    async def disconnect(self):
        """Explicit shutdown: cancel pending reconnection and close the transport."""
        self._closing = True
        await self._cancel_reconnect()
        if self.mock_mode:
            return
        if self._sm.state != ConnectionState.DISCONNECTED:
            self._sm.transition(ConnectionState.DISCONNECTED)
        await self.transport.close()
        self.log.info("disconnected from %s", self.transport.describe())

    async def with_channel(self, fn: Callable[[BaseTransport], Awaitable[T]]) -> T:
        """Run one request/response exchange on the live transport."""
        if self.transport is None:
            raise NotConnected("No transport in mock mode")
        if self._sm.state != ConnectionState.CONNECTED:
            raise NotConnected(f"Meter link is {self._sm.state.value}")
        async with self._exchange_lock:
            if self._sm.state != ConnectionState.CONNECTED:
                raise NotConnected(f"Meter link is {self._sm.state.value}")
            try:
                return await fn(self.transport)
            except TransportError as e:
                self.connection_lost(e)
                raise

    def connection_lost(self, reason: Optional[BaseException] = None):
        """Close event from the transport. Idempotent."""
        if self._sm.state != ConnectionState.CONNECTED:
            return
        self._sm.transition(ConnectionState.DISCONNECTED)
        self.log.warning("connection lost: %s", reason or "closed by peer")
        self.schedule_reconnect()

    def status(self) -> Dict[str, Any]:
        return {
            "connected": self.is_connected(),
            "state": self._sm.state.value,
            "mock_mode": self.mock_mode,
            "endpoint": self.transport.describe() if self.transport else None,
            "reconnect_pending": self.reconnect_pending,
            "reconnect_attempts": self.reconnect_attempts,
        }

    def schedule_reconnect(self):
        """Retry ``connect()`` every reconnect delay until it succeeds. At most one pending."""
        if self.mock_mode or self._closing or self.reconnect_pending:
            return
        self.log.info("reconnecting in %.1fs", self.reconnect_delay)
        self._reconnect_task = asyncio.get_running_loop().create_task(
            self._reconnect_loop(), name="meter-reconnect"
        )

    # --------------------------------------------------------------------- #
    #  Private helpers
    # --------------------------------------------------------------------- #
    async def _reconnect_loop(self):
        while not self._closing:
            await asyncio.sleep(self.reconnect_delay)
            if self._closing:
                return
            self.reconnect_attempts += 1
            self.log.info("attempting to reconnect (attempt %d)", self.reconnect_attempts)
            if await self.connect():
                return

    async def _cancel_reconnect(self):
        task, self._reconnect_task = self._reconnect_task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
