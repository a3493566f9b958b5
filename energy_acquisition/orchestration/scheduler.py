"""Periodic and on-demand acquisition sweeps."""
from __future__ import annotations

import asyncio
import inspect
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from energy_acquisition.models import Measurement
from energy_acquisition.registers import RegisterCatalog
from energy_acquisition.services.connection_manager import ConnectionManager
from energy_acquisition.services.meter_reader import MeterReader
from energy_acquisition.services.mock_generator import MockGenerator
from energy_acquisition.services.sinks import MeasurementSink
from energy_acquisition.triggers import AlignedIntervalTrigger

DEFAULT_READ_DELAY = 0.05


class AcquisitionScheduler:
    """
    Runs sweeps over the register catalog and forwards the results to the sink.

    Only one sweep runs at a time. A scheduled tick that finds a sweep in
    progress is skipped; ``trigger_once`` and ``snapshot`` wait for it.
    """

    def __init__(self, catalog: RegisterCatalog, connection: ConnectionManager,
                 reader: MeterReader, sink: MeasurementSink, *,
                 location: str = "sala-sport",
                 mock_generator: Optional[MockGenerator] = None,
                 read_delay: float = DEFAULT_READ_DELAY,
                 clock: Callable[[], float] = time.time):
        if connection.mock_mode and mock_generator is None:
            raise ValueError("mock mode requires a MockGenerator")
        self.catalog = catalog
        self.connection = connection
        self.reader = reader
        self.sink = sink
        self.location = location
        self.mock_generator = mock_generator
        self.read_delay = read_delay
        self.clock = clock
        self.log = logging.getLogger(self.__class__.__name__)

        self.trigger: Optional[AlignedIntervalTrigger] = None
        self._sweep_lock = asyncio.Lock()
        self._loop_task: Optional[asyncio.Task] = None
        self._sweep_task: Optional[asyncio.Future] = None
        self._stopping = False

        self.sweep_count = 0
        self.skipped_sweeps = 0
        self.skipped_ticks = 0
        self.sink_failures = 0
        self.last_sweep_at: Optional[datetime] = None
        self.last_sweep_size = 0

    # --------------------------------------------------------------------- #
    #  Public API
    # --------------------------------------------------------------------- #
    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    async def start(self, interval_seconds: float):
        """Sweep now, then on every wall-clock aligned tick of ``interval_seconds``."""
        if self.running:
            self.log.warning("scheduler already running")
            return
        self._stopping = False
        self.trigger = AlignedIntervalTrigger({"interval_seconds": interval_seconds},
                                              clock=self.clock)
        self._loop_task = asyncio.get_running_loop().create_task(
            self._run_loop(), name="acquisition-scheduler"
        )
        self.log.info("polling every %ss", interval_seconds)

    async def stop(self):
        """
        Stop the trigger, then release the transport. A sweep already running
        is not cancelled; it drains against the closed channel.
        """
        self._stopping = True
        task, self._loop_task = self._loop_task, None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self.connection.disconnect()

        in_flight, self._sweep_task = self._sweep_task, None
        if in_flight:
            if not in_flight.done():
                self.log.info("waiting for in-flight sweep to finish")
            outcome, = await asyncio.gather(in_flight, return_exceptions=True)
            if isinstance(outcome, BaseException):
                self.log.error(f"In-flight sweep failed: {outcome!r}")
        self.log.info("polling stopped")

    async def trigger_once(self) -> List[Measurement]:
        """Run exactly one sweep now and return every measurement it produced."""
        async with self._sweep_lock:
            return await self._sweep()

    async def snapshot(self) -> Dict[str, Measurement]:
        """Read the whole catalog without forwarding to the sink."""
        async with self._sweep_lock:
            if self.connection.mock_mode:
                mock = {(m.metric, m.phase): m for m in self.mock_generator.generate(self.location)}
                return {
                    d.key: mock.get((d.metric, d.phase)) or Measurement.null(d)
                    for d in self.catalog
                }
            measurements = await self._read_catalog()
            return {d.key: m for d, m in zip(self.catalog, measurements)}

    def stats(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "interval_seconds": self.trigger.interval_seconds if self.trigger else None,
            "sweep_count": self.sweep_count,
            "skipped_sweeps": self.skipped_sweeps,
            "skipped_ticks": self.skipped_ticks,
            "sink_failures": self.sink_failures,
            "last_sweep_at": self.last_sweep_at.isoformat() if self.last_sweep_at else None,
            "last_sweep_size": self.last_sweep_size,
        }

    # --------------------------------------------------------------------- #
    #  Private helpers
    # --------------------------------------------------------------------- #
    async def _run_loop(self):
        self.trigger.mark_fired()
        await self._scheduled_sweep()
        while not self._stopping:
            await asyncio.sleep(self.trigger.get_next_check_interval())
            if self._stopping:
                break
            if self.trigger.should_trigger():
                await self._scheduled_sweep()

    async def _scheduled_sweep(self):
        if self._sweep_lock.locked():
            self.skipped_ticks += 1
            self.log.warning("sweep already in progress, skipping tick")
            return
        self._sweep_task = asyncio.ensure_future(self._locked_sweep())
        try:
            # shielded so stop() cancels the trigger without aborting the sweep
            await asyncio.shield(self._sweep_task)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.log.error(f"Error in scheduled sweep: {e}")
        self._sweep_task = None

    async def _locked_sweep(self) -> List[Measurement]:
        async with self._sweep_lock:
            return await self._sweep()

    async def _sweep(self) -> List[Measurement]:
        if self.connection.mock_mode:
            self.log.info("generating mock data for %s", self.location)
            measurements = self.mock_generator.generate(self.location)
        elif not self.connection.is_connected():
            self.skipped_sweeps += 1
            self.log.warning("skipping sweep - meter not connected (%s)",
                             self.connection.state.value)
            return []
        else:
            self.log.info("polling %d registers", len(self.catalog))
            measurements = await self._read_catalog()

        await self._forward(measurements)

        self.sweep_count += 1
        self.last_sweep_at = datetime.now(timezone.utc)
        self.last_sweep_size = len(measurements)
        failed = sum(1 for m in measurements if m.is_null)
        self.log.info("sweep %d: %d measurements, %d failed",
                      self.sweep_count, len(measurements), failed)
        return measurements

    async def _read_catalog(self) -> List[Measurement]:
        measurements: List[Measurement] = []
        for i, descriptor in enumerate(self.catalog):
            if i:
                await asyncio.sleep(self.read_delay)
            measurements.append(await self.reader.read_or_null(descriptor))
        return measurements

    async def _forward(self, measurements: List[Measurement]):
        for m in measurements:
            try:
                result = self.sink.insert(self.location, m.metric, m.value, m.unit, m.phase)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self.sink_failures += 1
                self.log.error(f"Error storing {m.metric}[{m.phase}]: {e}")
