# sinks.py - Measurement sinks consumed by the acquisition scheduler

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
import asyncio
import json
import logging

from energy_acquisition.core.exceptions import SinkError


class MeasurementSink(ABC):
    """
    Downstream store for measurements.

    ``insert`` returns the persisted record and may be sync or async; failures
    are reported by raising (preferably SinkError) and are handled by the caller.
    """

    @abstractmethod
    def insert(self, location: str, metric: str, value: Optional[float],
               unit: Optional[str] = None, phase: Optional[str] = None) -> Dict[str, Any]:
        pass


def _record(location, metric, value, unit, phase) -> Dict[str, Any]:
    return {
        "location": location,
        "metric": metric,
        "value": value,
        "unit": unit,
        "phase": phase,
        "captured_at": datetime.now(timezone.utc).isoformat(),
    }


class LoggingSink(MeasurementSink):
    """Writes every measurement to the log; the default when no store is configured."""

    def __init__(self):
        self.log = logging.getLogger(self.__class__.__name__)

    def insert(self, location, metric, value, unit=None, phase=None):
        self.log.info("%s %s[%s] = %s %s", location, metric, phase or "-", value, unit or "")
        return _record(location, metric, value, unit, phase)


class JsonLinesSink(MeasurementSink):
    """Appends one JSON object per measurement to a file."""

    def __init__(self, path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    def _append(self, line: str):
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line)

    async def insert(self, location, metric, value, unit=None, phase=None):
        record = _record(location, metric, value, unit, phase)
        async with self._lock:
            try:
                await asyncio.to_thread(self._append, json.dumps(record) + "\n")
            except OSError as e:
                raise SinkError(f"Could not write to {self.path}: {e}") from e
        return record
