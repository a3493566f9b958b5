# energy_acquisition/triggers/base_trigger.py
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

Clock = Callable[[], float]


class TriggerStrategy(ABC):
    """
    Decides when the scheduler starts a sweep.

    The scheduler sleeps ``get_next_check_interval()`` seconds, then asks
    ``should_trigger()``. Sweeps started outside the trigger (the immediate
    sweep at start) are reported with ``mark_fired()``.
    """

    def __init__(self, trigger_config: Dict[str, Any], clock: Clock = time.time):
        self.config = trigger_config
        self.clock = clock
        self.last_execution: Optional[datetime] = None
        self.execution_count: int = 0

    @abstractmethod
    def should_trigger(self) -> bool:
        """True when a sweep is due now; firing is recorded."""

    @abstractmethod
    def get_next_check_interval(self) -> float:
        """Seconds to sleep before the next ``should_trigger`` call."""

    def mark_fired(self) -> None:
        self._record(self.clock())

    def reset_state(self) -> None:
        self.last_execution = None
        self.execution_count = 0

    def _record(self, now: float) -> None:
        self.last_execution = datetime.fromtimestamp(now, timezone.utc)
        self.execution_count += 1

    def get_execution_metadata(self) -> Dict[str, Any]:
        return {
            "last_execution": self.last_execution.isoformat() if self.last_execution else None,
            "execution_count": self.execution_count,
            "trigger_type": self.__class__.__name__,
        }
