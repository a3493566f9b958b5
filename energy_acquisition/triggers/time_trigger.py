import math
import time
from typing import Any, Dict, Optional
from .base_trigger import Clock, TriggerStrategy

MIN_CHECK_INTERVAL = 0.01

class AlignedIntervalTrigger(TriggerStrategy):
    """
    Fires once per wall-clock slot of ``interval_seconds``, on boundaries where
    epoch seconds are a multiple of the interval (5 s -> :00, :05, :10, ...).
    """

    def __init__(self, trigger_config: Dict[str, Any], clock: Clock = time.time):
        super().__init__(trigger_config, clock)
        self.interval_seconds = float(trigger_config.get("interval_seconds", 5))
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.last_slot: Optional[int] = None

    def _slot(self, now: float) -> int:
        return math.floor(now / self.interval_seconds)

    def _record(self, now: float) -> None:
        self.last_slot = self._slot(now)
        super()._record(now)

    def should_trigger(self) -> bool:
        now = self.clock()
        if self._slot(now) == self.last_slot:
            return False
        self._record(now)
        return True

    def get_next_check_interval(self) -> float:
        now = self.clock()
        next_boundary = (self._slot(now) + 1) * self.interval_seconds
        return max(MIN_CHECK_INTERVAL, next_boundary - now)

    def reset_state(self) -> None:
        super().reset_state()
        self.last_slot = None
