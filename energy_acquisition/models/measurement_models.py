from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from energy_acquisition.core.exceptions import ConfigurationError


###############################################################################
# 1. ENUMS --------------------------------------------------------------------
###############################################################################

class Encoding(Enum):
    """Wire encoding of a register value."""
    FLOAT32 = "float32"
    INT16   = "int16"

    @property
    def register_count(self) -> int:
        return 2 if self is Encoding.FLOAT32 else 1

    @property
    def byte_width(self) -> int:
        return self.register_count * 2


class ByteOrderMode(Enum):
    """How two 16-bit registers are reassembled into one IEEE-754 float."""
    BE   = "BE"
    LE   = "LE"
    SWAP = "SWAP"

    @classmethod
    def parse(cls, raw: str) -> "ByteOrderMode":
        try:
            return cls((raw or "BE").strip().upper())
        except ValueError as e:
            raise ConfigurationError(
                f"Unknown float byte order {raw!r} (expected BE, LE or SWAP)"
            ) from e


###############################################################################
# 2. REGISTER DESCRIPTOR ------------------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class RegisterDescriptor:
    """One logical measurement exposed by the meter as holding registers."""
    key: str
    address: int                      # 6-digit 4xxxxx holding register address
    register_count: int
    encoding: Encoding
    unit: str
    metric: str                       # e.g. "voltage", "active_power"
    phase: Optional[str] = None       # e.g. "L1-N", "total", None

    def __post_init__(self):
        if self.register_count != self.encoding.register_count:
            raise ConfigurationError(
                f"{self.key}: {self.encoding.value} needs "
                f"{self.encoding.register_count} registers, got {self.register_count}"
            )

    # ---------- factory --------------------------------------------------- #
    @classmethod
    def float32(cls, key: str, address: int, unit: str, metric: str,
                phase: Optional[str] = None) -> "RegisterDescriptor":
        return cls(key, address, Encoding.FLOAT32.register_count,
                   Encoding.FLOAT32, unit, metric, phase)


###############################################################################
# 3. MEASUREMENT --------------------------------------------------------------
###############################################################################

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Measurement:
    """
    A single value produced by one register read or by the mock generator.
    ``value`` is None when the read or decode failed.
    """
    metric: str
    value: Optional[float]
    unit: str
    phase: Optional[str] = None
    captured_at: datetime = field(default_factory=_utcnow)

    @property
    def is_null(self) -> bool:
        return self.value is None

    # ---------- factory --------------------------------------------------- #
    @classmethod
    def from_descriptor(cls, descriptor: RegisterDescriptor,
                        value: Optional[float]) -> "Measurement":
        return cls(
            metric = descriptor.metric,
            value  = value,
            unit   = descriptor.unit,
            phase  = descriptor.phase,
        )

    @classmethod
    def null(cls, descriptor: RegisterDescriptor) -> "Measurement":
        return cls.from_descriptor(descriptor, None)

    def to_row(self, location: str) -> Dict[str, Any]:
        """Flat mapping in the column order the measurement store expects."""
        return {
            "location":    location,
            "metric":      self.metric,
            "value":       self.value,
            "unit":        self.unit,
            "phase":       self.phase,
            "captured_at": self.captured_at.isoformat(),
        }
