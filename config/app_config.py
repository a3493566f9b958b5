"""Centralised application settings (dotenv + env overrides)."""
from __future__ import annotations
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

from energy_acquisition.core.exceptions import ConfigurationError
from energy_acquisition.models import ByteOrderMode

ROOT = Path(__file__).parents[1]
load_dotenv(ROOT / ".env", override=False)

def _flag(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")

class settings:                            # pylint: disable=too-few-public-methods
    MODBUS_MODE             = os.getenv("MODBUS_MODE", "tcp").lower()
    MOCK_MODE               = _flag(os.getenv("MOCK_MODE", "false"))
    MODBUS_HOST             = os.getenv("MODBUS_HOST", "192.168.1.100")
    MODBUS_PORT             = os.getenv("MODBUS_PORT", "502")
    MODBUS_UNIT_ID          = os.getenv("MODBUS_UNIT_ID", "1")
    MODBUS_SERIAL_PORT      = os.getenv("MODBUS_SERIAL_PORT", "/dev/ttyUSB0")
    MODBUS_SERIAL_BAUD_RATE = os.getenv("MODBUS_SERIAL_BAUD_RATE", "9600")
    MODBUS_SERIAL_DATA_BITS = os.getenv("MODBUS_SERIAL_DATA_BITS", "8")
    MODBUS_SERIAL_STOP_BITS = os.getenv("MODBUS_SERIAL_STOP_BITS", "1")
    MODBUS_SERIAL_PARITY    = os.getenv("MODBUS_SERIAL_PARITY", "none").lower()
    MODBUS_FLOAT_MODE       = os.getenv("MODBUS_FLOAT_MODE", "BE")
    MODBUS_TIMEOUT          = os.getenv("MODBUS_TIMEOUT", "3")
    POLL_INTERVAL_SECONDS   = os.getenv("POLL_INTERVAL_SECONDS", "5")
    RECONNECT_DELAY_SECONDS = os.getenv("RECONNECT_DELAY_SECONDS", "10")
    READ_DELAY_SECONDS      = os.getenv("READ_DELAY_SECONDS", "0.05")
    LOCATION                = os.getenv("LOCATION", "sala-sport")
    MEASUREMENT_LOG_FILE    = os.getenv("MEASUREMENT_LOG_FILE") or None
    LOG_LEVEL               = os.getenv("LOG_LEVEL", "INFO").upper()


MODES = ("tcp", "rtu", "mock")
PARITIES = ("none", "even", "odd")

###############################################################################
# Validated, frozen configuration
###############################################################################
@dataclass(frozen=True, slots=True)
class AcquisitionConfig:
    mode: str = "tcp"
    host: str = "192.168.1.100"
    port: int = 502
    unit_id: int = 1
    serial_port: str = "/dev/ttyUSB0"
    baud_rate: int = 9600
    data_bits: int = 8
    stop_bits: int = 1
    parity: str = "none"
    byte_order: ByteOrderMode = ByteOrderMode.BE
    poll_interval: float = 5.0
    read_timeout: float = 3.0
    reconnect_delay: float = 10.0
    read_delay: float = 0.05
    location: str = "sala-sport"
    output_path: Optional[Path] = None

    def __post_init__(self):
        if self.mode not in MODES:
            raise ConfigurationError(f"MODBUS_MODE must be one of {MODES}, got {self.mode!r}")
        if self.parity not in PARITIES:
            raise ConfigurationError(f"MODBUS_SERIAL_PARITY must be one of {PARITIES}, got {self.parity!r}")
        if not 1 <= self.port <= 65535:
            raise ConfigurationError(f"MODBUS_PORT out of range: {self.port}")
        if not 0 <= self.unit_id <= 247:
            raise ConfigurationError(f"MODBUS_UNIT_ID out of range: {self.unit_id}")
        if self.data_bits not in (7, 8):
            raise ConfigurationError(f"MODBUS_SERIAL_DATA_BITS must be 7 or 8, got {self.data_bits}")
        if self.stop_bits not in (1, 2):
            raise ConfigurationError(f"MODBUS_SERIAL_STOP_BITS must be 1 or 2, got {self.stop_bits}")
        for name in ("poll_interval", "read_timeout", "reconnect_delay"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")
        if self.read_delay < 0:
            raise ConfigurationError("read_delay must not be negative")
        if not self.location:
            raise ConfigurationError("LOCATION must not be empty")

    @property
    def mock_mode(self) -> bool:
        return self.mode == "mock"

    @classmethod
    def from_settings(cls, source=settings) -> "AcquisitionConfig":
        """Build a validated configuration from the environment-backed settings."""
        mode = "mock" if source.MOCK_MODE else source.MODBUS_MODE
        try:
            return cls(
                mode=mode,
                host=source.MODBUS_HOST,
                port=int(source.MODBUS_PORT),
                unit_id=int(source.MODBUS_UNIT_ID),
                serial_port=source.MODBUS_SERIAL_PORT,
                baud_rate=int(source.MODBUS_SERIAL_BAUD_RATE),
                data_bits=int(source.MODBUS_SERIAL_DATA_BITS),
                stop_bits=int(source.MODBUS_SERIAL_STOP_BITS),
                parity=source.MODBUS_SERIAL_PARITY,
                byte_order=ByteOrderMode.parse(source.MODBUS_FLOAT_MODE),
                poll_interval=float(source.POLL_INTERVAL_SECONDS),
                read_timeout=float(source.MODBUS_TIMEOUT),
                reconnect_delay=float(source.RECONNECT_DELAY_SECONDS),
                read_delay=float(source.READ_DELAY_SECONDS),
                location=source.LOCATION,
                output_path=Path(source.MEASUREMENT_LOG_FILE) if source.MEASUREMENT_LOG_FILE else None,
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid setting: {e}") from e

    def with_overrides(self, **changes) -> "AcquisitionConfig":
        """Copy with CLI overrides applied; None values are ignored."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
