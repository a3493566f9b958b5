# registers/catalog.py

# Holding-register map of the Eaton PXR25 trip unit (PXR10 manual, table 24).
# Addresses use the 4xxxxx convention; the protocol register number is
# address - 400001. Every value is an IEEE-754 float spread over 2 registers.

from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from energy_acquisition.core.exceptions import ConfigurationError, UnknownRegisterKey
from energy_acquisition.models import RegisterDescriptor

_f = RegisterDescriptor.float32

PXR_REGISTERS: Tuple[RegisterDescriptor, ...] = (
    # Voltage, phase-to-neutral
    _f("VOLTAGE_L1N", 404609, "V", "voltage", "L1-N"),
    _f("VOLTAGE_L2N", 404611, "V", "voltage", "L2-N"),
    _f("VOLTAGE_L3N", 404613, "V", "voltage", "L3-N"),

    # Voltage, phase-to-phase
    _f("VOLTAGE_L1L2", 404615, "V", "voltage", "L1-L2"),
    _f("VOLTAGE_L2L3", 404617, "V", "voltage", "L2-L3"),
    _f("VOLTAGE_L3L1", 404619, "V", "voltage", "L3-L1"),

    # Current
    _f("CURRENT_L1", 404621, "A", "current", "L1"),
    _f("CURRENT_L2", 404623, "A", "current", "L2"),
    _f("CURRENT_L3", 404625, "A", "current", "L3"),
    _f("CURRENT_N",  404627, "A", "current", "N"),

    # Active power
    _f("ACTIVE_POWER_L1",    404641, "kW", "active_power", "L1"),
    _f("ACTIVE_POWER_L2",    404643, "kW", "active_power", "L2"),
    _f("ACTIVE_POWER_L3",    404645, "kW", "active_power", "L3"),
    _f("ACTIVE_POWER_TOTAL", 404651, "kW", "active_power", "total"),

    # Reactive power
    _f("REACTIVE_POWER_L1",    404653, "kVAR", "reactive_power", "L1"),
    _f("REACTIVE_POWER_L2",    404655, "kVAR", "reactive_power", "L2"),
    _f("REACTIVE_POWER_L3",    404657, "kVAR", "reactive_power", "L3"),
    _f("REACTIVE_POWER_TOTAL", 404659, "kVAR", "reactive_power", "total"),

    # Apparent power
    _f("APPARENT_POWER_L1",    404661, "kVA", "apparent_power", "L1"),
    _f("APPARENT_POWER_L2",    404663, "kVA", "apparent_power", "L2"),
    _f("APPARENT_POWER_L3",    404665, "kVA", "apparent_power", "L3"),
    _f("APPARENT_POWER_TOTAL", 404667, "kVA", "apparent_power", "total"),

    # Power factor (cos phi)
    _f("POWER_FACTOR_L1",    404671, "", "power_factor", "L1"),
    _f("POWER_FACTOR_L2",    404673, "", "power_factor", "L2"),
    _f("POWER_FACTOR_L3",    404675, "", "power_factor", "L3"),
    _f("POWER_FACTOR_TOTAL", 404677, "", "power_factor", "total"),

    # Energy counters
    _f("ENERGY_ACTIVE_IMPORT",   404801, "kWh",   "energy_active",   "import"),
    _f("ENERGY_ACTIVE_EXPORT",   404803, "kWh",   "energy_active",   "export"),
    _f("ENERGY_REACTIVE_IMPORT", 404811, "kVARh", "energy_reactive", "import"),
    _f("ENERGY_REACTIVE_EXPORT", 404813, "kVARh", "energy_reactive", "export"),
    _f("ENERGY_APPARENT",        404821, "kVAh",  "energy_apparent", "total"),

    # Frequency
    _f("FREQUENCY", 404631, "Hz", "frequency", None),
)


class RegisterCatalog:
    """
    Read-only lookup table of register descriptors.

    Iteration order is the order the descriptors were given in and is the
    order a sweep reads them.
    """

    def __init__(self, descriptors: Iterable[RegisterDescriptor] = PXR_REGISTERS):
        self._by_key: Dict[str, RegisterDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.key in self._by_key:
                raise ConfigurationError(f"Duplicate register key: {descriptor.key}")
            self._by_key[descriptor.key] = descriptor
        self._entries = tuple(self._by_key.values())

    def entries(self) -> Tuple[RegisterDescriptor, ...]:
        return self._entries

    def lookup(self, key: str) -> RegisterDescriptor:
        try:
            return self._by_key[key]
        except KeyError:
            raise UnknownRegisterKey(f"Unknown register key: {key}") from None

    def find(self, metric: str, phase: Optional[str]) -> Optional[RegisterDescriptor]:
        """First descriptor carrying ``metric`` on ``phase``, if any."""
        for descriptor in self._entries:
            if descriptor.metric == metric and descriptor.phase == phase:
                return descriptor
        return None

    def metrics(self) -> List[str]:
        return list(dict.fromkeys(d.metric for d in self._entries))

    def keys(self) -> List[str]:
        return list(self._by_key)

    def __iter__(self) -> Iterator[RegisterDescriptor]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key
