"""
Mock meter data generator.

Produces realistic, self-consistent three-phase measurement sets for running
the engine without hardware. Per phase:

    P = V * I * cos(phi) / 1000       [kW]
    Q = P * tan(acos(cos(phi)))       [kVAR]
    S = sqrt(P^2 + Q^2)               [kVA]

Energy counters are independent uniform draws on every call, not running
totals.
"""
from __future__ import annotations

import logging
import math
import random
from typing import List, Optional

from energy_acquisition.models import Measurement, RegisterDescriptor

NOMINAL_VOLTAGE_PN = 230.0
NOMINAL_VOLTAGE_PP = 400.0
BASE_CURRENTS = {"L1": 25.0, "L2": 22.0, "L3": 28.0}

ENERGY_RANGES = (
    # metric,           phase,    unit,    low,    high
    ("energy_active",   "import", "kWh",   1000.0, 5000.0),
    ("energy_active",   "export", "kWh",   0.0,    100.0),
    ("energy_reactive", "import", "kVARh", 100.0,  500.0),
    ("energy_reactive", "export", "kVARh", 0.0,    50.0),
    ("energy_apparent", "total",  "kVAh",  1100.0, 5500.0),
)


class MockGenerator:
    """Pure computation; never raises for valid input."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)
        self.log = logging.getLogger(self.__class__.__name__)

    # --------------------------------------------------------------------- #
    #  Primitive draws
    # --------------------------------------------------------------------- #
    def _uniform(self, low: float, high: float, precision: int = 2) -> float:
        return round(self._rng.uniform(low, high), precision)

    def voltage(self, nominal: float) -> float:
        variation = self._uniform(-0.05, 0.05)
        noise = self._uniform(-1.0, 1.0)
        return round(nominal * (1 + variation) + noise, 2)

    def current(self, base_load: float) -> float:
        load_factor = self._uniform(0.5, 1.5)
        noise = self._uniform(-0.5, 0.5)
        return round(base_load * load_factor + noise, 2)

    def power_factor(self) -> float:
        return self._uniform(0.85, 0.99, 3)

    def frequency(self) -> float:
        return self._uniform(49.9, 50.1, 2)

    @staticmethod
    def active_power(voltage: float, current: float, power_factor: float) -> float:
        return round(voltage * current * power_factor / 1000, 3)

    @staticmethod
    def reactive_power(active_power: float, power_factor: float) -> float:
        return round(active_power * math.tan(math.acos(power_factor)), 3)

    @staticmethod
    def apparent_power(active_power: float, reactive_power: float) -> float:
        return round(math.hypot(active_power, reactive_power), 3)

    # --------------------------------------------------------------------- #
    #  Measurement sets
    # --------------------------------------------------------------------- #
    def generate(self, location: str = "sala-sport") -> List[Measurement]:
        """One full measurement set, in register catalog order."""
        self.log.debug("generating mock measurements for %s", location)
        out: List[Measurement] = []

        def add(metric, value, unit, phase):
            out.append(Measurement(metric=metric, value=value, unit=unit, phase=phase))

        v_pn = {}
        for phase in ("L1", "L2", "L3"):
            v_pn[phase] = self.voltage(NOMINAL_VOLTAGE_PN)
            add("voltage", v_pn[phase], "V", f"{phase}-N")
        for phase in ("L1-L2", "L2-L3", "L3-L1"):
            add("voltage", self.voltage(NOMINAL_VOLTAGE_PP), "V", phase)

        amps = {phase: self.current(base) for phase, base in BASE_CURRENTS.items()}
        for phase, value in amps.items():
            add("current", value, "A", phase)
        add("current", self._uniform(0.0, 2.0), "A", "N")

        pf = {phase: self.power_factor() for phase in BASE_CURRENTS}
        p = {ph: self.active_power(v_pn[ph], amps[ph], pf[ph]) for ph in BASE_CURRENTS}
        q = {ph: self.reactive_power(p[ph], pf[ph]) for ph in BASE_CURRENTS}
        s = {ph: self.apparent_power(p[ph], q[ph]) for ph in BASE_CURRENTS}

        p_total = round(sum(p.values()), 3)
        q_total = round(sum(q.values()), 3)
        # vector total, not the per-phase sum; see "Total apparent power" in DESIGN.md
        s_total = self.apparent_power(p_total, q_total)

        for metric, unit, per_phase, total in (
            ("active_power",   "kW",   p, p_total),
            ("reactive_power", "kVAR", q, q_total),
            ("apparent_power", "kVA",  s, s_total),
        ):
            for phase, value in per_phase.items():
                add(metric, value, unit, phase)
            add(metric, total, unit, "total")

        for phase, value in pf.items():
            add("power_factor", value, "", phase)
        add("power_factor", round(sum(pf.values()) / 3, 3), "", "total")

        for metric, phase, unit, low, high in ENERGY_RANGES:
            add(metric, self._uniform(low, high), unit, phase)

        add("frequency", self.frequency(), "Hz", None)
        return out

    def generate_for(self, descriptor: RegisterDescriptor,
                     location: str = "sala-sport") -> Measurement:
        """Simulated single register read."""
        for m in self.generate(location):
            if m.metric == descriptor.metric and m.phase == descriptor.phase:
                return m
        return Measurement.from_descriptor(descriptor, self._uniform(0.0, 100.0))
