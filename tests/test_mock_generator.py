import math

import pytest

from energy_acquisition.models import RegisterDescriptor
from energy_acquisition.services import MockGenerator

SEEDS = range(25)


def by_key(measurements):
    return {(m.metric, m.phase): m.value for m in measurements}


def test_full_set_matches_catalog_order(catalog):
    measurements = MockGenerator(seed=3).generate("sala-sport")
    assert len(measurements) == 32
    assert [(m.metric, m.phase) for m in measurements] == [(d.metric, d.phase) for d in catalog]
    assert [m.unit for m in measurements] == [d.unit for d in catalog]
    assert len({m.metric for m in measurements}) == 10
    assert not any(m.is_null for m in measurements)


def test_seed_makes_output_reproducible():
    a = [m.value for m in MockGenerator(seed=42).generate()]
    b = [m.value for m in MockGenerator(seed=42).generate()]
    assert a == b


@pytest.mark.parametrize("seed", SEEDS)
def test_power_triangle_holds(seed):
    values = by_key(MockGenerator(seed=seed).generate())
    for phase in ("L1", "L2", "L3", "total"):
        p = values[("active_power", phase)]
        q = values[("reactive_power", phase)]
        s = values[("apparent_power", phase)]
        assert abs(s - math.sqrt(p ** 2 + q ** 2)) < 1e-2


@pytest.mark.parametrize("seed", SEEDS)
def test_totals(seed):
    values = by_key(MockGenerator(seed=seed).generate())
    phases = ("L1", "L2", "L3")
    assert values[("active_power", "total")] == pytest.approx(
        sum(values[("active_power", ph)] for ph in phases), abs=1e-3)
    assert values[("reactive_power", "total")] == pytest.approx(
        sum(values[("reactive_power", ph)] for ph in phases), abs=1e-3)
    assert values[("power_factor", "total")] == pytest.approx(
        sum(values[("power_factor", ph)] for ph in phases) / 3, abs=1e-3)
    assert values[("apparent_power", "total")] == pytest.approx(
        math.hypot(values[("active_power", "total")], values[("reactive_power", "total")]), abs=1e-2)


@pytest.mark.parametrize("seed", SEEDS)
def test_active_power_follows_voltage_current_and_pf(seed):
    values = by_key(MockGenerator(seed=seed).generate())
    for ph in ("L1", "L2", "L3"):
        expected = values[("voltage", f"{ph}-N")] * values[("current", ph)] * values[("power_factor", ph)] / 1000
        assert values[("active_power", ph)] == pytest.approx(expected, abs=1e-3)


@pytest.mark.parametrize("seed", SEEDS)
def test_value_ranges(seed):
    values = by_key(MockGenerator(seed=seed).generate())
    for ph in ("L1-N", "L2-N", "L3-N"):
        assert 217.4 <= values[("voltage", ph)] <= 242.6
    for ph in ("L1-L2", "L2-L3", "L3-L1"):
        assert 379.0 <= values[("voltage", ph)] <= 421.0
    assert 12.0 <= values[("current", "L1")] <= 38.0
    assert 10.5 <= values[("current", "L2")] <= 33.5
    assert 13.5 <= values[("current", "L3")] <= 42.5
    assert 0.0 <= values[("current", "N")] <= 2.0
    for ph in ("L1", "L2", "L3"):
        assert 0.85 <= values[("power_factor", ph)] <= 0.99
    assert 49.9 <= values[("frequency", None)] <= 50.1
    assert 1000 <= values[("energy_active", "import")] <= 5000
    assert 0 <= values[("energy_active", "export")] <= 100
    assert 100 <= values[("energy_reactive", "import")] <= 500
    assert 0 <= values[("energy_reactive", "export")] <= 50
    assert 1100 <= values[("energy_apparent", "total")] <= 5500


def test_generate_for_catalog_entry(catalog):
    m = MockGenerator(seed=5).generate_for(catalog.lookup("VOLTAGE_L2L3"))
    assert (m.metric, m.phase, m.unit) == ("voltage", "L2-L3", "V")
    assert 379.0 <= m.value <= 421.0


def test_generate_for_unknown_metric_falls_back():
    d = RegisterDescriptor.float32("THD_L1", 404701, "%", "thd", "L1")
    m = MockGenerator(seed=5).generate_for(d)
    assert (m.metric, m.phase, m.unit) == ("thd", "L1", "%")
    assert 0.0 <= m.value <= 100.0
