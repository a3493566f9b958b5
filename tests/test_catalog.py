import pytest

from energy_acquisition.core.exceptions import ConfigurationError, UnknownRegisterKey
from energy_acquisition.models import Encoding, RegisterDescriptor
from energy_acquisition.registers import PXR_REGISTERS, RegisterCatalog


def test_default_catalog_shape(catalog):
    assert len(catalog) == 32
    assert len(set(catalog.keys())) == 32
    assert catalog.entries()[0].key == "VOLTAGE_L1N"
    assert catalog.entries()[-1].key == "FREQUENCY"
    assert [d.key for d in catalog] == [d.key for d in PXR_REGISTERS]


def test_every_entry_is_a_two_register_float(catalog):
    for d in catalog:
        assert d.encoding is Encoding.FLOAT32
        assert d.register_count == 2
        assert d.address >= 400001


def test_metrics_in_catalog_order(catalog):
    assert catalog.metrics() == [
        "voltage", "current", "active_power", "reactive_power", "apparent_power",
        "power_factor", "energy_active", "energy_reactive", "energy_apparent", "frequency",
    ]


def test_lookup(catalog):
    d = catalog.lookup("ACTIVE_POWER_TOTAL")
    assert d.address == 404651
    assert d.unit == "kW"
    assert d.phase == "total"
    assert "FREQUENCY" in catalog
    assert catalog.lookup("FREQUENCY").phase is None


def test_unknown_key(catalog):
    with pytest.raises(UnknownRegisterKey) as exc:
        catalog.lookup("VOLTAGE_L9N")
    assert str(exc.value) == "Unknown register key: VOLTAGE_L9N"
    with pytest.raises(KeyError):
        catalog.lookup("nope")


def test_find_by_metric_and_phase(catalog):
    assert catalog.find("reactive_power", "L2").key == "REACTIVE_POWER_L2"
    assert catalog.find("frequency", None).key == "FREQUENCY"
    assert catalog.find("voltage", "L9") is None


def test_duplicate_keys_are_rejected():
    d = RegisterDescriptor.float32("X", 400001, "V", "voltage")
    with pytest.raises(ConfigurationError):
        RegisterCatalog([d, d])


def test_custom_catalog_keeps_given_order():
    a = RegisterDescriptor.float32("B", 400003, "A", "current", "L1")
    b = RegisterDescriptor.float32("A", 400001, "V", "voltage", "L1-N")
    assert RegisterCatalog([a, b]).keys() == ["B", "A"]
