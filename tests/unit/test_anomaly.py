import dataclasses

import pytest

from ground.telemetry.anomaly import (
    DEFAULT_THRESHOLDS,
    AnomalyThresholds,
    anomaly_type,
    is_anomalous,
    violations,
)
from ground.telemetry.packet_format import TelemetryPayload


NOMINAL = dict(temperature=25.0, battery=85.0, altitude=520.0, signal=-50.0)


def _payload(**overrides):
    return TelemetryPayload(**{**NOMINAL, **overrides})


def test_nominal_reading_is_not_anomalous():
    assert is_anomalous(_payload()) is False
    assert anomaly_type(_payload()) is None


@pytest.mark.parametrize("field_name, value", [
    ("temperature", 0.0), ("temperature", 100.0),
    ("battery", 20.0), ("battery", 100.0),
    ("altitude", 300.0), ("altitude", 550.0),
    ("signal", -90.0), ("signal", -40.0),
])
def test_boundaries_are_nominal(field_name, value):
    assert is_anomalous(_payload(**{field_name: value})) is False


@pytest.mark.parametrize("field_name, value", [
    ("temperature", 100.0001), ("temperature", -0.0001),
    ("battery", 19.9999), ("battery", 100.0001),
    ("altitude", 299.9999), ("altitude", 550.0001),
    ("signal", -90.0001), ("signal", -39.9999),
])
def test_just_outside_boundaries_is_anomalous(field_name, value):
    payload = _payload(**{field_name: value})
    assert is_anomalous(payload) is True
    assert anomaly_type(payload) == field_name


def test_violations_in_wire_order():
    payload = _payload(signal=-95.0, temperature=120.0)
    assert violations(payload) == ['temperature', 'signal']
    assert anomaly_type(payload) == 'temperature'


def test_nan_is_anomalous():
    assert is_anomalous(_payload(battery=float('nan'))) is True


def test_custom_thresholds():
    tight = AnomalyThresholds(battery=(70.0, 100.0))
    payload = _payload(battery=30.0)
    assert is_anomalous(payload) is False
    assert is_anomalous(payload, tight) is True


def test_thresholds_are_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        DEFAULT_THRESHOLDS.battery = (0.0, 1.0)
