import numpy as np
import pytest

from ground.telemetry.packet_decoder import decode_packet
from ground.telemetry.packet_encoder import encode_packet
from simulation.sensors.payload_generator import (
    ANOMALY_BANDS,
    NORMAL_BANDS,
    AnomalyArchetype,
    PayloadGenerator,
    is_anomalous_cadence,
)

FIELDS = ('temperature', 'battery', 'altitude', 'signal')


def _in_band(value, band):
    low, high = band
    return low <= value <= high


def _out_of_band_fields(payload):
    return [name for name in FIELDS
            if not _in_band(getattr(payload, name), getattr(NORMAL_BANDS, name))]


def test_normal_payloads_stay_in_bands():
    gen = PayloadGenerator(seed=1)
    for seq in range(1, 200):
        if is_anomalous_cadence(seq):
            continue
        payload = gen.next_payload(seq)
        assert _out_of_band_fields(payload) == []
        assert gen.last_archetype is None


@pytest.mark.parametrize("archetype", list(AnomalyArchetype))
def test_each_archetype_forces_exactly_one_field(archetype):
    gen = PayloadGenerator(seed=2)
    field_name, band = ANOMALY_BANDS[archetype]
    for _ in range(50):
        payload = gen.make_payload(archetype)
        assert _out_of_band_fields(payload) == [field_name]
        low, high = band
        assert low <= getattr(payload, field_name) < high


def test_cadence_one_in_five_is_anomalous():
    gen = PayloadGenerator(seed=3)
    n = 100
    anomalous = 0
    for seq in range(n):
        payload = gen.next_payload(seq)
        off = _out_of_band_fields(payload)
        assert len(off) == (1 if seq % 5 == 0 else 0)
        anomalous += bool(off)
    assert anomalous / n == pytest.approx(1 / 5)


def test_archetypes_are_all_drawn():
    gen = PayloadGenerator(seed=4)
    seen = set()
    for seq in range(0, 5 * 200, 5):
        gen.next_payload(seq)
        seen.add(gen.last_archetype)
    assert seen == set(AnomalyArchetype)


def test_generated_values_survive_the_wire_exactly():
    gen = PayloadGenerator(seed=5)
    for seq in range(20):
        payload = gen.next_payload(seq)
        assert all(np.float32(v) == v for v in payload.as_tuple())
        assert decode_packet(encode_packet(seq, 1, 0, payload)).payload == payload


def test_unseeded_generators_differ():
    a = PayloadGenerator().make_payload()
    b = PayloadGenerator().make_payload()
    assert a != b
