"""
Telemetry Payload Generator
===========================

Produces housekeeping readings for the spacecraft simulator, with an
injected anomaly on every fifth packet.
"""

import numpy as np
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple

from ground.telemetry.packet_format import TelemetryPayload


ANOMALY_CADENCE = 5


class AnomalyArchetype(IntEnum):
    """Injected fault types. Each forces exactly one parameter off-nominal."""
    HIGH_TEMPERATURE = 0
    LOW_BATTERY = 1
    LOW_ALTITUDE = 2
    WEAK_SIGNAL = 3


@dataclass(frozen=True)
class PayloadBands:
    """Value bands [low, high] for each parameter."""
    temperature: Tuple[float, float] = (20.0, 30.0)   # degC
    battery: Tuple[float, float] = (70.0, 100.0)      # percent
    altitude: Tuple[float, float] = (500.0, 550.0)    # km
    signal: Tuple[float, float] = (-60.0, -40.0)      # dB


NORMAL_BANDS = PayloadBands()

# Off-nominal band for the one parameter each archetype perturbs
ANOMALY_BANDS = {
    AnomalyArchetype.HIGH_TEMPERATURE: ('temperature', (35.0, 40.0)),
    AnomalyArchetype.LOW_BATTERY: ('battery', (20.0, 40.0)),
    AnomalyArchetype.LOW_ALTITUDE: ('altitude', (300.0, 400.0)),
    AnomalyArchetype.WEAK_SIGNAL: ('signal', (-90.0, -80.0)),
}


def is_anomalous_cadence(sequence_count: int) -> bool:
    """True for the sequence counts that carry an injected anomaly."""
    return sequence_count % ANOMALY_CADENCE == 0


class PayloadGenerator:
    """
    Housekeeping payload generator.

    Values are uniform draws within each band.
    """

    def __init__(self, bands: PayloadBands = NORMAL_BANDS,
                 seed: Optional[int] = None):
        """
        Initialize generator.

        Args:
            bands: Normal operating bands
            seed: Random seed (default: fresh entropy)
        """
        self.bands = bands
        self.rng = np.random.default_rng(seed)
        self.last_archetype: Optional[AnomalyArchetype] = None

    def next_payload(self, sequence_count: int) -> TelemetryPayload:
        """
        Generate the payload for a given sequence count.

        Args:
            sequence_count: Packet sequence count

        Returns:
            Anomalous payload on the cadence, normal payload otherwise
        """
        archetype = None
        if is_anomalous_cadence(sequence_count):
            archetype = AnomalyArchetype(int(self.rng.integers(len(AnomalyArchetype))))
        self.last_archetype = archetype
        return self.make_payload(archetype)

    def make_payload(self, archetype: Optional[AnomalyArchetype] = None) -> TelemetryPayload:
        """
        Generate a payload for a specific archetype.

        Args:
            archetype: Fault to inject, or None for nominal readings
        """
        bands = {
            'temperature': self.bands.temperature,
            'battery': self.bands.battery,
            'altitude': self.bands.altitude,
            'signal': self.bands.signal,
        }
        if archetype is not None:
            name, band = ANOMALY_BANDS[archetype]
            bands[name] = band

        values = {name: self._uniform(*band) for name, band in bands.items()}
        return TelemetryPayload(**values)

    def _uniform(self, low: float, high: float) -> float:
        """Uniform draw in [low, high), exactly representable as float32."""
        value = np.float32(self.rng.uniform(low, high))
        if value >= high:
            value = np.nextafter(np.float32(high), np.float32(low))
        if value < low:
            value = np.float32(low)
        return float(value)
