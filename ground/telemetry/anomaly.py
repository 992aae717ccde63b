"""
Anomaly Classification
======================

Fixed-threshold limit checking for telemetry readings.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .packet_format import TelemetryPayload


@dataclass(frozen=True)
class AnomalyThresholds:
    """Nominal operating limits. Bounds are inclusive."""
    temperature: Tuple[float, float] = (0.0, 100.0)   # degC
    battery: Tuple[float, float] = (20.0, 100.0)      # percent
    altitude: Tuple[float, float] = (300.0, 550.0)    # km
    signal: Tuple[float, float] = (-90.0, -40.0)      # dB

    def limits(self):
        """Parameter limits in wire order."""
        return (
            ('temperature', self.temperature),
            ('battery', self.battery),
            ('altitude', self.altitude),
            ('signal', self.signal),
        )


DEFAULT_THRESHOLDS = AnomalyThresholds()


def violations(payload: TelemetryPayload,
               thresholds: AnomalyThresholds = DEFAULT_THRESHOLDS) -> List[str]:
    """
    Find parameters outside their nominal limits.

    Args:
        payload: Telemetry readings
        thresholds: Limits to check against

    Returns:
        Names of out-of-limit parameters, in wire order
    """
    out = []
    for name, (low, high) in thresholds.limits():
        value = getattr(payload, name)
        # NaN compares false against both bounds
        if not (low <= value <= high):
            out.append(name)
    return out


def is_anomalous(payload: TelemetryPayload,
                 thresholds: AnomalyThresholds = DEFAULT_THRESHOLDS) -> bool:
    """True if any parameter is outside its nominal limits."""
    return bool(violations(payload, thresholds))


def anomaly_type(payload: TelemetryPayload,
                 thresholds: AnomalyThresholds = DEFAULT_THRESHOLDS) -> Optional[str]:
    """First out-of-limit parameter name, or None for a nominal reading."""
    found = violations(payload, thresholds)
    return found[0] if found else None
