"""
Telemetry Metrics
=================

Last-value gauges and monotonic counters for pull-based scraping.
"""

import math
import threading
from typing import Dict

from .packet_format import TelemetryPayload


# (metric name, help text, payload field)
GAUGES = (
    ('satellite_temperature_celsius', 'Current satellite temperature in Celsius', 'temperature'),
    ('satellite_battery_percent', 'Current satellite battery level in percent', 'battery'),
    ('satellite_altitude_km', 'Current satellite altitude in kilometers', 'altitude'),
    ('satellite_signal_strength_db', 'Current satellite signal strength in dB', 'signal'),
)

PACKET_COUNTER = 'satellite_packet_count'
ANOMALY_COUNTER = 'satellite_anomaly_count'

COUNTERS = (
    (PACKET_COUNTER, 'Total number of telemetry packets ingested'),
    (ANOMALY_COUNTER, 'Total number of detected anomalies'),
)


def format_value(value: float) -> str:
    """Format a sample value for the text exposition format."""
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return '+Inf' if value > 0 else '-Inf'
    return repr(value)


class TelemetryMetrics:
    """
    Metrics sink shared by all processing workers.

    Gauges hold the values of the most recently recorded packet only.
    Every update happens under one lock, so concurrent workers never
    lose a counter increment or leave a half-written set of gauges.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._gauges: Dict[str, float] = {}
        self._counters: Dict[str, int] = {}
        self.reset()

    def record(self, payload: TelemetryPayload, anomalous: bool):
        """
        Record one processed packet.

        Args:
            payload: Decoded readings (overwrite the gauges)
            anomalous: Whether the packet was classified anomalous
        """
        with self._lock:
            for name, _, field_name in GAUGES:
                self._gauges[name] = float(getattr(payload, field_name))
            self._counters[PACKET_COUNTER] += 1
            if anomalous:
                self._counters[ANOMALY_COUNTER] += 1

    @property
    def packet_count(self) -> int:
        with self._lock:
            return self._counters[PACKET_COUNTER]

    @property
    def anomaly_count(self) -> int:
        with self._lock:
            return self._counters[ANOMALY_COUNTER]

    def gauge(self, name: str) -> float:
        """Current value of a gauge."""
        with self._lock:
            return self._gauges[name]

    def snapshot(self) -> Dict[str, float]:
        """Consistent copy of all gauges and counters."""
        with self._lock:
            return {**self._gauges, **self._counters}

    def render(self) -> str:
        """Render metrics in the Prometheus text exposition format."""
        values = self.snapshot()
        lines = []
        for name, help_text, _ in GAUGES:
            lines.append(f"# HELP {name} {help_text}")
            lines.append(f"# TYPE {name} gauge")
            lines.append(f"{name} {format_value(values[name])}")
        for name, help_text in COUNTERS:
            lines.append(f"# HELP {name} {help_text}")
            lines.append(f"# TYPE {name} counter")
            lines.append(f"{name} {values[name]}")
        return "\n".join(lines) + "\n"

    def reset(self):
        """Zero all gauges and counters."""
        with self._lock:
            self._gauges = {name: 0.0 for name, _, _ in GAUGES}
            self._counters = {name: 0 for name, _ in COUNTERS}
