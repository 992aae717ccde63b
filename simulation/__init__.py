"""
Spacecraft Telemetry Simulator
==============================

Satellite-like telemetry source for exercising the ground ingestion
pipeline.

Components:
- Payload generator (nominal readings, anomaly every fifth packet)
- UDP sender (one 32-byte CCSDS-style packet per second)
"""

__version__ = "1.0.0"

from simulation.core.config import GeneratorConfig
from simulation.core.sender import TelemetrySender
from simulation.sensors.payload_generator import PayloadGenerator

__all__ = [
    'GeneratorConfig',
    'TelemetrySender',
    'PayloadGenerator',
]
