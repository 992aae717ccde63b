"""
Simulation Core Module
======================

Downlink components of the spacecraft simulator.
"""

from .config import GeneratorConfig
from .sender import TelemetrySender

__all__ = [
    'GeneratorConfig',
    'TelemetrySender',
]
