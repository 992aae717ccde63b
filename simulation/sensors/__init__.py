"""
Sensors Module
==============

Housekeeping payload models for the spacecraft simulator.
"""

from .payload_generator import AnomalyArchetype, PayloadGenerator

__all__ = [
    'AnomalyArchetype',
    'PayloadGenerator',
]
