"""
Ground Telemetry Ingestion
==========================

Python implementation for decoding, classifying, and storing the
32-byte CCSDS-style telemetry packets sent by the spacecraft simulator.
"""

from .anomaly import AnomalyThresholds, DEFAULT_THRESHOLDS, is_anomalous
from .errors import (
    BindError,
    DecodeError,
    PacketTooShortError,
    PersistenceError,
    TransportError,
    TruncatedFieldError,
)
from .metrics import TelemetryMetrics
from .packet_decoder import TelemetryDecoder, decode_packet
from .packet_encoder import TelemetryEncoder, encode_packet
from .packet_format import DecodedReading, TelemetryPayload
from .receiver import UDPReceiver
from .storage import TelemetryDatabase
from .telemetry_processor import TelemetryProcessor

__all__ = [
    'AnomalyThresholds',
    'DEFAULT_THRESHOLDS',
    'is_anomalous',
    'BindError',
    'DecodeError',
    'PacketTooShortError',
    'PersistenceError',
    'TransportError',
    'TruncatedFieldError',
    'TelemetryMetrics',
    'TelemetryDecoder',
    'decode_packet',
    'TelemetryEncoder',
    'encode_packet',
    'DecodedReading',
    'TelemetryPayload',
    'UDPReceiver',
    'TelemetryDatabase',
    'TelemetryProcessor',
]
