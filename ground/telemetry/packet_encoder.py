"""
Telemetry Packet Encoder
========================

Encodes telemetry readings into the fixed 32-byte packet format.
"""

import struct
import time
from dataclasses import dataclass
from typing import Optional

from .packet_format import (
    APID,
    PACKET_DATA_LENGTH,
    PACKET_TYPE,
    PACKET_VERSION,
    PAYLOAD_FORMAT,
    PRIMARY_HEADER_FORMAT,
    SECONDARY_HEADER_FLAG,
    SECONDARY_HEADER_FORMAT,
    SEQUENCE_COUNT_MASK,
    SUBSYSTEM_ID,
    SequenceFlags,
    TelemetryPayload,
    pack_packet_id,
    pack_sequence_control,
)


def encode_packet(sequence_count: int, subsystem_id: int, timestamp: int,
                  payload: TelemetryPayload) -> bytes:
    """
    Encode a complete telemetry packet.

    Args:
        sequence_count: Packet sequence count (masked to 14 bits)
        subsystem_id: Source subsystem identifier
        timestamp: Unix time in seconds
        payload: Telemetry readings

    Returns:
        32 packet bytes
    """
    # Word 1: version (3) | type (1) | sec header flag (1) | APID (11)
    word1 = pack_packet_id(PACKET_VERSION, PACKET_TYPE, SECONDARY_HEADER_FLAG, APID)

    # Word 2: sequence flags (2) | sequence count (14)
    word2 = pack_sequence_control(SequenceFlags.UNSEGMENTED, sequence_count)

    primary_header = struct.pack(PRIMARY_HEADER_FORMAT, word1, word2, PACKET_DATA_LENGTH)
    secondary_header = struct.pack(SECONDARY_HEADER_FORMAT,
                                   int(timestamp), subsystem_id & 0xFFFF)
    data = struct.pack(PAYLOAD_FORMAT, *payload.as_tuple())

    return primary_header + secondary_header + data


@dataclass
class TMPacketConfig:
    """Telemetry packet configuration."""
    subsystem_id: int = SUBSYSTEM_ID
    sequence_count: int = 0


class TelemetryEncoder:
    """
    Telemetry packet encoder.

    Owns the 14-bit sequence counter of one sender instance.
    """

    def __init__(self, config: TMPacketConfig = None):
        """
        Initialize encoder.

        Args:
            config: Packet configuration
        """
        self.config = config or TMPacketConfig()
        self._sequence_counter = self.config.sequence_count & SEQUENCE_COUNT_MASK

    def encode(self, payload: TelemetryPayload,
               timestamp: Optional[int] = None) -> bytes:
        """
        Encode a packet with the current sequence count and advance it.

        Args:
            payload: Telemetry readings
            timestamp: Unix seconds (default: now)

        Returns:
            Encoded packet bytes
        """
        ts = int(time.time()) if timestamp is None else int(timestamp)
        packet = encode_packet(self._sequence_counter, self.config.subsystem_id,
                               ts, payload)
        self.next_sequence()
        return packet

    def next_sequence(self) -> int:
        """Advance the sequence counter, wrapping 16383 -> 0."""
        self._sequence_counter = (self._sequence_counter + 1) & SEQUENCE_COUNT_MASK
        return self._sequence_counter

    def get_sequence_count(self) -> int:
        """Get current sequence count."""
        return self._sequence_counter

    def reset_sequence(self):
        """Reset sequence counter."""
        self._sequence_counter = 0
