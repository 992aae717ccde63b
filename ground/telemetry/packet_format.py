"""
Telemetry Packet Format
=======================

Layout of the fixed 32-byte telemetry packet:

    PrimaryHeader (6) | SecondaryHeader (10) | Payload (16)

All multi-byte fields are big-endian, floats are IEEE-754 single precision.
"""

import struct
from dataclasses import dataclass
from enum import IntEnum


class CCSDSPacketType(IntEnum):
    """CCSDS Packet type."""
    TELEMETRY = 0
    TELECOMMAND = 1


class SequenceFlags(IntEnum):
    """CCSDS sequence flags."""
    CONTINUATION = 0
    FIRST_SEGMENT = 1
    LAST_SEGMENT = 2
    UNSEGMENTED = 3


# Section layouts
PRIMARY_HEADER_FORMAT = '>HHH'
SECONDARY_HEADER_FORMAT = '>QH'
PAYLOAD_FORMAT = '>ffff'

PRIMARY_HEADER_SIZE = struct.calcsize(PRIMARY_HEADER_FORMAT)      # 6
SECONDARY_HEADER_SIZE = struct.calcsize(SECONDARY_HEADER_FORMAT)  # 10
PAYLOAD_SIZE = struct.calcsize(PAYLOAD_FORMAT)                    # 16
PACKET_SIZE = PRIMARY_HEADER_SIZE + SECONDARY_HEADER_SIZE + PAYLOAD_SIZE

# Length of the data field minus one, per CCSDS convention
PACKET_DATA_LENGTH = SECONDARY_HEADER_SIZE + PAYLOAD_SIZE - 1     # 25

# Constants for this source
PACKET_VERSION = 0
PACKET_TYPE = CCSDSPacketType.TELEMETRY
SECONDARY_HEADER_FLAG = 1
APID = 0x01
SUBSYSTEM_ID = 0x0001

SEQUENCE_COUNT_MODULO = 1 << 14
SEQUENCE_COUNT_MASK = SEQUENCE_COUNT_MODULO - 1  # 0x3FFF
APID_MASK = 0x07FF


def pack_packet_id(version: int, packet_type: int,
                   secondary_header_flag: int, apid: int) -> int:
    """Pack Version(3) | Type(1) | SecHdrFlag(1) | APID(11) into 16 bits."""
    return (((version & 0x07) << 13) |
            ((packet_type & 0x01) << 12) |
            ((secondary_header_flag & 0x01) << 11) |
            (apid & APID_MASK))


def unpack_packet_id(word: int):
    """
    Split a 16-bit packet ID word.

    Returns:
        (version, packet_type, secondary_header_flag, apid)
    """
    return ((word >> 13) & 0x07,
            (word >> 12) & 0x01,
            (word >> 11) & 0x01,
            word & APID_MASK)


def pack_sequence_control(sequence_flags: int, sequence_count: int) -> int:
    """Pack SequenceFlags(2) | SequenceCount(14) into 16 bits."""
    return ((sequence_flags & 0x03) << 14) | (sequence_count & SEQUENCE_COUNT_MASK)


def unpack_sequence_control(word: int):
    """
    Split a 16-bit sequence control word.

    Returns:
        (sequence_flags, sequence_count)
    """
    return (word >> 14) & 0x03, word & SEQUENCE_COUNT_MASK


@dataclass(frozen=True)
class CCSDSPrimaryHeader:
    """CCSDS Space Packet Primary Header (6 bytes)."""
    version: int                  # 3 bits
    packet_type: CCSDSPacketType  # 1 bit
    secondary_header_flag: bool   # 1 bit
    apid: int                     # 11 bits
    sequence_flags: int           # 2 bits
    sequence_count: int           # 14 bits
    packet_data_length: int       # 16 bits (length of data field - 1)

    @property
    def packet_id(self) -> int:
        """Raw 16-bit packet ID word."""
        return pack_packet_id(self.version, self.packet_type,
                              int(self.secondary_header_flag), self.apid)

    @property
    def packet_seq_ctrl(self) -> int:
        """Raw 16-bit sequence control word."""
        return pack_sequence_control(self.sequence_flags, self.sequence_count)

    @property
    def total_length(self) -> int:
        """Total packet length including header."""
        return PRIMARY_HEADER_SIZE + self.packet_data_length + 1


@dataclass(frozen=True)
class TelemetrySecondaryHeader:
    """Secondary header (10 bytes)."""
    timestamp: int     # 64 bits, Unix seconds
    subsystem_id: int  # 16 bits


@dataclass(frozen=True)
class TelemetryPayload:
    """Telemetry payload (16 bytes)."""
    temperature: float  # degC
    battery: float      # percent
    altitude: float     # km
    signal: float       # dB

    def as_tuple(self):
        return (self.temperature, self.battery, self.altitude, self.signal)


@dataclass(frozen=True)
class DecodedReading:
    """Fully decoded telemetry packet."""
    primary_header: CCSDSPrimaryHeader
    secondary_header: TelemetrySecondaryHeader
    payload: TelemetryPayload

    @property
    def packet_id(self) -> int:
        return self.primary_header.packet_id

    @property
    def packet_seq_ctrl(self) -> int:
        return self.primary_header.packet_seq_ctrl

    @property
    def sequence_count(self) -> int:
        return self.primary_header.sequence_count

    @property
    def subsystem_id(self) -> int:
        return self.secondary_header.subsystem_id

    @property
    def timestamp(self) -> int:
        return self.secondary_header.timestamp
