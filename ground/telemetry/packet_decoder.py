"""
Telemetry Packet Decoder
========================

Decodes and validates the fixed 32-byte telemetry packet.
"""

import struct
import threading
from typing import Dict, Optional

from .errors import DecodeError, PacketTooShortError, TruncatedFieldError
from .packet_format import (
    PACKET_SIZE,
    PAYLOAD_FORMAT,
    PRIMARY_HEADER_FORMAT,
    PRIMARY_HEADER_SIZE,
    SECONDARY_HEADER_FORMAT,
    SECONDARY_HEADER_SIZE,
    CCSDSPacketType,
    CCSDSPrimaryHeader,
    DecodedReading,
    TelemetryPayload,
    TelemetrySecondaryHeader,
    unpack_packet_id,
    unpack_sequence_control,
)


def _unpack_section(fmt: str, data: bytes, offset: int, section: str):
    try:
        return struct.unpack_from(fmt, data, offset)
    except struct.error as e:
        raise TruncatedFieldError(section, str(e)) from e


def decode_primary_header(data: bytes, offset: int = 0) -> CCSDSPrimaryHeader:
    """
    Decode CCSDS primary header.

    Args:
        data: Packet bytes
        offset: Start of the header within data

    Returns:
        Decoded header

    Raises:
        TruncatedFieldError: if fewer than 6 bytes are available
    """
    word1, word2, word3 = _unpack_section(
        PRIMARY_HEADER_FORMAT, data, offset, "primary header")

    version, packet_type, sec_header_flag, apid = unpack_packet_id(word1)
    sequence_flags, sequence_count = unpack_sequence_control(word2)

    return CCSDSPrimaryHeader(
        version=version,
        packet_type=CCSDSPacketType(packet_type),
        secondary_header_flag=bool(sec_header_flag),
        apid=apid,
        sequence_flags=sequence_flags,
        sequence_count=sequence_count,
        packet_data_length=word3,
    )


def decode_packet(data: bytes) -> DecodedReading:
    """
    Decode a complete telemetry packet.

    Bytes beyond the fixed packet size are ignored.

    Args:
        data: Raw datagram bytes

    Returns:
        Decoded reading with all header fields preserved

    Raises:
        PacketTooShortError: if fewer than 32 bytes are supplied
        TruncatedFieldError: if a section cannot be fully read
    """
    if len(data) < PACKET_SIZE:
        raise PacketTooShortError(len(data), PACKET_SIZE)

    primary = decode_primary_header(data)

    offset = PRIMARY_HEADER_SIZE
    timestamp, subsystem_id = _unpack_section(
        SECONDARY_HEADER_FORMAT, data, offset, "secondary header")

    offset += SECONDARY_HEADER_SIZE
    temperature, battery, altitude, signal = _unpack_section(
        PAYLOAD_FORMAT, data, offset, "payload")

    return DecodedReading(
        primary_header=primary,
        secondary_header=TelemetrySecondaryHeader(
            timestamp=timestamp,
            subsystem_id=subsystem_id,
        ),
        payload=TelemetryPayload(
            temperature=temperature,
            battery=battery,
            altitude=altitude,
            signal=signal,
        ),
    )


class TelemetryDecoder:
    """
    Telemetry packet decoder.

    Wraps decode_packet with statistics and an optional APID filter.
    Safe to share between worker threads.
    """

    def __init__(self, expected_apid: Optional[int] = None):
        """
        Initialize decoder.

        Args:
            expected_apid: If set, reject packets from other APIDs
        """
        self.expected_apid = expected_apid
        self._lock = threading.Lock()
        self.stats = {
            'packets_decoded': 0,
            'too_short': 0,
            'truncated': 0,
            'apid_rejected': 0,
        }

    def decode(self, data: bytes) -> DecodedReading:
        """
        Decode one datagram.

        Raises:
            DecodeError: on any malformed packet
        """
        try:
            reading = decode_packet(data)
        except PacketTooShortError:
            self._count('too_short')
            raise
        except TruncatedFieldError:
            self._count('truncated')
            raise

        if self.expected_apid is not None and reading.primary_header.apid != self.expected_apid:
            self._count('apid_rejected')
            raise DecodeError(
                f"unexpected APID 0x{reading.primary_header.apid:03X}",
                kind="UnexpectedApid",
            )

        self._count('packets_decoded')
        return reading

    def _count(self, key: str):
        with self._lock:
            self.stats[key] += 1

    def get_statistics(self) -> Dict[str, int]:
        """Get decode statistics."""
        with self._lock:
            return dict(self.stats)
