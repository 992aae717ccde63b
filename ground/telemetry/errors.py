"""
Telemetry Errors
================

Exception taxonomy for the telemetry link.
"""


class TelemetryError(Exception):
    """Base class for telemetry link errors."""


class DecodeError(TelemetryError):
    """Malformed or incomplete datagram."""

    kind = "DecodeError"

    def __init__(self, message: str, kind: str = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class PacketTooShortError(DecodeError):
    """Datagram shorter than the fixed packet size."""

    kind = "TooShort"

    def __init__(self, length: int, expected: int):
        super().__init__(f"packet too short: {length} bytes (need {expected})")
        self.length = length
        self.expected = expected


class TruncatedFieldError(DecodeError):
    """A packet section could not be fully read."""

    kind = "TruncatedField"

    def __init__(self, section: str, detail: str = ""):
        message = f"error reading {section}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.section = section


class TransportError(TelemetryError):
    """Datagram write failure on the sender side."""


class PersistenceError(TelemetryError):
    """Storage write failure."""


class BindError(TelemetryError):
    """Socket bind failure at startup."""
