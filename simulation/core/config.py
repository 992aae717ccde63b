"""
Generator Configuration
=======================

Parameters for the spacecraft telemetry generator.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ground.telemetry.packet_format import SUBSYSTEM_ID


@dataclass
class GeneratorConfig:
    """Telemetry generator configuration."""
    # Ingestion endpoint
    target_host: str = "127.0.0.1"
    target_port: int = 8090

    # Timing
    period_s: float = 1.0         # One packet per tick
    retry_pause_s: float = 5.0    # Pause after a failed write

    subsystem_id: int = SUBSYSTEM_ID
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate configuration."""
        assert 0 < self.target_port <= 65535, "Target port out of range"
        assert self.period_s >= 0, "Period must not be negative"
        assert self.retry_pause_s >= 0, "Retry pause must not be negative"
        assert 0 <= self.subsystem_id <= 0xFFFF, "Subsystem ID must fit in 16 bits"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "GeneratorConfig":
        """
        Build configuration from environment variables.

        Args:
            env: Variable mapping (default: os.environ)
        """
        env = os.environ if env is None else env

        def get(name: str, default: str) -> str:
            return env.get(name) or default

        return cls(
            target_host=get("INGESTION_HOST", "127.0.0.1"),
            target_port=int(get("INGESTION_PORT", "8090")),
            period_s=float(get("TELEMETRY_PERIOD_S", "1.0")),
            retry_pause_s=float(get("SENDER_RETRY_PAUSE_S", "5.0")),
            subsystem_id=int(get("SUBSYSTEM_ID", str(SUBSYSTEM_ID)), 0),
            log_level=get("LOG_LEVEL", "INFO"),
        )
