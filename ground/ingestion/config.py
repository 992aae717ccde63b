"""
Ingestion Configuration
=======================

Service parameters, read from the environment.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional


def _env(env: Mapping[str, str], name: str, default: str) -> str:
    value = env.get(name, "")
    return value if value != "" else default


@dataclass
class StorageConfig:
    """Storage connection parameters."""
    host: str = "localhost"
    port: int = 5432
    name: str = "telemetry"
    user: str = "telemetry_user"
    password: str = "telemetry_pass"

    # SQLite file used by the bundled writer
    path: str = "telemetry.db"

    @property
    def dsn(self) -> str:
        """libpq-style connection string for external writers."""
        return (f"host={self.host} port={self.port} dbname={self.name} "
                f"user={self.user} password={self.password} sslmode=disable")

    def describe(self) -> str:
        """Connection summary safe for logs."""
        return f"{self.user}@{self.host}:{self.port}/{self.name} (sqlite: {self.path})"


@dataclass
class IngestionConfig:
    """Complete ingestion service configuration."""
    bind_host: str = "0.0.0.0"
    udp_port: int = 8090
    buffer_size: int = 1024

    # Worker pool
    workers: int = 4
    queue_size: int = 1024

    storage: StorageConfig = field(default_factory=StorageConfig)
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate configuration."""
        assert 0 <= self.udp_port <= 65535, "UDP port out of range"
        assert self.buffer_size >= 32, "Buffer must hold a full packet"
        assert self.workers >= 1, "Need at least one worker"
        assert self.queue_size >= 1, "Queue size must be positive"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "IngestionConfig":
        """
        Build configuration from environment variables.

        Args:
            env: Variable mapping (default: os.environ)
        """
        env = os.environ if env is None else env

        storage = StorageConfig(
            host=_env(env, "DB_HOST", "localhost"),
            port=int(_env(env, "DB_PORT", "5432")),
            name=_env(env, "DB_NAME", "telemetry"),
            user=_env(env, "DB_USER", "telemetry_user"),
            password=_env(env, "DB_PASSWORD", "telemetry_pass"),
            path=_env(env, "DB_PATH", "telemetry.db"),
        )

        return cls(
            bind_host=_env(env, "UDP_BIND_HOST", "0.0.0.0"),
            udp_port=int(_env(env, "UDP_PORT", "8090")),
            workers=int(_env(env, "INGEST_WORKERS", "4")),
            queue_size=int(_env(env, "INGEST_QUEUE_SIZE", "1024")),
            storage=storage,
            log_level=_env(env, "LOG_LEVEL", "INFO"),
        )
