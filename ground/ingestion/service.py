#!/usr/bin/env python3
"""
Telemetry Ingestion Service
===========================

Binds the UDP telemetry port and runs the processing pipeline.

Usage:
  telemetry-ingestion
  telemetry-ingestion --port 9000 --workers 8 --db ./telemetry.db
"""

import argparse
import logging
import sys
from typing import List, Optional

from ground.ingestion.config import IngestionConfig
from ground.telemetry.errors import BindError
from ground.telemetry.log_config import configure_logging
from ground.telemetry.metrics import TelemetryMetrics
from ground.telemetry.receiver import UDPReceiver
from ground.telemetry.storage import TelemetryDatabase
from ground.telemetry.telemetry_processor import TelemetryProcessor

logger = logging.getLogger("ground.ingestion")


class IngestionService:
    """
    Wires the receiver, processor, metrics sink, and storage together.
    """

    def __init__(self, config: IngestionConfig,
                 database: Optional[TelemetryDatabase] = None,
                 metrics: Optional[TelemetryMetrics] = None):
        """
        Initialize service.

        Args:
            config: Service configuration
            database: Storage writer (default: SQLite at config.storage.path)
            metrics: Metrics sink (default: new sink)
        """
        self.config = config
        self.database = database or TelemetryDatabase(config.storage.path)
        self.metrics = metrics or TelemetryMetrics()
        self.processor = TelemetryProcessor(
            self.metrics,
            self.database,
            workers=config.workers,
            queue_size=config.queue_size,
        )
        self.receiver = UDPReceiver(
            self.processor,
            bind_host=config.bind_host,
            port=config.udp_port,
            buffer_size=config.buffer_size,
        )

    def start(self):
        """
        Bind the socket and start the workers.

        Raises:
            BindError: if the UDP port cannot be bound
        """
        self.receiver.bind()
        self.processor.start()
        logger.info("Telemetry ingestion service started on port %d", self.receiver.address[1])

    def serve_forever(self):
        """Run the receive loop in the calling thread."""
        self.receiver.serve_forever()

    def stop(self):
        """Stop receiving, drain the workers, close storage."""
        self.receiver.shutdown()
        self.processor.stop()
        self.database.close()
        logger.info("Final statistics: %s", self.processor.get_statistics())
        logger.info("Final metrics: %s", self.metrics.snapshot())


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Telemetry ingestion service")
    parser.add_argument("--bind", default=None, help="Bind address (env UDP_BIND_HOST)")
    parser.add_argument("--port", type=int, default=None, help="UDP port (env UDP_PORT)")
    parser.add_argument("--workers", type=int, default=None, help="Worker threads (env INGEST_WORKERS)")
    parser.add_argument("--queue-size", type=int, default=None, help="Queue bound (env INGEST_QUEUE_SIZE)")
    parser.add_argument("--db", default=None, help="SQLite path (env DB_PATH)")
    parser.add_argument("--log-level", default=None, help="Log level (env LOG_LEVEL)")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> IngestionConfig:
    """Environment configuration with command-line overrides applied."""
    config = IngestionConfig.from_env()
    if args.bind is not None:
        config.bind_host = args.bind
    if args.port is not None:
        config.udp_port = args.port
    if args.workers is not None:
        config.workers = args.workers
    if args.queue_size is not None:
        config.queue_size = args.queue_size
    if args.db is not None:
        config.storage.path = args.db
    if args.log_level is not None:
        config.log_level = args.log_level
    config.__post_init__()
    return config


def main(argv: Optional[List[str]] = None) -> int:
    config = build_config(parse_args(argv))

    configure_logging(config.log_level)
    logger.info("Storage: %s", config.storage.describe())

    service = IngestionService(config)
    try:
        service.start()
    except BindError as e:
        logger.critical("Failed to create UDP server: %s", e)
        service.database.close()
        return 1

    try:
        service.serve_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        service.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
