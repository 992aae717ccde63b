#!/usr/bin/env python3
"""
Telemetry Sender
================

Spacecraft-side downlink: one telemetry packet per tick over UDP.
There is no acknowledgment channel; a failed write loses that packet.

Usage:
  telemetry-generator
  telemetry-generator --host ingestion.local --port 8090 --count 60
"""

import argparse
import logging
import socket
import sys
import threading
import time
from typing import List, Optional

from ground.telemetry.errors import TransportError
from ground.telemetry.log_config import configure_logging
from ground.telemetry.packet_encoder import TelemetryEncoder, TMPacketConfig
from ground.telemetry.packet_format import TelemetryPayload
from simulation.core.config import GeneratorConfig
from simulation.sensors.payload_generator import PayloadGenerator, is_anomalous_cadence

logger = logging.getLogger(__name__)


class TelemetrySender:
    """
    Periodic UDP telemetry sender.
    """

    def __init__(self, config: GeneratorConfig = None,
                 generator: Optional[PayloadGenerator] = None,
                 encoder: Optional[TelemetryEncoder] = None):
        """
        Initialize sender.

        Args:
            config: Generator configuration
            generator: Payload source (default: unseeded generator)
            encoder: Packet encoder owning the sequence counter
        """
        self.config = config or GeneratorConfig()
        self.generator = generator or PayloadGenerator()
        self.encoder = encoder or TelemetryEncoder(
            TMPacketConfig(subsystem_id=self.config.subsystem_id))

        self._sock: Optional[socket.socket] = None
        self._stop = threading.Event()

        self.stats = {
            'packets_sent': 0,
            'send_errors': 0,
        }

    def connect(self):
        """Open the UDP association to the ingestion endpoint."""
        if self._sock is not None:
            return
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.connect((self.config.target_host, self.config.target_port))
        except OSError as e:
            sock.close()
            raise TransportError(
                f"failed to connect to {self.config.target_host}:{self.config.target_port}: {e}"
            ) from e
        self._sock = sock
        logger.info("Telemetry generator sending to %s:%d",
                    self.config.target_host, self.config.target_port)

    def send_once(self, payload: Optional[TelemetryPayload] = None) -> int:
        """
        Build and send one packet.

        Args:
            payload: Readings to send (default: next generated payload)

        Returns:
            Sequence count of the packet

        Raises:
            TransportError: if the datagram could not be written
        """
        if self._sock is None:
            self.connect()

        sequence_count = self.encoder.get_sequence_count()
        if payload is None:
            payload = self.generator.next_payload(sequence_count)
        packet = self.encoder.encode(payload)

        try:
            self._sock.send(packet)
        except OSError as e:
            self.stats['send_errors'] += 1
            raise TransportError(f"error sending telemetry #{sequence_count}: {e}") from e

        self.stats['packets_sent'] += 1
        if is_anomalous_cadence(sequence_count):
            logger.info("Sent anomalous telemetry packet #%d", sequence_count)
        else:
            logger.debug("Sent normal telemetry packet #%d", sequence_count)
        return sequence_count

    def run(self, max_packets: Optional[int] = None):
        """
        Tick loop: one packet per period until stopped.

        Args:
            max_packets: Stop after this many ticks (default: run forever)
        """
        ticks = 0
        while not self._stop.is_set():
            if max_packets is not None and ticks >= max_packets:
                break
            ticks += 1

            start = time.monotonic()
            try:
                self.send_once()
            except TransportError as e:
                logger.error("%s", e)
                # Packet is lost; resume after a pause
                if self._stop.wait(self.config.retry_pause_s):
                    break
                continue

            elapsed = time.monotonic() - start
            if self._stop.wait(max(0.0, self.config.period_s - elapsed)):
                break

    def stop(self):
        """Stop the tick loop."""
        self._stop.set()

    def close(self):
        """Close the socket."""
        if self._sock is not None:
            self._sock.close()
            self._sock = None


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Spacecraft telemetry generator")
    parser.add_argument("--host", default=None, help="Ingestion host (env INGESTION_HOST)")
    parser.add_argument("--port", type=int, default=None, help="Ingestion port (env INGESTION_PORT)")
    parser.add_argument("--period", type=float, default=None, help="Seconds between packets")
    parser.add_argument("--count", type=int, default=None, help="Number of packets (default: forever)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--log-level", default=None)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    config = GeneratorConfig.from_env()
    if args.host is not None:
        config.target_host = args.host
    if args.port is not None:
        config.target_port = args.port
    if args.period is not None:
        config.period_s = args.period
    if args.log_level is not None:
        config.log_level = args.log_level
    config.__post_init__()

    configure_logging(config.log_level)

    sender = TelemetrySender(config, generator=PayloadGenerator(seed=args.seed))
    try:
        sender.connect()
    except TransportError as e:
        logger.critical("Failed to connect to telemetry ingestion service: %s", e)
        return 1

    try:
        sender.run(max_packets=args.count)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        sender.close()
        logger.info("Sent %d packets (%d errors)",
                    sender.stats['packets_sent'], sender.stats['send_errors'])
    return 0


if __name__ == "__main__":
    sys.exit(main())
