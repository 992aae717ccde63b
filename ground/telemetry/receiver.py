"""
UDP Telemetry Receiver
======================

Sequential receive loop handing each datagram to the processor.
"""

import logging
import socket
import threading
from typing import Optional, Tuple

from .errors import BindError
from .packet_format import PACKET_SIZE
from .telemetry_processor import TelemetryProcessor

logger = logging.getLogger(__name__)


class UDPReceiver:
    """
    Inbound UDP socket for telemetry datagrams.

    The loop never waits for processing: each datagram is copied and
    submitted to the processor queue, then the next one is read.
    """

    def __init__(self, processor: TelemetryProcessor, bind_host: str = "0.0.0.0",
                 port: int = 8090, buffer_size: int = 1024,
                 poll_interval: float = 0.5):
        """
        Initialize receiver.

        Args:
            processor: Telemetry processor receiving datagrams
            bind_host: Local address to bind
            port: Local UDP port (0 picks a free port)
            buffer_size: Receive buffer size in bytes
            poll_interval: Socket timeout used to notice shutdown
        """
        if buffer_size < PACKET_SIZE:
            raise ValueError(f"buffer_size must be >= {PACKET_SIZE}")

        self.processor = processor
        self.bind_host = bind_host
        self.port = port
        self.buffer_size = buffer_size
        self.poll_interval = poll_interval

        self._sock: Optional[socket.socket] = None
        self._stop = threading.Event()

        self.stats = {
            'datagrams_received': 0,
            'read_errors': 0,
        }

    def bind(self):
        """
        Bind the UDP socket.

        Raises:
            BindError: if the socket cannot be bound
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind((self.bind_host, self.port))
        except OSError as e:
            sock.close()
            raise BindError(f"failed to bind UDP {self.bind_host}:{self.port}: {e}") from e
        sock.settimeout(self.poll_interval)
        self._sock = sock
        self._stop.clear()
        logger.info("Telemetry receiver listening on %s:%d", *self.address)

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port)."""
        if self._sock is None:
            return self.bind_host, self.port
        return self._sock.getsockname()[:2]

    def serve_forever(self):
        """Receive datagrams until shutdown() is called."""
        if self._sock is None:
            self.bind()

        buffer = bytearray(self.buffer_size)
        try:
            while not self._stop.is_set():
                try:
                    n, addr = self._sock.recvfrom_into(buffer)
                except socket.timeout:
                    continue
                except OSError as e:
                    if self._stop.is_set():
                        break
                    self.stats['read_errors'] += 1
                    logger.error("Error reading from UDP: %s", e)
                    continue

                self.stats['datagrams_received'] += 1
                logger.debug("Received %d bytes from %s:%d", n, *addr[:2])

                # The buffer is reused on the next read
                self.processor.submit(bytes(buffer[:n]))
        finally:
            self._close()

    def shutdown(self):
        """Ask the receive loop to exit."""
        self._stop.set()

    def _close(self):
        if self._sock is not None:
            self._sock.close()
            self._sock = None
            logger.info("Telemetry receiver stopped")
