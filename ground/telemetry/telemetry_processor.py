"""
Telemetry Processor
===================

Per-datagram processing pipeline:

    decode -> classify -> metrics -> storage

Datagrams are handed over by the receiver and processed by a fixed
pool of worker threads fed from a bounded queue.
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from .anomaly import DEFAULT_THRESHOLDS, AnomalyThresholds, violations
from .errors import DecodeError, PersistenceError
from .metrics import TelemetryMetrics
from .packet_decoder import TelemetryDecoder
from .packet_format import DecodedReading
from .storage import TelemetryWriter

logger = logging.getLogger(__name__)

# Queue sentinel telling a worker to exit
_STOP = None


@dataclass
class TelemetryFrame:
    """Processed telemetry frame."""
    timestamp: float
    reading: DecodedReading
    anomalous: bool
    anomaly_type: Optional[str]
    stored: bool


class TelemetryProcessor:
    """
    Main telemetry processing class.

    The metrics sink and storage writer are injected and shared by all
    workers. Each step is independent: a storage failure does not roll
    back metrics already recorded for the same packet.
    """

    def __init__(self, metrics: TelemetryMetrics, writer: TelemetryWriter,
                 decoder: Optional[TelemetryDecoder] = None,
                 thresholds: AnomalyThresholds = DEFAULT_THRESHOLDS,
                 workers: int = 4, queue_size: int = 1024):
        """
        Initialize telemetry processor.

        Args:
            metrics: Shared metrics sink
            writer: Shared storage writer
            decoder: Packet decoder (default: no APID filter)
            thresholds: Anomaly limits
            workers: Number of worker threads
            queue_size: Maximum datagrams waiting for a worker
        """
        if workers < 1:
            raise ValueError("workers must be >= 1")
        if queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        self.metrics = metrics
        self.writer = writer
        self.decoder = decoder or TelemetryDecoder()
        self.thresholds = thresholds
        self.workers = workers

        # Processing queue
        self._queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._threads: List[threading.Thread] = []
        self._running = False

        # Statistics
        self._stats_lock = threading.Lock()
        self.stats = {
            'frames_received': 0,
            'frames_processed': 0,
            'decode_errors': 0,
            'storage_errors': 0,
            'dropped': 0,
        }

    def process_packet(self, data: bytes) -> Optional[TelemetryFrame]:
        """
        Run the full pipeline for one datagram.

        Args:
            data: Raw datagram bytes

        Returns:
            Processed frame, or None if the datagram could not be decoded
        """
        self._count('frames_received')

        try:
            reading = self.decoder.decode(data)
        except DecodeError as e:
            self._count('decode_errors')
            logger.warning("Error parsing telemetry packet (%s): %s", e.kind, e)
            return None

        found = violations(reading.payload, self.thresholds)
        anomalous = bool(found)
        anomaly_type = found[0] if found else None

        self.metrics.record(reading.payload, anomalous)

        stored = True
        try:
            self.writer.store(reading, anomalous=anomalous, anomaly_type=anomaly_type)
        except PersistenceError as e:
            stored = False
            self._count('storage_errors')
            logger.error("Error storing telemetry seq=%d: %s", reading.sequence_count, e)

        self._count('frames_processed')

        payload = reading.payload
        logger.debug(
            "Processed telemetry seq=%d: Temp=%.2fC, Battery=%.2f%%, Alt=%.2fkm, "
            "Signal=%.2fdB, anomaly=%s",
            reading.sequence_count, payload.temperature, payload.battery,
            payload.altitude, payload.signal, anomaly_type or "none")

        return TelemetryFrame(
            timestamp=time.time(),
            reading=reading,
            anomalous=anomalous,
            anomaly_type=anomaly_type,
            stored=stored,
        )

    def submit(self, data: bytes) -> bool:
        """
        Queue a datagram for a worker without blocking.

        Args:
            data: Raw datagram bytes (a private copy is queued)

        Returns:
            False if the queue was full and the datagram was dropped
        """
        try:
            self._queue.put_nowait(bytes(data))
        except queue.Full:
            self._count('dropped')
            logger.warning("Processing queue full, dropping %d-byte datagram", len(data))
            return False
        return True

    def start(self):
        """Start the worker threads."""
        if self._running:
            return
        self._running = True
        self._threads = [
            threading.Thread(target=self._worker_loop, name=f"telemetry-worker-{i}",
                             daemon=True)
            for i in range(self.workers)
        ]
        for thread in self._threads:
            thread.start()
        logger.info("Started %d telemetry workers", self.workers)

    def stop(self, timeout: float = 5.0):
        """
        Stop the workers after the queued datagrams are processed.

        Args:
            timeout: Maximum seconds to wait for each worker
        """
        if not self._running:
            return
        self._running = False
        for _ in self._threads:
            self._queue.put(_STOP)
        for thread in self._threads:
            thread.join(timeout=timeout)
        self._threads = []

    def join(self):
        """Block until every queued datagram has been processed."""
        self._queue.join()

    def _worker_loop(self):
        """Worker thread loop."""
        while True:
            data = self._queue.get()
            try:
                if data is _STOP:
                    return
                self.process_packet(data)
            except Exception:
                logger.exception("Unexpected error processing telemetry datagram")
            finally:
                self._queue.task_done()

    def _count(self, key: str):
        with self._stats_lock:
            self.stats[key] += 1

    @property
    def pending(self) -> int:
        """Datagrams waiting for a worker."""
        return self._queue.qsize()

    def get_statistics(self) -> Dict:
        """Get processing statistics."""
        with self._stats_lock:
            stats = dict(self.stats)
        return {
            **stats,
            **self.decoder.get_statistics(),
            'pending': self.pending,
        }
