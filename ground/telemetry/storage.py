"""
Telemetry Database
==================

Storage for decoded telemetry readings.
"""

import sqlite3
import threading
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

from .errors import PersistenceError
from .packet_format import DecodedReading


class TelemetryWriter(Protocol):
    """Anything that can persist a decoded reading."""

    def store(self, reading: DecodedReading, anomalous: bool = False,
              anomaly_type: Optional[str] = None) -> None:
        ...


@dataclass
class TelemetryRecord:
    """Stored telemetry row."""
    timestamp: int
    packet_id: int
    packet_seq_ctrl: int
    subsystem_id: int
    temperature: float
    battery: float
    altitude: float
    signal_strength: float
    is_anomaly: bool
    anomaly_type: Optional[str]


class TelemetryDatabase:
    """
    SQLite-based telemetry storage.

    One connection is shared by all processing workers; writes are
    serialized with a lock.
    """

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize database.

        Args:
            db_path: Path to SQLite database (default: in-memory)
        """
        self.db_path = db_path or ':memory:'
        self._lock = threading.Lock()
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._create_tables()

    def _create_tables(self):
        """Create database tables."""
        with self._lock:
            cursor = self.conn.cursor()

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS telemetry (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp INTEGER NOT NULL,
                    packet_id INTEGER NOT NULL,
                    packet_seq_ctrl INTEGER NOT NULL,
                    subsystem_id INTEGER NOT NULL,
                    temperature REAL,
                    battery REAL,
                    altitude REAL,
                    signal_strength REAL,
                    is_anomaly INTEGER NOT NULL DEFAULT 0,
                    anomaly_type TEXT,
                    created_at REAL DEFAULT (strftime('%s', 'now'))
                )
            ''')

            cursor.execute('CREATE INDEX IF NOT EXISTS idx_telemetry_timestamp ON telemetry(timestamp)')
            cursor.execute('CREATE INDEX IF NOT EXISTS idx_telemetry_subsystem ON telemetry(subsystem_id)')

            self.conn.commit()

    def store(self, reading: DecodedReading, anomalous: bool = False,
              anomaly_type: Optional[str] = None):
        """
        Append one telemetry row.

        Args:
            reading: Decoded packet; its parsed header fields are stored as-is
            anomalous: Classification result
            anomaly_type: First out-of-limit parameter, if any

        Raises:
            PersistenceError: if the row could not be written
        """
        payload = reading.payload
        try:
            with self._lock:
                self.conn.execute('''
                    INSERT INTO telemetry
                    (timestamp, packet_id, packet_seq_ctrl, subsystem_id,
                     temperature, battery, altitude, signal_strength,
                     is_anomaly, anomaly_type, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ''', (reading.timestamp, reading.packet_id, reading.packet_seq_ctrl,
                      reading.subsystem_id, payload.temperature, payload.battery,
                      payload.altitude, payload.signal, int(anomalous), anomaly_type,
                      time.time()))
                self.conn.commit()
        except (sqlite3.Error, OverflowError) as e:
            # OverflowError: timestamps above 2**63 - 1 do not fit an SQLite INTEGER
            raise PersistenceError(f"failed to store telemetry: {e}") from e

    def get_latest(self, count: int = 1) -> List[TelemetryRecord]:
        """Get latest telemetry rows, newest first."""
        with self._lock:
            cursor = self.conn.execute('''
                SELECT timestamp, packet_id, packet_seq_ctrl, subsystem_id,
                       temperature, battery, altitude, signal_strength,
                       is_anomaly, anomaly_type
                FROM telemetry
                ORDER BY id DESC
                LIMIT ?
            ''', (count,))
            rows = cursor.fetchall()

        return [
            TelemetryRecord(
                timestamp=row[0],
                packet_id=row[1],
                packet_seq_ctrl=row[2],
                subsystem_id=row[3],
                temperature=row[4],
                battery=row[5],
                altitude=row[6],
                signal_strength=row[7],
                is_anomaly=bool(row[8]),
                anomaly_type=row[9],
            )
            for row in rows
        ]

    def count(self) -> int:
        """Number of stored rows."""
        with self._lock:
            return self.conn.execute('SELECT COUNT(*) FROM telemetry').fetchone()[0]

    def count_anomalies(self) -> int:
        """Number of stored rows flagged anomalous."""
        with self._lock:
            return self.conn.execute(
                'SELECT COUNT(*) FROM telemetry WHERE is_anomaly = 1').fetchone()[0]

    def get_statistics(self) -> Dict:
        """Get database statistics."""
        with self._lock:
            cursor = self.conn.cursor()

            cursor.execute('SELECT COUNT(*), SUM(is_anomaly) FROM telemetry')
            total, anomalies = cursor.fetchone()

            cursor.execute('''
                SELECT anomaly_type, COUNT(*) FROM telemetry
                WHERE anomaly_type IS NOT NULL
                GROUP BY anomaly_type
            ''')
            by_type = dict(cursor.fetchall())

        return {
            'total_records': total,
            'anomalies': anomalies or 0,
            'by_anomaly_type': by_type,
        }

    def close(self):
        """Close database connection."""
        with self._lock:
            self.conn.close()
