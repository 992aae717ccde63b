import socket
import threading
import time

import pytest

from ground.ingestion.config import IngestionConfig, StorageConfig
from ground.ingestion.service import IngestionService
from ground.telemetry.anomaly import AnomalyThresholds
from ground.telemetry.errors import BindError, TransportError
from ground.telemetry.metrics import TelemetryMetrics
from ground.telemetry.packet_encoder import TelemetryEncoder, TMPacketConfig
from ground.telemetry.receiver import UDPReceiver
from ground.telemetry.storage import TelemetryDatabase
from ground.telemetry.telemetry_processor import TelemetryProcessor
from simulation.core.config import GeneratorConfig
from simulation.core.sender import TelemetrySender
from simulation.sensors.payload_generator import NORMAL_BANDS, AnomalyArchetype, PayloadGenerator


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class Link:
    """Receiver + processor on an ephemeral loopback port."""

    def __init__(self, thresholds=None):
        self.metrics = TelemetryMetrics()
        self.db = TelemetryDatabase()
        kwargs = {} if thresholds is None else {'thresholds': thresholds}
        self.processor = TelemetryProcessor(self.metrics, self.db, workers=2, **kwargs)
        self.receiver = UDPReceiver(self.processor, bind_host="127.0.0.1", port=0,
                                    poll_interval=0.05)
        self.receiver.bind()
        self.processor.start()
        self.thread = threading.Thread(target=self.receiver.serve_forever, daemon=True)
        self.thread.start()

    @property
    def port(self):
        return self.receiver.address[1]

    def sender(self, sequence_count=0):
        config = GeneratorConfig(target_host="127.0.0.1", target_port=self.port,
                                 period_s=0.0, retry_pause_s=0.0)
        encoder = TelemetryEncoder(TMPacketConfig(sequence_count=sequence_count))
        return TelemetrySender(config, generator=PayloadGenerator(seed=7), encoder=encoder)

    def close(self):
        self.receiver.shutdown()
        self.thread.join(timeout=2.0)
        self.processor.stop()
        self.db.close()


@pytest.fixture
def link():
    lnk = Link()
    yield lnk
    lnk.close()


def test_low_battery_packet_end_to_end(link):
    sender = link.sender(sequence_count=5)
    payload = sender.generator.make_payload(AnomalyArchetype.LOW_BATTERY)
    assert sender.send_once(payload) == 5
    sender.close()

    assert _wait_for(lambda: link.db.count() == 1)
    assert link.metrics.packet_count == 1

    row = link.db.get_latest(1)[0]
    assert 20.0 <= row.battery < 40.0
    assert row.packet_seq_ctrl & 0x3FFF == 5
    assert row.packet_id == 0x0801
    assert row.subsystem_id == 0x0001
    # Low battery is off the nominal band but inside the default alarm limits
    assert row.is_anomaly is False
    assert link.metrics.anomaly_count == 0


def test_low_battery_flagged_with_nominal_band_limits():
    lnk = Link(thresholds=AnomalyThresholds(
        temperature=NORMAL_BANDS.temperature,
        battery=NORMAL_BANDS.battery,
        altitude=NORMAL_BANDS.altitude,
        signal=NORMAL_BANDS.signal,
    ))
    try:
        sender = lnk.sender(sequence_count=5)
        sender.send_once(sender.generator.make_payload(AnomalyArchetype.LOW_BATTERY))
        sender.close()

        assert _wait_for(lambda: lnk.db.count() == 1)
        assert lnk.metrics.packet_count == 1
        assert lnk.metrics.anomaly_count == 1
        row = lnk.db.get_latest(1)[0]
        assert row.is_anomaly is True
        assert row.anomaly_type == 'battery'
        assert 20.0 <= row.battery < 40.0
    finally:
        lnk.close()


def test_sender_run_loop_sends_sequential_packets(link):
    sender = link.sender()
    sender.run(max_packets=10)
    sender.close()

    assert sender.stats['packets_sent'] == 10
    assert _wait_for(lambda: link.db.count() == 10)
    seqs = sorted(r.packet_seq_ctrl & 0x3FFF for r in link.db.get_latest(10))
    assert seqs == list(range(10))


def test_short_datagram_is_dropped_by_receiver(link):
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        s.sendto(b"\x00" * 16, ("127.0.0.1", link.port))

    assert _wait_for(lambda: link.processor.get_statistics()['decode_errors'] == 1)
    assert link.metrics.packet_count == 0
    assert link.db.count() == 0


def test_bind_conflict_raises_bind_error(link):
    other = UDPReceiver(link.processor, bind_host="127.0.0.1", port=link.port)
    with pytest.raises(BindError):
        other.bind()


def test_sender_write_failure_pauses_and_continues(monkeypatch):
    config = GeneratorConfig(target_host="127.0.0.1", target_port=9, period_s=0.0,
                             retry_pause_s=0.0)
    sender = TelemetrySender(config, generator=PayloadGenerator(seed=1))
    calls = []

    def flaky_send_once(payload=None):
        calls.append(len(calls))
        if len(calls) == 2:
            raise TransportError("network unreachable")
        return len(calls)

    monkeypatch.setattr(sender, "send_once", flaky_send_once)
    sender.run(max_packets=4)
    assert len(calls) == 4


class FlakySocket:
    """Connected socket whose send fails on the listed calls."""

    def __init__(self, sock, fail_on):
        self._sock = sock
        self.fail_on = set(fail_on)
        self.calls = 0

    def send(self, data):
        self.calls += 1
        if self.calls in self.fail_on:
            raise OSError("network is unreachable")
        return self._sock.send(data)

    def close(self):
        self._sock.close()


class RecordingStop:
    """Stop event that records wait timeouts without sleeping."""

    def __init__(self):
        self.waits = []

    def is_set(self):
        return False

    def set(self):
        pass

    def wait(self, timeout=None):
        self.waits.append(timeout)
        return False


def test_sender_socket_failure_loses_packet_and_pauses(link):
    config = GeneratorConfig(target_host="127.0.0.1", target_port=link.port, period_s=0.0)
    assert config.retry_pause_s == 5.0
    sender = TelemetrySender(config, generator=PayloadGenerator(seed=3))
    sender.connect()
    sender._sock = FlakySocket(sender._sock, fail_on={2})
    sender._stop = RecordingStop()

    sender.run(max_packets=4)
    sender.close()

    assert sender.stats['send_errors'] == 1
    assert sender.stats['packets_sent'] == 3
    assert sender._stop.waits.count(5.0) == 1
    assert sender._stop.waits[1] == 5.0
    # The failed packet's sequence count is consumed, not retried
    assert sender.encoder.get_sequence_count() == 4
    assert _wait_for(lambda: link.db.count() == 3)
    seqs = sorted(r.packet_seq_ctrl & 0x3FFF for r in link.db.get_latest(3))
    assert seqs == [0, 2, 3]


def test_send_once_wraps_socket_error():
    config = GeneratorConfig(target_host="127.0.0.1", target_port=9)
    sender = TelemetrySender(config, generator=PayloadGenerator(seed=1))
    sender.connect()
    sender._sock = FlakySocket(sender._sock, fail_on={1})
    with pytest.raises(TransportError):
        sender.send_once()
    assert sender.stats['send_errors'] == 1
    assert sender.encoder.get_sequence_count() == 1
    sender.close()


def test_ingestion_service_wiring(tmp_path):
    config = IngestionConfig(bind_host="127.0.0.1", udp_port=0, workers=2,
                             storage=StorageConfig(path=str(tmp_path / "t.db")))
    service = IngestionService(config)
    service.start()
    thread = threading.Thread(target=service.serve_forever, daemon=True)
    thread.start()
    try:
        sender = TelemetrySender(GeneratorConfig(target_host="127.0.0.1",
                                                 target_port=service.receiver.address[1],
                                                 period_s=0.0))
        sender.run(max_packets=5)
        sender.close()
        assert _wait_for(lambda: service.database.count() == 5)
        assert service.metrics.packet_count == 5
    finally:
        service.receiver.shutdown()
        thread.join(timeout=2.0)
        service.stop()
