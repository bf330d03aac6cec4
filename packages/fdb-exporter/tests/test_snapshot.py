"""Tests for Snapshot and SnapshotStore."""

import threading
from datetime import datetime, timezone

from fdb_exporter.metrics.rules import TOTAL_KV_SIZE
from fdb_exporter.metrics.types import MetricSample
from fdb_exporter.snapshot import NOT_AVAILABLE, Snapshot, SnapshotStatus, SnapshotStore

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _ok(sequence, value=1.0):
    return Snapshot.ok([MetricSample(TOTAL_KV_SIZE, (), value)], sequence, NOW)


class TestSnapshotStore:
    """Tests for publication and visibility."""

    def test_starts_unavailable(self):
        store = SnapshotStore()

        snapshot = store.current()
        assert snapshot is NOT_AVAILABLE
        assert snapshot.status is SnapshotStatus.UNAVAILABLE
        assert not snapshot.available
        assert snapshot.sequence == 0

    def test_failures_before_first_ok_stay_unavailable(self):
        store = SnapshotStore()

        store.publish(Snapshot.stale(1, NOW, "Status fetch failed (timeout)"))

        snapshot = store.current()
        assert snapshot.status is SnapshotStatus.UNAVAILABLE
        assert snapshot.sequence == 1
        assert snapshot.error == "Status fetch failed (timeout)"

    def test_ok_becomes_visible(self):
        store = SnapshotStore()

        store.publish(_ok(1))

        snapshot = store.current()
        assert snapshot.status is SnapshotStatus.OK
        assert snapshot.available
        assert len(snapshot.samples) == 1

    def test_failure_after_ok_is_stale(self):
        store = SnapshotStore()
        store.publish(_ok(1))

        store.publish(Snapshot.stale(2, NOW, "boom"))

        snapshot = store.current()
        assert snapshot.status is SnapshotStatus.STALE
        assert snapshot.available
        assert snapshot.samples == ()
        assert snapshot.sequence == 2

    def test_recovery_after_stale(self):
        store = SnapshotStore()
        store.publish(_ok(1))
        store.publish(Snapshot.stale(2, NOW, "boom"))

        store.publish(_ok(3, value=5.0))

        snapshot = store.current()
        assert snapshot.status is SnapshotStatus.OK
        assert snapshot.samples[0].value == 5.0
        assert snapshot.error is None

    def test_readers_never_see_mixed_snapshots(self):
        """Each reader sees sequence and sample value from one publish."""
        store = SnapshotStore()
        store.publish(_ok(1, value=1.0))
        stop = threading.Event()
        mismatches = []

        def reader():
            while not stop.is_set():
                snapshot = store.current()
                if snapshot.samples[0].value != float(snapshot.sequence):
                    mismatches.append(snapshot.sequence)

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for sequence in range(2, 2000):
            store.publish(_ok(sequence, value=float(sequence)))
        stop.set()
        for t in threads:
            t.join()

        assert mismatches == []
        assert store.current().sequence == 1999
