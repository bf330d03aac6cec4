"""
Snapshot types and the copy-on-write SnapshotStore.

The store holds a single reference to an immutable Snapshot. publish()
builds the visible value completely and then swaps the reference in one
assignment; current() just reads it. Readers therefore see either the old
or the new snapshot, never a mix, and never wait on a refresh.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from fdb_exporter.metrics.types import MetricSample
from fdb_exporter.parser import ParseAnomaly


class SnapshotStatus(str, Enum):
    """Outcome of the refresh that produced a snapshot."""

    OK = "ok"
    STALE = "stale"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class Snapshot:
    """
    The externally visible result of one refresh cycle.

    Attributes:
        samples: Metric samples, empty unless status is OK
        sequence: Monotonic refresh counter (0 before any refresh)
        refreshed_at: When the producing refresh started
        status: OK, STALE (refresh failed) or UNAVAILABLE (never succeeded)
        error: Failure cause for STALE/UNAVAILABLE snapshots
        anomalies: Fields ignored while parsing the document
    """

    samples: tuple[MetricSample, ...] = ()
    sequence: int = 0
    refreshed_at: datetime | None = None
    status: SnapshotStatus = SnapshotStatus.UNAVAILABLE
    error: str | None = None
    anomalies: tuple[ParseAnomaly, ...] = ()

    @property
    def available(self) -> bool:
        """True once a refresh has succeeded at least once."""
        return self.status is not SnapshotStatus.UNAVAILABLE

    @classmethod
    def ok(
        cls,
        samples: list[MetricSample],
        sequence: int,
        refreshed_at: datetime,
        anomalies: tuple[ParseAnomaly, ...] = (),
    ) -> "Snapshot":
        return cls(
            samples=tuple(samples),
            sequence=sequence,
            refreshed_at=refreshed_at,
            status=SnapshotStatus.OK,
            anomalies=anomalies,
        )

    @classmethod
    def stale(cls, sequence: int, refreshed_at: datetime, error: str) -> "Snapshot":
        return cls(sequence=sequence, refreshed_at=refreshed_at, status=SnapshotStatus.STALE, error=error)


NOT_AVAILABLE = Snapshot()


class SnapshotStore:
    """
    Single-writer, many-reader holder for the visible snapshot.

    Until the first OK snapshot is published, current() reports
    UNAVAILABLE (carrying the last failure, if any) so scrapers can tell
    "never worked" apart from "worked, now failing".

    Example:
        store = SnapshotStore()
        store.publish(Snapshot.ok(samples, sequence=1, refreshed_at=now))
        snapshot = store.current()
    """

    def __init__(self) -> None:
        self._visible: Snapshot = NOT_AVAILABLE
        self._ever_ok = False

    def publish(self, snapshot: Snapshot) -> None:
        """Atomically replace the visible snapshot."""
        if snapshot.status is SnapshotStatus.OK:
            self._ever_ok = True
        elif not self._ever_ok:
            snapshot = replace(snapshot, status=SnapshotStatus.UNAVAILABLE, samples=())
        self._visible = snapshot

    def current(self) -> Snapshot:
        """Return the visible snapshot without blocking."""
        return self._visible
