"""Prometheus exposition for snapshots and exporter self-metrics."""

from itertools import groupby

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily
from prometheus_client.registry import Collector

from fdb_exporter.metrics.types import MetricKind, MetricSample
from fdb_exporter.snapshot import SnapshotStatus, SnapshotStore


def metric_families(samples: list[MetricSample]):
    """
    Group samples into prometheus_client metric families.

    Samples of one family are contiguous after a stable sort on name, so each
    family (and its TYPE/HELP lines) is emitted exactly once.
    """
    ordered = sorted(samples, key=lambda s: s.name)
    for _, group in groupby(ordered, key=lambda s: s.name):
        group = list(group)
        family = group[0].family
        cls = CounterMetricFamily if family.kind is MetricKind.COUNTER else GaugeMetricFamily
        metric = cls(family.name, family.documentation, labels=list(family.label_names))
        for sample in group:
            metric.add_metric(list(sample.label_values), sample.value)
        yield metric


class SnapshotCollector(Collector):
    """
    Custom collector reading the SnapshotStore at scrape time.

    Reads the visible snapshot once per collect() call, so every family in
    one scrape comes from the same snapshot.
    """

    def __init__(self, store: SnapshotStore) -> None:
        self.store = store

    def collect(self):
        snapshot = self.store.current()

        yield from metric_families(list(snapshot.samples))

        up = GaugeMetricFamily("fdb_exporter_up", "Whether the last refresh produced fresh metrics")
        up.add_metric([], 1.0 if snapshot.status is SnapshotStatus.OK else 0.0)
        yield up

        sequence = GaugeMetricFamily("fdb_exporter_snapshot_sequence", "Sequence number of the visible snapshot")
        sequence.add_metric([], float(snapshot.sequence))
        yield sequence

        if snapshot.refreshed_at is not None:
            refreshed = GaugeMetricFamily(
                "fdb_exporter_last_refresh_timestamp_seconds", "Unix time of the visible snapshot's refresh"
            )
            refreshed.add_metric([], snapshot.refreshed_at.timestamp())
            yield refreshed

        anomalies = GaugeMetricFamily(
            "fdb_exporter_parse_anomalies", "Fields ignored while parsing the last status document"
        )
        anomalies.add_metric([], float(len(snapshot.anomalies)))
        yield anomalies


class RefreshMetrics:
    """Counters and timings recorded by the RefreshLoop."""

    def __init__(self, registry: CollectorRegistry) -> None:
        self.refreshes = Counter(
            "fdb_exporter_refresh",
            "Refresh cycles by outcome",
            ["outcome"],
            registry=registry,
        )
        self.errors = Counter(
            "fdb_exporter_errors",
            "Refresh failures by cause",
            ["cause"],
            registry=registry,
        )
        self.duration = Histogram(
            "fdb_exporter_refresh_duration_seconds",
            "Time spent fetching, parsing and mapping one status document",
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
            registry=registry,
        )

    def record_refresh(self, outcome: str, seconds: float) -> None:
        """Record one finished refresh cycle."""
        self.refreshes.labels(outcome=outcome).inc()
        self.duration.observe(seconds)

    def record_error(self, cause: str) -> None:
        """Record one failed refresh by cause (a FetchError cause, parse, mapping, internal)."""
        self.errors.labels(cause=cause).inc()


def build_registry(store: SnapshotStore) -> tuple[CollectorRegistry, RefreshMetrics]:
    """Create a registry holding the snapshot collector and refresh metrics."""
    registry = CollectorRegistry()
    registry.register(SnapshotCollector(store))
    return registry, RefreshMetrics(registry)


def render(registry: CollectorRegistry) -> bytes:
    """Render the registry in the Prometheus text format."""
    return generate_latest(registry)
