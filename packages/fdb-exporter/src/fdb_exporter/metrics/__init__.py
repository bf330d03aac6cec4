"""
Metric mapping for FoundationDB status.

Exports:
    MetricFamily, MetricKind, MetricSample: sample types
    map_status: Status -> list of samples
    validate_samples: label invariant check

The Prometheus collector lives in fdb_exporter.metrics.collector and is
imported directly where needed.
"""

from fdb_exporter.metrics.mapper import map_status, validate_samples
from fdb_exporter.metrics.types import MetricFamily, MetricKind, MetricSample

__all__ = ["MetricFamily", "MetricKind", "MetricSample", "map_status", "validate_samples"]
