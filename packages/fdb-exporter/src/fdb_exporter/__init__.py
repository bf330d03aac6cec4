"""
FoundationDB status exporter.

This package polls the FoundationDB cluster status document and serves the
metrics derived from it to Prometheus. It includes:

- Status model and lenient parser for \\xff\\xff/status/json
- Declarative metric mapping rules and a pure mapper
- SnapshotStore with copy-on-write publication
- RefreshLoop that keeps the store current
- Fetchers using the foundationdb binding or fdbcli
"""

__version__ = "0.1.0"

from fdb_exporter.errors import FetchError, MappingFault, ParseError
from fdb_exporter.fetcher import FdbcliStatusFetcher, FdbStatusFetcher, StatusFetcherProtocol
from fdb_exporter.metrics.mapper import map_status, validate_samples
from fdb_exporter.metrics.types import MetricFamily, MetricKind, MetricSample
from fdb_exporter.parser import ParseAnomaly, ParseResult, parse_status
from fdb_exporter.refresh import RefreshLoop, RefreshState
from fdb_exporter.snapshot import Snapshot, SnapshotStatus, SnapshotStore
from fdb_exporter.types import Status

__all__ = [
    # Errors
    "FetchError",
    "ParseError",
    "MappingFault",
    # Fetchers
    "StatusFetcherProtocol",
    "FdbStatusFetcher",
    "FdbcliStatusFetcher",
    # Parsing
    "Status",
    "ParseAnomaly",
    "ParseResult",
    "parse_status",
    # Mapping
    "MetricFamily",
    "MetricKind",
    "MetricSample",
    "map_status",
    "validate_samples",
    # Snapshots and refresh
    "Snapshot",
    "SnapshotStatus",
    "SnapshotStore",
    "RefreshLoop",
    "RefreshState",
]
