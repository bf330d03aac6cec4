"""
FoundationDB status model.

Pydantic models for the status document stored at \\xff\\xff/status/json.
Only the parts of the document that feed metrics are modelled; unknown
fields are ignored so newer server versions keep parsing.

Notes:
- Every section and every leaf is optional. FoundationDB omits fields it
  cannot compute (during recovery, for unreachable processes), and an
  omitted value must stay None rather than become 0.
- Scalars are strict: "123" is not an int and 1 is not a bool. Ints are
  accepted where floats are expected.
- Models are frozen and keyed sections are read-only mappings; a Status is
  built once per poll and then only read.
- The parser in fdb_exporter.parser is the only intended constructor for
  documents coming off the wire. Tests build models directly.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Annotated, TypeVar

from pydantic import AfterValidator, AliasChoices, BaseModel, ConfigDict, Field, PlainValidator, Strict

from fdb_exporter.address import NetworkAddress

# Strict scalar aliases used for every leaf field
Int = Annotated[int, Strict()]
Float = Annotated[float, Strict()]
Bool = Annotated[bool, Strict()]
Str = Annotated[str, Strict()]
Address = Annotated[NetworkAddress, PlainValidator(NetworkAddress.coerce)]
# Process addresses always carry a port
Endpoint = Annotated[NetworkAddress, PlainValidator(NetworkAddress.coerce_endpoint)]

V = TypeVar("V")
# Keyed sections are exposed read-only
ReadOnlyMap = Annotated[Mapping[str, V], AfterValidator(MappingProxyType)]


class StatusModel(BaseModel):
    """Base for all status models: frozen, extra fields ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


# =============================================================================
# Shared shapes
# =============================================================================


class Rate(StatusModel):
    """
    Rate record as computed by FoundationDB.

    hz is already a per-second rate. counter is the raw running total, which
    resets whenever the reporting process restarts.
    """

    hz: Float | None = None
    counter: Int | None = None
    roughness: Float | None = None


class LatencyStatistics(StatusModel):
    """Latency distribution over the last status interval, in seconds."""

    count: Int | None = None
    min: Float | None = None
    max: Float | None = None
    mean: Float | None = None
    median: Float | None = None
    p25: Float | None = None
    p90: Float | None = None
    p95: Float | None = None
    p99: Float | None = None
    p99_9: Float | None = Field(default=None, alias="p99.9")


class Lag(StatusModel):
    """Replication lag expressed in seconds and versions."""

    seconds: Float | None = None
    versions: Int | None = None


class GrvLatencyStatistics(StatusModel):
    """GRV latency per transaction priority."""

    default: LatencyStatistics | None = None
    batch: LatencyStatistics | None = None


class Named(StatusModel):
    """Small object that carries a name, e.g. performance_limited_by."""

    name: Str | None = None
    description: Str | None = None


# =============================================================================
# Cluster description
# =============================================================================


class RecoveryState(StatusModel):
    """jq: .cluster.recovery_state"""

    name: Str | None = None
    description: Str | None = None
    active_generations: Int | None = None


class FaultTolerance(StatusModel):
    """jq: .cluster.fault_tolerance"""

    max_zone_failures_without_losing_data: Int | None = None
    max_zone_failures_without_losing_availability: Int | None = None


class ClusterDescription(StatusModel):
    """
    Identifying metadata for the cluster.

    Assembled from several places in the document (see
    fdb_exporter.parser.DESCRIPTION_SOURCES).
    """

    generation: Int | None = None
    protocol_version: Str | None = None
    recovery_state: RecoveryState | None = None
    database_available: Bool | None = None
    database_healthy: Bool | None = None
    quorum_reachable: Bool | None = None
    degraded_processes: Int | None = None
    fault_tolerance: FaultTolerance | None = None


# =============================================================================
# Processes
# =============================================================================


class ProcessCpu(StatusModel):
    usage_cores: Float | None = None


class ProcessMemory(StatusModel):
    used_bytes: Int | None = None
    available_bytes: Int | None = None
    limit_bytes: Int | None = None
    unused_allocated_memory: Int | None = None


class ProcessDisk(StatusModel):
    busy: Float | None = None
    free_bytes: Int | None = None
    total_bytes: Int | None = None
    reads: Rate | None = None
    writes: Rate | None = None


class ProcessNetwork(StatusModel):
    current_connections: Int | None = None
    megabits_received: Rate | None = None
    megabits_sent: Rate | None = None
    connection_errors: Rate | None = None


class ProcessRole(StatusModel):
    """
    One role held by a process.

    Storage, log and proxy roles report different fields; the ones that do
    not apply to a given role are simply None.
    """

    role: Str
    id: Str | None = None

    # storage and log
    kvstore_used_bytes: Int | None = None
    kvstore_free_bytes: Int | None = None
    kvstore_available_bytes: Int | None = None
    kvstore_total_bytes: Int | None = None
    input_bytes: Rate | None = None
    durable_bytes: Rate | None = None

    # storage
    stored_bytes: Int | None = None
    query_queue_max: Int | None = None
    data_lag: Lag | None = None
    durability_lag: Lag | None = None
    read_latency_statistics: LatencyStatistics | None = None

    # log
    queue_disk_used_bytes: Int | None = None
    queue_disk_free_bytes: Int | None = None
    queue_disk_available_bytes: Int | None = None
    queue_disk_total_bytes: Int | None = None

    # commit proxy
    commit_latency_statistics: LatencyStatistics | None = None

    # grv proxy
    grv_latency_statistics: GrvLatencyStatistics | None = None


class Process(StatusModel):
    """jq: .cluster.processes[<process_id>]"""

    address: Endpoint | None = None
    class_type: Str | None = None
    machine_id: Str | None = None
    version: Str | None = None
    uptime_seconds: Float | None = None
    excluded: Bool | None = None
    degraded: Bool | None = None
    cpu: ProcessCpu | None = None
    memory: ProcessMemory | None = None
    disk: ProcessDisk | None = None
    network: ProcessNetwork | None = None
    roles: tuple[ProcessRole, ...] = ()

    def role_names(self) -> list[str]:
        """Distinct role names held by this process, sorted."""
        return sorted({r.role for r in self.roles})


# =============================================================================
# Machines
# =============================================================================


class MachineCpu(StatusModel):
    logical_core_utilization: Float | None = None


class MachineMemory(StatusModel):
    committed_bytes: Int | None = None
    free_bytes: Int | None = None
    total_bytes: Int | None = None


class MachineNetwork(StatusModel):
    megabits_received: Rate | None = None
    megabits_sent: Rate | None = None
    tcp_segments_retransmitted: Rate | None = None


class Machine(StatusModel):
    """jq: .cluster.machines[<machine_id>]"""

    address: Address | None = None
    excluded: Bool | None = None
    contributing_workers: Int | None = None
    cpu: MachineCpu | None = None
    memory: MachineMemory | None = None
    network: MachineNetwork | None = None


# =============================================================================
# Data distribution
# =============================================================================


class MovingData(StatusModel):
    """jq: .cluster.data.moving_data"""

    highest_priority: Int | None = None
    in_flight_bytes: Int | None = None
    in_queue_bytes: Int | None = None
    # reset whenever data distributor is re-recruited
    total_written_bytes: Int | None = None


class DataState(StatusModel):
    """jq: .cluster.data.state"""

    healthy: Bool | None = None
    name: Str | None = None
    description: Str | None = None
    min_replicas_remaining: Int | None = None


class ClusterData(StatusModel):
    """jq: .cluster.data"""

    total_kv_size_bytes: Int | None = Field(
        default=None,
        validation_alias=AliasChoices("total_kv_size_bytes", "total_kvstore_used_bytes"),
    )
    total_disk_used_bytes: Int | None = None
    average_partition_size_bytes: Int | None = None
    partitions_count: Int | None = None
    least_operating_space_bytes_log_server: Int | None = None
    least_operating_space_bytes_storage_server: Int | None = None
    moving_data: MovingData | None = None
    state: DataState | None = None


# =============================================================================
# Workload, latency probe, QoS
# =============================================================================


class WorkloadOperations(StatusModel):
    reads: Rate | None = None
    writes: Rate | None = None
    read_requests: Rate | None = None


class WorkloadTransactions(StatusModel):
    started: Rate | None = None
    committed: Rate | None = None
    conflicted: Rate | None = None
    rejected_for_queued_too_long: Rate | None = None


class WorkloadBytes(StatusModel):
    read: Rate | None = None
    written: Rate | None = None


class WorkloadKeys(StatusModel):
    read: Rate | None = None


class Workload(StatusModel):
    """jq: .cluster.workload"""

    operations: WorkloadOperations | None = None
    transactions: WorkloadTransactions | None = None
    bytes: WorkloadBytes | None = None
    keys: WorkloadKeys | None = None


class LatencyProbe(StatusModel):
    """jq: .cluster.latency_probe"""

    read_seconds: Float | None = None
    commit_seconds: Float | None = None
    transaction_start_seconds: Float | None = None
    immediate_priority_transaction_start_seconds: Float | None = None
    batch_priority_transaction_start_seconds: Float | None = None


class QoS(StatusModel):
    """jq: .cluster.qos"""

    worst_queue_bytes_log_server: Int | None = None
    worst_queue_bytes_storage_server: Int | None = None
    transactions_per_second_limit: Float | None = None
    released_transactions_per_second: Float | None = None
    worst_data_lag_storage_server: Lag | None = None
    worst_durability_lag_storage_server: Lag | None = None
    performance_limited_by: Named | None = None


# =============================================================================
# Backup agents and perpetual storage wiggle
# =============================================================================


class BackupInstance(StatusModel):
    """jq: .cluster.layers.backup.instances[<instance_id>]"""

    version: Str | None = None
    configured_workers: Int | None = None
    main_thread_cpu_seconds: Float | None = None
    process_cpu_seconds: Float | None = None
    memory_usage: Int | None = None
    resident_size: Int | None = None
    last_updated: Float | None = None


class BackupTag(StatusModel):
    """jq: .cluster.layers.backup.tags[<tag>]"""

    current_status: Str | None = None
    running_backup: Bool | None = None
    running_backup_is_restorable: Bool | None = None
    last_restorable_version: Int | None = None
    last_restorable_seconds_behind: Float | None = None
    range_bytes_written: Int | None = None
    mutation_log_bytes_written: Int | None = None


class Backup(StatusModel):
    """
    jq: .cluster.layers.backup

    Reported by the backup agents through the layer status; absent when no
    agent has ever run against the cluster.
    """

    instances_running: Int | None = None
    total_workers: Int | None = None
    paused: Bool | None = None
    last_updated: Float | None = None
    instances: ReadOnlyMap[BackupInstance] | None = None
    tags: ReadOnlyMap[BackupTag] | None = None


class WiggleStats(StatusModel):
    """Wiggle progress for one region; timestamps are unix seconds."""

    last_round_start_timestamp: Float | None = None
    last_round_finish_timestamp: Float | None = None
    smoothed_round_seconds: Float | None = None
    finished_round: Int | None = None
    last_wiggle_start_timestamp: Float | None = None
    last_wiggle_finish_timestamp: Float | None = None
    smoothed_wiggle_seconds: Float | None = None
    finished_wiggle: Int | None = None


class StorageWiggler(StatusModel):
    """jq: .cluster.storage_wiggler"""

    primary: WiggleStats | None = None
    remote: WiggleStats | None = None
    wiggle_server_ids: tuple[Str, ...] | None = None


# =============================================================================
# Whole document
# =============================================================================


class Status(StatusModel):
    """
    One parsed status document.

    Sections are independent: any of them may be None when the cluster
    omitted it or it was malformed.
    """

    cluster_description: ClusterDescription | None = None
    processes: ReadOnlyMap[Process] | None = None
    machines: ReadOnlyMap[Machine] | None = None
    data: ClusterData | None = None
    workload: Workload | None = None
    latency_probe: LatencyProbe | None = None
    qos: QoS | None = None
    backup: Backup | None = None
    storage_wiggler: StorageWiggler | None = None


SECTION_NAMES = (
    "cluster_description",
    "processes",
    "machines",
    "data",
    "workload",
    "latency_probe",
    "qos",
    "backup",
    "storage_wiggler",
)
