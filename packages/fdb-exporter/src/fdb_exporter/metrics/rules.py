"""
Mapping rule tables.

Every leaf measurement is declared exactly once as a Rule: the family it
feeds, the dotted attribute path it reads relative to its scope object,
any fixed label values it adds, and an optional scale factor.

Scopes and the label keys they contribute:
- cluster:  none
- process:  machine_id, process_id, class_type, address
- role:     process labels + role_id
- machine:  machine_id, address
- backup:   tag (per tag) or instance_id (per backup agent)
- wiggle:   region (primary or remote)

Counter decisions per field:
- workload *.counter values are running totals that restart with the
  reporting processes; they are exposed as counters and left to rate().
- data.moving_data.total_written_bytes resets whenever the data
  distributor is re-recruited; also a counter.
- Backup bytes written and agent CPU seconds, and the wiggle finished_*
  tallies, only grow between restarts; counters.
- Everything else, including the *.hz rates FoundationDB already computes,
  is a gauge.
"""

from dataclasses import dataclass

from fdb_exporter.metrics.types import MetricFamily, MetricKind

PROCESS_LABELS = ("machine_id", "process_id", "class_type", "address")
ROLE_LABELS = PROCESS_LABELS + ("role_id",)
MACHINE_LABELS = ("machine_id", "address")

MEGABITS_TO_BYTES = 1_000_000 / 8

# (model field, quantile label value)
QUANTILES = (
    ("median", "0.5"),
    ("p90", "0.9"),
    ("p95", "0.95"),
    ("p99", "0.99"),
    ("p99_9", "0.999"),
)

# Ordered data distribution states, worst first. The metric value is the
# position in this list; names FoundationDB adds later map to "unknown".
DATA_STATES = (
    "initializing",
    "missing_data",
    "healing",
    "optimizing_team_collections",
    "healthy_populating_region",
    "healthy_repartitioning",
    "healthy_removing_server",
    "healthy_rebalancing",
    "healthy",
    "healthy_perpetual_wiggle",
    "unknown",
)


@dataclass(frozen=True)
class Rule:
    """
    One leaf measurement.

    Attributes:
        family: Family the sample belongs to
        source: Dotted attribute path relative to the scope object
        static_labels: Label values appended after the scope's labels
        scale: Factor applied to the source value (unit conversion)
    """

    family: MetricFamily
    source: str
    static_labels: tuple[str, ...] = ()
    scale: float | None = None


def _gauge(name: str, documentation: str, labels: tuple[str, ...] = ()) -> MetricFamily:
    return MetricFamily(name, documentation, MetricKind.GAUGE, labels)


def _counter(name: str, documentation: str, labels: tuple[str, ...] = ()) -> MetricFamily:
    return MetricFamily(name, documentation, MetricKind.COUNTER, labels)


# =============================================================================
# Cluster description
# =============================================================================

CLUSTER_GENERATION = _gauge("fdb_cluster_generation", "Cluster generation, bumped on every recovery")
DATABASE_AVAILABLE = _gauge("fdb_cluster_database_available", "Whether the database is available")
DATABASE_HEALTHY = _gauge("fdb_cluster_database_healthy", "Whether the database reports itself healthy")
QUORUM_REACHABLE = _gauge(
    "fdb_cluster_coordinators_quorum_reachable", "Whether a quorum of coordinators is reachable"
)
DEGRADED_PROCESSES = _gauge("fdb_cluster_degraded_processes", "Number of degraded processes")
ACTIVE_GENERATIONS = _gauge(
    "fdb_cluster_recovery_active_generations", "Number of active generations during recovery"
)
FAULT_TOLERANCE_DATA = _gauge(
    "fdb_cluster_fault_tolerance_max_zone_failures_without_losing_data",
    "Zone failures the cluster can absorb without losing data",
)
FAULT_TOLERANCE_AVAILABILITY = _gauge(
    "fdb_cluster_fault_tolerance_max_zone_failures_without_losing_availability",
    "Zone failures the cluster can absorb without losing availability",
)
RECOVERY_STATE = _gauge(
    "fdb_cluster_recovery_state", "Current recovery state, 1 for the reported name", ("name",)
)
PROCESS_COUNT = _gauge("fdb_cluster_process_count", "Number of processes holding each role", ("role",))

DESCRIPTION_RULES = (
    Rule(CLUSTER_GENERATION, "generation"),
    Rule(DATABASE_AVAILABLE, "database_available"),
    Rule(DATABASE_HEALTHY, "database_healthy"),
    Rule(QUORUM_REACHABLE, "quorum_reachable"),
    Rule(DEGRADED_PROCESSES, "degraded_processes"),
    Rule(ACTIVE_GENERATIONS, "recovery_state.active_generations"),
    Rule(FAULT_TOLERANCE_DATA, "fault_tolerance.max_zone_failures_without_losing_data"),
    Rule(FAULT_TOLERANCE_AVAILABILITY, "fault_tolerance.max_zone_failures_without_losing_availability"),
)

# =============================================================================
# Data distribution
# =============================================================================

AVERAGE_PARTITION_SIZE = _gauge(
    "fdb_cluster_average_partition_size_bytes", "Average size for a partition in the cluster"
)
LEAST_SPACE_LOG_SERVER = _gauge(
    "fdb_cluster_least_space_log_server_bytes", "Operating space left on the log server with least space"
)
LEAST_SPACE_STORAGE_SERVER = _gauge(
    "fdb_cluster_least_space_storage_server_bytes",
    "Operating space left on the storage server with least space",
)
PARTITION_COUNT = _gauge("fdb_cluster_partition_count", "Number of partitions")
TOTAL_DISK_USED = _gauge("fdb_cluster_total_disk_used_bytes", "Total number of bytes used on all disks")
TOTAL_KV_SIZE = _gauge("fdb_cluster_total_kv_size_bytes", "Total number of bytes for all key values")
DATA_HEALTHY = _gauge("fdb_cluster_healthy", "Whether data distribution reports the cluster healthy")
DATA_STATE = _gauge("fdb_cluster_state", "Data distribution state as a position in DATA_STATES")
MIN_REPLICAS_REMAINING = _gauge(
    "fdb_cluster_min_replicas_remaining", "Fewest replicas remaining for any piece of data"
)
MOVING_IN_FLIGHT = _gauge("fdb_cluster_moving_data_in_flight_bytes", "Data in flight")
MOVING_IN_QUEUE = _gauge("fdb_cluster_moving_data_in_queue_bytes", "Data waiting to be transferred")
MOVING_HIGHEST_PRIORITY = _gauge(
    "fdb_cluster_moving_data_highest_priority", "Highest priority of queued data movement"
)
MOVING_WRITTEN = _counter(
    "fdb_cluster_moving_data_written_bytes", "Bytes written by data distribution since recruitment"
)

DATA_RULES = (
    Rule(TOTAL_KV_SIZE, "total_kv_size_bytes"),
    Rule(TOTAL_DISK_USED, "total_disk_used_bytes"),
    Rule(PARTITION_COUNT, "partitions_count"),
    Rule(AVERAGE_PARTITION_SIZE, "average_partition_size_bytes"),
    Rule(LEAST_SPACE_LOG_SERVER, "least_operating_space_bytes_log_server"),
    Rule(LEAST_SPACE_STORAGE_SERVER, "least_operating_space_bytes_storage_server"),
    Rule(DATA_HEALTHY, "state.healthy"),
    Rule(MIN_REPLICAS_REMAINING, "state.min_replicas_remaining"),
    Rule(MOVING_IN_FLIGHT, "moving_data.in_flight_bytes"),
    Rule(MOVING_IN_QUEUE, "moving_data.in_queue_bytes"),
    Rule(MOVING_HIGHEST_PRIORITY, "moving_data.highest_priority"),
    Rule(MOVING_WRITTEN, "moving_data.total_written_bytes"),
)

# =============================================================================
# Workload
# =============================================================================

OPERATIONS_HZ = _gauge("fdb_cluster_workload_operations_hz", "Operations per second", ("operation",))
OPERATIONS = _counter("fdb_cluster_workload_operations", "Operations since process start", ("operation",))
TRANSACTIONS_HZ = _gauge("fdb_cluster_workload_transactions_hz", "Transactions per second", ("type",))
TRANSACTIONS = _counter("fdb_cluster_workload_transactions", "Transactions since process start", ("type",))
BYTES_HZ = _gauge("fdb_cluster_workload_bytes_hz", "Bytes per second", ("type",))
BYTES = _counter("fdb_cluster_workload_bytes", "Bytes since process start", ("type",))
KEYS_READ_HZ = _gauge("fdb_cluster_workload_keys_read_hz", "Keys read per second")
KEYS_READ = _counter("fdb_cluster_workload_keys_read", "Keys read since process start")


def _rate_rules(
    hz_family: MetricFamily, counter_family: MetricFamily, group: str, names: tuple[str, ...]
) -> tuple[Rule, ...]:
    rules = []
    for name in names:
        rules.append(Rule(hz_family, f"{group}.{name}.hz", (name,)))
        rules.append(Rule(counter_family, f"{group}.{name}.counter", (name,)))
    return tuple(rules)


WORKLOAD_RULES = (
    _rate_rules(OPERATIONS_HZ, OPERATIONS, "operations", ("reads", "writes", "read_requests"))
    + _rate_rules(
        TRANSACTIONS_HZ,
        TRANSACTIONS,
        "transactions",
        ("started", "committed", "conflicted", "rejected_for_queued_too_long"),
    )
    + _rate_rules(BYTES_HZ, BYTES, "bytes", ("read", "written"))
    + (
        Rule(KEYS_READ_HZ, "keys.read.hz"),
        Rule(KEYS_READ, "keys.read.counter"),
    )
)

# =============================================================================
# Latency probe
# =============================================================================

LATENCY_PROBE = _gauge(
    "fdb_cluster_latency_probe_seconds", "Latency measured by the cluster's own probe", ("probe",)
)

LATENCY_PROBE_RULES = tuple(
    Rule(LATENCY_PROBE, f"{probe}_seconds", (probe,))
    for probe in (
        "read",
        "commit",
        "transaction_start",
        "immediate_priority_transaction_start",
        "batch_priority_transaction_start",
    )
)

# =============================================================================
# QoS
# =============================================================================

QOS_WORST_QUEUE_LOG = _gauge(
    "fdb_cluster_qos_worst_queue_log_server_bytes", "Largest queue on any log server"
)
QOS_WORST_QUEUE_STORAGE = _gauge(
    "fdb_cluster_qos_worst_queue_storage_server_bytes", "Largest queue on any storage server"
)
QOS_TPS_LIMIT = _gauge(
    "fdb_cluster_qos_transactions_per_second_limit", "Transaction rate limit set by ratekeeper"
)
QOS_RELEASED_TPS = _gauge(
    "fdb_cluster_qos_released_transactions_per_second", "Transactions released per second by ratekeeper"
)
QOS_WORST_DATA_LAG = _gauge(
    "fdb_cluster_qos_worst_data_lag_storage_server_seconds", "Worst storage server data lag"
)
QOS_WORST_DURABILITY_LAG = _gauge(
    "fdb_cluster_qos_worst_durability_lag_storage_server_seconds", "Worst storage server durability lag"
)
QOS_LIMITED_BY = _gauge(
    "fdb_cluster_qos_performance_limited_by", "Reason ratekeeper is limiting, 1 for the reported name", ("name",)
)

QOS_RULES = (
    Rule(QOS_WORST_QUEUE_LOG, "worst_queue_bytes_log_server"),
    Rule(QOS_WORST_QUEUE_STORAGE, "worst_queue_bytes_storage_server"),
    Rule(QOS_TPS_LIMIT, "transactions_per_second_limit"),
    Rule(QOS_RELEASED_TPS, "released_transactions_per_second"),
    Rule(QOS_WORST_DATA_LAG, "worst_data_lag_storage_server.seconds"),
    Rule(QOS_WORST_DURABILITY_LAG, "worst_durability_lag_storage_server.seconds"),
)

# =============================================================================
# Processes
# =============================================================================

PROCESS_ROLE = _gauge("fdb_process_role", "Role held by the process, one sample per role", PROCESS_LABELS + ("role",))
PROCESS_CPU = _gauge("fdb_process_cpu_usage_cores", "CPU cores used by the process", PROCESS_LABELS)
PROCESS_MEMORY_USED = _gauge("fdb_process_memory_used_bytes", "Memory used by the process", PROCESS_LABELS)
PROCESS_MEMORY_AVAILABLE = _gauge(
    "fdb_process_memory_available_bytes", "Memory available to the process", PROCESS_LABELS
)
PROCESS_MEMORY_LIMIT = _gauge("fdb_process_memory_limit_bytes", "Memory limit of the process", PROCESS_LABELS)
PROCESS_MEMORY_UNUSED_ALLOCATED = _gauge(
    "fdb_process_memory_unused_allocated_bytes", "Allocated but unused memory", PROCESS_LABELS
)
PROCESS_DISK_BUSY = _gauge("fdb_process_disk_busy_ratio", "Fraction of time the disk was busy", PROCESS_LABELS)
PROCESS_DISK_FREE = _gauge("fdb_process_disk_free_bytes", "Free bytes on the process disk", PROCESS_LABELS)
PROCESS_DISK_TOTAL = _gauge("fdb_process_disk_total_bytes", "Size of the process disk", PROCESS_LABELS)
PROCESS_DISK_READS = _gauge("fdb_process_disk_reads_hz", "Disk reads per second", PROCESS_LABELS)
PROCESS_DISK_WRITES = _gauge("fdb_process_disk_writes_hz", "Disk writes per second", PROCESS_LABELS)
PROCESS_CONNECTIONS = _gauge(
    "fdb_process_network_current_connections", "Open network connections", PROCESS_LABELS
)
PROCESS_RECEIVED = _gauge(
    "fdb_process_network_received_bytes_per_second", "Network bytes received per second", PROCESS_LABELS
)
PROCESS_SENT = _gauge(
    "fdb_process_network_sent_bytes_per_second", "Network bytes sent per second", PROCESS_LABELS
)
PROCESS_CONNECTION_ERRORS = _gauge(
    "fdb_process_network_connection_errors_hz", "Connection errors per second", PROCESS_LABELS
)
PROCESS_UPTIME = _gauge("fdb_process_uptime_seconds", "Process uptime", PROCESS_LABELS)
PROCESS_EXCLUDED = _gauge("fdb_process_excluded", "Whether the process is excluded", PROCESS_LABELS)
PROCESS_DEGRADED = _gauge("fdb_process_degraded", "Whether the process is degraded", PROCESS_LABELS)
PROCESS_TLS = _gauge("fdb_process_tls", "Whether the process listens with TLS", PROCESS_LABELS)

PROCESS_RULES = (
    Rule(PROCESS_CPU, "cpu.usage_cores"),
    Rule(PROCESS_MEMORY_USED, "memory.used_bytes"),
    Rule(PROCESS_MEMORY_AVAILABLE, "memory.available_bytes"),
    Rule(PROCESS_MEMORY_LIMIT, "memory.limit_bytes"),
    Rule(PROCESS_MEMORY_UNUSED_ALLOCATED, "memory.unused_allocated_memory"),
    Rule(PROCESS_DISK_BUSY, "disk.busy"),
    Rule(PROCESS_DISK_FREE, "disk.free_bytes"),
    Rule(PROCESS_DISK_TOTAL, "disk.total_bytes"),
    Rule(PROCESS_DISK_READS, "disk.reads.hz"),
    Rule(PROCESS_DISK_WRITES, "disk.writes.hz"),
    Rule(PROCESS_CONNECTIONS, "network.current_connections"),
    Rule(PROCESS_RECEIVED, "network.megabits_received.hz", scale=MEGABITS_TO_BYTES),
    Rule(PROCESS_SENT, "network.megabits_sent.hz", scale=MEGABITS_TO_BYTES),
    Rule(PROCESS_CONNECTION_ERRORS, "network.connection_errors.hz"),
    Rule(PROCESS_UPTIME, "uptime_seconds"),
    Rule(PROCESS_EXCLUDED, "excluded"),
    Rule(PROCESS_DEGRADED, "degraded"),
    Rule(PROCESS_TLS, "address.tls"),
)

# =============================================================================
# Roles
# =============================================================================

STORAGE_KVSTORE_USED = _gauge("fdb_storage_kvstore_used_bytes", "Bytes used by the storage engine", ROLE_LABELS)
STORAGE_KVSTORE_FREE = _gauge("fdb_storage_kvstore_free_bytes", "Free bytes for the storage engine", ROLE_LABELS)
STORAGE_KVSTORE_AVAILABLE = _gauge(
    "fdb_storage_kvstore_available_bytes", "Available bytes for the storage engine", ROLE_LABELS
)
STORAGE_KVSTORE_TOTAL = _gauge("fdb_storage_kvstore_total_bytes", "Storage engine capacity", ROLE_LABELS)
STORAGE_STORED = _gauge("fdb_storage_stored_bytes", "Logical bytes stored", ROLE_LABELS)
STORAGE_QUERY_QUEUE_MAX = _gauge("fdb_storage_query_queue_max", "Longest read query queue", ROLE_LABELS)
STORAGE_DATA_LAG = _gauge("fdb_storage_data_lag_seconds", "Storage server data lag", ROLE_LABELS)
STORAGE_DURABILITY_LAG = _gauge(
    "fdb_storage_durability_lag_seconds", "Storage server durability lag", ROLE_LABELS
)
STORAGE_INPUT_BYTES = _gauge("fdb_storage_input_bytes_hz", "Bytes received per second", ROLE_LABELS)
STORAGE_DURABLE_BYTES = _gauge("fdb_storage_durable_bytes_hz", "Bytes made durable per second", ROLE_LABELS)
STORAGE_READ_LATENCY = _gauge(
    "fdb_storage_read_latency_seconds", "Storage server read latency", ROLE_LABELS + ("quantile",)
)

LOG_KVSTORE_USED = _gauge("fdb_log_kvstore_used_bytes", "Bytes used by the log's storage engine", ROLE_LABELS)
LOG_QUEUE_USED = _gauge("fdb_log_queue_disk_used_bytes", "Bytes used by the log queue", ROLE_LABELS)
LOG_QUEUE_FREE = _gauge("fdb_log_queue_disk_free_bytes", "Free bytes for the log queue", ROLE_LABELS)
LOG_QUEUE_AVAILABLE = _gauge(
    "fdb_log_queue_disk_available_bytes", "Available bytes for the log queue", ROLE_LABELS
)
LOG_QUEUE_TOTAL = _gauge("fdb_log_queue_disk_total_bytes", "Log queue disk capacity", ROLE_LABELS)
LOG_INPUT_BYTES = _gauge("fdb_log_input_bytes_hz", "Bytes received per second", ROLE_LABELS)
LOG_DURABLE_BYTES = _gauge("fdb_log_durable_bytes_hz", "Bytes made durable per second", ROLE_LABELS)

COMMIT_LATENCY = _gauge(
    "fdb_commit_proxy_commit_latency_seconds", "Commit latency at the commit proxy", ROLE_LABELS + ("quantile",)
)
GRV_LATENCY = _gauge(
    "fdb_grv_proxy_grv_latency_seconds",
    "Read version latency at the GRV proxy",
    ROLE_LABELS + ("priority", "quantile"),
)


def _quantile_rules(family: MetricFamily, source: str, *prefix: str) -> tuple[Rule, ...]:
    return tuple(
        Rule(family, f"{source}.{field_name}", prefix + (quantile,)) for field_name, quantile in QUANTILES
    )


ROLE_RULES: dict[str, tuple[Rule, ...]] = {
    "storage": (
        Rule(STORAGE_KVSTORE_USED, "kvstore_used_bytes"),
        Rule(STORAGE_KVSTORE_FREE, "kvstore_free_bytes"),
        Rule(STORAGE_KVSTORE_AVAILABLE, "kvstore_available_bytes"),
        Rule(STORAGE_KVSTORE_TOTAL, "kvstore_total_bytes"),
        Rule(STORAGE_STORED, "stored_bytes"),
        Rule(STORAGE_QUERY_QUEUE_MAX, "query_queue_max"),
        Rule(STORAGE_DATA_LAG, "data_lag.seconds"),
        Rule(STORAGE_DURABILITY_LAG, "durability_lag.seconds"),
        Rule(STORAGE_INPUT_BYTES, "input_bytes.hz"),
        Rule(STORAGE_DURABLE_BYTES, "durable_bytes.hz"),
    )
    + _quantile_rules(STORAGE_READ_LATENCY, "read_latency_statistics"),
    "log": (
        Rule(LOG_KVSTORE_USED, "kvstore_used_bytes"),
        Rule(LOG_QUEUE_USED, "queue_disk_used_bytes"),
        Rule(LOG_QUEUE_FREE, "queue_disk_free_bytes"),
        Rule(LOG_QUEUE_AVAILABLE, "queue_disk_available_bytes"),
        Rule(LOG_QUEUE_TOTAL, "queue_disk_total_bytes"),
        Rule(LOG_INPUT_BYTES, "input_bytes.hz"),
        Rule(LOG_DURABLE_BYTES, "durable_bytes.hz"),
    ),
    "commit_proxy": _quantile_rules(COMMIT_LATENCY, "commit_latency_statistics"),
    "grv_proxy": (
        _quantile_rules(GRV_LATENCY, "grv_latency_statistics.default", "default")
        + _quantile_rules(GRV_LATENCY, "grv_latency_statistics.batch", "batch")
    ),
}

# =============================================================================
# Machines
# =============================================================================

MACHINE_CPU = _gauge(
    "fdb_machine_cpu_logical_core_utilization", "Fraction of logical cores in use", MACHINE_LABELS
)
MACHINE_MEMORY_COMMITTED = _gauge("fdb_machine_memory_committed_bytes", "Committed memory", MACHINE_LABELS)
MACHINE_MEMORY_FREE = _gauge("fdb_machine_memory_free_bytes", "Free memory", MACHINE_LABELS)
MACHINE_MEMORY_TOTAL = _gauge("fdb_machine_memory_total_bytes", "Total memory", MACHINE_LABELS)
MACHINE_RECEIVED = _gauge(
    "fdb_machine_network_received_bytes_per_second", "Network bytes received per second", MACHINE_LABELS
)
MACHINE_SENT = _gauge(
    "fdb_machine_network_sent_bytes_per_second", "Network bytes sent per second", MACHINE_LABELS
)
MACHINE_RETRANSMITS = _gauge(
    "fdb_machine_network_tcp_segments_retransmitted_hz", "TCP segments retransmitted per second", MACHINE_LABELS
)
MACHINE_WORKERS = _gauge(
    "fdb_machine_contributing_workers", "Processes running on the machine", MACHINE_LABELS
)
MACHINE_EXCLUDED = _gauge("fdb_machine_excluded", "Whether the machine is excluded", MACHINE_LABELS)

MACHINE_RULES = (
    Rule(MACHINE_CPU, "cpu.logical_core_utilization"),
    Rule(MACHINE_MEMORY_COMMITTED, "memory.committed_bytes"),
    Rule(MACHINE_MEMORY_FREE, "memory.free_bytes"),
    Rule(MACHINE_MEMORY_TOTAL, "memory.total_bytes"),
    Rule(MACHINE_RECEIVED, "network.megabits_received.hz", scale=MEGABITS_TO_BYTES),
    Rule(MACHINE_SENT, "network.megabits_sent.hz", scale=MEGABITS_TO_BYTES),
    Rule(MACHINE_RETRANSMITS, "network.tcp_segments_retransmitted.hz"),
    Rule(MACHINE_WORKERS, "contributing_workers"),
    Rule(MACHINE_EXCLUDED, "excluded"),
)

# =============================================================================
# Backup agents
# =============================================================================

BACKUP_LABELS = ("tag",)
BACKUP_INSTANCE_LABELS = ("instance_id",)

BACKUP_INSTANCES_RUNNING = _gauge("fdb_backup_instances_running", "Backup agent instances running")
BACKUP_TOTAL_WORKERS = _gauge("fdb_backup_total_workers", "Backup workers across all agents")
BACKUP_PAUSED = _gauge("fdb_backup_paused", "Whether backups are paused")
BACKUP_LAST_UPDATED = _gauge(
    "fdb_backup_last_updated_timestamp_seconds", "When the backup agents last reported"
)

BACKUP_RULES = (
    Rule(BACKUP_INSTANCES_RUNNING, "instances_running"),
    Rule(BACKUP_TOTAL_WORKERS, "total_workers"),
    Rule(BACKUP_PAUSED, "paused"),
    Rule(BACKUP_LAST_UPDATED, "last_updated"),
)

BACKUP_TAG_STATUS = _gauge(
    "fdb_backup_tag_status", "Current state of the backup tag, 1 for the reported status", BACKUP_LABELS + ("status",)
)
BACKUP_TAG_RUNNING = _gauge("fdb_backup_tag_running", "Whether a backup is running on the tag", BACKUP_LABELS)
BACKUP_TAG_RESTORABLE = _gauge(
    "fdb_backup_tag_restorable", "Whether the running backup is restorable", BACKUP_LABELS
)
BACKUP_TAG_RESTORABLE_VERSION = _gauge(
    "fdb_backup_tag_last_restorable_version", "Last version the backup can restore to", BACKUP_LABELS
)
BACKUP_TAG_SECONDS_BEHIND = _gauge(
    "fdb_backup_tag_last_restorable_seconds_behind",
    "How far the last restorable version trails the cluster",
    BACKUP_LABELS,
)
# running totals for the current backup; they restart with a new backup
BACKUP_TAG_RANGE_BYTES = _counter(
    "fdb_backup_tag_range_bytes_written", "Range snapshot bytes written", BACKUP_LABELS
)
BACKUP_TAG_LOG_BYTES = _counter(
    "fdb_backup_tag_mutation_log_bytes_written", "Mutation log bytes written", BACKUP_LABELS
)

BACKUP_TAG_RULES = (
    Rule(BACKUP_TAG_RUNNING, "running_backup"),
    Rule(BACKUP_TAG_RESTORABLE, "running_backup_is_restorable"),
    Rule(BACKUP_TAG_RESTORABLE_VERSION, "last_restorable_version"),
    Rule(BACKUP_TAG_SECONDS_BEHIND, "last_restorable_seconds_behind"),
    Rule(BACKUP_TAG_RANGE_BYTES, "range_bytes_written"),
    Rule(BACKUP_TAG_LOG_BYTES, "mutation_log_bytes_written"),
)

BACKUP_AGENT_WORKERS = _gauge(
    "fdb_backup_agent_configured_workers", "Workers configured on the backup agent", BACKUP_INSTANCE_LABELS
)
BACKUP_AGENT_MEMORY = _gauge(
    "fdb_backup_agent_memory_usage_bytes", "Virtual memory used by the backup agent", BACKUP_INSTANCE_LABELS
)
BACKUP_AGENT_RESIDENT = _gauge(
    "fdb_backup_agent_resident_size_bytes", "Resident memory of the backup agent", BACKUP_INSTANCE_LABELS
)
BACKUP_AGENT_MAIN_CPU = _counter(
    "fdb_backup_agent_main_thread_cpu_seconds", "CPU time of the agent's main thread", BACKUP_INSTANCE_LABELS
)
BACKUP_AGENT_PROCESS_CPU = _counter(
    "fdb_backup_agent_process_cpu_seconds", "CPU time of the agent process", BACKUP_INSTANCE_LABELS
)

BACKUP_INSTANCE_RULES = (
    Rule(BACKUP_AGENT_WORKERS, "configured_workers"),
    Rule(BACKUP_AGENT_MEMORY, "memory_usage"),
    Rule(BACKUP_AGENT_RESIDENT, "resident_size"),
    Rule(BACKUP_AGENT_MAIN_CPU, "main_thread_cpu_seconds"),
    Rule(BACKUP_AGENT_PROCESS_CPU, "process_cpu_seconds"),
)

# =============================================================================
# Perpetual storage wiggle
# =============================================================================

WIGGLE_LABELS = ("region",)

WIGGLE_SERVERS = _gauge("fdb_cluster_wiggle_servers", "Storage servers queued for the current wiggle")
WIGGLE_FINISHED_ROUNDS = _counter(
    "fdb_cluster_wiggle_finished_rounds", "Wiggle rounds finished", WIGGLE_LABELS
)
WIGGLE_FINISHED_WIGGLES = _counter(
    "fdb_cluster_wiggle_finished_wiggles", "Storage servers wiggled", WIGGLE_LABELS
)
WIGGLE_ROUND_SECONDS = _gauge(
    "fdb_cluster_wiggle_smoothed_round_seconds", "Smoothed duration of a wiggle round", WIGGLE_LABELS
)
WIGGLE_SECONDS = _gauge(
    "fdb_cluster_wiggle_smoothed_wiggle_seconds", "Smoothed duration of one storage server wiggle", WIGGLE_LABELS
)
WIGGLE_ROUND_START = _gauge(
    "fdb_cluster_wiggle_last_round_start_timestamp_seconds", "When the last round started", WIGGLE_LABELS
)
WIGGLE_ROUND_FINISH = _gauge(
    "fdb_cluster_wiggle_last_round_finish_timestamp_seconds", "When the last round finished", WIGGLE_LABELS
)
WIGGLE_START = _gauge(
    "fdb_cluster_wiggle_last_wiggle_start_timestamp_seconds", "When the last wiggle started", WIGGLE_LABELS
)
WIGGLE_FINISH = _gauge(
    "fdb_cluster_wiggle_last_wiggle_finish_timestamp_seconds", "When the last wiggle finished", WIGGLE_LABELS
)


def _wiggle_rules(region: str) -> tuple[Rule, ...]:
    return (
        Rule(WIGGLE_FINISHED_ROUNDS, f"{region}.finished_round", (region,)),
        Rule(WIGGLE_FINISHED_WIGGLES, f"{region}.finished_wiggle", (region,)),
        Rule(WIGGLE_ROUND_SECONDS, f"{region}.smoothed_round_seconds", (region,)),
        Rule(WIGGLE_SECONDS, f"{region}.smoothed_wiggle_seconds", (region,)),
        Rule(WIGGLE_ROUND_START, f"{region}.last_round_start_timestamp", (region,)),
        Rule(WIGGLE_ROUND_FINISH, f"{region}.last_round_finish_timestamp", (region,)),
        Rule(WIGGLE_START, f"{region}.last_wiggle_start_timestamp", (region,)),
        Rule(WIGGLE_FINISH, f"{region}.last_wiggle_finish_timestamp", (region,)),
    )


WIGGLE_RULES = _wiggle_rules("primary") + _wiggle_rules("remote")
