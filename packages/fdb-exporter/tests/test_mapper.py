"""
Tests for map_status and validate_samples.

These tests verify:
- Values are copied from the status without inventing zeros
- Per-process and per-role samples carry the right labels
- Every family keeps one label key set across all its samples
- Invariant violations raise MappingFault
"""

import pytest

from fdb_exporter.errors import MappingFault
from fdb_exporter.metrics.mapper import map_status, validate_samples
from fdb_exporter.metrics.rules import DATA_STATES, MEGABITS_TO_BYTES, TOTAL_KV_SIZE
from fdb_exporter.metrics.types import MetricFamily, MetricKind, MetricSample
from fdb_exporter.parser import parse_status
from fdb_exporter.types import ClusterData, DataState, Process, ProcessRole, Status


def _map(document):
    return map_status(parse_status(document).status)


def _find(samples, metric, **labels):
    """All samples of `metric` whose labels include `labels`."""
    return [
        s for s in samples
        if s.name == metric and all(s.labels.get(k) == v for k, v in labels.items())
    ]


def _value(samples, metric, **labels):
    matches = _find(samples, metric, **labels)
    assert len(matches) == 1, f"{metric} {labels}: {len(matches)} samples"
    return matches[0].value


# =============================================================================
# Cluster-level samples
# =============================================================================


class TestClusterSamples:
    """Tests for cluster-scoped families."""

    def test_process_count_by_role(self, status_document):
        samples = _map(status_document)

        assert _value(samples, "fdb_cluster_process_count", role="storage") == 2.0
        assert _value(samples, "fdb_cluster_process_count", role="log") == 1.0

    def test_total_kv_size(self, status_document):
        samples = _map(status_document)
        assert _value(samples, "fdb_cluster_total_kv_size_bytes") == 1073741824.0

    def test_dropping_data_removes_only_data_samples(self, status_document):
        full = _map(status_document)
        del status_document["cluster"]["data"]
        partial = _map(status_document)

        assert _find(partial, "fdb_cluster_total_kv_size_bytes") == []
        assert _find(partial, "fdb_cluster_partition_count") == []
        data_names = {
            "fdb_cluster_total_kv_size_bytes",
            "fdb_cluster_total_disk_used_bytes",
            "fdb_cluster_partition_count",
            "fdb_cluster_average_partition_size_bytes",
            "fdb_cluster_least_space_log_server_bytes",
            "fdb_cluster_least_space_storage_server_bytes",
            "fdb_cluster_healthy",
            "fdb_cluster_state",
            "fdb_cluster_min_replicas_remaining",
            "fdb_cluster_moving_data_in_flight_bytes",
            "fdb_cluster_moving_data_in_queue_bytes",
            "fdb_cluster_moving_data_highest_priority",
            "fdb_cluster_moving_data_written_bytes",
        }
        assert [s for s in full if s.name not in data_names] == partial

    def test_description_flags(self, status_document):
        samples = _map(status_document)

        assert _value(samples, "fdb_cluster_generation") == 7.0
        assert _value(samples, "fdb_cluster_database_available") == 1.0
        assert _value(samples, "fdb_cluster_coordinators_quorum_reachable") == 1.0
        assert _value(samples, "fdb_cluster_recovery_state", name="fully_recovered") == 1.0

    def test_data_state_position(self, status_document):
        samples = _map(status_document)
        assert _value(samples, "fdb_cluster_state") == float(DATA_STATES.index("healthy"))

    def test_unknown_data_state(self, status_document):
        status_document["cluster"]["data"]["state"]["name"] = "some_new_state"

        samples = _map(status_document)
        assert _value(samples, "fdb_cluster_state") == float(DATA_STATES.index("unknown"))

    def test_workload_counters_and_rates(self, status_document):
        samples = _map(status_document)

        reads = _find(samples, "fdb_cluster_workload_operations", operation="reads")
        assert reads[0].kind is MetricKind.COUNTER
        assert reads[0].value == 10000.0
        assert _value(samples, "fdb_cluster_workload_operations_hz", operation="writes") == 50.0
        assert _value(samples, "fdb_cluster_workload_transactions", type="committed") == 1800.0

    def test_latency_probe(self, status_document):
        samples = _map(status_document)

        assert _value(samples, "fdb_cluster_latency_probe_seconds", probe="commit") == 0.002
        assert _find(samples, "fdb_cluster_latency_probe_seconds", probe="batch_priority_transaction_start") == []

    def test_qos_limited_by(self, status_document):
        samples = _map(status_document)
        assert _value(samples, "fdb_cluster_qos_performance_limited_by", name="workload") == 1.0


# =============================================================================
# Process, role and machine samples
# =============================================================================


class TestProcessSamples:
    """Tests for per-process and per-role families."""

    def test_process_labels(self, status_document):
        samples = _map(status_document)

        cpu = _find(samples, "fdb_process_cpu_usage_cores", process_id="e5f6")[0]
        assert cpu.labels == {
            "machine_id": "m1",
            "process_id": "e5f6",
            "class_type": "log",
            "address": "[::1]:4501",
        }
        assert cpu.value == 0.125

    def test_role_sample_per_role(self, status_document):
        samples = _map(status_document)

        roles = {(s.labels["process_id"], s.labels["role"]) for s in _find(samples, "fdb_process_role")}
        assert roles == {("a1b2", "storage"), ("c3d4", "storage"), ("e5f6", "log")}

    def test_process_with_two_roles(self, status_document):
        roles = status_document["cluster"]["processes"]["e5f6"]["roles"]
        roles.append({"role": "commit_proxy", "id": "cp1"})

        samples = _map(status_document)

        assert len(_find(samples, "fdb_process_role", process_id="e5f6")) == 2
        assert _value(samples, "fdb_cluster_process_count", role="commit_proxy") == 1.0

    def test_tls_flag(self, status_document):
        samples = _map(status_document)

        assert _value(samples, "fdb_process_tls", process_id="c3d4") == 1.0
        assert _value(samples, "fdb_process_tls", process_id="a1b2") == 0.0
        assert _find(samples, "fdb_process_cpu_usage_cores", process_id="c3d4")[0].labels["address"] == (
            "10.0.0.2:4500:tls"
        )

    def test_megabits_scaled_to_bytes(self, status_document):
        samples = _map(status_document)

        received = _value(samples, "fdb_process_network_received_bytes_per_second", process_id="a1b2")
        assert received == 8.0 * MEGABITS_TO_BYTES == 1_000_000.0

    def test_storage_role_samples(self, status_document):
        samples = _map(status_document)

        used = _find(samples, "fdb_storage_kvstore_used_bytes", role_id="s1")[0]
        assert used.value == 104857600.0
        assert used.labels["process_id"] == "a1b2"
        assert _value(samples, "fdb_storage_data_lag_seconds", role_id="s1") == 0.5

    def test_latency_quantiles(self, status_document):
        samples = _map(status_document)

        latency = _find(samples, "fdb_storage_read_latency_seconds", role_id="s1")
        assert {s.labels["quantile"]: s.value for s in latency} == {
            "0.5": 0.001,
            "0.99": 0.01,
            "0.999": 0.02,
        }

    def test_grv_priorities(self, status_document):
        status_document["cluster"]["processes"]["e5f6"]["roles"].append(
            {
                "role": "grv_proxy",
                "id": "g1",
                "grv_latency_statistics": {"default": {"p99": 0.003}, "batch": {"p99": 0.03}},
            }
        )

        samples = _map(status_document)

        assert _value(samples, "fdb_grv_proxy_grv_latency_seconds", priority="default", quantile="0.99") == 0.003
        assert _value(samples, "fdb_grv_proxy_grv_latency_seconds", priority="batch", quantile="0.99") == 0.03

    def test_roles_without_ids_get_distinct_labels(self, status_document):
        status_document["cluster"]["processes"]["a1b2"]["roles"] = [
            {"role": "storage", "kvstore_used_bytes": 1},
            {"role": "storage", "kvstore_used_bytes": 2},
        ]

        samples = _map(status_document)

        used = _find(samples, "fdb_storage_kvstore_used_bytes", process_id="a1b2")
        assert {s.labels["role_id"]: s.value for s in used} == {"storage#0": 1.0, "storage#1": 2.0}

    def test_repeated_role_id(self, status_document):
        roles = status_document["cluster"]["processes"]["a1b2"]["roles"]
        roles.append({"role": "storage", "id": "s1", "kvstore_used_bytes": 7})

        samples = _map(status_document)

        used = _find(samples, "fdb_storage_kvstore_used_bytes", process_id="a1b2")
        assert {s.labels["role_id"]: s.value for s in used} == {"s1": 104857600.0, "s1#1": 7.0}

    def test_log_role_samples(self, status_document):
        samples = _map(status_document)
        assert _value(samples, "fdb_log_queue_disk_used_bytes", role_id="l1") == 4096.0

    def test_machine_samples(self, status_document):
        samples = _map(status_document)

        workers = _find(samples, "fdb_machine_contributing_workers", machine_id="m1")[0]
        assert workers.labels == {"machine_id": "m1", "address": "10.0.0.1"}
        assert workers.value == 2.0
        assert _value(samples, "fdb_machine_network_received_bytes_per_second", machine_id="m1") == 2_000_000.0


# =============================================================================
# Backup agents and storage wiggle
# =============================================================================


class TestBackupAndWiggleSamples:
    """Tests for the backup layer and perpetual wiggle families."""

    def test_backup_cluster_samples(self, status_document):
        samples = _map(status_document)

        assert _value(samples, "fdb_backup_instances_running") == 1.0
        assert _value(samples, "fdb_backup_paused") == 0.0
        assert _value(samples, "fdb_backup_last_updated_timestamp_seconds") == 1700000000.5

    def test_backup_tag_samples(self, status_document):
        samples = _map(status_document)

        assert _value(samples, "fdb_backup_tag_running", tag="default") == 1.0
        assert _value(samples, "fdb_backup_tag_last_restorable_seconds_behind", tag="default") == 4.5
        assert _value(samples, "fdb_backup_tag_status", tag="default", status="has been started") == 1.0
        written = _find(samples, "fdb_backup_tag_range_bytes_written", tag="default")[0]
        assert written.kind is MetricKind.COUNTER
        assert written.value == 1048576.0

    def test_backup_agent_samples(self, status_document):
        samples = _map(status_document)

        assert _value(samples, "fdb_backup_agent_resident_size_bytes", instance_id="agent1") == 104857600.0
        cpu = _find(samples, "fdb_backup_agent_process_cpu_seconds", instance_id="agent1")[0]
        assert cpu.kind is MetricKind.COUNTER
        assert cpu.value == 20.0

    def test_wiggle_samples(self, status_document):
        samples = _map(status_document)

        assert _value(samples, "fdb_cluster_wiggle_servers") == 2.0
        assert _value(samples, "fdb_cluster_wiggle_finished_rounds", region="primary") == 3.0
        assert _value(samples, "fdb_cluster_wiggle_smoothed_wiggle_seconds", region="primary") == 300.0
        assert _find(samples, "fdb_cluster_wiggle_finished_rounds", region="remote") == []

    def test_no_backup_layer(self, status_document):
        del status_document["cluster"]["layers"]

        samples = _map(status_document)

        assert not [s for s in samples if s.name.startswith("fdb_backup_")]


# =============================================================================
# Invariants
# =============================================================================


class TestInvariants:
    """Tests for output invariants."""

    def test_no_false_zeros(self, status_document):
        samples = _map(status_document)

        # c3d4 reports no memory, disk or network
        assert _find(samples, "fdb_process_memory_used_bytes", process_id="c3d4") == []
        assert _find(samples, "fdb_process_disk_busy_ratio", process_id="c3d4") == []
        # no storage reported p90
        assert _find(samples, "fdb_storage_read_latency_seconds", quantile="0.9") == []

    def test_empty_status_maps_to_nothing(self):
        assert map_status(Status()) == []

    def test_label_keys_consistent_per_family(self, status_document):
        samples = _map(status_document)

        keys: dict[str, set[tuple[str, ...]]] = {}
        for sample in samples:
            keys.setdefault(sample.name, set()).add(tuple(sample.labels))
        assert all(len(v) == 1 for v in keys.values())

    def test_no_duplicate_label_sets(self, status_document):
        samples = _map(status_document)

        identities = [(s.name, s.label_values) for s in samples]
        assert len(identities) == len(set(identities))

    def test_deterministic(self, status_document):
        assert _map(status_document) == _map(status_document)

    def test_role_without_rules_only_counts(self):
        status = Status(processes={"p": Process(roles=(ProcessRole(role="coordinator"),))})

        samples = map_status(status)

        assert {s.name for s in samples} == {"fdb_process_role", "fdb_cluster_process_count"}

    def test_missing_state_name_emits_no_state(self):
        status = Status(data=ClusterData(state=DataState(healthy=True)))

        samples = map_status(status)

        assert [s.name for s in samples] == ["fdb_cluster_healthy"]

    def test_duplicate_label_set_raises(self):
        sample = MetricSample(TOTAL_KV_SIZE, (), 1.0)

        with pytest.raises(MappingFault, match="duplicate label set"):
            validate_samples([sample, sample])

    def test_label_arity_mismatch_raises(self):
        family = MetricFamily("fdb_test", "test", MetricKind.GAUGE, ("a", "b"))

        with pytest.raises(MappingFault, match="expected labels"):
            validate_samples([MetricSample(family, ("only-one",), 1.0)])

    def test_conflicting_declarations_raise(self):
        gauge = MetricFamily("fdb_test", "test", MetricKind.GAUGE, ("a",))
        counter = MetricFamily("fdb_test", "test", MetricKind.COUNTER, ("a",))

        with pytest.raises(MappingFault) as exc_info:
            validate_samples([MetricSample(gauge, ("x",), 1.0), MetricSample(counter, ("y",), 1.0)])
        assert exc_info.value.family == "fdb_test"
