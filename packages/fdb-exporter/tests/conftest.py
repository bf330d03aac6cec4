"""Shared status document fixtures."""

import copy

import pytest

# Trimmed-down `status json` output from a three-process cluster:
# two storage processes and one log process, one backup agent and a
# perpetual wiggle in the primary region.
STATUS_DOCUMENT = {
    "client": {
        "coordinators": {"quorum_reachable": True},
        "database_status": {"available": True, "healthy": True},
    },
    "cluster": {
        "generation": 7,
        "protocol_version": "fdb00b071010000",
        "degraded_processes": 0,
        "recovery_state": {
            "name": "fully_recovered",
            "description": "Recovery complete.",
            "active_generations": 1,
        },
        "fault_tolerance": {
            "max_zone_failures_without_losing_data": 1,
            "max_zone_failures_without_losing_availability": 1,
        },
        "processes": {
            "a1b2": {
                "address": "10.0.0.1:4500",
                "class_type": "storage",
                "machine_id": "m1",
                "version": "7.1.27",
                "uptime_seconds": 3600.5,
                "excluded": False,
                "degraded": False,
                "cpu": {"usage_cores": 0.25},
                "memory": {"used_bytes": 1048576, "available_bytes": 8589934592, "limit_bytes": 8589934592},
                "disk": {
                    "busy": 0.1,
                    "free_bytes": 500000000,
                    "total_bytes": 1000000000,
                    "reads": {"hz": 12.0, "counter": 1200},
                    "writes": {"hz": 30.0, "counter": 3000},
                },
                "network": {
                    "current_connections": 8,
                    "megabits_received": {"hz": 8.0},
                    "megabits_sent": {"hz": 4.0},
                },
                "roles": [
                    {
                        "role": "storage",
                        "id": "s1",
                        "kvstore_used_bytes": 104857600,
                        "kvstore_total_bytes": 1000000000,
                        "stored_bytes": 52428800,
                        "data_lag": {"seconds": 0.5, "versions": 500000},
                        "durability_lag": {"seconds": 5.0, "versions": 5000000},
                        "read_latency_statistics": {"count": 10, "median": 0.001, "p99": 0.01, "p99.9": 0.02},
                    }
                ],
            },
            "c3d4": {
                "address": "10.0.0.2:4500:tls",
                "class_type": "storage",
                "machine_id": "m2",
                "cpu": {"usage_cores": 0.5},
                "roles": [{"role": "storage", "id": "s2", "kvstore_used_bytes": 209715200}],
            },
            "e5f6": {
                "address": "[::1]:4501",
                "class_type": "log",
                "machine_id": "m1",
                "cpu": {"usage_cores": 0.125},
                "roles": [
                    {
                        "role": "log",
                        "id": "l1",
                        "queue_disk_used_bytes": 4096,
                        "queue_disk_total_bytes": 1000000000,
                    }
                ],
            },
        },
        "machines": {
            "m1": {
                "address": "10.0.0.1",
                "contributing_workers": 2,
                "excluded": False,
                "cpu": {"logical_core_utilization": 0.3},
                "memory": {"committed_bytes": 2000, "free_bytes": 6000, "total_bytes": 8000},
                "network": {"megabits_received": {"hz": 16.0}, "tcp_segments_retransmitted": {"hz": 0.0}},
            },
            "m2": {"address": "10.0.0.2", "contributing_workers": 1},
        },
        "data": {
            "total_kvstore_used_bytes": 1073741824,
            "total_disk_used_bytes": 2147483648,
            "partitions_count": 42,
            "average_partition_size_bytes": 25565281,
            "least_operating_space_bytes_log_server": 900000000,
            "least_operating_space_bytes_storage_server": 800000000,
            "moving_data": {
                "highest_priority": 0,
                "in_flight_bytes": 0,
                "in_queue_bytes": 0,
                "total_written_bytes": 123456,
            },
            "state": {"healthy": True, "name": "healthy", "min_replicas_remaining": 3},
        },
        "workload": {
            "operations": {
                "reads": {"hz": 100.0, "counter": 10000, "roughness": 1.0},
                "writes": {"hz": 50.0, "counter": 5000, "roughness": 1.0},
            },
            "transactions": {
                "started": {"hz": 20.0, "counter": 2000},
                "committed": {"hz": 18.0, "counter": 1800},
                "conflicted": {"hz": 0.5, "counter": 50},
            },
            "bytes": {"read": {"hz": 1024.0, "counter": 102400}, "written": {"hz": 512.0, "counter": 51200}},
            "keys": {"read": {"hz": 200.0, "counter": 20000}},
        },
        "latency_probe": {
            "read_seconds": 0.0005,
            "commit_seconds": 0.002,
            "transaction_start_seconds": 0.0004,
        },
        "qos": {
            "worst_queue_bytes_log_server": 1000,
            "worst_queue_bytes_storage_server": 2000,
            "transactions_per_second_limit": 500000.0,
            "performance_limited_by": {"name": "workload", "description": "The database is not being saturated"},
        },
        "layers": {
            "_valid": True,
            "backup": {
                "instances_running": 1,
                "total_workers": 10,
                "paused": False,
                "last_updated": 1700000000.5,
                "instances": {
                    "agent1": {
                        "version": "7.1.27",
                        "configured_workers": 10,
                        "main_thread_cpu_seconds": 12.5,
                        "process_cpu_seconds": 20.0,
                        "memory_usage": 314572800,
                        "resident_size": 104857600,
                        "last_updated": 1700000000.5,
                    }
                },
                "tags": {
                    "default": {
                        "current_status": "has been started",
                        "running_backup": True,
                        "running_backup_is_restorable": True,
                        "last_restorable_version": 987654321,
                        "last_restorable_seconds_behind": 4.5,
                        "range_bytes_written": 1048576,
                        "mutation_log_bytes_written": 2048,
                    }
                },
            },
        },
        "storage_wiggler": {
            "primary": {
                "last_round_start_timestamp": 1700000000.0,
                "last_round_finish_timestamp": 1699990000.0,
                "smoothed_round_seconds": 9000.0,
                "finished_round": 3,
                "last_wiggle_start_timestamp": 1700000500.0,
                "last_wiggle_finish_timestamp": 1700000400.0,
                "smoothed_wiggle_seconds": 300.0,
                "finished_wiggle": 12,
            },
            "wiggle_server_ids": ["s1", "s2"],
        },
        "some_future_section": {"anything": [1, 2, 3]},
    },
}


@pytest.fixture
def status_document():
    """A fresh, mutable copy of the sample status document."""
    return copy.deepcopy(STATUS_DOCUMENT)
