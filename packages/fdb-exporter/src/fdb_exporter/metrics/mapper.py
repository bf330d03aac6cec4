"""
Status to metric samples.

map_status() is a pure function: it walks a Status once, applies the rule
tables from fdb_exporter.metrics.rules and returns samples in a stable
order (rule order, then sorted process/machine/role keys).

An absent value never produces a sample. A scrape that is missing a series
means "unknown", not zero.
"""

from collections import Counter
from collections.abc import Mapping
from typing import Any, Iterable

from fdb_exporter.errors import MappingFault
from fdb_exporter.metrics.rules import (
    BACKUP_INSTANCE_RULES,
    BACKUP_RULES,
    BACKUP_TAG_RULES,
    BACKUP_TAG_STATUS,
    DATA_RULES,
    DATA_STATE,
    DATA_STATES,
    DESCRIPTION_RULES,
    LATENCY_PROBE_RULES,
    MACHINE_RULES,
    PROCESS_COUNT,
    PROCESS_ROLE,
    PROCESS_RULES,
    QOS_LIMITED_BY,
    QOS_RULES,
    RECOVERY_STATE,
    ROLE_RULES,
    WIGGLE_RULES,
    WIGGLE_SERVERS,
    WORKLOAD_RULES,
    Rule,
)
from fdb_exporter.metrics.types import MetricSample
from fdb_exporter.types import Backup, ClusterData, Machine, Process, QoS, Status, StorageWiggler


def map_status(status: Status) -> list[MetricSample]:
    """
    Derive metric samples from a parsed status.

    Args:
        status: Parsed status document.

    Returns:
        Samples ordered by section, rule, then entity key.

    Raises:
        MappingFault: If the produced samples break a label invariant.
    """
    samples: list[MetricSample] = []

    description = status.cluster_description
    if description is not None:
        samples.extend(_apply(DESCRIPTION_RULES, description, ()))
        recovery = description.recovery_state
        if recovery is not None and recovery.name is not None:
            samples.append(MetricSample(RECOVERY_STATE, (recovery.name,), 1.0))

    if status.data is not None:
        samples.extend(_map_data(status.data))

    if status.workload is not None:
        samples.extend(_apply(WORKLOAD_RULES, status.workload, ()))

    if status.latency_probe is not None:
        samples.extend(_apply(LATENCY_PROBE_RULES, status.latency_probe, ()))

    if status.qos is not None:
        samples.extend(_map_qos(status.qos))

    if status.processes is not None:
        samples.extend(_map_processes(status.processes))

    if status.machines is not None:
        samples.extend(_map_machines(status.machines))

    if status.backup is not None:
        samples.extend(_map_backup(status.backup))

    if status.storage_wiggler is not None:
        samples.extend(_map_wiggler(status.storage_wiggler))

    validate_samples(samples)
    return samples


def validate_samples(samples: Iterable[MetricSample]) -> None:
    """
    Check output invariants.

    - A family name maps to exactly one declaration (kind and label keys).
    - Every sample carries one value per label key.
    - No two samples of a family share a label set.

    Raises:
        MappingFault: On the first violated invariant.
    """
    families: dict[str, Any] = {}
    seen: set[tuple[str, tuple[str, ...]]] = set()

    for sample in samples:
        family = sample.family
        declared = families.setdefault(family.name, family)
        if declared.label_names != family.label_names or declared.kind != family.kind:
            raise MappingFault(family.name, "declared twice with different label keys or kind")
        if len(sample.label_values) != len(family.label_names):
            raise MappingFault(
                family.name,
                f"expected labels {family.label_names}, got values {sample.label_values}",
            )
        key = (family.name, sample.label_values)
        if key in seen:
            raise MappingFault(family.name, f"duplicate label set {sample.labels}")
        seen.add(key)


def resolve(obj: Any, path: str) -> Any:
    """Follow a dotted attribute path, returning None at the first absent step."""
    for part in path.split("."):
        if obj is None:
            return None
        obj = getattr(obj, part)
    return obj


def _apply(rules: Iterable[Rule], obj: Any, labels: tuple[str, ...]) -> list[MetricSample]:
    samples = []
    for rule in rules:
        value = resolve(obj, rule.source)
        if value is None:
            continue
        if isinstance(value, bool):
            value = 1.0 if value else 0.0
        elif isinstance(value, (int, float)):
            value = float(value)
        else:
            raise MappingFault(rule.family.name, f"{rule.source} is not numeric ({type(value).__name__})")
        if rule.scale is not None:
            value *= rule.scale
        samples.append(MetricSample(rule.family, labels + rule.static_labels, value))
    return samples


def _map_data(data: ClusterData) -> list[MetricSample]:
    samples = _apply(DATA_RULES, data, ())
    if data.state is not None and data.state.name is not None:
        name = data.state.name if data.state.name in DATA_STATES else "unknown"
        samples.append(MetricSample(DATA_STATE, (), float(DATA_STATES.index(name))))
    return samples


def _map_qos(qos: QoS) -> list[MetricSample]:
    samples = _apply(QOS_RULES, qos, ())
    limited_by = qos.performance_limited_by
    if limited_by is not None and limited_by.name is not None:
        samples.append(MetricSample(QOS_LIMITED_BY, (limited_by.name,), 1.0))
    return samples


def process_labels(process_id: str, process: Process) -> tuple[str, ...]:
    """Label values for PROCESS_LABELS: machine_id, process_id, class_type, address."""
    return (
        process.machine_id or "",
        process_id,
        process.class_type or "",
        str(process.address) if process.address is not None else "",
    )


def _map_processes(processes: Mapping[str, Process]) -> list[MetricSample]:
    samples: list[MetricSample] = []
    role_counts: Counter[str] = Counter()

    for process_id in sorted(processes):
        process = processes[process_id]
        labels = process_labels(process_id, process)

        role_names = process.role_names()
        role_counts.update(role_names)
        for role_name in role_names:
            samples.append(MetricSample(PROCESS_ROLE, labels + (role_name,), 1.0))

        samples.extend(_apply(PROCESS_RULES, process, labels))

        for role_id, role in sorted(_role_ids(process), key=lambda item: (item[1].role, item[0])):
            rules = ROLE_RULES.get(role.role)
            if rules:
                samples.extend(_apply(rules, role, labels + (role_id,)))

    for role_name in sorted(role_counts):
        samples.append(MetricSample(PROCESS_COUNT, (role_name,), float(role_counts[role_name])))

    return samples


def _map_machines(machines: Mapping[str, Machine]) -> list[MetricSample]:
    samples: list[MetricSample] = []
    for machine_id in sorted(machines):
        machine = machines[machine_id]
        address = machine.address.host if machine.address is not None else ""
        samples.extend(_apply(MACHINE_RULES, machine, (machine_id, address)))
    return samples


def _role_ids(process: Process) -> list[tuple[str, Any]]:
    """
    Pair each role with a role_id label value unique within the process.

    A role without an id gets "<role>#<position>"; a repeated id gets
    "#<position>" appended.
    """
    pairs = []
    seen: set[tuple[str, str]] = set()
    for index, role in enumerate(process.roles):
        role_id = role.id or f"{role.role}#{index}"
        if (role.role, role_id) in seen:
            role_id = f"{role_id}#{index}"
        seen.add((role.role, role_id))
        pairs.append((role_id, role))
    return pairs


def _map_backup(backup: Backup) -> list[MetricSample]:
    samples = _apply(BACKUP_RULES, backup, ())
    tags = backup.tags or {}
    for tag in sorted(tags):
        samples.extend(_apply(BACKUP_TAG_RULES, tags[tag], (tag,)))
        if tags[tag].current_status is not None:
            samples.append(MetricSample(BACKUP_TAG_STATUS, (tag, tags[tag].current_status), 1.0))
    instances = backup.instances or {}
    for instance_id in sorted(instances):
        samples.extend(_apply(BACKUP_INSTANCE_RULES, instances[instance_id], (instance_id,)))
    return samples


def _map_wiggler(wiggler: StorageWiggler) -> list[MetricSample]:
    samples = _apply(WIGGLE_RULES, wiggler, ())
    if wiggler.wiggle_server_ids is not None:
        samples.append(MetricSample(WIGGLE_SERVERS, (), float(len(wiggler.wiggle_server_ids))))
    return samples
