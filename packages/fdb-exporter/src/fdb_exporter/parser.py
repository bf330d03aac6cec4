"""
Status document parser.

Turns the raw JSON status document into a fdb_exporter.types.Status.

Parsing is lenient by section and strict by type:
- Each section (processes, machines, data, ...) is validated on its own.
  A missing or malformed section becomes None; its siblings still parse.
- Inside a section, a field with the wrong shape is dropped (it becomes
  None, or the enclosing list entry / mapping entry disappears when the
  field is required) and a ParseAnomaly records where and why.
- Unknown fields are ignored.

Only a document that is not JSON, is not an object, or has no recoverable
section at all raises ParseError.

Example:
    result = parse_status(raw_bytes)
    for anomaly in result.anomalies:
        logger.debug("ignored %s", anomaly)
    samples = map_status(result.status)
"""

import copy
import json
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import TypeAdapter, ValidationError

from fdb_exporter.errors import ParseError
from fdb_exporter.types import (
    Backup,
    ClusterData,
    ClusterDescription,
    LatencyProbe,
    Machine,
    Process,
    QoS,
    Status,
    StorageWiggler,
    Workload,
)

logger = logging.getLogger(__name__)

# Sections that map one-to-one onto a location in the document
SECTION_SOURCES: dict[str, tuple[tuple[str, ...], TypeAdapter]] = {
    "processes": (("cluster", "processes"), TypeAdapter(dict[str, Process])),
    "machines": (("cluster", "machines"), TypeAdapter(dict[str, Machine])),
    "data": (("cluster", "data"), TypeAdapter(ClusterData)),
    "workload": (("cluster", "workload"), TypeAdapter(Workload)),
    "latency_probe": (("cluster", "latency_probe"), TypeAdapter(LatencyProbe)),
    "qos": (("cluster", "qos"), TypeAdapter(QoS)),
    "backup": (("cluster", "layers", "backup"), TypeAdapter(Backup)),
    "storage_wiggler": (("cluster", "storage_wiggler"), TypeAdapter(StorageWiggler)),
}

# ClusterDescription fields are gathered from several places; the first
# candidate path present in the document wins
DESCRIPTION_SOURCES: dict[str, tuple[tuple[str, ...], ...]] = {
    "generation": (("cluster", "generation"),),
    "protocol_version": (("cluster", "protocol_version"),),
    "recovery_state": (("cluster", "recovery_state"),),
    "database_available": (
        ("client", "database_status", "available"),
        ("cluster", "database_available"),
    ),
    "database_healthy": (("client", "database_status", "healthy"),),
    "quorum_reachable": (("client", "coordinators", "quorum_reachable"),),
    "degraded_processes": (("cluster", "degraded_processes"),),
    "fault_tolerance": (("cluster", "fault_tolerance"),),
}

_DESCRIPTION_ADAPTER = TypeAdapter(ClusterDescription)

# Upper bound on validate/prune rounds for one section
MAX_PRUNE_ROUNDS = 32

_MISSING = object()
_PRUNED = object()

_EXPECTED_NAMES = {
    "model_type": "object",
    "model_attributes_type": "object",
    "dict_type": "object",
    "tuple_type": "array",
    "list_type": "array",
    "string_type": "string",
    "int_type": "integer",
    "float_type": "number",
    "bool_type": "boolean",
}


@dataclass(frozen=True)
class ParseAnomaly:
    """
    A field that was present but ignored because of its shape.

    Attributes:
        path: Dotted location in the document (e.g. "cluster.data.partitions_count")
        expected: What the model expected at that location
        actual: JSON type actually found there
    """

    path: str
    expected: str
    actual: str

    def __str__(self) -> str:
        return f"{self.path}: expected {self.expected}, got {self.actual}"


@dataclass(frozen=True)
class ParseResult:
    """Parsed Status plus the anomalies found while parsing it."""

    status: Status
    anomalies: tuple[ParseAnomaly, ...] = ()


def parse_status(document: bytes | str | dict[str, Any]) -> ParseResult:
    """
    Parse a status document.

    Args:
        document: Raw JSON (bytes or str) or an already decoded object.

    Returns:
        ParseResult with every recoverable section populated.

    Raises:
        ParseError: If the document is not a JSON object or no section
            could be recovered.
    """
    if isinstance(document, (bytes, bytearray, str)):
        try:
            document = json.loads(document)
        except ValueError as e:
            raise ParseError("", f"invalid JSON ({e})") from e

    if not isinstance(document, dict):
        raise ParseError("", f"expected object, got {_json_type(document)}")

    anomalies: list[ParseAnomaly] = []
    for root in ("cluster", "client"):
        value = document.get(root, _MISSING)
        if value is not _MISSING and value is not None and not isinstance(value, dict):
            anomalies.append(ParseAnomaly(root, "object", _json_type(value)))

    sections: dict[str, Any] = {"cluster_description": _parse_description(document, anomalies)}
    for name, (path, adapter) in SECTION_SOURCES.items():
        raw = _lookup(document, path)
        if raw is _MISSING or raw is None:
            sections[name] = None
            continue
        sections[name] = _validate_lenient(adapter, raw, path, anomalies)

    if all(value is None for value in sections.values()):
        raise ParseError("cluster", "no recoverable section in status document")

    for anomaly in anomalies:
        logger.debug("Ignoring status field %s", anomaly)

    return ParseResult(status=Status(**sections), anomalies=tuple(anomalies))


def _parse_description(
    document: dict[str, Any], anomalies: list[ParseAnomaly]
) -> ClusterDescription | None:
    raw = {}
    sources = {}
    for field_name, candidates in DESCRIPTION_SOURCES.items():
        for path in candidates:
            value = _lookup(document, path)
            if value is not _MISSING:
                raw[field_name] = value
                sources[field_name] = path
                break
    if not raw:
        return None

    def locate(loc: tuple[Any, ...]) -> tuple[Any, ...]:
        return sources[loc[0]] + tuple(loc[1:])

    return _validate_lenient(_DESCRIPTION_ADAPTER, raw, (), anomalies, locate=locate)


def _validate_lenient(
    adapter: TypeAdapter,
    raw: Any,
    prefix: tuple[Any, ...],
    anomalies: list[ParseAnomaly],
    locate=None,
) -> Any:
    """
    Validate raw data, pruning offending fields until validation passes.

    Each round collects every error pydantic reports, replaces the offending
    values in a working copy, and retries. Returns None when the section
    itself has the wrong shape or cannot be repaired.
    """
    working = copy.deepcopy(raw)

    for _ in range(MAX_PRUNE_ROUNDS):
        try:
            return adapter.validate_python(working)
        except ValidationError as exc:
            errors = exc.errors(include_url=False)

        pruned = False
        for error in errors:
            loc = tuple(error["loc"])
            if error["type"] == "missing":
                # Required key absent: drop the object that needed it
                expected = f"object with '{loc[-1]}'" if loc else "object"
                loc = loc[:-1]
            else:
                expected = _describe_expected(error)

            full_loc = locate(loc) if locate and loc else prefix + loc
            anomalies.append(
                ParseAnomaly(
                    path=".".join(str(part) for part in full_loc),
                    expected=expected,
                    actual=_json_type(error.get("input")),
                )
            )

            if not loc:
                return None
            if _mark_pruned(working, loc):
                pruned = True

        if not pruned:
            return None
        working = _strip_pruned(working)

    return None


def _lookup(document: Any, path: tuple[str, ...]) -> Any:
    node = document
    for key in path:
        if not isinstance(node, dict) or key not in node:
            return _MISSING
        node = node[key]
    return node


def _mark_pruned(working: Any, loc: tuple[Any, ...]) -> bool:
    node = working
    for key in loc[:-1]:
        try:
            node = node[key]
        except (KeyError, IndexError, TypeError):
            return False
    last = loc[-1]
    if isinstance(node, dict) and last in node:
        node[last] = _PRUNED
        return True
    if isinstance(node, list) and isinstance(last, int) and 0 <= last < len(node):
        node[last] = _PRUNED
        return True
    return False


def _strip_pruned(node: Any) -> Any:
    if isinstance(node, dict):
        return {k: _strip_pruned(v) for k, v in node.items() if v is not _PRUNED}
    if isinstance(node, list):
        return [_strip_pruned(v) for v in node if v is not _PRUNED]
    return node


def _describe_expected(error: dict[str, Any]) -> str:
    kind = error["type"]
    if kind in _EXPECTED_NAMES:
        return _EXPECTED_NAMES[kind]
    if kind == "value_error":
        return error["msg"].removeprefix("Value error, ")
    return kind.removesuffix("_type")


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__
