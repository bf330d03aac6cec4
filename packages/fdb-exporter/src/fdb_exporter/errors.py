"""
Exception classes for the status refresh pipeline.

- FetchError: the cluster status could not be obtained
- ParseError: the status document could not be read at all
- MappingFault: the metric mapper produced an inconsistent snapshot

All of these are contained within one refresh cycle. The RefreshLoop turns
them into a stale snapshot; none of them reaches the scrape endpoint.
"""


class FetchError(Exception):
    """
    Raised when the cluster status document cannot be fetched.

    Covers an unreachable cluster, a transaction timeout, a missing status
    key, or a transport returning something that is not a document.

    Attributes:
        cause: Short machine-friendly cause ("fdb", "timeout", "not_found", ...)
        detail: Human-readable description of the failure
    """

    def __init__(self, cause: str, detail: str = "") -> None:
        self.cause = cause
        self.detail = detail
        message = f"Status fetch failed ({cause})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ParseError(Exception):
    """
    Raised when a status document cannot be parsed into a Status model.

    Document-scoped only: invalid JSON, a root that is not an object, or no
    recoverable section. Field-level problems are recorded as anomalies and
    never raised.

    Attributes:
        path: Dotted path of the first offending location ("" for the root)
        reason: What was wrong at that location
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        where = path or "<document>"
        super().__init__(f"Cannot parse status at {where}: {reason}")


class MappingFault(Exception):
    """
    Raised when mapped samples violate an output invariant.

    This is a programming defect in the rule tables (duplicate label set,
    label keys not matching the family), not an operational condition.

    Attributes:
        family: Metric family name where the fault was detected
        reason: Description of the violated invariant
    """

    def __init__(self, family: str, reason: str) -> None:
        self.family = family
        self.reason = reason
        super().__init__(f"Mapping fault in {family}: {reason}")
