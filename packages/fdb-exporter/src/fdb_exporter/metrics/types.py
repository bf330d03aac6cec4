"""
Metric sample types.

A MetricFamily is declared once per metric name and fixes its kind, help
text and label keys. A MetricSample is one value for one label combination
of a family. Because label keys live on the family, every sample of a given
name carries the same label key set by construction.
"""

from dataclasses import dataclass, field
from enum import Enum


class MetricKind(str, Enum):
    """Exposition type of a metric family."""

    GAUGE = "gauge"
    COUNTER = "counter"


@dataclass(frozen=True)
class MetricFamily:
    """
    Declaration of one metric name.

    Attributes:
        name: Metric name. Counter names carry no "_total" suffix; the
            exposition layer appends it.
        documentation: Help text emitted once per family
        kind: Gauge or counter
        label_names: Label keys every sample of this family carries, in order
    """

    name: str
    documentation: str
    kind: MetricKind = MetricKind.GAUGE
    label_names: tuple[str, ...] = ()


@dataclass(frozen=True)
class MetricSample:
    """
    One emitted measurement.

    Attributes:
        family: The family this sample belongs to
        label_values: Values for family.label_names, same order
        value: Numeric value
    """

    family: MetricFamily
    label_values: tuple[str, ...] = ()
    value: float = field(default=0.0)

    @property
    def name(self) -> str:
        return self.family.name

    @property
    def kind(self) -> MetricKind:
        return self.family.kind

    @property
    def labels(self) -> dict[str, str]:
        """Label set as a mapping from key to value."""
        return dict(zip(self.family.label_names, self.label_values))
