"""Shared gauge helpers for the collector modules.

Each collector declares its metrics as a tuple of GaugeShape entries and
builds fresh GaugeMetricFamily objects from them on every describe or
collect call. Only strictly positive values become samples: a missing series
means zero.
"""

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric


@dataclass(frozen=True)
class GaugeShape:
    """Name and help text of a gauge, and the record field it reads."""

    field: str
    name: str
    documentation: str


def new_families(
    shapes: Sequence[GaugeShape],
    labels: Sequence[str],
) -> list[GaugeMetricFamily]:
    """Create one empty gauge family per shape, in declaration order."""
    return [
        GaugeMetricFamily(shape.name, shape.documentation, labels=list(labels))
        for shape in shapes
    ]


def generate_positive_gauges(
    shapes: Sequence[GaugeShape],
    labels: Sequence[str],
    records: Iterable[tuple[Sequence[str], Any]],
) -> Iterator[Metric]:
    """Generate gauge families holding only the non-zero record values.

    Args:
        shapes: Gauges to export, one per record field.
        labels: Label names shared by all gauges.
        records: (label values, record) pairs; each record must expose
            every shape's field as an attribute.

    Yields:
        One gauge family per shape, with a sample for every record whose
        field is strictly greater than zero.
    """
    families = new_families(shapes, labels)
    for label_values, record in records:
        for shape, family in zip(shapes, families, strict=True):
            value = getattr(record, shape.field)
            if value > 0:
                family.add_metric(list(label_values), value)
    yield from families
