"""Compile one ReportConfig column into a GA4 query definition.

Each report is one column of the ``ReportConfig`` worksheet. Cells are read in a
fixed order described by :data:`FIELD_SCHEMA`; cells below the schema are passed
through to the request as scalar options keyed by their label.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any, TypeAlias

from ga4sheet_lib.errors import FieldOrderError
from ga4sheet_lib.fields import DateRange, Dimension, FieldKind, Metric, expand

RawConfigColumn: TypeAlias = Sequence[tuple[str, Any]]


class FieldHandling(enum.Enum):
    SCALAR = "scalar"
    PROPERTY = "property"
    EXPAND = "expand"
    IGNORED = "ignored"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    handling: FieldHandling
    kind: FieldKind | None = None


FIELD_SCHEMA: tuple[FieldSpec, ...] = (
    FieldSpec("name", FieldHandling.SCALAR),
    FieldSpec("account", FieldHandling.SCALAR),
    FieldSpec("property", FieldHandling.PROPERTY),
    FieldSpec("dateRanges", FieldHandling.EXPAND, FieldKind.DATE_RANGE),
    FieldSpec("metrics", FieldHandling.EXPAND, FieldKind.METRIC),
    FieldSpec("dimensions", FieldHandling.EXPAND, FieldKind.DIMENSION),
    # Filters are not supported yet.
    FieldSpec("metricFilters", FieldHandling.IGNORED),
    FieldSpec("dimensionFilters", FieldHandling.IGNORED),
)

FIELD_NAMES: tuple[str, ...] = tuple(spec.name for spec in FIELD_SCHEMA)

_EXPANDED_ATTRS = {
    FieldKind.DATE_RANGE: "date_ranges",
    FieldKind.METRIC: "metrics",
    FieldKind.DIMENSION: "dimensions",
}


@dataclass
class QueryDefinition:
    """One report: destination name, GA4 account/property and request parts."""
    name: str = ""
    account: str = ""
    property: str = ""
    date_ranges: list[DateRange] = field(default_factory=list)
    metrics: list[Metric] = field(default_factory=list)
    dimensions: list[Dimension] = field(default_factory=list)
    options: dict[str, str] = field(default_factory=dict)
    return_property_quota: bool = True

    def payload(self) -> dict[str, Any]:
        """Return the runReport request body for this report."""
        body: dict[str, Any] = dict(self.options)
        body.update({
            "property": self.property,
            "dateRanges": [r.to_payload() for r in self.date_ranges],
            "metrics": [m.to_payload() for m in self.metrics],
            "dimensions": [d.to_payload() for d in self.dimensions],
            "returnPropertyQuota": self.return_property_quota,
        })
        return body


def cell_text(value: Any) -> str:
    """Normalize a raw cell value to text."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _normalize_label(label: Any) -> str:
    return cell_text(label).replace(" ", "").lower()


def compile_column(column: RawConfigColumn, *, reference: date | None = None) -> QueryDefinition:
    """Build a :class:`QueryDefinition` from one configuration column.

    Completeness is not checked here; see ``repository.is_complete``.

    Raises:
        FieldOrderError: a labeled cell sits at the position of another field.
        TooManyDateRanges, InvalidDateRange, InvalidDateAlias: bad date ranges.
    """
    cells = list(column)
    query = QueryDefinition()

    for i, spec in enumerate(FIELD_SCHEMA):
        label, value = cells[i] if i < len(cells) else ("", "")
        normalized = _normalize_label(label)
        if normalized and normalized != spec.name.lower():
            raise FieldOrderError(
                f"Expected field '{spec.name}' at row {i + 1}, found label '{label}'"
            )

        if spec.handling is FieldHandling.SCALAR:
            setattr(query, spec.name, cell_text(value))
        elif spec.handling is FieldHandling.PROPERTY:
            query.property = cell_text(value)
        elif spec.handling is FieldHandling.EXPAND:
            setattr(query, _EXPANDED_ATTRS[spec.kind], expand(value, spec.kind, reference=reference))

    for label, value in cells[len(FIELD_SCHEMA):]:
        key, text = cell_text(label), cell_text(value)
        if key and text:
            query.options[key] = text

    query.return_property_quota = True
    return query
