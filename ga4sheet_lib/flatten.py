"""Flatten GA4 report responses into worksheet rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import pandas as pd

from ga4sheet_lib.compiler import QueryDefinition
from ga4sheet_lib.errors import ResponseShapeError
from ga4sheet_lib.fields import DateRange

DATE_DIMENSION = "date"
LEADING_COLUMNS = ["startDate", "endDate"]
TRAILING_COLUMN = "reportTime"


@dataclass
class ResponseRow:
    dimension_values: list[Any] = field(default_factory=list)
    metric_values: list[Any] = field(default_factory=list)


@dataclass
class RawResponse:
    """Tabular part of a runReport response."""
    dimension_headers: list[str] = field(default_factory=list)
    metric_headers: list[str] = field(default_factory=list)
    rows: list[ResponseRow] = field(default_factory=list)
    property_quota: dict[str, Any] | None = None


def format_timestamp(as_of: datetime) -> str:
    """Return *as_of* as an ISO-8601 UTC instant, e.g. ``2024-03-15T10:00:00.000Z``."""
    if as_of.tzinfo is None:
        as_of = as_of.replace(tzinfo=timezone.utc)
    utc = as_of.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _iso_from_compact(value: Any) -> str:
    try:
        return datetime.strptime(str(value), "%Y%m%d").date().isoformat()
    except ValueError as e:
        raise ResponseShapeError(f"Invalid date dimension value: '{value}'") from e


def _has_range_index(query: QueryDefinition) -> bool:
    return len(query.date_ranges) > 1


def _row_date_range(query: QueryDefinition, row: ResponseRow) -> DateRange:
    if not _has_range_index(query):
        return query.date_ranges[0]
    if not row.dimension_values:
        raise ResponseShapeError("Row has no date range index")
    label = str(row.dimension_values[-1])
    for date_range in query.date_ranges:
        if date_range.label == label:
            return date_range
    raise ResponseShapeError(f"Unknown date range index: '{label}'")


def flatten(query: QueryDefinition, response: RawResponse, as_of: datetime) -> list[list[Any]]:
    """Convert response rows to ``[startDate, endDate, *dims, *metrics, reportTime]``.

    With several date ranges, GA4 appends the range name as the last dimension
    value of each row; it selects the range and is not written out. A ``date``
    dimension (``YYYYMMDD``) is rewritten as ``YYYY-MM-DD`` in place.
    """
    if not response.rows:
        return []

    date_index = (
        response.dimension_headers.index(DATE_DIMENSION)
        if DATE_DIMENSION in response.dimension_headers
        else -1
    )
    report_time = format_timestamp(as_of)
    out: list[list[Any]] = []

    for row in response.rows:
        date_range = _row_date_range(query, row)
        dims = row.dimension_values
        n_dims = len(dims) - 1 if _has_range_index(query) else len(dims)

        values: list[Any] = [date_range.start_date, date_range.end_date]
        for i in range(n_dims):
            values.append(_iso_from_compact(dims[i]) if i == date_index else dims[i])
        values.extend(row.metric_values)
        values.append(report_time)
        out.append(values)

    return out


def header_row(query: QueryDefinition, response: RawResponse) -> list[str]:
    """Column headers matching the rows produced by :func:`flatten`."""
    dims = list(response.dimension_headers)
    if _has_range_index(query) and dims:
        dims = dims[:-1]
    return [*LEADING_COLUMNS, *dims, *response.metric_headers, TRAILING_COLUMN]


def to_frame(query: QueryDefinition, response: RawResponse, as_of: datetime) -> pd.DataFrame:
    """Return flattened rows as a DataFrame with :func:`header_row` columns."""
    return pd.DataFrame(flatten(query, response, as_of), columns=header_row(query, response))
