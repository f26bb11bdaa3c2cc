"""Expansion of ``;``-delimited configuration cells into typed request parts."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime

from ga4sheet_lib.date_alias import resolve_range
from ga4sheet_lib.errors import InvalidDateRange, TooManyDateRanges

MAX_DATE_RANGES = 4
VALUE_SEPARATOR = ";"
RANGE_SEPARATOR = ":"


class FieldKind(enum.Enum):
    METRIC = "metric"
    DIMENSION = "dimension"
    DATE_RANGE = "dateRange"


@dataclass(frozen=True)
class Metric:
    name: str

    def to_payload(self) -> dict[str, str]:
        return {"name": self.name}


@dataclass(frozen=True)
class Dimension:
    name: str

    def to_payload(self) -> dict[str, str]:
        return {"name": self.name}


@dataclass(frozen=True)
class DateRange:
    start_date: str  # YYYY-MM-DD
    end_date: str    # YYYY-MM-DD
    label: str       # zero-based position in the source cell

    @property
    def is_complete(self) -> bool:
        return bool(self.start_date and self.end_date)

    def to_payload(self) -> dict[str, str]:
        return {"startDate": self.start_date, "endDate": self.end_date, "name": self.label}


def split_tokens(value) -> list[str]:
    """Split a cell on ``;`` dropping blank tokens.

    Date cells typed by the spreadsheet become ISO date tokens.
    """
    if value is None:
        return []
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return [value.isoformat()]
    return [t.strip() for t in str(value).split(VALUE_SEPARATOR) if t.strip()]


def _parse_date_range(token: str, index: int, reference: date | None) -> DateRange:
    parts = token.split(RANGE_SEPARATOR)
    if len(parts) > 2:
        raise InvalidDateRange(
            f"Date range must be 'start:end', got '{token}'"
        )
    start = parts[0].strip()
    end = parts[1].strip() if len(parts) == 2 else ""
    start_date, end_date = resolve_range(start, end, reference=reference)
    return DateRange(start_date=start_date, end_date=end_date, label=str(index))


def expand(value, kind: FieldKind, *, reference: date | None = None) -> list:
    """Expand one cell into a list of typed objects.

    >>> expand("activeUsers;sessions", FieldKind.METRIC)
    [Metric(name='activeUsers'), Metric(name='sessions')]

    Raises:
        TooManyDateRanges: more than four date ranges in a ``DATE_RANGE`` cell.
        InvalidDateRange: a date range token holds more than one ``:``.
    """
    tokens = split_tokens(value)

    if kind is FieldKind.METRIC:
        return [Metric(name=t) for t in tokens]

    if kind is FieldKind.DIMENSION:
        return [Dimension(name=t) for t in tokens]

    if kind is FieldKind.DATE_RANGE:
        if len(tokens) > MAX_DATE_RANGES:
            raise TooManyDateRanges(
                f"Only maximum {MAX_DATE_RANGES} date ranges can be in report, got {len(tokens)}"
            )
        return [_parse_date_range(t, i, reference) for i, t in enumerate(tokens)]

    raise TypeError(f"Unsupported field kind: {kind!r}")
