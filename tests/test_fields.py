from __future__ import annotations

from datetime import date, datetime

import pytest

from ga4sheet_lib.errors import InvalidDateRange, TooManyDateRanges
from ga4sheet_lib.fields import DateRange, Dimension, FieldKind, Metric, expand, split_tokens

REF = date(2024, 3, 15)


def test_expand_metrics_preserves_order():
    assert expand("activeUsers;sessions", FieldKind.METRIC) == [
        Metric(name="activeUsers"),
        Metric(name="sessions"),
    ]


def test_expand_dimensions_verbatim():
    assert expand("date;sessionSource", FieldKind.DIMENSION) == [
        Dimension(name="date"),
        Dimension(name="sessionSource"),
    ]


def test_expand_empty_cell_yields_empty_list():
    assert expand("", FieldKind.METRIC) == []
    assert expand(None, FieldKind.DIMENSION) == []
    assert expand("", FieldKind.DATE_RANGE) == []


def test_split_tokens_drops_blank_tokens():
    assert split_tokens(" sessions ; ;activeUsers;") == ["sessions", "activeUsers"]


@pytest.mark.parametrize("cell", [date(2024, 3, 1), datetime(2024, 3, 1)])
def test_typed_date_cell_becomes_iso_start(cell):
    assert split_tokens(cell) == ["2024-03-01"]
    assert expand(cell, FieldKind.DATE_RANGE, reference=REF) == [DateRange("2024-03-01", "", "0")]


def test_expand_date_ranges_labels_by_position():
    got = expand("yesterday:today;2024-02-01:2024-02-15", FieldKind.DATE_RANGE, reference=REF)
    assert got == [
        DateRange(start_date="2024-03-14", end_date="2024-03-15", label="0"),
        DateRange(start_date="2024-02-01", end_date="2024-02-15", label="1"),
    ]


def test_expand_date_range_month_truncate():
    got = expand("monthTruncate:today", FieldKind.DATE_RANGE, reference=REF)
    assert got == [DateRange(start_date="2024-03-01", end_date="2024-03-15", label="0")]


def test_expand_four_date_ranges_allowed():
    cell = ";".join(["today:today"] * 4)
    got = expand(cell, FieldKind.DATE_RANGE, reference=REF)
    assert [r.label for r in got] == ["0", "1", "2", "3"]


def test_expand_five_date_ranges_raises():
    cell = ";".join(["today:today"] * 5)
    with pytest.raises(TooManyDateRanges, match="maximum 4"):
        expand(cell, FieldKind.DATE_RANGE, reference=REF)


def test_too_many_date_ranges_checked_before_parsing():
    # The bad alias in the first token is never reached.
    cell = "bogus:today;" + ";".join(["today:today"] * 4)
    with pytest.raises(TooManyDateRanges):
        expand(cell, FieldKind.DATE_RANGE, reference=REF)


def test_date_range_without_end_is_incomplete():
    (got,) = expand("today", FieldKind.DATE_RANGE, reference=REF)
    assert got.start_date == "2024-03-15"
    assert got.end_date == ""
    assert got.is_complete is False


def test_date_range_with_extra_separator_raises():
    with pytest.raises(InvalidDateRange):
        expand("2024-01-01:2024-01-02:2024-01-03", FieldKind.DATE_RANGE, reference=REF)


def test_date_range_payload_uses_label_as_name():
    assert DateRange("2024-01-01", "2024-01-31", "2").to_payload() == {
        "startDate": "2024-01-01",
        "endDate": "2024-01-31",
        "name": "2",
    }


def test_unknown_kind_raises():
    with pytest.raises(TypeError):
        expand("x", "metric")
