from __future__ import annotations

from datetime import date

import pytest

from ga4sheet_lib.compiler import FIELD_NAMES, QueryDefinition, cell_text, compile_column
from ga4sheet_lib.errors import FieldOrderError, TooManyDateRanges
from ga4sheet_lib.fields import DateRange, Dimension, Metric
from ga4sheet_lib.repository import is_complete

REF = date(2024, 3, 15)


def _column(**overrides):
    values = {
        "name": "daily_sessions",
        "account": "1234",
        "property": "987654",
        "dateRanges": "yesterday:today",
        "metrics": "activeUsers;sessions",
        "dimensions": "date;sessionSource",
        "metricFilters": "",
        "dimensionFilters": "",
    }
    values.update(overrides)
    return [(name, values[name]) for name in FIELD_NAMES]


def test_compile_complete_column():
    query = compile_column(_column(), reference=REF)

    assert query.name == "daily_sessions"
    assert query.account == "1234"
    assert query.property == "987654"
    assert query.date_ranges == [DateRange("2024-03-14", "2024-03-15", "0")]
    assert query.metrics == [Metric("activeUsers"), Metric("sessions")]
    assert query.dimensions == [Dimension("date"), Dimension("sessionSource")]
    assert query.return_property_quota is True
    assert is_complete(query)


def test_name_and_account_assigned_independently():
    query = compile_column(_column(name="report", account="acc"), reference=REF)
    assert query.name == "report"
    assert query.account == "acc"


def test_filters_are_ignored():
    query = compile_column(
        _column(metricFilters="sessions>10", dimensionFilters="country==JP"),
        reference=REF,
    )
    assert query.options == {}
    assert "metricFilters" not in query.payload()
    assert "dimensionFilters" not in query.payload()


def test_payload_embeds_property_and_quota_flag():
    payload = compile_column(_column(), reference=REF).payload()

    assert payload["property"] == "987654"
    assert payload["returnPropertyQuota"] is True
    assert payload["metrics"] == [{"name": "activeUsers"}, {"name": "sessions"}]
    assert payload["dimensions"] == [{"name": "date"}, {"name": "sessionSource"}]
    assert payload["dateRanges"] == [
        {"startDate": "2024-03-14", "endDate": "2024-03-15", "name": "0"}
    ]


def test_extra_cells_pass_through_as_options():
    column = _column() + [("limit", "500"), ("", "orphan"), ("offset", "")]
    query = compile_column(column, reference=REF)

    assert query.options == {"limit": "500"}
    assert query.payload()["limit"] == "500"


def test_short_column_treated_as_empty_cells():
    query = compile_column([("name", "only_name")], reference=REF)

    assert query.name == "only_name"
    assert query.property == ""
    assert query.metrics == []
    assert not is_complete(query)


def test_blank_column_compiles_to_empty_definition():
    query = compile_column([(label, "") for label in FIELD_NAMES], reference=REF)
    assert query == QueryDefinition()


def test_labels_are_optional_and_case_insensitive():
    unlabeled = [("", v) for _, v in _column()]
    relabeled = [(label.upper(), v) for label, v in _column()]

    assert compile_column(unlabeled, reference=REF) == compile_column(_column(), reference=REF)
    assert compile_column(relabeled, reference=REF) == compile_column(_column(), reference=REF)


def test_misaligned_label_raises():
    column = _column()
    column[3], column[4] = column[4], column[3]

    with pytest.raises(FieldOrderError, match="dateRanges"):
        compile_column(column, reference=REF)


def test_too_many_date_ranges_propagates():
    with pytest.raises(TooManyDateRanges):
        compile_column(_column(dateRanges=";".join(["today:today"] * 5)), reference=REF)


def test_compile_is_idempotent():
    column = _column(dateRanges="monthTruncate:today;2024-01-01:2024-01-31")
    assert compile_column(column, reference=REF) == compile_column(column, reference=REF)


def test_numeric_cells_rendered_as_text():
    query = compile_column(_column(property=987654.0, account=1234), reference=REF)
    assert query.property == "987654"
    assert query.account == "1234"


def test_cell_text():
    assert cell_text(None) == ""
    assert cell_text("  a ") == "a"
    assert cell_text(12.5) == "12.5"
