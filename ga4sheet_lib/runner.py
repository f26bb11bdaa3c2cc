"""Run every configured report and append its rows to the report worksheet."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime, timezone
from typing import Any

from ga4sheet_lib.compiler import QueryDefinition
from ga4sheet_lib.errors import ConfigurationError, ExecutionFailure
from ga4sheet_lib.flatten import RawResponse, flatten, header_row
from ga4sheet_lib.repository import load_all

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def select_reports(queries: list[QueryDefinition], only: Iterable[str] | None) -> list[QueryDefinition]:
    """Keep reports whose name is in *only* (all when *only* is empty)."""
    names = {n.strip() for n in (only or []) if n and n.strip()}
    if not names:
        return queries
    return [q for q in queries if q.name in names]


def execute(query: QueryDefinition, executor) -> RawResponse:
    """Run one report.

    Raises:
        ConfigurationError: the report options cannot form a request (not wrapped).
        ExecutionFailure: the executor raised; the original error is chained.
    """
    try:
        return executor.run(query.payload(), query.property)
    except ConfigurationError as e:
        logger.error("Invalid request for %s/%s: %s", query.property, query.name, e)
        raise
    except Exception as e:
        failure = ExecutionFailure(query.property, query.name, e)
        logger.error(str(failure))
        raise failure from e


def append_report(query: QueryDefinition, response: RawResponse, sink, as_of: datetime) -> int:
    """Append flattened rows to the report worksheet; return the row count.

    Nothing is touched when the response has no rows.
    """
    rows = flatten(query, response, as_of)
    if not rows:
        logger.info("%s: no rows", query.name)
        return 0
    table = sink.ensure_table(query.name, header_row(query, response))
    table.append_rows(rows)
    logger.info("%s: appended %d rows", query.name, len(rows))
    return len(rows)


def run_reports(
    source,
    executor,
    sink,
    *,
    reference: date | None = None,
    now: Callable[[], datetime] = utc_now,
    only: Iterable[str] | None = None,
) -> dict[str, Any]:
    """Load, execute and write every complete report, strictly in order.

    The first failure aborts the run; rows already appended stay in place.

    Returns:
        {"total": N, "row_count": N, "reports": [{"name", "property", "row_count"}, ...]}
    """
    queries = select_reports(load_all(source, reference=reference), only)
    reports = []
    for query in queries:
        response = execute(query, executor)
        row_count = append_report(query, response, sink, now())
        reports.append({"name": query.name, "property": query.property, "row_count": row_count})

    return {
        "total": len(reports),
        "row_count": sum(r["row_count"] for r in reports),
        "reports": reports,
    }
