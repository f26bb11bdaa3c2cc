"""Load every runnable report definition from a configuration source."""

from __future__ import annotations

import logging
from datetime import date

from ga4sheet_lib.compiler import QueryDefinition, RawConfigColumn, cell_text, compile_column
from ga4sheet_lib.date_alias import current_date
from ga4sheet_lib.errors import ConfigurationError, ConfigurationMissing

logger = logging.getLogger(__name__)


def is_complete(query: QueryDefinition) -> bool:
    """True when the definition has every field needed to run a report."""
    return bool(
        query.name
        and query.account
        and query.property
        and query.metrics
        and query.dimensions
        and query.date_ranges
        and all(r.is_complete for r in query.date_ranges)
    )


def _column_name(column: RawConfigColumn) -> str:
    """Name cell of a column, for log messages."""
    cells = list(column)
    return cell_text(cells[0][1]) if cells else ""


def load_all(source, *, reference: date | None = None) -> list[QueryDefinition]:
    """Compile all configuration columns of *source*, keeping complete ones.

    Incomplete columns (e.g. a blank trailing column) are skipped silently.

    Raises:
        ConfigurationMissing: *source* has no configuration table.
        ConfigurationError: a column cannot be compiled (logged with its name).
    """
    ref = reference or current_date()
    try:
        columns = source.get_columns()
    except ConfigurationMissing:
        logger.error("Configuration not found")
        raise

    queries: list[QueryDefinition] = []
    for index, column in enumerate(columns, start=1):
        try:
            query = compile_column(column, reference=ref)
        except ConfigurationError as e:
            logger.error("Invalid report config column %d (%s): %s", index, _column_name(column), e)
            raise
        if is_complete(query):
            queries.append(query)
        else:
            logger.debug("Skipping incomplete report config column %d (%r)", index, query.name)
    return queries
