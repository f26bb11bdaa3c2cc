"""Google Sheets adapters: read report configs, append report rows.

Both adapters take a Megaton instance with a spreadsheet already opened
(see ``megaton_client.open_spreadsheet``) and work on the underlying gspread
objects for cell-level reads and appends.

ReportConfig layout::

    |            | Report A        | Report B | ...
    | name       | sessions_daily  | ...
    | account    | 123456          |
    | property   | 987654          |
    | dateRanges | yesterday:today |
    | metrics    | sessions        |
    | dimensions | date            |
    | ...
"""

from __future__ import annotations

import logging
import os

from ga4sheet_lib.compiler import RawConfigColumn
from ga4sheet_lib.errors import ConfigurationMissing

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_SHEET = "ReportConfig"
VALUE_INPUT_OPTION = "USER_ENTERED"


def config_sheet_name() -> str:
    """Config worksheet name from REPORT_CONFIG_SHEET (default: ReportConfig)."""
    return os.getenv("REPORT_CONFIG_SHEET", "").strip() or DEFAULT_CONFIG_SHEET


def _require_opened(mg) -> None:
    if not getattr(mg, "gs", None) or not getattr(mg.gs, "_driver", None):
        raise ValueError("Google Sheets is not opened. Call mg.open.sheet(url) first.")


class SheetConfigSource:
    """Report configurations stored column-wise in one worksheet."""

    def __init__(self, mg, sheet_name: str | None = None):
        _require_opened(mg)
        self.mg = mg
        self.sheet_name = sheet_name or config_sheet_name()

    def _values(self) -> list[list]:
        if self.sheet_name not in list(self.mg.gs.sheets):
            raise ConfigurationMissing(f"Configuration not found: worksheet '{self.sheet_name}'")
        ws = self.mg.gs._driver.worksheet(self.sheet_name)
        return ws.get_all_values()

    @staticmethod
    def _width(values: list[list]) -> int:
        return max((len(r) for r in values), default=0)

    def get_column_count(self) -> int:
        """Number of report columns (label column excluded)."""
        return max(self._width(self._values()) - 1, 0)

    def get_columns(self) -> list[RawConfigColumn]:
        """Return one ``[(label, value), ...]`` list per report column."""
        values = self._values()
        body = values[1:]  # row 1 holds report titles
        labels = [row[0] if row else "" for row in body]
        columns: list[RawConfigColumn] = []
        for c in range(1, self._width(values)):
            columns.append([
                (labels[r], row[c] if c < len(row) else "")
                for r, row in enumerate(body)
            ])
        return columns


class SheetTable:
    """Append-only view on one worksheet."""

    def __init__(self, worksheet):
        self.worksheet = worksheet

    def append_row(self, values: list) -> None:
        self.worksheet.append_row(values, value_input_option=VALUE_INPUT_OPTION)

    def append_rows(self, rows: list[list]) -> None:
        if rows:
            self.worksheet.append_rows(rows, value_input_option=VALUE_INPUT_OPTION)


class SheetSink:
    """Destination worksheets named after each report."""

    def __init__(self, mg):
        _require_opened(mg)
        self.mg = mg

    def ensure_table(self, name: str, header: list[str]) -> SheetTable:
        """Return the worksheet *name*, creating it with *header* when missing."""
        created = name not in list(self.mg.gs.sheets)
        if created:
            logger.info("Creating worksheet %s", name)
            self.mg.gs.sheet.create(name)
        table = SheetTable(self.mg.gs._driver.worksheet(name))
        if created:
            table.append_row(header)
        return table
