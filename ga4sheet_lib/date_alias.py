"""Date alias resolver for report configuration cells.

Date range cells are written as ``start:end`` pairs where each side is either a
calendar date or an alias.

Supported aliases:
  today          -> execution date
  yesterday      -> execution date minus one day
  monthTruncate  -> (start only) first day of the month of the resolved end date
  YYYY-MM-DD     -> pass through (absolute date)
  YYYYMMDD       -> normalized to YYYY-MM-DD
"""

from __future__ import annotations

import os
import re
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from ga4sheet_lib.errors import InvalidDateAlias

_DEFAULT_TZ = "UTC"
_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_COMPACT_RE = re.compile(r"^\d{8}$")

MONTH_TRUNCATE = "monthTruncate"


def _resolve_timezone() -> ZoneInfo:
    """Resolve REPORT_DATE_TZ (fallback to UTC on invalid value)."""
    tz_name = os.getenv("REPORT_DATE_TZ", _DEFAULT_TZ).strip() or _DEFAULT_TZ
    try:
        return ZoneInfo(tz_name)
    except Exception:
        return ZoneInfo(_DEFAULT_TZ)


def current_date() -> date:
    """Return current date in configured timezone."""
    return datetime.now(_resolve_timezone()).date()


def resolve_single(token, *, reference: date | None = None) -> date | str:
    """Resolve ``today`` / ``yesterday``; return any other token unchanged."""
    if token == "today":
        return reference or current_date()
    if token == "yesterday":
        return (reference or current_date()) - timedelta(days=1)
    return token


def _as_date(value) -> date | None:
    """Return a concrete date for *value*, or None when it is not one."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if _ISO_RE.match(text):
        fmt = "%Y-%m-%d"
    elif _COMPACT_RE.match(text):
        fmt = "%Y%m%d"
    else:
        return None
    try:
        return datetime.strptime(text, fmt).date()
    except ValueError as e:
        raise InvalidDateAlias(f"Invalid absolute date: '{text}'") from e


def _format(value) -> str:
    if value == "":
        return ""
    resolved = _as_date(value)
    if resolved is None:
        raise InvalidDateAlias(
            f"Unknown date alias: '{value}'. "
            "Use today, yesterday, monthTruncate (start only) or YYYY-MM-DD."
        )
    return resolved.isoformat()


def resolve_range(start, end, *, reference: date | None = None) -> tuple[str, str]:
    """Resolve a ``(start, end)`` token pair to ISO dates.

    Both sides are evaluated against the same reference date, so
    ``yesterday:today`` always spans exactly one day.

    Raises:
        InvalidDateAlias: a non-empty token is not a date or a known alias.
    """
    ref = reference or current_date()
    resolved_start = resolve_single(start, reference=ref)
    resolved_end = resolve_single(end, reference=ref)

    if resolved_start == MONTH_TRUNCATE:
        if resolved_end == "":
            resolved_start = ""
        else:
            end_date = _as_date(resolved_end)
            if end_date is None:
                raise InvalidDateAlias(
                    f"{MONTH_TRUNCATE} needs a concrete end date, got '{resolved_end}'"
                )
            resolved_start = end_date + relativedelta(day=1)

    return _format(resolved_start), _format(resolved_end)
