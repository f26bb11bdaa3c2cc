"""GA4 Data API execution of compiled report payloads."""

from __future__ import annotations

import logging
from typing import Any

from google.analytics.data_v1beta import BetaAnalyticsDataClient
from google.analytics.data_v1beta.types import (
    DateRange as Ga4DateRange,
    Dimension as Ga4Dimension,
    Metric as Ga4Metric,
    RunReportRequest,
)
from google.oauth2 import service_account

from ga4sheet_lib.credentials import SCOPES
from ga4sheet_lib.errors import InvalidRequestOption
from ga4sheet_lib.flatten import RawResponse, ResponseRow
from ga4sheet_lib.megaton_client import creds_path_for_property

logger = logging.getLogger(__name__)

# Pass-through config options accepted by runReport: name -> (request field, type)
REQUEST_OPTIONS: dict[str, tuple[str, type]] = {
    "limit": ("limit", int),
    "offset": ("offset", int),
    "currencyCode": ("currency_code", str),
    "keepEmptyRows": ("keep_empty_rows", bool),
}

QUOTA_FIELDS = (
    "tokens_per_day",
    "tokens_per_hour",
    "concurrent_requests",
    "server_errors_per_project_per_hour",
    "potentially_thresholded_requests_per_hour",
    "tokens_per_project_per_hour",
)


def property_resource(property_id: str) -> str:
    """``123`` -> ``properties/123``."""
    value = str(property_id).strip()
    return value if value.startswith("properties/") else f"properties/{value}"


def _option_value(key: str, raw: Any, kind: type):
    if kind is bool:
        return str(raw).strip().lower() in {"true", "1", "yes"}
    try:
        return kind(raw)
    except (TypeError, ValueError) as e:
        raise InvalidRequestOption(f"{key}: expected {kind.__name__}, got {raw!r}") from e


def build_request(payload: dict[str, Any], property_id: str) -> RunReportRequest:
    """Translate a report payload into a ``RunReportRequest``.

    Raises:
        InvalidRequestOption: a known option cannot be converted to its type.
    """
    kwargs: dict[str, Any] = {
        "property": property_resource(property_id),
        "date_ranges": [
            Ga4DateRange(start_date=r["startDate"], end_date=r["endDate"], name=r["name"])
            for r in payload.get("dateRanges", [])
        ],
        "metrics": [Ga4Metric(name=m["name"]) for m in payload.get("metrics", [])],
        "dimensions": [Ga4Dimension(name=d["name"]) for d in payload.get("dimensions", [])],
        "return_property_quota": bool(payload.get("returnPropertyQuota", False)),
    }
    known = {"property", "dateRanges", "metrics", "dimensions", "returnPropertyQuota"}
    for key, raw in payload.items():
        if key in known:
            continue
        if key not in REQUEST_OPTIONS:
            logger.warning("Ignoring unsupported request option %s=%r", key, raw)
            continue
        field_name, kind = REQUEST_OPTIONS[key]
        kwargs[field_name] = _option_value(key, raw, kind)
    return RunReportRequest(**kwargs)


def _quota_to_dict(quota) -> dict[str, dict[str, int]] | None:
    if not quota:
        return None
    out: dict[str, dict[str, int]] = {}
    for name in QUOTA_FIELDS:
        status = getattr(quota, name, None)
        if status:
            out[name] = {"consumed": status.consumed, "remaining": status.remaining}
    return out or None


def to_raw_response(response) -> RawResponse:
    """Copy headers, rows and quota out of a ``RunReportResponse``."""
    return RawResponse(
        dimension_headers=[h.name for h in response.dimension_headers],
        metric_headers=[h.name for h in response.metric_headers],
        rows=[
            ResponseRow(
                dimension_values=[v.value for v in row.dimension_values],
                metric_values=[v.value for v in row.metric_values],
            )
            for row in response.rows
        ],
        property_quota=_quota_to_dict(getattr(response, "property_quota", None)),
    )


class Ga4Executor:
    """Runs report payloads against the GA4 Data API.

    Pass *client* to reuse one ``BetaAnalyticsDataClient`` for every property;
    otherwise a client is built per service account, chosen per property.
    """

    def __init__(self, client: BetaAnalyticsDataClient | None = None, *, creds_path: str | None = None):
        self._client = client
        self.creds_path = creds_path
        self._clients: dict[str, BetaAnalyticsDataClient] = {}

    def _client_for(self, property_id: str) -> BetaAnalyticsDataClient:
        if self._client is not None:
            return self._client
        path = self.creds_path or creds_path_for_property(property_id)
        if path not in self._clients:
            credentials = service_account.Credentials.from_service_account_file(path, scopes=SCOPES)
            self._clients[path] = BetaAnalyticsDataClient(credentials=credentials)
        return self._clients[path]

    def run(self, payload: dict[str, Any], property_id: str) -> RawResponse:
        request = build_request(payload, property_id)
        response = self._client_for(property_id).run_report(request=request)
        raw = to_raw_response(response)
        daily = (raw.property_quota or {}).get("tokens_per_day")
        if daily:
            logger.info(
                "%s quota tokens_per_day: consumed=%s remaining=%s",
                request.property, daily["consumed"], daily["remaining"],
            )
        return raw
