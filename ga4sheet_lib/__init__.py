"""ga4sheet_lib – GA4 reports configured in, and written to, Google Sheets.

Public modules
--------------
Config compilation:
    date_alias     : resolve_single, resolve_range (today / yesterday / monthTruncate)
    fields         : FieldKind, Metric, Dimension, DateRange, expand
    compiler       : FIELD_SCHEMA, QueryDefinition, compile_column
    repository     : is_complete, load_all

Responses:
    flatten        : RawResponse, ResponseRow, flatten, header_row, to_frame

Collaborators:
    credentials    : list_service_account_paths, resolve_service_account_path
    megaton_client : get_megaton, open_spreadsheet, creds_path_for_property
    sheets         : SheetConfigSource, SheetSink
    ga4_client     : Ga4Executor, build_request, to_raw_response

Orchestration:
    runner         : run_reports, append_report
    errors         : ReportError and subclasses
"""
