"""Megaton instances per service account, and GA4 property routing.

Several service account JSON files may be present; each GA4 property is
routed to the credential that can see it.
"""
import logging

from megaton import start

from ga4sheet_lib.credentials import list_service_account_paths, resolve_service_account_path

logger = logging.getLogger(__name__)

_instances: dict[str, object] = {}     # creds_path -> Megaton instance
_property_map: dict[str, str] = {}     # property_id -> creds_path
_registry_built = False


def _normalize_key(value: object) -> str:
    return str(value).strip()


def reset_registry() -> None:
    """Forget cached instances and property routing."""
    global _registry_built
    _property_map.clear()
    _instances.clear()
    _registry_built = False


def get_megaton(creds_path: str | None = None):
    """Return a Megaton instance, one per credential path.

    creds_path=None uses the first credential found.
    """
    if creds_path is None:
        creds_path = resolve_service_account_path()
    if creds_path not in _instances:
        _instances[creds_path] = start.Megaton(creds_path, headless=True)
    return _instances[creds_path]


def build_registry() -> None:
    """Map every visible GA4 property to its credential path (first call only)."""
    global _registry_built
    if _registry_built:
        return

    for path in list_service_account_paths():
        mg = get_megaton(path)
        try:
            for acc in mg.ga["4"].accounts:
                for prop in acc.get("properties", []):
                    _property_map.setdefault(_normalize_key(prop["id"]), path)
        except Exception as e:
            logger.debug("Skipping GA4 for %s: %s", path, e)

    _registry_built = True


def creds_path_for_property(property_id: str) -> str:
    """Return the credential path that can read *property_id*.

    With a single credential file no lookup is done.

    Raises:
        FileNotFoundError: no credential file exists.
        ValueError: no credential can see the property.
    """
    paths = list_service_account_paths()
    if not paths:
        raise FileNotFoundError(
            "No service account JSON found. "
            "Place a JSON file in credentials/ or set REPORT_CREDS_PATH."
        )
    if len(paths) == 1:
        return paths[0]

    key = _normalize_key(property_id).removeprefix("properties/")
    build_registry()
    creds_path = _property_map.get(key)
    if creds_path is None:
        known_ids = sorted(_property_map.keys()) or ["(none)"]
        raise ValueError(
            f"No credential found for property_id: {property_id}\n"
            f"  Credential files found: {paths}\n"
            f"  Known property IDs: {known_ids}"
        )
    return creds_path


def open_spreadsheet(sheet_url: str, creds_path: str | None = None):
    """Return a Megaton instance with *sheet_url* opened.

    Raises:
        ValueError: the spreadsheet could not be opened.
    """
    mg = get_megaton(creds_path)
    mg.open.sheet(sheet_url)
    if not getattr(mg, "gs", None) or not getattr(mg.gs, "_driver", None):
        raise ValueError(f"Google Sheets could not be opened: {sheet_url}")
    return mg
