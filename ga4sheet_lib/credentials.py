"""Service account JSON lookup."""

from __future__ import annotations

import os
from pathlib import Path


DEFAULT_CREDS_DIR = Path("credentials")
DEFAULT_ENV_VAR = "REPORT_CREDS_PATH"

SCOPES = [
    "https://www.googleapis.com/auth/analytics.readonly",
    "https://www.googleapis.com/auth/spreadsheets",
]


def _json_files(directory: Path) -> list[str]:
    """Sorted ``*.json`` files directly inside *directory*."""
    return sorted(str(p) for p in directory.glob("*.json") if p.is_file())


def _env_location(env_var: str) -> Path | None:
    raw = os.environ.get(env_var, "").strip()
    return Path(raw).expanduser() if raw else None


def list_service_account_paths(
    env_var: str = DEFAULT_ENV_VAR,
    default_dir: Path | str = DEFAULT_CREDS_DIR,
) -> list[str]:
    """Every service account JSON a run may use.

    *env_var* may name one key file or a directory of them; it overrides
    *default_dir*. A missing default directory just means no credentials.

    Raises:
        FileNotFoundError: *env_var* is set to a path that does not exist.
    """
    location = _env_location(env_var)
    if location is None:
        location = Path(default_dir)
        return _json_files(location) if location.is_dir() else []
    if location.is_file():
        return [str(location)]
    if location.is_dir():
        return _json_files(location)
    raise FileNotFoundError(f"{env_var} points to missing path: {location}")


def resolve_service_account_path(
    explicit: str | None = None,
    env_var: str = DEFAULT_ENV_VAR,
    default_dir: Path | str = DEFAULT_CREDS_DIR,
) -> str:
    """Return the first service account JSON, preferring *explicit*.

    Raises:
        FileNotFoundError: nothing found, or *explicit* does not exist.
    """
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise FileNotFoundError(f"Service account JSON not found: {path}")
        return str(path)

    paths = list_service_account_paths(env_var, default_dir)
    if not paths:
        raise FileNotFoundError(
            "No service account JSON found. "
            f"Place a JSON file in {default_dir}/ or set {env_var}."
        )
    return paths[0]
