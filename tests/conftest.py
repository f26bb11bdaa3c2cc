from __future__ import annotations

import sys
from pathlib import Path

# Some environments invoke `pytest` via an installed entrypoint script. In that
# case, the project root is not guaranteed to be on sys.path, and imports like
# `import scripts.run_reports` may fail. Ensure the repo root is importable.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _infer_layer_from_nodeid(nodeid: str) -> str:
    """Infer test layer marker from test file path."""
    file_name = nodeid.split("::", 1)[0].replace("\\", "/").split("/")[-1]

    integration_files = {
        "test_runner.py",
        "test_run_reports_cli.py",
    }
    contract_files = {
        "test_compiler.py",
        "test_flatten.py",
        "test_ga4_client.py",
    }

    if file_name in integration_files:
        return "integration"
    if file_name in contract_files:
        return "contract"
    return "unit"


def pytest_collection_modifyitems(items):
    """Attach one of unit/contract/integration markers to every test item."""
    import pytest

    for item in items:
        layer = _infer_layer_from_nodeid(item.nodeid)
        item.add_marker(getattr(pytest.mark, layer))
