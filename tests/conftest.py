from __future__ import annotations

import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from riprap.analysis.call_graph import CallGraph, build_call_graph
from riprap.analysis.catalog import build_catalog
from riprap.analysis.model import SourceUnit
from riprap.analysis.patterns import scan_unit


@pytest.fixture
def make_graph():
    def _make(*units: SourceUnit) -> CallGraph:
        scans = [scan_unit(item) for item in units]
        catalog = build_catalog(units, scans)
        return build_call_graph(catalog, (item.call_sites for item in units))

    return _make


@pytest.fixture
def write_payload():
    def _write(path: Path, payload: dict[str, object]) -> Path:
        path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sample_payload() -> dict[str, object]:
    return {
        "version": 1,
        "roots": ["DataService.syncData", "APIClient.login"],
        "units": [
            {
                "path": "Sources/DataService.swift",
                "functions": [
                    {
                        "name": "DataService.syncData",
                        "line": 10,
                        "params": [
                            {"name": "userId"},
                            {"name": "completion", "callback": True},
                        ],
                        "body": [
                            {
                                "kind": "closure",
                                "line": 12,
                                "children": [
                                    {
                                        "kind": "closure",
                                        "line": 14,
                                        "children": [{"kind": "closure", "line": 16}],
                                    }
                                ],
                            }
                        ],
                    },
                    {
                        "name": "DataService.fetchRemote",
                        "line": 30,
                        "params": [{"name": "completion", "callback": True}],
                        "body": [],
                    },
                ],
                "calls": [
                    {
                        "caller": "DataService.syncData",
                        "callee": "DataService.fetchRemote",
                        "target": "fetchRemote",
                        "line": 12,
                    }
                ],
            },
            {
                "path": "Sources/APIClient.swift",
                "functions": [
                    {
                        "name": "APIClient.login",
                        "line": 12,
                        "interop": True,
                        "params": [{"name": "completion", "callback": True}],
                        "body": [],
                    }
                ],
            },
        ],
    }
