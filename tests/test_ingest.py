from __future__ import annotations

from pathlib import Path

import pytest

from riprap.analysis.model import NodeKind
from riprap.exceptions import PayloadError, UnknownFrontEnd
from riprap.ingest import FRONT_ENDS, FrontEndRegistry, JsonFrontEnd, parse_payload, source_unit


class _StubFrontEnd:
    language_id = "Swift"
    file_extensions = (".SWIFTAST",)

    def load(self, paths):
        raise NotImplementedError


def test_json_front_end_is_the_default() -> None:
    assert FRONT_ENDS.languages() == ["json"]
    assert isinstance(FRONT_ENDS.select([Path("payload.json")]), JsonFrontEnd)
    assert isinstance(FRONT_ENDS.select([Path("noext")]), JsonFrontEnd)
    assert isinstance(FRONT_ENDS.select([], "JSON"), JsonFrontEnd)


def test_selection_by_language_and_suffix() -> None:
    registry = FrontEndRegistry(default=JsonFrontEnd())
    swift = _StubFrontEnd()
    registry.register(swift)
    assert registry.languages() == ["json", "swift"]
    assert registry.select([Path("a.swiftast")]) is swift
    assert registry.select([Path("notes"), Path("b.SwiftAST")]) is swift
    assert registry.select([Path("a.swiftast")], "json") is registry.default


def test_unknown_language_is_rejected() -> None:
    with pytest.raises(UnknownFrontEnd) as excinfo:
        FRONT_ENDS.select([], "cobol")
    assert excinfo.value.language_id == "cobol"
    assert "json" in str(excinfo.value)


def test_load_converts_payload(tmp_path: Path, write_payload, sample_payload) -> None:
    path = write_payload(tmp_path / "payload.json", sample_payload)
    bundle = JsonFrontEnd().load([path])
    assert bundle.language_id == "json"
    assert bundle.roots == ("DataService.syncData", "APIClient.login")
    assert [u.path for u in bundle.units] == [
        "Sources/DataService.swift",
        "Sources/APIClient.swift",
    ]
    sync = bundle.units[0].functions[0]
    assert sync.signature.path == "Sources/DataService.swift"
    assert [p.name for p in sync.signature.callback_params] == ["completion"]
    assert sync.body[0].kind == NodeKind.CLOSURE
    assert sync.body[0].children[0].children[0].line == 16
    call = bundle.units[0].call_sites[0]
    assert (call.caller, call.callee, call.target, call.line) == (
        "DataService.syncData",
        "DataService.fetchRemote",
        "fetchRemote",
        12,
    )
    assert bundle.units[1].functions[0].signature.interop_exposed


def test_null_body_means_unavailable() -> None:
    payload = parse_payload(
        '{"units": [{"path": "a.swift", "functions": [{"name": "f", "body": null}, {"name": "g"}]}]}'
    )
    unit = source_unit(payload.units[0])
    assert unit.functions[0].body is None
    assert unit.functions[1].body == ()


def test_unresolved_call_target_defaults_to_callee() -> None:
    payload = parse_payload(
        '{"units": [{"path": "a.swift", "calls": [{"caller": "f", "callee": "g"}]}]}'
    )
    assert source_unit(payload.units[0]).call_sites[0].target == "g"


def test_invalid_payload_raises_payload_error(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text('{"units": [{"functions": []}]}', encoding="utf-8")
    with pytest.raises(PayloadError) as excinfo:
        JsonFrontEnd().load([path])
    assert excinfo.value.path == str(path)


def test_missing_payload_file_raises_payload_error(tmp_path: Path) -> None:
    with pytest.raises(PayloadError):
        JsonFrontEnd().load([tmp_path / "absent.json"])
