from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from riprap.analysis.model import (
    BodyNode,
    CallSite,
    FunctionSignature,
    Parameter,
    ParsedFunction,
    SourceUnit,
)
from riprap.exceptions import PayloadError
from riprap.ingest.adapter_contract import FrontEnd, IngestBundle
from riprap.schema import BodyNodeDTO, FrontEndPayload, FunctionDTO, SourceUnitDTO

logger = logging.getLogger(__name__)


def _body_node(dto: BodyNodeDTO) -> BodyNode:
    return BodyNode(
        kind=dto.kind,
        line=dto.line,
        checked=dto.checked,
        callee=dto.callee,
        children=tuple(_body_node(child) for child in dto.children),
    )


def _function(dto: FunctionDTO, path: str) -> ParsedFunction:
    signature = FunctionSignature(
        qualname=dto.name,
        path=path,
        line=dto.line,
        params=tuple(Parameter(p.name, p.callback) for p in dto.params),
        return_kind=dto.returns,
        interop_exposed=dto.interop,
        protocol_conformance=dto.protocol or None,
        structured=dto.structured,
    )
    body = None if dto.body is None else tuple(_body_node(node) for node in dto.body)
    return ParsedFunction(signature=signature, body=body)


def source_unit(dto: SourceUnitDTO) -> SourceUnit:
    return SourceUnit(
        path=dto.path,
        text=dto.text,
        parse_error=dto.parse_error,
        functions=tuple(_function(function, dto.path) for function in dto.functions),
        call_sites=tuple(
            CallSite(call.caller, call.callee, call.target or call.callee or "", call.line)
            for call in dto.calls
        ),
    )


def parse_payload(raw: str | bytes, *, path: str = "") -> FrontEndPayload:
    try:
        return FrontEndPayload.model_validate_json(raw)
    except ValidationError as exc:
        raise PayloadError(f"invalid front-end payload: {exc}", path=path) from exc


class JsonFrontEnd(FrontEnd):
    """Reads payloads produced ahead of time by an external parser."""

    language_id = "json"
    file_extensions = (".json",)

    def load(self, paths: list[Path]) -> IngestBundle:
        units: list[SourceUnit] = []
        roots: list[str] = []
        for path in paths:
            try:
                raw = path.read_text(encoding="utf-8")
            except OSError as exc:
                raise PayloadError(f"cannot read payload: {exc}", path=str(path)) from exc
            payload = parse_payload(raw, path=str(path))
            units.extend(source_unit(unit) for unit in payload.units)
            roots.extend(payload.roots)
            logger.debug("loaded %d units from %s", len(payload.units), path)
        return IngestBundle(
            language_id=self.language_id,
            file_paths=tuple(paths),
            units=tuple(units),
            roots=tuple(roots),
        )
