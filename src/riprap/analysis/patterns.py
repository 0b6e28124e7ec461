"""Asynchronous-pattern scanner.

Works on the structured body tree supplied by a front end, never on raw
source text, so occurrences inside comments or string literals cannot match.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from riprap.analysis.model import (
    BodyNode,
    NodeKind,
    ParsedFunction,
    Pattern,
    PatternKind,
    ScanReport,
    SourceUnit,
)
from riprap.exceptions import BodyScanError

logger = logging.getLogger(__name__)

_KNOWN_KINDS = frozenset(kind.value for kind in NodeKind)


def _validate(function: str, nodes: Iterable[BodyNode]) -> None:
    pending = list(nodes)
    pending.reverse()
    while pending:
        node = pending.pop()
        if not isinstance(node, BodyNode):
            raise BodyScanError(function, f"unexpected body element {node!r}")
        if node.kind not in _KNOWN_KINDS:
            raise BodyScanError(function, f"unknown node kind {node.kind!r} at line {node.line}")
        if node.line < 1:
            raise BodyScanError(function, f"{node.kind} node has invalid line {node.line}")
        pending.extend(reversed(node.children))


def closure_depth(nodes: Iterable[BodyNode]) -> int:
    """Deepest nesting of closure nodes below `nodes`."""
    deepest = 0
    pending = [(node, 0) for node in nodes]
    while pending:
        node, above = pending.pop()
        depth = above + 1 if node.kind == NodeKind.CLOSURE else above
        deepest = max(deepest, depth)
        pending.extend((child, depth) for child in node.children)
    return deepest


def _walk(function: str, nodes: Iterable[BodyNode]) -> Iterator[Pattern]:
    # Pre-order with an explicit stack; bodies can nest deeper than the
    # interpreter recursion limit.
    pending = [(node, 0, 0) for node in reversed(tuple(nodes))]
    while pending:
        node, enclosing, suspensions = pending.pop()
        if node.kind == NodeKind.SUSPENSION:
            kind = (
                PatternKind.SUSPENSION_CHECKED
                if node.checked
                else PatternKind.SUSPENSION_UNCHECKED_UNSAFE
            )
            yield Pattern(kind, function, node.line, enclosing, node.callee)
            if suspensions:
                yield Pattern(
                    PatternKind.NESTED_SUSPENSION,
                    function,
                    node.line,
                    suspensions,
                    node.callee,
                )
            inner = (enclosing + 1, suspensions + 1)
        else:
            if node.kind == NodeKind.AWAIT:
                yield Pattern(
                    PatternKind.NATIVE_STRUCTURED, function, node.line, enclosing, node.callee
                )
            nested = enclosing + 1 if node.kind == NodeKind.CLOSURE else enclosing
            inner = (nested, suspensions)
        pending.extend((child, *inner) for child in reversed(node.children))


def scan_function(function: ParsedFunction) -> tuple[Pattern, ...]:
    """Return the patterns of one function in source order.

    Raises BodyScanError when the body is missing or malformed.
    """
    signature = function.signature
    name = signature.qualname
    if function.body is None:
        raise BodyScanError(name, "function body unavailable")
    _validate(name, function.body)
    patterns: list[Pattern] = []
    if signature.structured:
        patterns.append(Pattern(PatternKind.NATIVE_STRUCTURED, name, signature.line))
    callback_depth = 1 + closure_depth(function.body)
    for _param in signature.callback_params:
        patterns.append(
            Pattern(PatternKind.CALLBACK_PARAMETER, name, signature.line, callback_depth)
        )
    patterns.extend(_walk(name, function.body))
    return tuple(patterns)


def scan_unit(unit: SourceUnit) -> tuple[ScanReport, ...]:
    """Scan every function of a unit; failures stay local to their function."""
    reports: list[ScanReport] = []
    for function in unit.functions:
        name = function.signature.qualname
        if not unit.parsed:
            reports.append(ScanReport(name, failure=f"unit failed to parse: {unit.parse_error}"))
            continue
        try:
            patterns = scan_function(function)
        except BodyScanError as exc:
            logger.warning("cannot scan %s in %s: %s", name, unit.path, exc.reason)
            reports.append(ScanReport(name, failure=exc.reason))
            continue
        reports.append(ScanReport(name, patterns=patterns))
    return tuple(reports)
