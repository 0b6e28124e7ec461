from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from riprap.analysis.model import (
    ConstraintSummary,
    Decision,
    Failure,
    Pattern,
    Priority,
    Tier,
    TraversalRecord,
)
from riprap.json_types import JSONObject


@dataclass(frozen=True)
class FunctionReport:
    qualname: str
    path: str
    line: int
    patterns: tuple[Pattern, ...]
    constraints: ConstraintSummary
    decision: Decision
    priority: Priority
    call_sites: int = 0


@dataclass(frozen=True)
class TraversalSummary:
    reachable: tuple[str, ...]
    cycle_components: tuple[tuple[str, ...], ...]
    back_edges: tuple[tuple[str, str], ...]
    external_sinks: tuple[str, ...]
    max_depth: int

    @property
    def reachable_count(self) -> int:
        return len(self.reachable)

    @classmethod
    def from_record(cls, record: TraversalRecord) -> TraversalSummary:
        return cls(
            reachable=tuple(str(node) for node in record.visited),
            cycle_components=record.cycle_components,
            back_edges=record.back_edges,
            external_sinks=record.external_sinks,
            max_depth=record.max_depth,
        )


@dataclass(frozen=True)
class RootReport:
    function: FunctionReport
    traversal: TraversalSummary
    dependencies: tuple[FunctionReport, ...] = ()

    @property
    def qualname(self) -> str:
        return self.function.qualname


@dataclass(frozen=True)
class AnalysisResult:
    """Engine output; roots keep their declaration order."""

    roots: tuple[RootReport, ...] = ()
    failures: tuple[Failure, ...] = ()

    @classmethod
    def empty(cls) -> AnalysisResult:
        return cls()

    def root(self, qualname: str) -> RootReport | None:
        for report in self.roots:
            if report.qualname == qualname:
                return report
        return None

    def function_reports(self) -> Iterator[FunctionReport]:
        for report in self.roots:
            yield report.function
            yield from report.dependencies


def requires_attention(result: AnalysisResult, tier: Tier = Tier.HIGH) -> bool:
    """Pipeline-halt predicate: does any reported decision reach `tier`?"""
    return any(
        report.priority.tier.rank >= tier.rank for report in result.function_reports()
    )


def _pattern_payload(pattern: Pattern) -> JSONObject:
    payload: JSONObject = {
        "kind": pattern.kind.value,
        "line": pattern.line,
        "nested_depth": pattern.nested_depth,
    }
    if pattern.callee is not None:
        payload["callee"] = pattern.callee
    return payload


def _constraints_payload(summary: ConstraintSummary) -> JSONObject:
    return {
        "direct": sorted(constraint.value for constraint in summary.direct),
        "transitive": sorted(constraint.value for constraint in summary.transitive),
        "in_cycle": summary.in_cycle,
        "cycle_component": list(summary.cycle_component),
        "external_sinks": list(summary.external_sinks),
    }


def function_payload(report: FunctionReport) -> JSONObject:
    return {
        "function": report.qualname,
        "path": report.path,
        "line": report.line,
        "patterns": [_pattern_payload(pattern) for pattern in report.patterns],
        "constraints": _constraints_payload(report.constraints),
        "decision": {
            "category": report.decision.category.value,
            "rationale": list(report.decision.rationale),
        },
        "priority": {
            "tier": report.priority.tier.value,
            "score": report.priority.score,
        },
        "call_sites": report.call_sites,
    }


def traversal_payload(summary: TraversalSummary) -> JSONObject:
    return {
        "reachable": list(summary.reachable),
        "reachable_count": summary.reachable_count,
        "cycle_components": [list(component) for component in summary.cycle_components],
        "back_edges": [[caller, callee] for caller, callee in summary.back_edges],
        "external_sinks": list(summary.external_sinks),
        "max_depth": summary.max_depth,
    }


def result_payload(result: AnalysisResult) -> JSONObject:
    return {
        "roots": [
            {
                **function_payload(report.function),
                "traversal": traversal_payload(report.traversal),
                "dependencies": [function_payload(dep) for dep in report.dependencies],
            }
            for report in result.roots
        ],
        "failures": [
            {
                "kind": failure.kind.value,
                "subject": failure.subject,
                "reason": failure.reason,
                "path": failure.path,
            }
            for failure in result.failures
        ],
        "requires_attention": requires_attention(result),
    }
