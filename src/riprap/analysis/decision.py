"""Ordered rule evaluation deciding each function's refactor category.

Cap rules are evaluated in order; every rule that fires contributes its
rationale and the first one fixes the category. Sub-rules only add tags.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from riprap.analysis.call_graph import CallGraph
from riprap.analysis.catalog import CatalogEntry
from riprap.analysis.constraints import ConstraintClassifier
from riprap.analysis.model import (
    SUSPENSION_KINDS,
    Category,
    Constraint,
    ConstraintSummary,
    Decision,
    PatternKind,
)
from riprap.config import DecisionConfig
from riprap.invariants import never

logger = logging.getLogger(__name__)

DIRECT_INTEROP = (
    "direct interop exposure: keep the callback signature for non-structured "
    "hosts and add a structured overload for internal callers"
)
DIRECT_PROTOCOL = (
    "direct protocol requirement: the conformance needs the callback form; "
    "add a structured overload alongside it"
)
EXTERNAL_SINK = "depends on an unanalyzable external call"
MUTUAL_RECURSION = (
    "part of a mutual-recursion cycle; refactor all members atomically or not at all"
)
NO_MIGRATION = "no migration needed"
FULL_MIGRATION = "no constraint blocks a full migration"
REDUNDANT_WRAPPER = "redundant wrapper — removable"
UNSAFE_SUSPENSION = "recommend converting to checked suspension before further refactor"
WRAPPED_SINKS = "external calls all have a structured wrapper"
UNANALYZABLE = "function body could not be analyzed"


@dataclass(frozen=True)
class DecisionContext:
    entry: CatalogEntry
    summary: ConstraintSummary
    unwrapped_sinks: tuple[str, ...]
    redundant_wrapper: bool


@dataclass(frozen=True)
class CapRule:
    name: str
    applies: Callable[[DecisionContext], bool]
    rationale: Callable[[DecisionContext], str]


def _external_sink_rationale(ctx: DecisionContext) -> str:
    return f"{EXTERNAL_SINK} ({', '.join(ctx.unwrapped_sinks)})"


CAP_RULES: tuple[CapRule, ...] = (
    CapRule(
        "direct-interop",
        lambda ctx: Constraint.INTEROP_EXPOSURE in ctx.summary.direct,
        lambda ctx: DIRECT_INTEROP,
    ),
    CapRule(
        "direct-protocol",
        lambda ctx: Constraint.PROTOCOL_REQUIREMENT in ctx.summary.direct,
        lambda ctx: DIRECT_PROTOCOL,
    ),
    CapRule(
        "external-sink",
        lambda ctx: Constraint.EXTERNAL_SINK_DEPENDENCY in ctx.summary.transitive
        and bool(ctx.unwrapped_sinks),
        _external_sink_rationale,
    ),
    CapRule(
        "cycle",
        lambda ctx: ctx.summary.in_cycle,
        lambda ctx: MUTUAL_RECURSION,
    ),
)


class DecisionEngine:
    def __init__(
        self,
        graph: CallGraph,
        classifier: ConstraintClassifier,
        config: DecisionConfig | None = None,
    ) -> None:
        self.graph = graph
        self.classifier = classifier
        self.config = config or DecisionConfig()
        self._decisions: dict[str, Decision] = {}

    def decide(self, qualname: str) -> Decision:
        decision = self._decisions.get(qualname)
        if decision is None:
            decision = self._evaluate(qualname)
            self._decisions[qualname] = decision
            logger.debug("%s -> %s %s", qualname, decision.category, list(decision.rationale))
        return decision

    def _evaluate(self, qualname: str) -> Decision:
        entry = self.graph.catalog.get(qualname)
        if entry is None:
            never("decision requested for uncatalogued function", function=qualname)
        if not entry.analyzable:
            return Decision(
                qualname,
                Category.UNANALYZABLE,
                (f"{UNANALYZABLE}: {entry.scan.failure}",),
            )
        summary = self.classifier.summarize(qualname)
        ctx = DecisionContext(
            entry=entry,
            summary=summary,
            unwrapped_sinks=tuple(
                sink
                for sink in summary.external_sinks
                if sink not in self.config.wrapped_sinks
            ),
            redundant_wrapper=self.is_redundant_wrapper(entry),
        )
        rationale = [rule.rationale(ctx) for rule in CAP_RULES if rule.applies(ctx)]
        if rationale:
            category = Category.PARTIAL_REFACTOR
        elif not entry.scan.migration_patterns:
            category = Category.PRESERVE
            rationale.append(NO_MIGRATION)
        else:
            category = Category.FULL_REFACTOR
            rationale.append(FULL_MIGRATION)
        if (
            Constraint.EXTERNAL_SINK_DEPENDENCY in summary.transitive
            and not ctx.unwrapped_sinks
        ):
            rationale.append(WRAPPED_SINKS)
        if ctx.redundant_wrapper:
            rationale.append(REDUNDANT_WRAPPER)
        if any(
            pattern.kind is PatternKind.SUSPENSION_UNCHECKED_UNSAFE
            for pattern in entry.scan.patterns
        ):
            rationale.append(UNSAFE_SUSPENSION)
        return Decision(qualname, category, tuple(rationale), ctx.redundant_wrapper)

    def is_redundant_wrapper(self, entry: CatalogEntry) -> bool:
        """True when the only migration pattern suspends around a callee that is
        already natively structured."""
        migration = entry.scan.migration_patterns
        if len(migration) != 1 or migration[0].kind not in SUSPENSION_KINDS:
            return False
        callee = migration[0].callee
        if callee is None:
            resolved = self.graph.resolved_callees(entry.qualname)
            if len(resolved) != 1:
                return False
            callee = resolved[0]
        target = self.graph.catalog.get(callee)
        if target is None or not target.analyzable:
            return False
        return target.signature.structured or any(
            pattern.kind is PatternKind.NATIVE_STRUCTURED for pattern in target.scan.patterns
        )
