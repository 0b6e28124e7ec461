from __future__ import annotations

from riprap.analysis.call_graph import CallGraph
from riprap.analysis.dependency import DependencyAnalyzer
from riprap.analysis.model import ConstraintSummary


class ConstraintClassifier:
    """Splits a function's constraints into its own and those reached below it."""

    def __init__(self, graph: CallGraph, analyzer: DependencyAnalyzer) -> None:
        self.graph = graph
        self.analyzer = analyzer
        self._summaries: dict[str, ConstraintSummary] = {}

    def summarize(self, qualname: str) -> ConstraintSummary:
        summary = self._summaries.get(qualname)
        if summary is None:
            info = self.analyzer.aggregate(qualname)
            summary = ConstraintSummary(
                direct=self.graph.own_constraints(qualname),
                transitive=info.transitive,
                in_cycle=info.cyclic,
                cycle_component=info.component if info.cyclic else (),
                external_sinks=tuple(sorted(info.sinks)),
            )
            self._summaries[qualname] = summary
        return summary
