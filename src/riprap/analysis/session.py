from __future__ import annotations

import concurrent.futures
import logging
from collections.abc import Iterable, Sequence

from riprap.analysis.call_graph import build_call_graph
from riprap.analysis.catalog import build_catalog
from riprap.analysis.constraints import ConstraintClassifier
from riprap.analysis.decision import DecisionEngine
from riprap.analysis.dependency import DependencyAnalyzer
from riprap.analysis.model import Failure, FailureKind, ScanReport, SourceUnit
from riprap.analysis.patterns import scan_unit
from riprap.analysis.priority import rank, signals_for
from riprap.analysis.result import (
    AnalysisResult,
    FunctionReport,
    RootReport,
    TraversalSummary,
)
from riprap.config import EngineConfig

logger = logging.getLogger(__name__)


def scan_units(
    units: Sequence[SourceUnit], *, workers: int = 1
) -> list[tuple[ScanReport, ...]]:
    """Scan units independently; results come back in unit order."""
    if workers <= 1 or len(units) <= 1:
        return [scan_unit(unit) for unit in units]
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(scan_unit, units))


class AnalysisSession:
    """One self-contained analysis run over a fixed set of source units.

    The traversal memo lives and dies with the session.
    """

    def __init__(self, units: Iterable[SourceUnit], *, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig()
        self.units = tuple(units)
        scans = scan_units(self.units, workers=self.config.workers)
        self.catalog = build_catalog(self.units, scans)
        self.graph = build_call_graph(self.catalog, (unit.call_sites for unit in self.units))
        self.analyzer = DependencyAnalyzer(self.graph)
        self.classifier = ConstraintClassifier(self.graph, self.analyzer)
        self.engine = DecisionEngine(self.graph, self.classifier, self.config.decision)
        self._reports: dict[str, FunctionReport] = {}

    def report(self, qualname: str) -> FunctionReport:
        cached = self._reports.get(qualname)
        if cached is not None:
            return cached
        entry = self.catalog.get(qualname)
        if entry is None:
            raise KeyError(qualname)
        decision = self.engine.decide(qualname)
        call_sites = self.graph.call_site_count(qualname)
        priority = rank(
            decision,
            signals_for(decision, entry.scan, call_sites),
            self.config.priority,
        )
        report = FunctionReport(
            qualname=qualname,
            path=entry.signature.path,
            line=entry.signature.line,
            patterns=entry.scan.patterns,
            constraints=self.classifier.summarize(qualname),
            decision=decision,
            priority=priority,
            call_sites=call_sites,
        )
        self._reports[qualname] = report
        return report

    def analyze(self, roots: Iterable[str]) -> AnalysisResult:
        failures: list[Failure] = [*self.catalog.failures, *self.graph.failures]
        reports: list[RootReport] = []
        seen: set[str] = set()
        for root in roots:
            if root in seen:
                continue
            seen.add(root)
            if root not in self.catalog:
                logger.warning("root %s is not a catalogued function", root)
                failures.append(Failure(FailureKind.UNKNOWN_ROOT, root, "root not found in catalog"))
                continue
            record = self.analyzer.traverse(root)
            reports.append(
                RootReport(
                    function=self.report(root),
                    traversal=TraversalSummary.from_record(record),
                    dependencies=tuple(
                        self.report(node)
                        for node in record.visited[1:]
                        if isinstance(node, str) and node in self.catalog
                    ),
                )
            )
        return AnalysisResult(roots=tuple(reports), failures=tuple(failures))


def analyze(
    units: Iterable[SourceUnit],
    roots: Iterable[str],
    *,
    config: EngineConfig | None = None,
) -> AnalysisResult:
    """Run one analysis session; an empty root set yields an empty result."""
    roots = list(roots)
    if not roots:
        return AnalysisResult.empty()
    return AnalysisSession(units, config=config).analyze(roots)
