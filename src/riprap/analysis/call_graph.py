from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from riprap.analysis.catalog import SignatureCatalog
from riprap.analysis.model import (
    CallSite,
    Constraint,
    ExternalSink,
    Failure,
    FailureKind,
    GraphNode,
)

logger = logging.getLogger(__name__)

_SINK_CONSTRAINTS = frozenset({Constraint.EXTERNAL_SINK_DEPENDENCY})


def sink_node(name: str) -> ExternalSink:
    return ExternalSink(name)


def is_sink(node: GraphNode) -> bool:
    return isinstance(node, ExternalSink)


def sink_name(node: GraphNode) -> str:
    return node.name if isinstance(node, ExternalSink) else node


@dataclass(frozen=True)
class CallEdge:
    caller: str
    callee: GraphNode
    resolved: bool
    line: int = 0
    target: str = ""


@dataclass
class CallGraph:
    """Directed multigraph over catalogued functions and external sinks.

    One edge per concrete call site; repeated calls to the same callee are
    kept as separate edges.
    """

    catalog: SignatureCatalog
    edges: dict[str, list[CallEdge]] = field(default_factory=dict)
    sinks: list[ExternalSink] = field(default_factory=list)
    failures: list[Failure] = field(default_factory=list)
    _incoming: Counter[str] = field(default_factory=Counter)

    def out_edges(self, node: GraphNode) -> list[CallEdge]:
        return self.edges.get(node, [])

    def successors(self, node: GraphNode) -> list[GraphNode]:
        """Distinct callees of `node` in call-site declaration order."""
        seen: dict[GraphNode, None] = {}
        for edge in self.out_edges(node):
            seen.setdefault(edge.callee, None)
        return list(seen)

    def own_constraints(self, node: GraphNode) -> frozenset[Constraint]:
        if is_sink(node):
            return _SINK_CONSTRAINTS
        entry = self.catalog.get(node)
        return entry.constraints if entry is not None else frozenset()

    def incoming_call_sites(self, node: str) -> int:
        return self._incoming[node]

    def outgoing_call_sites(self, node: str) -> int:
        return len(self.out_edges(node))

    def call_site_count(self, node: str) -> int:
        return self.incoming_call_sites(node) + self.outgoing_call_sites(node)

    def resolved_callees(self, node: str) -> list[str]:
        return [callee for callee in self.successors(node) if isinstance(callee, str)]

    def add_call_site(self, site: CallSite) -> CallEdge | None:
        if site.caller not in self.catalog:
            self.failures.append(
                Failure(
                    FailureKind.UNKNOWN_CALLER,
                    site.caller,
                    f"call to {site.sink_name} at line {site.line} has no catalogued caller",
                )
            )
            logger.warning("dropping call site from unknown caller %s", site.caller)
            return None
        if site.callee is not None and site.callee in self.catalog:
            edge = CallEdge(site.caller, site.callee, True, site.line, site.target)
            self._incoming[site.callee] += 1
        else:
            node = sink_node(site.sink_name)
            if node not in self.sinks:
                self.sinks.append(node)
            edge = CallEdge(site.caller, node, False, site.line, site.target)
        self.edges.setdefault(site.caller, []).append(edge)
        return edge


def build_call_graph(
    catalog: SignatureCatalog,
    call_sites: Iterable[Sequence[CallSite]],
) -> CallGraph:
    """Build the call graph from per-unit call-site lists, in unit order."""
    graph = CallGraph(catalog=catalog)
    for sites in call_sites:
        for site in sites:
            graph.add_call_site(site)
    logger.debug(
        "call graph: %d functions, %d sinks, %d call sites",
        len(catalog),
        len(graph.sinks),
        sum(len(edges) for edges in graph.edges.values()),
    )
    return graph
