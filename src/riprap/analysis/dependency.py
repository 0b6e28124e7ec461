"""Depth-first dependency analysis over the call graph.

Aggregates are computed once per node and shared by every root of a
session. Strongly connected components are found with Tarjan's algorithm
during the same traversal; every member of a component receives the union
of the constraints of all members, so a decision never depends on which
root reached the cycle first.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from dataclasses import dataclass

from riprap.analysis.call_graph import CallGraph, is_sink, sink_name
from riprap.analysis.model import Constraint, GraphNode, PatternKind, TraversalRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeAggregate:
    node: GraphNode
    component: tuple[GraphNode, ...]
    cyclic: bool
    # Everything below excludes the node itself.
    transitive: frozenset[Constraint]
    pattern_kinds: frozenset[PatternKind]
    sinks: frozenset[str]


@dataclass
class _Frame:
    node: GraphNode
    successors: Iterator[GraphNode]


class DependencyAnalyzer:
    def __init__(self, graph: CallGraph) -> None:
        self.graph = graph
        self._aggregates: dict[GraphNode, NodeAggregate] = {}
        self._lock = threading.Lock()
        self._index: dict[GraphNode, int] = {}
        self._lowlink: dict[GraphNode, int] = {}
        self._counter = 0

    def aggregate(self, node: GraphNode) -> NodeAggregate:
        cached = self._aggregates.get(node)
        if cached is not None:
            return cached
        with self._lock:
            if node not in self._aggregates:
                self._compute_from(node)
        return self._aggregates[node]

    def traverse(self, root: str) -> TraversalRecord:
        """Walk everything reachable from `root` in call-site order."""
        self.aggregate(root)
        visited: list[GraphNode] = [root]
        depths: dict[GraphNode, int] = {root: 0}
        back_edges: list[tuple[str, str]] = []
        on_path = {root}
        stack = [_Frame(root, iter(self.graph.successors(root)))]
        while stack:
            frame = stack[-1]
            child = next(frame.successors, None)
            if child is None:
                stack.pop()
                on_path.discard(frame.node)
                continue
            if child in on_path:
                back_edges.append((frame.node, child))
                continue
            if child in depths:
                continue
            depths[child] = len(stack)
            visited.append(child)
            on_path.add(child)
            stack.append(_Frame(child, iter(self.graph.successors(child))))

        components: list[tuple[str, ...]] = []
        for node in visited:
            info = self._aggregates[node]
            if info.cyclic and info.component not in components:
                components.append(info.component)
        if back_edges:
            logger.debug("%s: back edges %s", root, back_edges)
        return TraversalRecord(
            root=root,
            visited=tuple(visited),
            depths=tuple(depths.items()),
            back_edges=tuple(back_edges),
            cycle_components=tuple(components),
            external_sinks=tuple(sink_name(node) for node in visited if is_sink(node)),
        )

    def _own_kinds(self, node: GraphNode) -> frozenset[PatternKind]:
        entry = None if is_sink(node) else self.graph.catalog.get(node)
        if entry is None:
            return frozenset()
        return frozenset(pattern.kind for pattern in entry.scan.patterns)

    def _full(self, node: GraphNode) -> tuple[frozenset[Constraint], frozenset[PatternKind], frozenset[str]]:
        info = self._aggregates[node]
        sinks = info.sinks | {sink_name(node)} if is_sink(node) else info.sinks
        return (
            info.transitive | self.graph.own_constraints(node),
            info.pattern_kinds | self._own_kinds(node),
            sinks,
        )

    def _compute_from(self, start: GraphNode) -> None:
        # Iterative Tarjan; completed nodes from earlier roots are skipped.
        scc_stack: list[GraphNode] = []
        on_stack: set[GraphNode] = set()
        work = [self._open(start, scc_stack, on_stack)]
        while work:
            frame = work[-1]
            child = next(frame.successors, None)
            if child is not None:
                if child in self._aggregates:
                    continue
                if child not in self._index:
                    work.append(self._open(child, scc_stack, on_stack))
                elif child in on_stack:
                    self._lowlink[frame.node] = min(
                        self._lowlink[frame.node], self._index[child]
                    )
                continue
            work.pop()
            node = frame.node
            if work:
                parent = work[-1].node
                self._lowlink[parent] = min(self._lowlink[parent], self._lowlink[node])
            if self._lowlink[node] == self._index[node]:
                members: list[GraphNode] = []
                while True:
                    popped = scc_stack.pop()
                    on_stack.discard(popped)
                    members.append(popped)
                    if popped == node:
                        break
                self._close_component(members)

    def _open(
        self, node: GraphNode, scc_stack: list[GraphNode], on_stack: set[GraphNode]
    ) -> _Frame:
        self._index[node] = self._counter
        self._lowlink[node] = self._counter
        self._counter += 1
        scc_stack.append(node)
        on_stack.add(node)
        return _Frame(node, iter(self.graph.successors(node)))

    def _close_component(self, members: list[GraphNode]) -> None:
        member_set = set(members)
        cyclic = len(members) > 1 or members[0] in self.graph.successors(members[0])
        below_constraints: set[Constraint] = set()
        below_kinds: set[PatternKind] = set()
        below_sinks: set[str] = set()
        for member in members:
            for child in self.graph.successors(member):
                if child in member_set:
                    continue
                constraints, kinds, sinks = self._full(child)
                below_constraints |= constraints
                below_kinds |= kinds
                below_sinks |= sinks
        # Only catalogued functions can share a component; sinks have no callees.
        component = tuple(sorted(members, key=str))
        for member in members:
            constraints = set(below_constraints)
            kinds = set(below_kinds)
            for other in members:
                if other != member:
                    constraints |= self.graph.own_constraints(other)
                    kinds |= self._own_kinds(other)
            self._aggregates[member] = NodeAggregate(
                node=member,
                component=component,
                cyclic=cyclic,
                transitive=frozenset(constraints),
                pattern_kinds=frozenset(kinds),
                sinks=frozenset(below_sinks),
            )
        if cyclic:
            logger.debug("cycle component %s", ", ".join(map(str, component)))
