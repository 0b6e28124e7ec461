from __future__ import annotations

import concurrent.futures

from riprap.analysis.call_graph import sink_node
from riprap.analysis.dependency import DependencyAnalyzer
from riprap.analysis.model import Constraint, PatternKind
from tests.unit_helpers import call, fn, unit


def test_traversal_follows_declaration_order_and_records_depth(make_graph) -> None:
    graph = make_graph(
        unit(
            [fn("root"), fn("b"), fn("a"), fn("leaf")],
            [call("root", "b"), call("root", "a"), call("b", "leaf"), call("a", "leaf")],
        )
    )
    record = DependencyAnalyzer(graph).traverse("root")
    assert record.visited == ("root", "b", "leaf", "a")
    assert record.depths == (("root", 0), ("b", 1), ("leaf", 2), ("a", 1))
    assert record.max_depth == 2
    assert record.back_edges == ()
    assert record.cycle_components == ()
    assert hash(record) == hash(DependencyAnalyzer(graph).traverse("root"))


def test_self_call_terminates_and_forms_component(make_graph) -> None:
    graph = make_graph(unit([fn("recurse")], [call("recurse", "recurse")]))
    analyzer = DependencyAnalyzer(graph)
    record = analyzer.traverse("recurse")
    assert record.visited == ("recurse",)
    assert record.back_edges == (("recurse", "recurse"),)
    assert record.cycle_components == (("recurse",),)
    assert analyzer.aggregate("recurse").cyclic


def test_mutual_recursion_shares_constraints(make_graph) -> None:
    graph = make_graph(
        unit(
            [fn("serviceA.doWork"), fn("serviceB.help", interop=True)],
            [call("serviceA.doWork", "serviceB.help"), call("serviceB.help", "serviceA.doWork")],
        )
    )
    analyzer = DependencyAnalyzer(graph)
    record = analyzer.traverse("serviceA.doWork")
    assert record.visited == ("serviceA.doWork", "serviceB.help")
    assert record.back_edges == (("serviceB.help", "serviceA.doWork"),)
    a = analyzer.aggregate("serviceA.doWork")
    b = analyzer.aggregate("serviceB.help")
    assert a.component == b.component == ("serviceA.doWork", "serviceB.help")
    assert Constraint.INTEROP_EXPOSURE in a.transitive
    # A member's own constraints are not counted as transitive for itself.
    assert Constraint.INTEROP_EXPOSURE not in b.transitive


def test_cycle_components_are_symmetric(make_graph) -> None:
    graph = make_graph(
        unit(
            [fn("a"), fn("b"), fn("c"), fn("d")],
            [call("a", "b"), call("b", "c"), call("c", "a"), call("c", "d")],
        )
    )
    analyzer = DependencyAnalyzer(graph)
    analyzer.traverse("a")
    components = {node: analyzer.aggregate(node).component for node in "abc"}
    for left in "abc":
        for right in "abc":
            assert (left in components[right]) == (right in components[left])
    assert not analyzer.aggregate("d").cyclic
    assert analyzer.aggregate("d").component == ("d",)


def test_memo_makes_aggregates_independent_of_root_order(make_graph) -> None:
    def build():
        return make_graph(
            unit(
                [fn("x"), fn("y"), fn("z", protocol="Delegate")],
                [call("x", "y"), call("y", "x"), call("y", "z")],
            )
        )

    forward = DependencyAnalyzer(build())
    forward.traverse("x")
    forward.traverse("y")
    backward = DependencyAnalyzer(build())
    backward.traverse("y")
    backward.traverse("x")
    for node in ("x", "y", "z"):
        assert forward.aggregate(node) == backward.aggregate(node)
    assert Constraint.PROTOCOL_REQUIREMENT in forward.aggregate("x").transitive


def test_each_node_visited_once_per_root(make_graph) -> None:
    graph = make_graph(
        unit(
            [fn("r"), fn("a"), fn("b")],
            [call("r", "a"), call("r", "b"), call("a", "b"), call("b", "a"), call("a", "r")],
        )
    )
    record = DependencyAnalyzer(graph).traverse("r")
    assert sorted(record.visited) == ["a", "b", "r"]
    assert len(record.visited) == len(set(record.visited))
    assert record.cycle_components == (("a", "b", "r"),)


def test_external_sinks_are_absorbed_by_callers(make_graph) -> None:
    graph = make_graph(
        unit(
            [fn("top"), fn("mid", callback=True)],
            [call("top", "mid"), call("mid", None, "Alamofire.request")],
        )
    )
    analyzer = DependencyAnalyzer(graph)
    record = analyzer.traverse("top")
    assert record.visited == ("top", "mid", sink_node("Alamofire.request"))
    assert record.external_sinks == ("Alamofire.request",)
    top = analyzer.aggregate("top")
    assert Constraint.EXTERNAL_SINK_DEPENDENCY in top.transitive
    assert top.sinks == {"Alamofire.request"}
    assert PatternKind.CALLBACK_PARAMETER in top.pattern_kinds


def test_deep_chain_does_not_hit_recursion_limit(make_graph) -> None:
    names = [f"f{i}" for i in range(3000)]
    calls = [call(names[i], names[i + 1]) for i in range(len(names) - 1)]
    graph = make_graph(unit([fn(name) for name in names], calls))
    record = DependencyAnalyzer(graph).traverse("f0")
    assert len(record.visited) == 3000
    assert record.max_depth == 2999


def test_concurrent_traversals_share_one_memo(make_graph) -> None:
    names = [f"n{i}" for i in range(60)]
    calls = [call(names[i], names[(i * 7 + 3) % 60]) for i in range(60)]
    calls += [call(names[i], names[i + 1]) for i in range(0, 59, 2)]
    calls += [call("n5", None, "Vendor.fetch"), call("n40", None, "Vendor.fetch")]
    functions = [fn(name, interop=(i % 11 == 0), callback=(i % 3 == 0)) for i, name in enumerate(names)]

    sequential = DependencyAnalyzer(make_graph(unit(functions, calls)))
    expected = {name: sequential.traverse(name) for name in names}

    shared = DependencyAnalyzer(make_graph(unit(functions, calls)))
    with concurrent.futures.ThreadPoolExecutor(max_workers=8) as executor:
        records = dict(zip(names, executor.map(shared.traverse, names)))

    assert records == expected
    for node in [*names, sink_node("Vendor.fetch")]:
        assert shared.aggregate(node) == sequential.aggregate(node)
