from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TypeAlias


class PatternKind(StrEnum):
    CALLBACK_PARAMETER = "CallbackParameter"
    SUSPENSION_CHECKED = "SuspensionChecked"
    SUSPENSION_UNCHECKED_UNSAFE = "SuspensionUncheckedUnsafe"
    NESTED_SUSPENSION = "NestedSuspension"
    NATIVE_STRUCTURED = "NativeStructured"


SUSPENSION_KINDS = frozenset(
    {PatternKind.SUSPENSION_CHECKED, PatternKind.SUSPENSION_UNCHECKED_UNSAFE}
)


class Constraint(StrEnum):
    INTEROP_EXPOSURE = "InteropExposure"
    PROTOCOL_REQUIREMENT = "ProtocolRequirement"
    EXTERNAL_SINK_DEPENDENCY = "ExternalSinkDependency"


class Category(StrEnum):
    FULL_REFACTOR = "FullRefactor"
    PARTIAL_REFACTOR = "PartialRefactor"
    PRESERVE = "Preserve"
    UNANALYZABLE = "Unanalyzable"


class Tier(StrEnum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]


_TIER_RANK = {Tier.LOW: 0, Tier.MEDIUM: 1, Tier.HIGH: 2}


class NodeKind(StrEnum):
    CLOSURE = "closure"
    SUSPENSION = "suspension"
    AWAIT = "await"
    CALL = "call"
    BLOCK = "block"


class FailureKind(StrEnum):
    PARSE_FAILURE = "ParseFailure"
    UNKNOWN_CALLER = "UnknownCaller"
    UNKNOWN_ROOT = "UnknownRoot"
    DUPLICATE_DEFINITION = "DuplicateDefinition"


@dataclass(frozen=True)
class Parameter:
    name: str
    callback: bool = False


@dataclass(frozen=True)
class FunctionSignature:
    qualname: str
    path: str = ""
    line: int = 1
    params: tuple[Parameter, ...] = ()
    return_kind: str = "void"
    interop_exposed: bool = False
    protocol_conformance: str | None = None
    structured: bool = False

    @property
    def callback_params(self) -> tuple[Parameter, ...]:
        return tuple(param for param in self.params if param.callback)


@dataclass(frozen=True)
class BodyNode:
    """One node of the structured function body handed over by a front end.

    `checked` only matters for suspension nodes; `callee` names the function a
    suspension wraps, or the target of a call node.
    """

    kind: str
    line: int
    checked: bool = True
    callee: str | None = None
    children: tuple[BodyNode, ...] = ()


@dataclass(frozen=True)
class ParsedFunction:
    signature: FunctionSignature
    body: tuple[BodyNode, ...] | None = ()


@dataclass(frozen=True)
class CallSite:
    caller: str
    callee: str | None
    target: str
    line: int = 0

    @property
    def sink_name(self) -> str:
        return self.callee or self.target


@dataclass(frozen=True)
class ExternalSink:
    """Call-graph node standing in for every call to one unresolved target.

    Kept apart from function qualnames, which are plain strings, so a
    catalogued name can never be mistaken for a sink.
    """

    name: str

    def __str__(self) -> str:
        return f"external::{self.name}"


GraphNode: TypeAlias = str | ExternalSink


@dataclass(frozen=True)
class SourceUnit:
    path: str
    text: str = ""
    parse_error: str | None = None
    functions: tuple[ParsedFunction, ...] = ()
    call_sites: tuple[CallSite, ...] = ()

    @property
    def parsed(self) -> bool:
        return self.parse_error is None


@dataclass(frozen=True)
class Pattern:
    kind: PatternKind
    function: str
    line: int
    nested_depth: int = 0
    callee: str | None = None

    @property
    def is_migration(self) -> bool:
        return self.kind is not PatternKind.NATIVE_STRUCTURED


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    subject: str
    reason: str
    path: str = ""


@dataclass(frozen=True)
class ScanReport:
    """Scanner output for one function: patterns in source order, or the
    reason the body could not be scanned."""

    function: str
    patterns: tuple[Pattern, ...] = ()
    failure: str | None = None

    @property
    def analyzable(self) -> bool:
        return self.failure is None

    @property
    def migration_patterns(self) -> tuple[Pattern, ...]:
        return tuple(pattern for pattern in self.patterns if pattern.is_migration)

    @property
    def max_nesting(self) -> int:
        return max((p.nested_depth for p in self.migration_patterns), default=0)


@dataclass(frozen=True)
class ConstraintSummary:
    direct: frozenset[Constraint] = frozenset()
    transitive: frozenset[Constraint] = frozenset()
    in_cycle: bool = False
    cycle_component: tuple[str, ...] = ()
    external_sinks: tuple[str, ...] = ()


@dataclass(frozen=True)
class Decision:
    function: str
    category: Category
    rationale: tuple[str, ...] = ()
    redundant_wrapper: bool = False


@dataclass(frozen=True)
class Priority:
    tier: Tier
    score: float = 0.0


@dataclass(frozen=True)
class TraversalRecord:
    root: str
    visited: tuple[GraphNode, ...] = ()
    # (node, depth) in visit order.
    depths: tuple[tuple[GraphNode, int], ...] = ()
    back_edges: tuple[tuple[str, str], ...] = ()
    cycle_components: tuple[tuple[str, ...], ...] = ()
    external_sinks: tuple[str, ...] = ()

    @property
    def max_depth(self) -> int:
        return max((depth for _node, depth in self.depths), default=0)
