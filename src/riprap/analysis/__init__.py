"""Static analysis subpackage for riprap."""

from .model import (
    BodyNode,
    CallSite,
    Category,
    Constraint,
    FunctionSignature,
    Parameter,
    ParsedFunction,
    Pattern,
    PatternKind,
    SourceUnit,
    Tier,
)
from .result import AnalysisResult, requires_attention, result_payload
from .session import AnalysisSession, analyze

__all__ = [
    "AnalysisResult",
    "AnalysisSession",
    "BodyNode",
    "CallSite",
    "Category",
    "Constraint",
    "FunctionSignature",
    "Parameter",
    "ParsedFunction",
    "Pattern",
    "PatternKind",
    "SourceUnit",
    "Tier",
    "analyze",
    "requires_attention",
    "result_payload",
]
