from __future__ import annotations

from dataclasses import dataclass

from riprap.analysis.model import Category, Decision, Priority, ScanReport, Tier
from riprap.config import PriorityConfig

_RANKED = frozenset({Category.FULL_REFACTOR, Category.PARTIAL_REFACTOR})

LOW_PRIORITY = Priority(Tier.LOW, 0.0)


@dataclass(frozen=True)
class PrioritySignals:
    nesting_depth: int
    call_sites: int
    redundant_wrapper: bool


def signals_for(decision: Decision, scan: ScanReport, call_sites: int) -> PrioritySignals:
    return PrioritySignals(
        nesting_depth=scan.max_nesting,
        call_sites=call_sites,
        redundant_wrapper=decision.redundant_wrapper,
    )


def score(signals: PrioritySignals, config: PriorityConfig) -> float:
    value = (
        config.nesting_weight * signals.nesting_depth
        + config.call_site_weight * signals.call_sites
    )
    if signals.redundant_wrapper:
        value += config.redundant_wrapper_bonus
    return value


def tier_for(signals: PrioritySignals, value: float, config: PriorityConfig) -> Tier:
    # Each test is monotone in depth and call sites.
    if (
        value >= config.high_threshold
        or signals.nesting_depth >= config.high_nesting_depth
        or signals.redundant_wrapper
    ):
        return Tier.HIGH
    if value >= config.medium_threshold:
        return Tier.MEDIUM
    return Tier.LOW


def rank(
    decision: Decision,
    signals: PrioritySignals,
    config: PriorityConfig | None = None,
) -> Priority:
    """Score a decision; preserved and unanalyzable functions are informational."""
    if decision.category not in _RANKED:
        return LOW_PRIORITY
    config = config or PriorityConfig()
    value = score(signals, config)
    return Priority(tier_for(signals, value, config), value)
