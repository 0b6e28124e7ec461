from __future__ import annotations

from pathlib import Path

from riprap.analysis.model import Category, Decision
from riprap.analysis.priority import PrioritySignals, rank
from riprap.config import (
    DecisionConfig,
    EngineConfig,
    PriorityConfig,
    engine_config,
    load_config,
)


def test_missing_config_yields_defaults(tmp_path: Path) -> None:
    assert load_config(root=tmp_path) == {}
    assert engine_config(root=tmp_path) == EngineConfig()


def test_invalid_toml_is_ignored(tmp_path: Path) -> None:
    (tmp_path / "riprap.toml").write_text("[priority\n", encoding="utf-8")
    assert load_config(root=tmp_path) == {}


def test_sections_are_materialised(tmp_path: Path) -> None:
    path = tmp_path / "custom.toml"
    path.write_text(
        "\n".join(
            [
                "[priority]",
                "nesting_weight = 3",
                "high_threshold = 12.5",
                "high_nesting_depth = 4",
                "medium_threshold = 'oops'",
                "",
                "[decision]",
                "wrapped_sinks = ['URLSession.dataTask', 'Foo.bar, Baz.qux']",
                "",
                "[scan]",
                "workers = 0",
            ]
        ),
        encoding="utf-8",
    )
    config = engine_config(config_path=path)
    assert config.priority == PriorityConfig(
        nesting_weight=3.0,
        high_threshold=12.5,
        high_nesting_depth=4,
    )
    assert config.decision == DecisionConfig(
        wrapped_sinks=frozenset({"URLSession.dataTask", "Foo.bar", "Baz.qux"})
    )
    assert config.workers == 1


def test_wrapped_sinks_accept_comma_string(tmp_path: Path) -> None:
    (tmp_path / "riprap.toml").write_text(
        "[decision]\nwrapped_sinks = 'A.x, B.y'\n[scan]\nworkers = 3\n", encoding="utf-8"
    )
    config = engine_config(root=tmp_path)
    assert config.decision.wrapped_sinks == {"A.x", "B.y"}
    assert config.workers == 3


def test_negative_weights_fall_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "riprap.toml"
    path.write_text(
        "[priority]\n"
        "nesting_weight = -3.0\n"
        "call_site_weight = -1\n"
        "redundant_wrapper_bonus = -5.0\n"
        "medium_threshold = 1.5\n",
        encoding="utf-8",
    )
    priority = engine_config(config_path=path).priority
    defaults = PriorityConfig()
    assert priority.nesting_weight == defaults.nesting_weight
    assert priority.call_site_weight == defaults.call_site_weight
    assert priority.redundant_wrapper_bonus == defaults.redundant_wrapper_bonus
    assert priority.medium_threshold == 1.5


def test_zero_weight_is_kept_and_ordering_holds(tmp_path: Path) -> None:
    path = tmp_path / "riprap.toml"
    path.write_text("[priority]\nnesting_weight = 0\n", encoding="utf-8")
    priority = engine_config(config_path=path).priority
    assert priority.nesting_weight == 0.0
    decision = Decision("f", Category.FULL_REFACTOR)
    shallow = rank(decision, PrioritySignals(0, 3, False), priority)
    deeper = rank(decision, PrioritySignals(1, 3, False), priority)
    assert deeper.tier.rank >= shallow.tier.rank
