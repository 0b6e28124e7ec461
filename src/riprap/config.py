from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import tomllib

DEFAULT_CONFIG_NAME = "riprap.toml"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]


@dataclass(frozen=True)
class PriorityConfig:
    nesting_weight: float = 2.0
    call_site_weight: float = 1.0
    redundant_wrapper_bonus: float = 5.0
    medium_threshold: float = 2.0
    high_threshold: float = 8.0
    high_nesting_depth: int = 3


@dataclass(frozen=True)
class DecisionConfig:
    wrapped_sinks: frozenset[str] = frozenset()


@dataclass(frozen=True)
class EngineConfig:
    priority: PriorityConfig = field(default_factory=PriorityConfig)
    decision: DecisionConfig = field(default_factory=DecisionConfig)
    workers: int = 1


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def _section(data: TomlTable, name: str) -> TomlTable:
    section = data.get(name, {})
    return section if isinstance(section, dict) else {}


def _normalize_name_list(value: TomlValue) -> list[str]:
    items: list[str] = []
    if value is None:
        return items
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, (list, tuple, set)):
        for item in value:
            if isinstance(item, str):
                items.extend([part.strip() for part in item.split(",") if part.strip()])
    return items


def _number(section: TomlTable, key: str, default: float) -> float:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value)


def _integer(section: TomlTable, key: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value


def _weight(section: TomlTable, key: str, default: float) -> float:
    # Weights stay non-negative so depth and call sites only ever raise the tier.
    value = _number(section, key, default)
    return value if value >= 0 else default


def priority_config_from_table(section: TomlTable) -> PriorityConfig:
    defaults = PriorityConfig()
    return PriorityConfig(
        nesting_weight=_weight(section, "nesting_weight", defaults.nesting_weight),
        call_site_weight=_weight(section, "call_site_weight", defaults.call_site_weight),
        redundant_wrapper_bonus=_weight(
            section, "redundant_wrapper_bonus", defaults.redundant_wrapper_bonus
        ),
        medium_threshold=_number(section, "medium_threshold", defaults.medium_threshold),
        high_threshold=_number(section, "high_threshold", defaults.high_threshold),
        high_nesting_depth=_integer(
            section, "high_nesting_depth", defaults.high_nesting_depth
        ),
    )


def decision_config_from_table(section: TomlTable) -> DecisionConfig:
    return DecisionConfig(
        wrapped_sinks=frozenset(_normalize_name_list(section.get("wrapped_sinks")))
    )


def engine_config(root: Path | None = None, config_path: Path | None = None) -> EngineConfig:
    data = load_config(root=root, config_path=config_path)
    workers = _integer(_section(data, "scan"), "workers", 1)
    return EngineConfig(
        priority=priority_config_from_table(_section(data, "priority")),
        decision=decision_config_from_table(_section(data, "decision")),
        workers=max(1, workers),
    )
