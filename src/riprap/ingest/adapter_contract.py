from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from riprap.analysis.model import SourceUnit


@dataclass(frozen=True)
class IngestBundle:
    language_id: str
    file_paths: tuple[Path, ...]
    units: tuple[SourceUnit, ...]
    roots: tuple[str, ...] = ()


@runtime_checkable
class FrontEnd(Protocol):
    """Supplies parsed functions and call sites; riprap never parses source text."""

    language_id: str
    file_extensions: tuple[str, ...]

    def load(self, paths: list[Path]) -> IngestBundle: ...
