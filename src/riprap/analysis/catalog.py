from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from riprap.analysis.model import (
    Constraint,
    Failure,
    FailureKind,
    FunctionSignature,
    ScanReport,
    SourceUnit,
)

logger = logging.getLogger(__name__)


def declared_constraints(signature: FunctionSignature) -> frozenset[Constraint]:
    constraints: set[Constraint] = set()
    if signature.interop_exposed:
        constraints.add(Constraint.INTEROP_EXPOSURE)
    if signature.protocol_conformance:
        constraints.add(Constraint.PROTOCOL_REQUIREMENT)
    return frozenset(constraints)


@dataclass(frozen=True)
class CatalogEntry:
    signature: FunctionSignature
    scan: ScanReport
    constraints: frozenset[Constraint]

    @property
    def qualname(self) -> str:
        return self.signature.qualname

    @property
    def analyzable(self) -> bool:
        return self.scan.analyzable


@dataclass
class SignatureCatalog:
    """Function identities of one session, in first-declaration order."""

    entries: dict[str, CatalogEntry] = field(default_factory=dict)
    failures: list[Failure] = field(default_factory=list)

    def __contains__(self, qualname: object) -> bool:
        return qualname in self.entries

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self.entries.values())

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, qualname: str) -> CatalogEntry | None:
        return self.entries.get(qualname)

    def add(self, signature: FunctionSignature, scan: ScanReport) -> bool:
        existing = self.entries.get(signature.qualname)
        if existing is not None:
            self.failures.append(
                Failure(
                    FailureKind.DUPLICATE_DEFINITION,
                    signature.qualname,
                    f"already defined at {existing.signature.path}:{existing.signature.line}",
                    signature.path,
                )
            )
            logger.warning("duplicate definition of %s ignored", signature.qualname)
            return False
        self.entries[signature.qualname] = CatalogEntry(
            signature=signature,
            scan=scan,
            constraints=declared_constraints(signature),
        )
        if not scan.analyzable:
            self.failures.append(
                Failure(
                    FailureKind.PARSE_FAILURE,
                    signature.qualname,
                    scan.failure or "",
                    signature.path,
                )
            )
        return True


def build_catalog(
    units: Sequence[SourceUnit],
    scans: Sequence[Sequence[ScanReport]],
) -> SignatureCatalog:
    """Merge per-unit scan results into one catalog.

    Runs on a single thread after all per-unit scans are complete; `scans`
    is aligned with `units`. A unit that failed to parse is recorded even
    when the front end could not list any of its functions.
    """
    catalog = SignatureCatalog()
    for unit, reports in zip(units, scans, strict=True):
        if not unit.parsed:
            catalog.failures.append(
                Failure(
                    FailureKind.PARSE_FAILURE,
                    unit.path,
                    f"unit failed to parse: {unit.parse_error}",
                    unit.path,
                )
            )
            logger.warning("%s failed to parse: %s", unit.path, unit.parse_error)
        for function, report in zip(unit.functions, reports, strict=True):
            catalog.add(function.signature, report)
    return catalog
