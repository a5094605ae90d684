"""Per-unit results and the settled build outcome."""

from __future__ import annotations

from compiler.errors import CompileErrorItem
from compiler.options import CompilerOptions
from serde_msgspec import StructBaseStrict


class UnitSucceeded(StructBaseStrict, frozen=True, tag="succeeded"):
    """A unit compiled and its outputs were written."""

    unit_id: str
    entry_config_path: str
    warnings: tuple[CompileErrorItem, ...] = ()


class UnitFailed(StructBaseStrict, frozen=True, tag="failed"):
    """A unit failed; ``command`` is unset when the compiler never ran."""

    unit_id: str
    entry_config_path: str
    command: str | None = None
    items: tuple[CompileErrorItem, ...] = ()


class UnitPrinted(StructBaseStrict, frozen=True, tag="printed"):
    """A unit whose resolved options were printed instead of compiled."""

    unit_id: str
    entry_config_path: str
    options: CompilerOptions


type UnitResult = UnitSucceeded | UnitFailed | UnitPrinted


class ErrorReason(StructBaseStrict, frozen=True):
    """Diagnostics reported for one unit."""

    entry_config_path: str
    command: str | None
    items: tuple[CompileErrorItem, ...]


class BuildOutcome(StructBaseStrict, frozen=True):
    """Settled results of a build run in input order."""

    successes: tuple[UnitSucceeded, ...] = ()
    failures: tuple[UnitFailed, ...] = ()
    printed: tuple[UnitPrinted, ...] = ()
    total: int = 0

    @classmethod
    def from_results(cls, results: tuple[UnitResult, ...]) -> BuildOutcome:
        """Partition unit results by kind.

        Returns
        -------
        BuildOutcome
            Outcome preserving input order within each kind.
        """
        return cls(
            successes=tuple(r for r in results if isinstance(r, UnitSucceeded)),
            failures=tuple(r for r in results if isinstance(r, UnitFailed)),
            printed=tuple(r for r in results if isinstance(r, UnitPrinted)),
            total=len(results),
        )

    @property
    def ok(self) -> bool:
        """Return whether no unit failed."""
        return not self.failures

    @property
    def reasons(self) -> tuple[ErrorReason, ...]:
        """Return diagnostics for every unit that reported items.

        Successes contribute their warnings; failures their errors. Units
        without items are left out.
        """
        reasons = [
            ErrorReason(entry_config_path=s.entry_config_path, command=None, items=s.warnings)
            for s in self.successes
        ]
        reasons.extend(
            ErrorReason(entry_config_path=f.entry_config_path, command=f.command, items=f.items)
            for f in self.failures
        )
        return tuple(reason for reason in reasons if reason.items)


__all__ = [
    "BuildOutcome",
    "ErrorReason",
    "UnitFailed",
    "UnitPrinted",
    "UnitResult",
    "UnitSucceeded",
]
