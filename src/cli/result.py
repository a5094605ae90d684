"""Value returned by chunkforge commands and rendered by the result action."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from cli.exit_codes import ExitCode
from engine.errors import AggregateBuildError

if TYPE_CHECKING:
    from engine.outcome import BuildOutcome, ErrorReason


@dataclass(frozen=True)
class CliResult:
    """Exit code, summary line and per-unit diagnostics of one command.

    Reasons are printed before the summary, one block per entry config.
    """

    exit_code: int
    summary: str | None = None
    reasons: tuple[ErrorReason, ...] = ()

    @property
    def ok(self) -> bool:
        """Whether the command exits with status 0."""
        return self.exit_code == ExitCode.SUCCESS

    @classmethod
    def success(
        cls,
        *,
        summary: str | None = None,
        reasons: tuple[ErrorReason, ...] = (),
    ) -> CliResult:
        """Return an exit-0 result; ``reasons`` carries compiler warnings."""
        return cls(exit_code=ExitCode.SUCCESS, summary=summary, reasons=reasons)

    @classmethod
    def error(
        cls,
        exit_code: ExitCode | int,
        *,
        summary: str | None = None,
        reasons: tuple[ErrorReason, ...] = (),
    ) -> CliResult:
        """Return a failed result with ``exit_code``."""
        return cls(exit_code=int(exit_code), summary=summary, reasons=reasons)

    @classmethod
    def for_outcome(cls, outcome: BuildOutcome, *, print_only: bool = False) -> CliResult:
        """Summarize a build in which every unit succeeded.

        Returns
        -------
        CliResult
            Success result listing the warnings of compiled units.
        """
        if print_only:
            return cls.success(summary=f"Printed compiler options for {outcome.total} unit(s).")
        return cls.success(
            summary=f"Compiled {len(outcome.successes)}/{outcome.total} unit(s).",
            reasons=outcome.reasons,
        )

    @classmethod
    def from_exception(cls, exc: BaseException) -> CliResult:
        """Map an exception escaping a command to a result.

        The summary is the exception text. Build failures keep the diagnostics
        of every failed unit.

        Returns
        -------
        CliResult
            Failed result.
        """
        reasons = exc.reasons if isinstance(exc, AggregateBuildError) else ()
        return cls.error(ExitCode.from_exception(exc), summary=str(exc), reasons=reasons)


__all__ = ["CliResult"]
