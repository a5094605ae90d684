"""Build orchestration error types."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from engine.outcome import BuildOutcome, ErrorReason


class AggregateBuildError(RuntimeError):
    """Raised after a build run in which at least one unit failed.

    Carries every non-empty error reason and the full settled outcome.
    """

    def __init__(self, outcome: BuildOutcome) -> None:
        self.outcome = outcome
        self.reasons: tuple[ErrorReason, ...] = outcome.reasons
        super().__init__(f"Failed to compile ({len(outcome.failures)}/{outcome.total})")


__all__ = ["AggregateBuildError"]
