"""Build orchestration surface."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from engine.build_orchestrator import BuildOrchestrator, build_js, run_build
    from engine.config import BuildConfig
    from engine.discovery import find_entry_configs
    from engine.errors import AggregateBuildError
    from engine.outcome import BuildOutcome, ErrorReason, UnitFailed, UnitPrinted, UnitSucceeded

_EXPORT_MAP: dict[str, tuple[str, str]] = {
    "AggregateBuildError": ("engine.errors", "AggregateBuildError"),
    "BuildConfig": ("engine.config", "BuildConfig"),
    "BuildOrchestrator": ("engine.build_orchestrator", "BuildOrchestrator"),
    "BuildOutcome": ("engine.outcome", "BuildOutcome"),
    "ErrorReason": ("engine.outcome", "ErrorReason"),
    "UnitFailed": ("engine.outcome", "UnitFailed"),
    "UnitPrinted": ("engine.outcome", "UnitPrinted"),
    "UnitSucceeded": ("engine.outcome", "UnitSucceeded"),
    "build_js": ("engine.build_orchestrator", "build_js"),
    "find_entry_configs": ("engine.discovery", "find_entry_configs"),
    "run_build": ("engine.build_orchestrator", "run_build"),
}


def __getattr__(name: str) -> object:
    target = _EXPORT_MAP.get(name)
    if target is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    module_path, attr_name = target
    module = importlib.import_module(module_path)
    return getattr(module, attr_name)


def __dir__() -> list[str]:
    return sorted(list(globals()) + list(_EXPORT_MAP))


__all__ = [
    "AggregateBuildError",
    "BuildConfig",
    "BuildOrchestrator",
    "BuildOutcome",
    "ErrorReason",
    "UnitFailed",
    "UnitPrinted",
    "UnitSucceeded",
    "build_js",
    "find_entry_configs",
    "run_build",
]
