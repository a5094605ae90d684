"""Build command for compiling entry configs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Literal

from cyclopts import Parameter, validators

from cli.context import RunContext, context_or_discover
from cli.groups import execution_group, input_group
from cli.result import CliResult
from engine.build_orchestrator import build_js
from engine.errors import AggregateBuildError
from entryconfig.models import PlovrMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildOptions:
    """CLI options overriding configuration file values."""

    entry_config_dir: Annotated[
        Path | None,
        Parameter(
            name="--entry-config-dir",
            help="Directory scanned recursively for *.json entry configs.",
            env_var="CHUNKFORGE_ENTRY_CONFIG_DIR",
            group=input_group,
        ),
    ] = None
    deps_manifest: Annotated[
        Path | None,
        Parameter(
            name="--deps-manifest",
            help="Build-wide dependency manifest loaded once per run.",
            env_var="CHUNKFORGE_DEPS_MANIFEST",
            group=input_group,
        ),
    ] = None
    concurrency: Annotated[
        int | None,
        Parameter(
            name=["--concurrency", "-j"],
            help="Number of entry configs compiled at once.",
            env_var="CHUNKFORGE_CONCURRENCY",
            validator=validators.Number(gte=1),
            group=execution_group,
        ),
    ] = None
    mode: Annotated[
        PlovrMode | None,
        Parameter(
            name="--mode",
            help="Override the compilation mode of every entry config.",
            env_var="CHUNKFORGE_MODE",
            group=execution_group,
        ),
    ] = None
    backend: Annotated[
        Literal["local", "threadpool", "process"] | None,
        Parameter(
            name="--backend",
            help="Compiler execution backend.",
            env_var="CHUNKFORGE_BACKEND",
            group=execution_group,
        ),
    ] = None


_DEFAULT_BUILD_OPTIONS = BuildOptions()


def build_command(
    entry_configs: Annotated[
        tuple[Path, ...],
        Parameter(
            help="Entry config files to build. Defaults to every config under --entry-config-dir.",
        ),
    ] = (),
    *,
    print_config: Annotated[
        bool,
        Parameter(
            name="--print-config",
            help="Print the resolved compiler options instead of compiling.",
        ),
    ] = False,
    options: Annotated[BuildOptions, Parameter(name="*")] = _DEFAULT_BUILD_OPTIONS,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> CliResult:
    """Compile entry configs with the configured compiler.

    Returns
    -------
    CliResult
        Summary and per-unit diagnostics.
    """
    config = context_or_discover(run_context).build_config(
        entry_config_dir=_path_or_none(options.entry_config_dir),
        deps_manifest=_path_or_none(options.deps_manifest),
        concurrency=options.concurrency,
        mode=options.mode.value if options.mode is not None else None,
        backend=options.backend,
    )
    logger.debug("Build config: %s", config)
    try:
        outcome = build_js(
            config,
            list(entry_configs) if entry_configs else None,
            print_only=print_config,
        )
    except AggregateBuildError as exc:
        return CliResult.from_exception(exc)
    return CliResult.for_outcome(outcome, print_only=print_config)


def _path_or_none(path: Path | None) -> str | None:
    return str(path.resolve()) if path is not None else None


__all__ = ["build_command"]
