"""Concurrent build orchestration across entry configs.

Each descriptor runs through resolve, split (chunk builds only), option
building, compilation and output writing. Pipelines run concurrently up to
``BuildConfig.concurrency``; every pipeline settles before the outcome is
reduced, and the backend is cleaned up once whatever happened.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import msgspec

from chunking.deps_source import DependencySource, ManifestDependencySource
from chunking.manifest import production_uri_factory
from chunking.splitter import split_chunks
from compiler.backends import CompilerBackend, create_backend
from compiler.errors import (
    CompileErrorItem,
    CompilerError,
    UnexpectedCompilerOutputError,
    split_compiler_error,
)
from compiler.options import CompilerOptions, options_for_chunks, options_for_page
from compiler.runner import CompileResult, CompilerOutput
from core_types import PathLike
from engine.config import BuildConfig
from engine.discovery import find_entry_configs
from engine.errors import AggregateBuildError
from engine.outcome import BuildOutcome, UnitFailed, UnitPrinted, UnitResult, UnitSucceeded
from entryconfig.errors import ConfigError
from entryconfig.loader import load_entry_config_path
from entryconfig.models import EntryConfig
from obs.otel import AttributeName, ScopeName, record_exception, stage_span
from serde_msgspec import dumps_json

logger = logging.getLogger(__name__)

type CompileFn = Callable[[CompilerOptions], Awaitable[CompileResult]]


@dataclass
class _RunState:
    """Mutable state scoped to one ``run`` call; touched only on the loop thread."""

    total: int
    restoring: asyncio.Task[None] | None = None
    running_count: int = 1
    completed_count: int = 1
    aborted: list[UnexpectedCompilerOutputError] = field(default_factory=list)


class BuildOrchestrator:
    """Run every build unit of a project and aggregate the results.

    Parameters
    ----------
    config
        Build-wide settings.
    compile_fn
        Coroutine compiling one unit. Defaults to ``backend.compile``.
    backend
        Execution backend; created from ``config.backend`` when neither
        ``compile_fn`` nor ``backend`` is supplied.
    dependency_source
        Dependency records for chunk builds. Defaults to manifests on disk.
    """

    def __init__(
        self,
        config: BuildConfig,
        *,
        compile_fn: CompileFn | None = None,
        backend: CompilerBackend | None = None,
        dependency_source: DependencySource | None = None,
    ) -> None:
        self.config = config
        if backend is None and compile_fn is None:
            backend = create_backend(
                config.backend,
                max_workers=config.backend_max_workers,
                compiler_command=config.compiler_command,
                timeout_s=config.compiler_timeout_s,
            )
        self.backend = backend
        self.compile_fn: CompileFn = compile_fn if compile_fn is not None else backend.compile
        self.dependency_source: DependencySource = (
            dependency_source
            if dependency_source is not None
            else ManifestDependencySource(
                config.deps_manifest,
                manifest_name=config.dependency_manifest_name,
            )
        )

    async def run(
        self,
        entry_configs: Sequence[PathLike] | None = None,
        *,
        print_only: bool = False,
    ) -> BuildOutcome:
        """Build every unit and return the settled outcome.

        Parameters
        ----------
        entry_configs
            Descriptor paths. Discovered under ``config.entry_config_dir``
            when omitted.
        print_only
            Record each unit's compiler options instead of compiling.

        Returns
        -------
        BuildOutcome
            Outcome of a run in which no unit failed.

        Raises
        ------
        AggregateBuildError
            Raised when at least one unit failed.
        UnexpectedCompilerOutputError
            Raised when a compiler failure was not reported as JSON.
        """
        paths = self._entry_config_paths(entry_configs)
        state = _RunState(total=len(paths))
        semaphore = asyncio.Semaphore(self.config.concurrency)

        async def _bounded(path: Path) -> UnitResult:
            async with semaphore:
                return await self._run_unit(path, state=state, print_only=print_only)

        attributes = {
            AttributeName.UNIT_COUNT: len(paths),
            AttributeName.CONCURRENCY: self.config.concurrency,
            AttributeName.BACKEND: self.config.backend,
        }
        with stage_span(
            "build_js",
            stage="build",
            scope_name=ScopeName.BUILD,
            attributes=attributes,
        ) as span:
            try:
                results = await asyncio.gather(*(_bounded(path) for path in paths))
            finally:
                if self.backend is not None:
                    await self.backend.cleanup()
            if state.aborted:
                raise state.aborted[0]
            outcome = BuildOutcome.from_results(tuple(results))
            span.set_attribute(AttributeName.FAILED_COUNT, len(outcome.failures))
        if outcome.failures:
            raise AggregateBuildError(outcome)
        return outcome

    def _entry_config_paths(self, entry_configs: Sequence[PathLike] | None) -> list[Path]:
        if entry_configs is not None:
            return [Path(path) for path in entry_configs]
        if self.config.entry_config_dir is None:
            msg = "No entry configs given and 'entry_config_dir' is not configured."
            raise ConfigError(msg)
        return find_entry_configs(self.config.entry_config_dir)

    async def _run_unit(self, path: Path, *, state: _RunState, print_only: bool) -> UnitResult:
        unit_id = path.stem
        with stage_span(
            "compile_unit",
            stage="unit",
            scope_name=ScopeName.COMPILE,
            attributes={AttributeName.UNIT_ID: unit_id},
        ) as span:
            try:
                config = await asyncio.to_thread(
                    load_entry_config_path,
                    path,
                    mode=self.config.mode,
                )
                span.set_attribute(
                    AttributeName.UNIT_KIND,
                    "chunks" if config.is_chunked else "page",
                )
                options = await self._options_for(config, state=state)
                if print_only:
                    logger.info(
                        "Compiler config for %s:\n%s",
                        _relpath(path),
                        dumps_json(options, pretty=True).decode("utf-8"),
                    )
                    return UnitPrinted(
                        unit_id=unit_id,
                        entry_config_path=str(path),
                        options=options,
                    )
                self._log_with_count(path, state.running_count, state.total, "Compiling")
                state.running_count += 1
                outputs, warnings = await self.compile_fn(options)
                await asyncio.to_thread(_write_outputs, outputs)
            except UnexpectedCompilerOutputError as exc:
                record_exception(span, exc)
                self._log_failed(path, state=state)
                state.aborted.append(exc)
                return UnitFailed(unit_id=unit_id, entry_config_path=str(path))
            except CompilerError as exc:
                record_exception(span, exc)
                self._log_failed(path, state=state)
                try:
                    command, items = split_compiler_error(exc)
                except UnexpectedCompilerOutputError as fatal:
                    state.aborted.append(fatal)
                    return UnitFailed(unit_id=unit_id, entry_config_path=str(path))
                return UnitFailed(
                    unit_id=unit_id,
                    entry_config_path=str(path),
                    command=command,
                    items=items,
                )
            except (ConfigError, OSError) as exc:
                record_exception(span, exc)
                self._log_failed(path, state=state)
                logger.debug("Unit %s failed: %s", unit_id, exc)
                return UnitFailed(
                    unit_id=unit_id,
                    entry_config_path=str(path),
                    items=(CompileErrorItem(level="error", description=str(exc)),),
                )
            except Exception as exc:
                record_exception(span, exc)
                self._log_failed(path, state=state)
                logger.warning("Unit %s failed unexpectedly", unit_id, exc_info=True)
                return UnitFailed(
                    unit_id=unit_id,
                    entry_config_path=str(path),
                    items=(
                        CompileErrorItem(
                            level="error",
                            description=f"{type(exc).__name__}: {exc}",
                        ),
                    ),
                )
            self._log_with_count(path, state.completed_count, state.total, "Compiled")
            state.completed_count += 1
            return UnitSucceeded(
                unit_id=unit_id,
                entry_config_path=str(path),
                warnings=tuple(warnings),
            )

    async def _options_for(self, config: EntryConfig, *, state: _RunState) -> CompilerOptions:
        if not config.is_chunked:
            options = options_for_page(config)
        else:
            await self._restore_dependencies(state)
            dependencies = await asyncio.to_thread(self.dependency_source.dependencies_for, config)
            with stage_span(
                "split_chunks",
                stage="chunking",
                scope_name=ScopeName.CHUNKING,
                attributes={AttributeName.UNIT_ID: config.id},
            ):
                split = split_chunks(
                    config,
                    dependencies,
                    production_uri_factory(config.module_production_uri),
                )
            options = options_for_chunks(config, split)
        return msgspec.structs.replace(options, json_streams="OUT")

    async def _restore_dependencies(self, state: _RunState) -> None:
        if state.restoring is None:
            state.restoring = asyncio.create_task(
                asyncio.to_thread(self.dependency_source.restore),
                name="restore-dependencies",
            )
        await state.restoring

    def _log_failed(self, path: Path, *, state: _RunState) -> None:
        self._log_with_count(path, state.completed_count, state.total, "Failed")
        state.completed_count += 1

    @staticmethod
    def _log_with_count(path: Path, count: int, total: int, message: str) -> None:
        logger.info("[%d/%d] %s: %s", count, total, message, _relpath(path))


def _relpath(path: Path) -> str:
    try:
        return os.path.relpath(path)
    except ValueError:
        return str(path)


def _write_outputs(outputs: Sequence[CompilerOutput]) -> None:
    for output in outputs:
        target = Path(output.path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(output.src, encoding="utf-8")


async def run_build(
    config: BuildConfig,
    entry_configs: Sequence[PathLike] | None = None,
    *,
    print_only: bool = False,
    compile_fn: CompileFn | None = None,
    backend: CompilerBackend | None = None,
    dependency_source: DependencySource | None = None,
) -> BuildOutcome:
    """Run a build with a fresh orchestrator.

    Returns
    -------
    BuildOutcome
        Outcome of a run in which no unit failed.
    """
    orchestrator = BuildOrchestrator(
        config,
        compile_fn=compile_fn,
        backend=backend,
        dependency_source=dependency_source,
    )
    return await orchestrator.run(entry_configs, print_only=print_only)


def build_js(
    config: BuildConfig,
    entry_configs: Sequence[PathLike] | None = None,
    *,
    print_only: bool = False,
    compile_fn: CompileFn | None = None,
    backend: CompilerBackend | None = None,
    dependency_source: DependencySource | None = None,
) -> BuildOutcome:
    """Blocking wrapper around :func:`run_build`.

    Returns
    -------
    BuildOutcome
        Outcome of a run in which no unit failed.
    """
    return asyncio.run(
        run_build(
            config,
            entry_configs,
            print_only=print_only,
            compile_fn=compile_fn,
            backend=backend,
            dependency_source=dependency_source,
        )
    )


__all__ = [
    "BuildOrchestrator",
    "CompileFn",
    "build_js",
    "run_build",
]
