"""Compiler execution backends."""

from __future__ import annotations

import asyncio
import functools
import logging
import multiprocessing
import threading
from collections.abc import Mapping, Sequence
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Protocol

from opentelemetry import context as otel_context
from opentelemetry import propagate

from compiler.options import CompilerOptions
from compiler.runner import (
    DEFAULT_COMPILER_COMMAND,
    CompileResult,
    compile_async,
    compile_blocking,
)
from core_types import BackendKind

logger = logging.getLogger(__name__)


class CompilerBackend(Protocol):
    """Run compilations; ``cleanup`` is called once after a build run."""

    async def compile(self, options: CompilerOptions) -> CompileResult:
        """Compile one unit."""
        ...

    async def cleanup(self) -> None:
        """Release backend resources."""
        ...


class LocalBackend:
    """Run each compilation as an asyncio subprocess."""

    def __init__(
        self,
        *,
        compiler_command: Sequence[str] = DEFAULT_COMPILER_COMMAND,
        timeout_s: float | None = None,
    ) -> None:
        self.compiler_command = tuple(compiler_command)
        self.timeout_s = timeout_s

    async def compile(self, options: CompilerOptions) -> CompileResult:
        """Compile one unit in a child process.

        Returns
        -------
        CompileResult
            Emitted files and warnings.
        """
        return await compile_async(
            options,
            compiler_command=self.compiler_command,
            timeout_s=self.timeout_s,
        )

    async def cleanup(self) -> None:
        """Nothing to release."""


class ExecutorBackend:
    """Run blocking compilations on a ``concurrent.futures`` pool.

    The pool is created lazily on the first compilation and shut down by
    :meth:`cleanup`. Only the options struct crosses the pool boundary.
    """

    def __init__(
        self,
        kind: BackendKind,
        *,
        max_workers: int | None = None,
        compiler_command: Sequence[str] = DEFAULT_COMPILER_COMMAND,
        timeout_s: float | None = None,
    ) -> None:
        if kind not in {"threadpool", "process"}:
            msg = f"Unsupported executor backend: {kind!r}."
            raise ValueError(msg)
        self.kind = kind
        self.max_workers = max_workers
        self.compiler_command = tuple(compiler_command)
        self.timeout_s = timeout_s
        self._executor: Executor | None = None

    def _ensure_executor(self) -> Executor:
        if self._executor is None:
            if self.kind == "threadpool":
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix="chunkforge-compile",
                )
            else:
                self._executor = _process_executor(self.max_workers, _propagation_carrier())
            logger.debug("Started %s compiler backend", self.kind)
        return self._executor

    async def compile(self, options: CompilerOptions) -> CompileResult:
        """Compile one unit on the pool.

        Returns
        -------
        CompileResult
            Emitted files and warnings.
        """
        loop = asyncio.get_running_loop()
        call = functools.partial(
            compile_blocking,
            options,
            compiler_command=self.compiler_command,
            timeout_s=self.timeout_s,
        )
        return await loop.run_in_executor(self._ensure_executor(), call)

    async def cleanup(self) -> None:
        """Shut the pool down and wait for in-flight work."""
        executor, self._executor = self._executor, None
        if executor is None:
            return
        await asyncio.to_thread(executor.shutdown, wait=True)
        logger.debug("Stopped %s compiler backend", self.kind)


def create_backend(
    kind: BackendKind,
    *,
    max_workers: int | None = None,
    compiler_command: Sequence[str] = DEFAULT_COMPILER_COMMAND,
    timeout_s: float | None = None,
) -> CompilerBackend:
    """Return the backend registered for ``kind``.

    Returns
    -------
    CompilerBackend
        Backend instance.
    """
    if kind == "local":
        return LocalBackend(compiler_command=compiler_command, timeout_s=timeout_s)
    return ExecutorBackend(
        kind,
        max_workers=max_workers,
        compiler_command=compiler_command,
        timeout_s=timeout_s,
    )


def _worker_init(carrier_payload: Mapping[str, str] | None) -> None:
    if carrier_payload:
        otel_context.attach(propagate.extract(carrier_payload))


def _process_executor(
    max_workers: int | None,
    carrier: Mapping[str, str] | None,
) -> ProcessPoolExecutor:
    ctx = (
        multiprocessing.get_context("fork")
        if _supports_fork()
        else multiprocessing.get_context("spawn")
    )
    return ProcessPoolExecutor(
        max_workers=max_workers,
        mp_context=ctx,
        initializer=_worker_init,
        initargs=(carrier,),
    )


def _supports_fork() -> bool:
    if "fork" not in multiprocessing.get_all_start_methods():
        return False
    return threading.active_count() <= 1


def _propagation_carrier() -> dict[str, str]:
    carrier: dict[str, str] = {}
    propagate.inject(carrier)
    return carrier


__all__ = [
    "CompilerBackend",
    "ExecutorBackend",
    "LocalBackend",
    "create_backend",
]
