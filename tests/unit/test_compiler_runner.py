"""Tests for compiler invocation and stream decoding."""

from __future__ import annotations

import asyncio
import logging
import shlex
import sys

import pytest

from compiler.backends import ExecutorBackend, LocalBackend, create_backend
from compiler.errors import CompilerError, UnexpectedCompilerOutputError, split_compiler_error
from compiler.options import CompilerOptions
from compiler.runner import (
    ERROR_FORMAT_FLAG,
    build_command,
    compile_blocking,
    interpret_result,
)

_OPTIONS = CompilerOptions(compilation_level="SIMPLE", js=("a.js",))
_EMIT_SCRIPT = (
    "import json, sys; "
    "print(json.dumps([{'path': 'out/a.js', 'src': 'var a;'}])); "
    "print(json.dumps([{'level': 'warning', 'description': 'unused'}]), file=sys.stderr)"
)
_FAIL_SCRIPT = (
    "import json, sys; "
    "print(json.dumps([{'level': 'error', 'description': 'boom'}]), file=sys.stderr); "
    "sys.exit(2)"
)
_SLEEP_SCRIPT = "import time; time.sleep(5)"


def test_build_command_streams_output_as_json() -> None:
    """Request JSON output and JSON errors."""
    cmd = build_command(_OPTIONS, compiler_command=("cc",))
    assert cmd[0] == "cc"
    assert "--json_streams=OUT" in cmd
    assert cmd[-1] == ERROR_FORMAT_FLAG


def test_interpret_result_decodes_outputs_and_warnings() -> None:
    """Decode emitted files and warnings from a successful run."""
    outputs, warnings = interpret_result(
        ["cc"],
        0,
        '[{"path": "out.js", "src": "x"}]',
        '[{"level": "warning", "description": "w"}]',
    )
    assert [(o.path, o.src) for o in outputs] == [("out.js", "x")]
    assert [w.description for w in warnings] == ["w"]


def test_interpret_result_failure_carries_command() -> None:
    """Put the quoted command on the first line of the error."""
    cmd = ["cc", "--js=a b.js"]
    with pytest.raises(CompilerError) as excinfo:
        interpret_result(cmd, 1, "", '[{"level": "error", "description": "e"}]')
    command, items = split_compiler_error(excinfo.value)
    assert command == shlex.join(cmd)
    assert items[0].description == "e"
    assert excinfo.value.exit_code == 1


def test_interpret_result_rejects_non_json_output() -> None:
    """Fail when the output stream is not JSON."""
    with pytest.raises(UnexpectedCompilerOutputError):
        interpret_result(["cc"], 0, "not json", "")


def test_interpret_result_ignores_non_json_warnings(caplog: pytest.LogCaptureFixture) -> None:
    """Log and drop unstructured diagnostics on success."""
    caplog.set_level(logging.WARNING, logger="compiler.runner")
    _, warnings = interpret_result(["cc"], 0, "[]", "picked up JAVA_TOOL_OPTIONS")
    assert warnings == ()
    assert "Ignoring non-JSON compiler diagnostics" in caplog.text


def test_compile_blocking_runs_subprocess() -> None:
    """Run a real child process and decode its streams."""
    outputs, warnings = compile_blocking(
        _OPTIONS,
        compiler_command=(sys.executable, "-c", _EMIT_SCRIPT),
    )
    assert outputs[0].path == "out/a.js"
    assert warnings[0].description == "unused"


def test_compile_blocking_timeout_is_structured() -> None:
    """Report timeouts as a JSON error item."""
    with pytest.raises(CompilerError) as excinfo:
        compile_blocking(
            _OPTIONS,
            compiler_command=(sys.executable, "-c", _SLEEP_SCRIPT),
            timeout_s=0.2,
        )
    _, items = split_compiler_error(excinfo.value)
    assert "timed out" in items[0].description


def test_local_backend_reports_failures() -> None:
    """Raise CompilerError from the asyncio subprocess backend."""
    backend = LocalBackend(compiler_command=(sys.executable, "-c", _FAIL_SCRIPT))

    async def _run() -> None:
        try:
            await backend.compile(_OPTIONS)
        finally:
            await backend.cleanup()

    with pytest.raises(CompilerError) as excinfo:
        asyncio.run(_run())
    _, items = split_compiler_error(excinfo.value)
    assert items[0].description == "boom"
    assert excinfo.value.exit_code == 2


def test_threadpool_backend_compiles_and_cleans_up() -> None:
    """Compile on a thread pool and shut it down on cleanup."""
    backend = create_backend(
        "threadpool",
        max_workers=2,
        compiler_command=(sys.executable, "-c", _EMIT_SCRIPT),
    )
    assert isinstance(backend, ExecutorBackend)

    async def _run() -> tuple[int, int]:
        try:
            results = await asyncio.gather(backend.compile(_OPTIONS), backend.compile(_OPTIONS))
        finally:
            await backend.cleanup()
        return len(results), len(results[0][0])

    assert asyncio.run(_run()) == (2, 1)


def test_executor_backend_rejects_local_kind() -> None:
    """Only pool kinds are valid for the executor backend."""
    with pytest.raises(ValueError, match="Unsupported executor backend"):
        ExecutorBackend("local")
