"""Invoke the external compiler and decode its JSON streams."""

from __future__ import annotations

import asyncio
import logging
import shlex
import subprocess
from collections.abc import Sequence

import msgspec

from compiler.errors import (
    CompileErrorItem,
    CompilerError,
    UnexpectedCompilerOutputError,
    format_compiler_error,
    parse_error_items,
)
from compiler.options import CompilerOptions
from serde_msgspec import StructBaseCompat, dumps_json

logger = logging.getLogger(__name__)

DEFAULT_COMPILER_COMMAND: tuple[str, ...] = ("google-closure-compiler",)
ERROR_FORMAT_FLAG = "--error_format=JSON"
VERSION_TIMEOUT_S = 10.0


class CompilerOutput(StructBaseCompat, frozen=True):
    """One emitted file from the compiler's JSON output stream."""

    path: str
    src: str


type CompileResult = tuple[tuple[CompilerOutput, ...], tuple[CompileErrorItem, ...]]

_OUTPUTS_DECODER = msgspec.json.Decoder(type=list[CompilerOutput])


def build_command(
    options: CompilerOptions,
    *,
    compiler_command: Sequence[str] = DEFAULT_COMPILER_COMMAND,
) -> list[str]:
    """Return the argv that compiles ``options`` to a JSON output stream.

    Returns
    -------
    list[str]
        Compiler argv.
    """
    streamed = msgspec.structs.replace(options, json_streams="OUT")
    return [*compiler_command, *streamed.to_flags(), ERROR_FORMAT_FLAG]


def compile_blocking(
    options: CompilerOptions,
    *,
    compiler_command: Sequence[str] = DEFAULT_COMPILER_COMMAND,
    timeout_s: float | None = None,
) -> CompileResult:
    """Run the compiler in the calling thread.

    Returns
    -------
    CompileResult
        Emitted files and warnings.

    Raises
    ------
    CompilerError
        Raised when the compiler fails or times out.
    """
    cmd = build_command(options, compiler_command=compiler_command)
    logger.debug("Running compiler: %s", shlex.join(cmd))
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
            timeout=timeout_s,
        )
    except subprocess.TimeoutExpired as exc:
        raise _timeout_error(cmd, timeout_s) from exc
    return interpret_result(cmd, proc.returncode, proc.stdout, proc.stderr)


async def compile_async(
    options: CompilerOptions,
    *,
    compiler_command: Sequence[str] = DEFAULT_COMPILER_COMMAND,
    timeout_s: float | None = None,
) -> CompileResult:
    """Run the compiler as an asyncio subprocess.

    Returns
    -------
    CompileResult
        Emitted files and warnings.

    Raises
    ------
    CompilerError
        Raised when the compiler fails or times out.
    """
    cmd = build_command(options, compiler_command=compiler_command)
    logger.debug("Running compiler: %s", shlex.join(cmd))
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout_s)
    except TimeoutError as exc:
        proc.kill()
        await proc.wait()
        raise _timeout_error(cmd, timeout_s) from exc
    return interpret_result(
        cmd,
        proc.returncode if proc.returncode is not None else -1,
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
    )


def interpret_result(
    cmd: Sequence[str],
    returncode: int,
    stdout: str,
    stderr: str,
) -> CompileResult:
    """Decode a finished compiler process into outputs and warnings.

    Returns
    -------
    CompileResult
        Emitted files and warnings.

    Raises
    ------
    CompilerError
        Raised when the process exited unsuccessfully.
    UnexpectedCompilerOutputError
        Raised when the output stream is not JSON.
    """
    if returncode != 0:
        raise CompilerError(format_compiler_error(shlex.join(cmd), stderr), returncode)
    try:
        outputs = tuple(_OUTPUTS_DECODER.decode(stdout.encode("utf-8"))) if stdout.strip() else ()
    except msgspec.DecodeError as exc:
        msg = f"Unexpected non-JSON compiler output: {stdout[:200]}"
        raise UnexpectedCompilerOutputError(msg, returncode) from exc
    try:
        warnings = parse_error_items(stderr)
    except UnexpectedCompilerOutputError:
        logger.warning("Ignoring non-JSON compiler diagnostics: %s", stderr.strip())
        warnings = ()
    return outputs, warnings


def compiler_version(
    compiler_command: Sequence[str] = DEFAULT_COMPILER_COMMAND,
    *,
    timeout_s: float = VERSION_TIMEOUT_S,
) -> str | None:
    """Return the first line the compiler prints for ``--version``.

    Returns
    -------
    str | None
        Reported version, or ``None`` when the compiler cannot be run or
        prints nothing on success.
    """
    cmd = [*compiler_command, "--version"]
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
            timeout=timeout_s,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.debug("Compiler version unavailable for %s: %s", shlex.join(cmd), exc)
        return None
    if proc.returncode != 0:
        logger.debug("Compiler version query exited with %d: %s", proc.returncode, shlex.join(cmd))
        return None
    lines = [line.strip() for line in proc.stdout.splitlines() if line.strip()]
    return lines[0] if lines else None


def _timeout_error(cmd: Sequence[str], timeout_s: float | None) -> CompilerError:
    item = CompileErrorItem(
        level="error",
        description=f"Compiler timed out after {timeout_s}s",
    )
    body = dumps_json([item]).decode("utf-8")
    return CompilerError(format_compiler_error(shlex.join(cmd), body))


__all__ = [
    "DEFAULT_COMPILER_COMMAND",
    "CompileResult",
    "CompilerOutput",
    "build_command",
    "compile_async",
    "compile_blocking",
    "compiler_version",
    "interpret_result",
]
