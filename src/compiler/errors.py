"""Compiler error types and error-stream parsing."""

from __future__ import annotations

import msgspec

from serde_msgspec import StructBaseCompat


class CompileErrorItem(StructBaseCompat, frozen=True):
    """One structured diagnostic from the compiler's JSON error stream."""

    level: str
    description: str
    key: str | None = None
    source: str | None = None
    line: int | None = None
    column: int | None = None
    context: str | None = None


_ITEMS_DECODER = msgspec.json.Decoder(type=list[CompileErrorItem])


class CompilerError(RuntimeError):
    """Raised when the compiler exits unsuccessfully.

    The message's first line is the shell-quoted command; the remaining lines
    are the compiler's error stream.
    """

    def __init__(self, message: str, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class UnexpectedCompilerOutputError(CompilerError):
    """Raised when a compiler error stream is not structured JSON."""


def format_compiler_error(command: str, stderr: str) -> str:
    """Return a CompilerError message for ``command`` and its error stream.

    Returns
    -------
    str
        Command line, a blank separator line, then the error stream.
    """
    return f"{command}\n\n{stderr}"


def parse_error_items(text: str) -> tuple[CompileErrorItem, ...]:
    """Decode a JSON error stream into items.

    Returns
    -------
    tuple[CompileErrorItem, ...]
        Decoded items; empty for blank input.

    Raises
    ------
    UnexpectedCompilerOutputError
        Raised when the stream is not a JSON list of items.
    """
    if not text.strip():
        return ()
    try:
        return tuple(_ITEMS_DECODER.decode(text.encode("utf-8")))
    except msgspec.DecodeError as exc:
        msg = f"Unexpected non-JSON error: {text}"
        raise UnexpectedCompilerOutputError(msg) from exc


def split_compiler_error(error: CompilerError) -> tuple[str, tuple[CompileErrorItem, ...]]:
    """Split a CompilerError message into its command and items.

    Returns
    -------
    tuple[str, tuple[CompileErrorItem, ...]]
        Command line and decoded diagnostics.

    Raises
    ------
    UnexpectedCompilerOutputError
        Raised when the body after the command line is not JSON.
    """
    command, _, body = str(error).partition("\n")
    try:
        items = parse_error_items(body)
    except UnexpectedCompilerOutputError as exc:
        msg = f"Unexpected non-JSON error: {error}"
        raise UnexpectedCompilerOutputError(msg, error.exit_code) from exc
    return command, items


__all__ = [
    "CompileErrorItem",
    "CompilerError",
    "UnexpectedCompilerOutputError",
    "format_compiler_error",
    "parse_error_items",
    "split_compiler_error",
]
