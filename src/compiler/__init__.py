"""Compiler options, invocation, and execution backends."""

from compiler.backends import CompilerBackend, ExecutorBackend, LocalBackend, create_backend
from compiler.errors import (
    CompileErrorItem,
    CompilerError,
    UnexpectedCompilerOutputError,
    split_compiler_error,
)
from compiler.options import (
    CompilerOptions,
    options_for_chunks,
    options_for_page,
    to_compiler_options,
)
from compiler.runner import CompileResult, CompilerOutput, compile_async, compile_blocking

__all__ = [
    "CompileErrorItem",
    "CompileResult",
    "CompilerBackend",
    "CompilerError",
    "CompilerOptions",
    "CompilerOutput",
    "ExecutorBackend",
    "LocalBackend",
    "UnexpectedCompilerOutputError",
    "compile_async",
    "compile_blocking",
    "create_backend",
    "options_for_chunks",
    "options_for_page",
    "split_compiler_error",
    "to_compiler_options",
]
