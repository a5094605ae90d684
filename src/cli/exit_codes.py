"""Exit code taxonomy for the chunkforge CLI."""

from __future__ import annotations

from enum import IntEnum

from compiler.errors import CompilerError, UnexpectedCompilerOutputError
from engine.errors import AggregateBuildError
from entryconfig.errors import ConfigError


class ExitCode(IntEnum):
    """Standard exit codes for CLI commands.

    - 0: Success
    - 1-9: General errors (parse, validation, config)
    - 10-19: Compilation errors
    """

    SUCCESS = 0
    GENERAL_ERROR = 1
    PARSE_ERROR = 2
    VALIDATION_ERROR = 3
    CONFIG_ERROR = 4

    COMPILE_ERROR = 10
    COMPILER_OUTPUT_ERROR = 11

    @classmethod
    def from_exception(cls, exc: BaseException) -> ExitCode:
        """Map an exception to an appropriate exit code.

        Parameters
        ----------
        exc
            Exception to classify.

        Returns
        -------
        ExitCode
            Exit code appropriate for the exception type.
        """
        if exc.__class__.__module__.startswith("cyclopts"):
            if exc.__class__.__name__ == "ValidationError":
                return cls.VALIDATION_ERROR
            return cls.PARSE_ERROR
        if isinstance(exc, AggregateBuildError):
            return cls.COMPILE_ERROR
        if isinstance(exc, UnexpectedCompilerOutputError):
            return cls.COMPILER_OUTPUT_ERROR
        if isinstance(exc, CompilerError):
            return cls.COMPILE_ERROR
        if isinstance(exc, (ConfigError, FileNotFoundError)):
            return cls.CONFIG_ERROR
        if isinstance(exc, (ValueError, TypeError)):
            return cls.VALIDATION_ERROR
        return cls.GENERAL_ERROR


__all__ = ["ExitCode"]
