"""Main application setup for the chunkforge CLI."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Annotated, Literal

from cyclopts import App, Parameter

from cli.commands.version import get_version
from cli.context import RunContext
from cli.groups import session_group
from cli.result_action import cli_result_action
from cli.telemetry import invoke_with_telemetry

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_HELP_EPILOGUE = """
Examples:
  chunkforge build                        Build every entry config in entry_config_dir
  chunkforge build js/app.json            Build a single entry config
  chunkforge build --print-config         Print compiler options instead of compiling
  chunkforge config show --with-sources   Show effective configuration

Environment Variables:
  CHUNKFORGE_LOG_LEVEL      Default log level (DEBUG, INFO, WARNING, ERROR)
  CHUNKFORGE_CONCURRENCY    Number of units compiled at once
  CHUNKFORGE_BACKEND        Compiler backend (local, threadpool, process)
"""

app = App(
    name="chunkforge",
    help="Chunked build orchestrator for closure-style JavaScript compilers.",
    help_format="rich",
    help_epilogue=_HELP_EPILOGUE,
    version=get_version(),
    version_flags=["--version", "-V"],
    default_parameter=Parameter(
        show_default=True,
        show_env_var=True,
    ),
    result_action=cli_result_action,
    exit_on_error=True,
    print_error=True,
    help_on_error=False,
)

app.meta.group_parameters = session_group


@dataclass(frozen=True)
class SessionOptions:
    """Session-level configuration parameters."""

    config_file: Annotated[
        str | None,
        Parameter(
            name="--config",
            help="Path to configuration file (overrides default search).",
            group=session_group,
        ),
    ] = None
    log_level: Annotated[
        Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None,
        Parameter(
            name="--log-level",
            help="Logging verbosity level.",
            env_var="CHUNKFORGE_LOG_LEVEL",
            group=session_group,
        ),
    ] = None


_DEFAULT_SESSION_OPTIONS = SessionOptions()


@app.meta.default
def meta_launcher(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    session: Annotated[SessionOptions, Parameter(name="*")] = _DEFAULT_SESSION_OPTIONS,
) -> int:
    """Meta launcher for config selection and context injection.

    Returns
    -------
    int
        Exit status code from command execution.

    Raises
    ------
    ValueError
        Raised when the log level is invalid.
    """
    run_context = RunContext.discover(session.config_file, log_level=session.log_level)
    if run_context.log_level not in LOG_LEVELS:
        msg = f"Unsupported log level {run_context.log_level!r}."
        raise ValueError(msg)
    logging.basicConfig(
        level=run_context.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )
    exit_code, _event = invoke_with_telemetry(app, list(tokens), run_context=run_context)
    return exit_code


app.command("cli.commands.build:build_command", name="build", alias="b")

_config_app = App(name="config", help="Configuration management.")
_config_app.command("cli.commands.config:show_config", name="show")
_config_app.command("cli.commands.config:validate_config", name="validate")
app.command(_config_app, alias="cfg")
app.command("cli.commands.version:version_command", name="version", alias="v")


def main() -> None:
    """Run the chunkforge CLI and exit with the command status."""
    sys.exit(app.meta())


__all__ = ["app", "main"]
