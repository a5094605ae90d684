"""Traced command dispatch for CLI invocation."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from cyclopts import App
from cyclopts.exceptions import CycloptsError

from cli.context import RunContext
from cli.exit_codes import ExitCode
from cli.result import CliResult
from cli.result_action import cli_result_action
from obs.otel import ScopeName, set_span_attributes, stage_span

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CliInvokeEvent:
    """Structured record of one CLI invocation."""

    ok: bool
    command: str | None
    parse_ms: float
    exec_ms: float
    exit_code: int
    error_class: str | None = None


def invoke_with_telemetry(
    app: App,
    tokens: list[str] | None,
    *,
    run_context: RunContext | None,
) -> tuple[int, CliInvokeEvent]:
    """Parse and execute a command inside an invocation span.

    ``run_context`` is injected into commands that declare an unparsed
    ``run_context`` parameter. Exceptions escaping the command are mapped to
    exit codes and rendered through the result action.

    Returns
    -------
    tuple[int, CliInvokeEvent]
        Exit code and invocation record.
    """
    t0 = time.perf_counter()
    command_name = tokens[0] if tokens else "<default>"
    parse_ms = 0.0
    with stage_span(
        "cli.invocation",
        stage="cli",
        scope_name=ScopeName.CLI,
        attributes={"cli.command": command_name, "cli.tokens": len(tokens or ())},
    ) as span:
        try:
            command, bound, ignored = app.parse_args(
                tokens,
                exit_on_error=False,
                print_error=True,
            )
            parse_ms = (time.perf_counter() - t0) * 1000.0
            command_name = getattr(command, "__qualname__", repr(command))
            if run_context is not None:
                for name, hint in ignored.items():
                    if hint is RunContext or name == "run_context":
                        bound.arguments[name] = run_context
            result = command(*bound.args, **bound.kwargs)
            exit_code = cli_result_action(app, command, result)
            event = CliInvokeEvent(
                ok=exit_code == ExitCode.SUCCESS,
                command=command_name,
                parse_ms=parse_ms,
                exec_ms=(time.perf_counter() - t0) * 1000.0 - parse_ms,
                exit_code=exit_code,
            )
        except CycloptsError as exc:
            exit_code = ExitCode.from_exception(exc)
            event = CliInvokeEvent(
                ok=False,
                command=command_name,
                parse_ms=(time.perf_counter() - t0) * 1000.0,
                exec_ms=0.0,
                exit_code=exit_code,
                error_class=f"cyclopts.{exc.__class__.__name__}",
            )
        except Exception as exc:
            _LOGGER.debug("Command execution failed.", exc_info=True)
            exit_code = cli_result_action(app, None, CliResult.from_exception(exc))
            event = CliInvokeEvent(
                ok=False,
                command=command_name,
                parse_ms=parse_ms,
                exec_ms=(time.perf_counter() - t0) * 1000.0 - parse_ms,
                exit_code=exit_code,
                error_class=f"{exc.__class__.__module__}.{exc.__class__.__name__}",
            )
        set_span_attributes(
            span,
            {
                "cli.command": event.command,
                "cli.exit_code": event.exit_code,
                "cli.ok": event.ok,
                "cli.parse_ms": event.parse_ms,
                "cli.exec_ms": event.exec_ms,
                "cli.error_class": event.error_class,
            },
        )
    return exit_code, event


__all__ = ["CliInvokeEvent", "invoke_with_telemetry"]
