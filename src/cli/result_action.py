"""Result action handler for Cyclopts integration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape

from cli.exit_codes import ExitCode
from cli.result import CliResult

if TYPE_CHECKING:
    from cyclopts import App

    from engine.outcome import ErrorReason

_LEVEL_STYLES = {"error": "bold red", "warning": "yellow"}


def cli_result_action(
    app: App,
    cmd: object,
    result: Any,
) -> int:
    """Handle command results and convert to exit codes.

    Parameters
    ----------
    app
        The Cyclopts application instance.
    cmd
        The resolved command that was executed.
    result
        The return value from the command function.

    Returns
    -------
    int
        Exit code for the process.
    """
    _ = app, cmd
    if result is None:
        return ExitCode.SUCCESS
    if isinstance(result, int):
        return result
    console = Console(stderr=True)
    if isinstance(result, CliResult):
        render_reasons(console, result.reasons)
        if result.summary:
            style = "green" if result.ok else "bold red"
            console.print(f"[{style}]{escape(result.summary)}[/{style}]")
        return int(result.exit_code)
    console.print(f"Unexpected command return type: {type(result).__name__} (value: {result!r})")
    return ExitCode.GENERAL_ERROR


def render_reasons(console: Console, reasons: tuple[ErrorReason, ...]) -> None:
    """Print each unit's command and diagnostics."""
    for reason in reasons:
        console.rule(escape(reason.entry_config_path), style="dim")
        if reason.command:
            console.print(f"[dim]{escape(reason.command)}[/dim]")
        for item in reason.items:
            style = _LEVEL_STYLES.get(item.level, "cyan")
            location = ""
            if item.source:
                location = f"{item.source}:{item.line or 0}:{item.column or 0}: "
            key = f" ({item.key})" if item.key else ""
            console.print(
                f"[{style}]{escape(item.level.upper())}[/{style}] "
                f"{escape(location)}{escape(item.description)}{escape(key)}"
            )
            if item.context:
                console.print(escape(item.context), highlight=False)


__all__ = ["cli_result_action", "render_reasons"]
