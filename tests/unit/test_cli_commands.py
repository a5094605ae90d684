"""Tests for CLI commands."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from cli.app import app
from cli.commands.build import BuildOptions, build_command
from cli.commands.config import show_config, validate_config
from cli.commands.version import get_version_info
from cli.config_loader import load_effective_config_with_sources
from cli.context import RunContext
from cli.exit_codes import ExitCode
from cli.telemetry import invoke_with_telemetry
from core_types import JsonValue


def _compiler_script(out_path: Path, *, fail: bool) -> list[str]:
    if fail:
        code = (
            "import json, sys; "
            "print(json.dumps([{'level': 'error', 'description': 'Parse error'}]), file=sys.stderr); "
            "sys.exit(1)"
        )
    else:
        payload = json.dumps([{"path": str(out_path), "src": "compiled"}])
        code = f"print({payload!r})"
    return [sys.executable, "-c", code]


def _project(tmp_path: Path, *, fail: bool = False) -> RunContext:
    configs = tmp_path / "configs"
    configs.mkdir()
    (configs / "app.json").write_text('{"inputs": ["app.js"]}', encoding="utf-8")
    contents: dict[str, JsonValue] = {
        "entry_config_dir": str(configs),
        "compiler_command": _compiler_script(tmp_path / "out" / "app.js", fail=fail),
    }
    return RunContext.from_contents(contents)


def test_build_command_compiles_units(tmp_path: Path) -> None:
    """Compile discovered units with the configured compiler."""
    result = build_command(run_context=_project(tmp_path))
    assert result.ok
    assert result.summary == "Compiled 1/1 unit(s)."
    assert (tmp_path / "out" / "app.js").read_text(encoding="utf-8") == "compiled"


def test_build_command_reports_compile_failures(tmp_path: Path) -> None:
    """Return a compile error result with per-unit reasons."""
    result = build_command(
        options=BuildOptions(backend="threadpool"),
        run_context=_project(tmp_path, fail=True),
    )
    assert result.exit_code == ExitCode.COMPILE_ERROR
    assert result.summary == "Failed to compile (1/1)"
    (reason,) = result.reasons
    assert reason.command is not None
    assert reason.command.startswith(sys.executable)
    assert reason.items[0].description == "Parse error"


def test_build_command_print_config(tmp_path: Path) -> None:
    """Print options without running the compiler."""
    result = build_command(print_config=True, run_context=_project(tmp_path, fail=True))
    assert result.ok
    assert result.summary == "Printed compiler options for 1 unit(s)."
    assert not (tmp_path / "out").exists()


def test_show_config_with_sources(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Print the effective configuration and where values came from."""
    (tmp_path / "chunkforge.toml").write_text("concurrency = 5\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    sources = load_effective_config_with_sources(None)
    context = RunContext(log_level="INFO", config_sources=sources)
    assert show_config(with_sources=True, run_context=context) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["concurrency"] == {
        "location": str(tmp_path / "chunkforge.toml"),
        "source": "config_file",
        "value": 5,
    }
    assert payload["backend"]["source"] == "default"


def test_validate_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Accept valid files and reject values the build config refuses."""
    config_file = tmp_path / "chunkforge.toml"
    config_file.write_text("concurrency = 2\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    assert validate_config() == 0
    config_file.write_text("concurrency = 0\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Config validation failed"):
        validate_config()


def test_version_info_reports_configured_compiler() -> None:
    """Report the version printed by the configured compiler command."""
    command = [sys.executable, "-c", "print('closure-compiler v20240317')"]
    info = get_version_info(RunContext.from_contents({"compiler_command": command}))
    assert info["compiler"] == {"command": command, "version": "closure-compiler v20240317"}
    assert set(info["libraries"]) == {"msgspec", "rustworkx"}  # type: ignore[arg-type]


def test_version_info_tolerates_missing_compiler(tmp_path: Path) -> None:
    """Report no compiler version when the command cannot be run."""
    command = [str(tmp_path / "no-such-compiler")]
    info = get_version_info(RunContext.from_contents({"compiler_command": command}))
    assert info["compiler"] == {"command": command, "version": None}


def test_run_context_discovers_log_level(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Take the log level from config files unless one is passed explicitly."""
    config_file = tmp_path / "chunkforge.toml"
    config_file.write_text('log_level = "DEBUG"\nconcurrency = 3\n', encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    discovered = RunContext.discover()
    assert discovered.log_level == "DEBUG"
    assert discovered.build_config().concurrency == 3
    assert RunContext.discover(log_level="ERROR").log_level == "ERROR"


def test_invoke_dispatches_commands(capsys: pytest.CaptureFixture[str]) -> None:
    """Parse tokens and run the resolved command."""
    exit_code, event = invoke_with_telemetry(
        app,
        ["version"],
        run_context=RunContext(log_level="INFO"),
    )
    assert exit_code == ExitCode.SUCCESS
    assert event.ok
    assert "chunkforge" in json.loads(capsys.readouterr().out)


def test_invoke_maps_command_errors(tmp_path: Path) -> None:
    """Map exceptions escaping a command to exit codes."""
    context = RunContext.from_contents({"entry_config_dir": str(tmp_path / "missing")})
    exit_code, event = invoke_with_telemetry(app, ["build"], run_context=context)
    assert exit_code == ExitCode.CONFIG_ERROR
    assert event.error_class == "entryconfig.errors.ConfigError"
