"""Report chunkforge and compiler versions."""

from __future__ import annotations

import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from typing import Annotated

from cyclopts import Parameter

from cli.context import RunContext, context_or_discover
from compiler.runner import compiler_version
from serde_msgspec import dumps_json

_DISTRIBUTION = "chunkforge"
# Libraries whose behavior shows up in build results.
_BUILD_LIBRARIES = ("msgspec", "rustworkx")


def get_version() -> str:
    """Return the installed chunkforge version, or ``0.0.0-dev`` from a checkout."""
    return _package_version(_DISTRIBUTION) or "0.0.0-dev"


def get_version_info(run_context: RunContext | None = None) -> dict[str, object]:
    """Describe the tool chain a build would use.

    The compiler entry runs the configured ``compiler_command`` with
    ``--version``; its version is ``None`` when the compiler cannot be run.

    Returns
    -------
    dict[str, object]
        chunkforge, Python, compiler, and library versions.
    """
    config = context_or_discover(run_context).build_config()
    return {
        _DISTRIBUTION: get_version(),
        "python": sys.version.split()[0],
        "compiler": {
            "command": list(config.compiler_command),
            "version": compiler_version(config.compiler_command),
        },
        "libraries": {name: _package_version(name) for name in _BUILD_LIBRARIES},
    }


def version_command(
    *,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> int:
    """Show chunkforge and compiler versions as JSON.

    Returns
    -------
    int
        Exit status code.
    """
    payload = dumps_json(get_version_info(run_context), pretty=True, sort_keys=True)
    sys.stdout.write(payload.decode("utf-8") + "\n")
    return 0


def _package_version(name: str) -> str | None:
    try:
        return pkg_version(name)
    except PackageNotFoundError:
        return None


__all__ = ["get_version", "get_version_info", "version_command"]
