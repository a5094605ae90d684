"""Configuration management commands."""

from __future__ import annotations

import sys
from typing import Annotated

from cyclopts import Parameter

from cli.context import RunContext, context_or_discover
from serde_msgspec import dumps_json


def show_config(
    *,
    with_sources: Annotated[
        bool,
        Parameter(
            name="--with-sources",
            help="Show the source of each configuration value.",
        ),
    ] = False,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> int:
    """Show the effective configuration payload.

    Returns
    -------
    int
        Exit status code.
    """
    resolved = context_or_discover(run_context).sources_with_defaults()
    payload = resolved.to_display_dict() if with_sources else resolved.to_flat_dict()
    sys.stdout.write(dumps_json(payload, pretty=True, sort_keys=True).decode("utf-8") + "\n")
    return 0


def validate_config(
    *,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> int:
    """Validate that the effective configuration forms a build configuration.

    Returns
    -------
    int
        Exit status code.
    """
    context_or_discover(run_context).build_config()
    sys.stdout.write("Configuration is valid.\n")
    return 0


__all__ = ["show_config", "validate_config"]
