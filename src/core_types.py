"""Shared type aliases and small typing helpers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Annotated, Literal

from msgspec import Meta

type PathLike = str | Path
type BackendKind = Literal["local", "threadpool", "process"]

type JsonPrimitive = str | int | float | bool | None
type JsonValue = JsonPrimitive | Mapping[str, JsonValue] | Sequence[JsonValue]

PositiveInt = Annotated[int, Meta(ge=1)]
PositiveFloat = Annotated[float, Meta(gt=0)]


__all__ = [
    "BackendKind",
    "JsonPrimitive",
    "JsonValue",
    "PathLike",
    "PositiveFloat",
    "PositiveInt",
]
