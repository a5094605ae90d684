"""msgspec conventions shared by chunkforge's config and wire structs."""

from __future__ import annotations

import re
from pathlib import PurePath

import msgspec


class StructBaseStrict(
    msgspec.Struct,
    frozen=True,
    kw_only=True,
    omit_defaults=True,
    repr_omit_defaults=True,
    forbid_unknown_fields=True,
):
    """Base for payloads chunkforge owns; unknown keys are errors."""


class StructBaseCompat(
    msgspec.Struct,
    frozen=True,
    kw_only=True,
    omit_defaults=True,
    repr_omit_defaults=True,
    forbid_unknown_fields=False,
):
    """Base for payloads written by other tools, such as entry configs and compiler output."""


# msgspec appends the failing location as " - at `$.key[0]`".
_AT_LOCATION = re.compile(r"\s+-\s+at\s+`(?P<location>[^`]+)`$")


def _enc_hook(obj: object) -> object:
    if isinstance(obj, PurePath):
        return str(obj)
    msg = f"Cannot encode {type(obj).__name__} as JSON"
    raise NotImplementedError(msg)


_ENCODER = msgspec.json.Encoder(enc_hook=_enc_hook, order="deterministic")
_SORTED_ENCODER = msgspec.json.Encoder(enc_hook=_enc_hook, order="sorted")


def describe_validation_error(exc: msgspec.ValidationError) -> str:
    """Return a validation message that leads with the failing location.

    Returns
    -------
    str
        ``"<location>: <summary>"``, or msgspec's message when it names no location.
    """
    message = str(exc).strip()
    match = _AT_LOCATION.search(message)
    if match is None:
        return message
    return f"{match.group('location')}: {message[: match.start()]}"


def dumps_json(obj: object, *, pretty: bool = False, sort_keys: bool = False) -> bytes:
    """Serialize ``obj`` to JSON bytes.

    Parameters
    ----------
    obj
        Struct or builtin value.
    pretty
        Indent the output by two spaces.
    sort_keys
        Sort mapping keys and struct fields instead of keeping declaration order.

    Returns
    -------
    bytes
        JSON payload.
    """
    raw = (_SORTED_ENCODER if sort_keys else _ENCODER).encode(obj)
    return msgspec.json.format(raw, indent=2) if pretty else raw


def convert[T](payload: object, *, target_type: type[T], strict: bool = True) -> T:
    """Validate builtin ``payload`` into ``target_type``.

    Returns
    -------
    T
        Converted payload.
    """
    return msgspec.convert(payload, type=target_type, strict=strict)


def to_builtins(obj: object) -> object:
    """Return builtin containers and scalars for a struct tree."""
    return msgspec.to_builtins(obj, enc_hook=_enc_hook, order="deterministic")


__all__ = [
    "StructBaseCompat",
    "StructBaseStrict",
    "convert",
    "describe_validation_error",
    "dumps_json",
    "to_builtins",
]
