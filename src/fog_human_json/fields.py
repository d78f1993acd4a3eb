"""Field guards shared by the Document, Entry and Query converters.

Each guard either returns the checked field or raises the matching
:class:`~fog_human_json.errors.ObjectError`, so the converters read as a
straight sequence of steps.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import TYPE_CHECKING

from fog_human_json.binary import CompressionSetting, DefaultCompression
from fog_human_json.decoder import decode
from fog_human_json.errors import (
    DecodeError,
    FieldDecodeError,
    FogPackError,
    MissingKeyError,
    NotAnObjectError,
    UnderlyingFormatError,
    UnrecognizedKeyError,
    WrongDataTypeError,
)
from fog_human_json.primitives import Hash, Identity
from fog_human_json.values import Str, Value, type_name

if TYPE_CHECKING:
    from collections.abc import Callable

    from fog_human_json.types import JsonObject, JsonValue

__all__ = [
    "COMPRESSION_MAX",
    "decode_field",
    "expect_hash",
    "expect_identity",
    "expect_str",
    "json_type_name",
    "optional_field",
    "parse_compression",
    "require_fields",
    "require_object",
    "wrap_format_error",
]

COMPRESSION_MAX = 255


def json_type_name(value: JsonValue) -> str:
    """Name a JSON value's type for error context."""
    match value:
        case None:
            return "null"
        case bool():
            return "boolean"
        case int() | float():
            return "number"
        case str():
            return "string"
        case list():
            return "array"
        case dict():
            return "object"
        case _:
            return type(value).__name__


def require_object(value: JsonValue) -> JsonObject:
    """Return ``value`` if it is a JSON object; raise NotAnObjectError otherwise."""
    if not isinstance(value, dict):
        raise NotAnObjectError(json_type_name(value))
    return value


def require_fields(
    obj: JsonObject, *, allowed: Collection[str], required: Collection[str]
) -> None:
    """Reject unknown keys, then missing mandatory ones.

    Raises
    ------
    UnrecognizedKeyError
        For the first key not in ``allowed``.
    MissingKeyError
        For the first key of ``required`` absent from ``obj``.
    """
    for key in obj:
        if key not in allowed:
            raise UnrecognizedKeyError(key)
    for key in required:
        if key not in obj:
            raise MissingKeyError(key)


def decode_field(obj: JsonObject, name: str) -> Value:
    """Decode ``obj[name]``, attributing any failure to the field."""
    try:
        return decode(obj[name])
    except DecodeError as exc:
        raise FieldDecodeError(name, exc) from exc


def optional_field[T](
    obj: JsonObject, name: str, expect: Callable[[str, Value], T]
) -> T | None:
    """Decode and type-check ``obj[name]`` when present."""
    if name not in obj:
        return None
    return expect(name, decode_field(obj, name))


def expect_hash(name: str, value: Value) -> Hash:
    if not isinstance(value, Hash):
        raise WrongDataTypeError(name, found=type_name(value))
    return value


def expect_identity(name: str, value: Value) -> Identity:
    if not isinstance(value, Identity):
        raise WrongDataTypeError(name, found=type_name(value))
    return value


def expect_str(name: str, value: Value) -> str:
    if not isinstance(value, Str):
        raise WrongDataTypeError(name, found=type_name(value))
    return value.value


def parse_compression(obj: JsonObject) -> CompressionSetting:
    """Read the ``compression`` tri-state.

    Absent means the default applies, ``null`` disables compression, and an
    integer in ``[0, 255]`` is an explicit level. The raw JSON value is read
    directly, so tagged forms such as ``"$fog-Int:5"`` are rejected.

    Raises
    ------
    WrongDataTypeError
        For any other value.
    """
    if "compression" not in obj:
        return DefaultCompression.DEFAULT
    raw = obj["compression"]
    if raw is None:
        return None
    if isinstance(raw, int) and not isinstance(raw, bool) and 0 <= raw <= COMPRESSION_MAX:
        return raw
    raise WrongDataTypeError("compression", found=json_type_name(raw))


def wrap_format_error[T](build: Callable[[], T]) -> T:
    """Run a binary-layer call, converting FogPackError to UnderlyingFormatError."""
    try:
        return build()
    except FogPackError as exc:
        raise UnderlyingFormatError(exc) from exc
