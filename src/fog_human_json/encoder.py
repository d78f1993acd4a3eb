"""Value → JSON encoding.

Encoding is total and deterministic: the same Value always yields the same
JSON tree, and therefore byte-identical ``json.dumps`` output. Variants with
no native JSON form are written as ``$fog-<Type>:<payload>`` strings; a plain
string that happens to start with ``$fog-`` is escaped as ``$fog-Str:``.

Examples
--------
>>> from fog_human_json.encoder import encode
>>> from fog_human_json.values import Bin, Str
>>> encode(Str("$fog-test"))
'$fog-Str:$fog-test'
>>> encode(Bin(bytes([0, 1, 2, 3, 4])))
'$fog-Bin:AAECAwQ'
"""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING, Final, assert_never

import numpy as np

from fog_human_json.primitives import (
    DataLockbox,
    Hash,
    Identity,
    IdentityLockbox,
    LockId,
    LockLockbox,
    StreamId,
    StreamLockbox,
    Timestamp,
)
from fog_human_json.values import F32, F64, Array, Bin, Bool, Int, Map, Null, Str, Value

if TYPE_CHECKING:
    from fog_human_json.types import JsonValue

__all__ = ["FOG_PREFIX", "encode", "encode_base64"]

FOG_PREFIX: Final[str] = "$fog-"


def encode_base64(raw: bytes) -> str:
    """Standard-alphabet Base64 without padding."""
    return base64.b64encode(raw).decode("ascii").rstrip("=")


def _tag(type_token: str, payload: str) -> str:
    return f"{FOG_PREFIX}{type_token}:{payload}"


def _encode_f32(value: F32) -> str:
    if value.is_finite():
        # numpy renders the shortest decimal that round-trips at single precision
        return _tag("F32", str(np.float32(value.value)))
    return _tag("F32Hex", f"{value.bits:08x}")


def _encode_f64(value: F64) -> JsonValue:
    if value.is_finite():
        return value.value
    return _tag("F64Hex", f"{value.bits:016x}")


def encode(value: Value) -> JsonValue:
    """Convert ``value`` to a JSON tree.

    Parameters
    ----------
    value : Value
        Any fog-pack Value.

    Returns
    -------
    JsonValue
        JSON-compatible tree of dicts, lists, strings, numbers, booleans and None.
    """
    match value:
        case Null():
            return None
        case Bool(flag):
            return flag
        case Int(number):
            return number
        case Str(text):
            return _tag("Str", text) if text.startswith(FOG_PREFIX) else text
        case F32():
            return _encode_f32(value)
        case F64():
            return _encode_f64(value)
        case Bin(raw):
            return _tag("Bin", encode_base64(raw))
        case Array(items):
            return [encode(item) for item in items]
        case Map(entries):
            return {key: encode(item) for key, item in entries.items()}
        case Hash() | Identity() | StreamId() | LockId():
            return _tag(type(value).__name__, value.to_base58())
        case DataLockbox() | IdentityLockbox() | StreamLockbox() | LockLockbox():
            return _tag(type(value).__name__, encode_base64(value.raw))
        case Timestamp():
            return _tag("Time", value.to_rfc3339())
        case _:
            assert_never(value)
