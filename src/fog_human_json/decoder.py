"""JSON → Value decoding with structural error attribution.

Strings starting with ``$fog-`` are tagged values: everything up to the first
colon names the type and the rest is the payload. There is no fallback to a
literal string for unknown or malformed tags. A failure deep inside a tree is
re-raised by every enclosing container with its array index or object key
prepended, so the final :class:`~fog_human_json.errors.DecodeError` locates
the offending value from the root.

Examples
--------
>>> from fog_human_json.decoder import decode
>>> decode("$fog-Int:-5")
Int(value=-5)
>>> decode({"a": ["$fog-Int:notanumber"]})
Traceback (most recent call last):
...
fog_human_json.errors.exceptions.DecodeError: DecodeError[invalid-integer]: object key 'a' -> array index 0 -> invalid integer
"""

from __future__ import annotations

import base64
import binascii
import math
import re
from collections.abc import Callable
from decimal import Decimal
from fractions import Fraction
from typing import TYPE_CHECKING, Final

import numpy as np

from fog_human_json.encoder import FOG_PREFIX, encode_base64
from fog_human_json.errors import DecodeError, DecodeErrorKind
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
from fog_human_json.values import (
    F32,
    F64,
    I64_MIN,
    U64_MAX,
    Array,
    Bin,
    Bool,
    Int,
    Map,
    Null,
    Str,
    Value,
)

if TYPE_CHECKING:
    from fog_human_json.types import JsonValue

__all__ = ["decode", "decode_base64"]

_FLOAT = re.compile(
    r"[+-]?(?:inf|infinity|nan|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:e[+-]?[0-9]+)?)",
    re.IGNORECASE,
)
_HEX32 = re.compile(r"[0-9a-fA-F]{8}")
_HEX64 = re.compile(r"[0-9a-fA-F]{16}")
_INTEGER = re.compile(r"[+-]?[0-9]+")
_BASE64 = re.compile(r"[A-Za-z0-9+/]*")

# Rounding treats float32 overflow as the next power of two past the largest finite value.
_F32_OVERFLOW: Final = Fraction(2**128)


def decode_base64(payload: str) -> bytes:
    """Decode standard-alphabet Base64 with optional padding.

    Raises
    ------
    DecodeError
        With kind ``INVALID_BASE64`` if the payload is not canonical Base64.
    """
    unpadded = payload.rstrip("=")
    padding = len(payload) - len(unpadded)
    if padding and (padding > 2 or len(payload) % 4 != 0):
        raise DecodeError(DecodeErrorKind.INVALID_BASE64, detail="bad padding")
    if len(unpadded) % 4 == 1 or _BASE64.fullmatch(unpadded) is None:
        raise DecodeError(DecodeErrorKind.INVALID_BASE64)
    try:
        raw = base64.b64decode(unpadded + "=" * (-len(unpadded) % 4), validate=True)
    except binascii.Error as exc:
        raise DecodeError(DecodeErrorKind.INVALID_BASE64, cause=exc) from exc
    if encode_base64(raw) != unpadded:
        raise DecodeError(DecodeErrorKind.INVALID_BASE64, detail="non-zero trailing bits")
    return raw


def _parse_float(payload: str) -> float:
    text = payload.strip()
    if _FLOAT.fullmatch(text) is None:
        raise DecodeError(DecodeErrorKind.INVALID_FLOAT)
    return float(text)


def _parse_hex(payload: str, pattern: re.Pattern[str]) -> int:
    text = payload.strip()
    if pattern.fullmatch(text) is None:
        raise DecodeError(DecodeErrorKind.INVALID_HEX)
    return int(text, 16)


def _f32_exact(candidate: np.float32) -> Fraction:
    if np.isinf(candidate):
        return _F32_OVERFLOW if candidate > 0 else -_F32_OVERFLOW
    return Fraction(float(candidate))


def _decode_f32(payload: str) -> Value:
    wide = _parse_float(payload)
    with np.errstate(over="ignore"):
        narrow = np.float32(wide)
        if not math.isfinite(wide) or wide == 0.0:
            return F32(narrow)
        # Going through float64 can round twice; the correct float32 is at most
        # one step away from the double-rounded one.
        exact = Fraction(Decimal(payload.strip()))
        nearby = (
            narrow,
            np.nextafter(narrow, np.float32(-np.inf)),
            np.nextafter(narrow, np.float32(np.inf)),
        )
        best = min(
            nearby,
            key=lambda c: (abs(_f32_exact(c) - exact), int(c.view(np.uint32)) & 1),
        )
    return F32(best)


def _decode_f64(payload: str) -> Value:
    return F64(_parse_float(payload))


def _decode_int(payload: str) -> Value:
    text = payload.strip()
    if _INTEGER.fullmatch(text) is None:
        raise DecodeError(DecodeErrorKind.INVALID_INTEGER)
    number = int(text)
    low, high = (I64_MIN, 0) if text.startswith("-") else (0, U64_MAX)
    if not low <= number <= high:
        raise DecodeError(DecodeErrorKind.INVALID_INTEGER, detail="out of range")
    return Int(number)


def _fixed_id(kind: type[Hash | Identity | StreamId | LockId]) -> Callable[[str], Value]:
    def parse(payload: str) -> Value:
        try:
            return kind.from_base58(payload.strip())
        except ValueError as exc:
            raise DecodeError(DecodeErrorKind.INVALID_BASE58, cause=exc) from exc

    return parse


def _lockbox(
    kind: type[DataLockbox | IdentityLockbox | StreamLockbox | LockLockbox],
) -> Callable[[str], Value]:
    def parse(payload: str) -> Value:
        raw = decode_base64(payload.strip())
        try:
            return kind(raw)
        except ValueError as exc:
            raise DecodeError(DecodeErrorKind.INVALID_LOCKBOX, detail=str(exc), cause=exc) from exc

    return parse


def _decode_time(payload: str) -> Value:
    try:
        return Timestamp.from_rfc3339(payload.strip())
    except ValueError as exc:
        raise DecodeError(DecodeErrorKind.INVALID_TIME, detail=str(exc), cause=exc) from exc


_TAGGED: Final[dict[str, Callable[[str], Value]]] = {
    "Str": Str,
    "F32": _decode_f32,
    "F64": _decode_f64,
    "F32Hex": lambda payload: F32.from_bits(_parse_hex(payload, _HEX32)),
    "F64Hex": lambda payload: F64.from_bits(_parse_hex(payload, _HEX64)),
    "Int": _decode_int,
    "Bin": lambda payload: Bin(decode_base64(payload.strip())),
    "Hash": _fixed_id(Hash),
    "Identity": _fixed_id(Identity),
    "StreamId": _fixed_id(StreamId),
    "LockId": _fixed_id(LockId),
    "DataLockbox": _lockbox(DataLockbox),
    "IdentityLockbox": _lockbox(IdentityLockbox),
    "StreamLockbox": _lockbox(StreamLockbox),
    "LockLockbox": _lockbox(LockLockbox),
    "Time": _decode_time,
}


def _check_text(text: str) -> None:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise DecodeError(DecodeErrorKind.INVALID_TEXT, cause=exc) from exc


def _decode_string(text: str) -> Value:
    _check_text(text)
    if not text.startswith(FOG_PREFIX):
        return Str(text)
    token, colon, payload = text[len(FOG_PREFIX) :].partition(":")
    if not colon:
        raise DecodeError(DecodeErrorKind.MALFORMED_TAG)
    parse = _TAGGED.get(token)
    if parse is None:
        raise DecodeError(DecodeErrorKind.UNRECOGNIZED_TYPE, detail=token)
    return parse(payload)


def _decode_number(number: int) -> Value:
    if I64_MIN <= number <= U64_MAX:
        return Int(number)
    try:
        return F64(float(number))
    except OverflowError:
        return F64(math.copysign(math.inf, number))


def decode(value: JsonValue) -> Value:
    """Convert a JSON tree to a Value.

    Parameters
    ----------
    value : JsonValue
        Tree as produced by ``json.loads``.

    Returns
    -------
    Value
        The decoded Value.

    Raises
    ------
    DecodeError
        If any string in the tree is a malformed or invalid tagged value. The
        error's ``path`` locates the failing value.
    TypeError
        If the tree contains objects that JSON cannot produce.
    """
    match value:
        case None:
            return Null()
        case bool():
            return Bool(value)
        case int():
            return _decode_number(value)
        case float():
            return F64(value)
        case str():
            return _decode_string(value)
        case list():
            items: list[Value] = []
            for index, item in enumerate(value):
                try:
                    items.append(decode(item))
                except DecodeError as exc:
                    raise exc.within_index(index) from exc.__cause__
            return Array(tuple(items))
        case dict():
            entries: dict[str, Value] = {}
            for key, item in value.items():
                try:
                    _check_text(key)
                    entries[key] = decode(item)
                except DecodeError as exc:
                    raise exc.within_key(key) from exc.__cause__
            return Map(entries)
        case _:
            msg = f"{type(value).__name__} is not a JSON value"
            raise TypeError(msg)
