"""Exception hierarchy and error codes.

Examples
--------
>>> from fog_human_json.errors import ErrorCode, MissingKeyError
>>> try:
...     raise MissingKeyError("data")
... except MissingKeyError as e:
...     assert e.code == ErrorCode.MISSING_KEY
...     assert e.to_dict()["type"] == "https://fog-human-json.dev/problems/missing-key"
"""

from __future__ import annotations

from fog_human_json.errors.codes import BASE_TYPE_URI, ErrorCode, get_type_uri
from fog_human_json.errors.exceptions import (
    DecodeError,
    DecodeErrorKind,
    FieldDecodeError,
    FogJsonError,
    FogPackError,
    IncorrectIdentityKeyError,
    IndexSegment,
    KeySegment,
    MissingIdentityKeyError,
    MissingKeyError,
    NoVaultError,
    NotAnObjectError,
    ObjectError,
    ParentMismatchError,
    PathSegment,
    PendantConsumedError,
    SettingsError,
    UnderlyingFormatError,
    UnrecognizedKeyError,
    WrongDataTypeError,
)

__all__ = [
    "BASE_TYPE_URI",
    "DecodeError",
    "DecodeErrorKind",
    "ErrorCode",
    "FieldDecodeError",
    "FogJsonError",
    "FogPackError",
    "IncorrectIdentityKeyError",
    "IndexSegment",
    "KeySegment",
    "MissingIdentityKeyError",
    "MissingKeyError",
    "NoVaultError",
    "NotAnObjectError",
    "ObjectError",
    "ParentMismatchError",
    "PathSegment",
    "PendantConsumedError",
    "SettingsError",
    "UnderlyingFormatError",
    "UnrecognizedKeyError",
    "WrongDataTypeError",
    "get_type_uri",
]
