"""Error code registry for fog-human-json.

Codes are stable, kebab-case identifiers attached to every exception raised by
the package. They let callers branch on the failure kind without parsing
messages, and they survive serialization into structured log records.

Examples
--------
>>> from fog_human_json.errors.codes import ErrorCode, get_type_uri
>>> ErrorCode.MALFORMED_TAG.value
'malformed-tag'
>>> get_type_uri(ErrorCode.MALFORMED_TAG)
'https://fog-human-json.dev/problems/malformed-tag'
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

__all__ = [
    "BASE_TYPE_URI",
    "ErrorCode",
    "get_type_uri",
]


BASE_TYPE_URI: Final[str] = "https://fog-human-json.dev/problems"


class ErrorCode(StrEnum):
    """Stable error codes for fog-human-json exceptions.

    Error codes are organized by layer:
    - Decode: a single JSON value could not become a fog-pack Value
    - Object: a Document / Entry / Query JSON object was rejected
    - Signing: a signer could not be resolved or did not match
    - Format & Runtime: binary-layer and configuration failures
    """

    # Decode
    MALFORMED_TAG = "malformed-tag"
    UNRECOGNIZED_TYPE = "unrecognized-type"
    INVALID_BASE64 = "invalid-base64"
    INVALID_HEX = "invalid-hex"
    INVALID_BASE58 = "invalid-base58"
    INVALID_TIME = "invalid-time"
    INVALID_FLOAT = "invalid-float"
    INVALID_INTEGER = "invalid-integer"
    INVALID_LOCKBOX = "invalid-lockbox"
    INVALID_TEXT = "invalid-text"

    # Object
    NOT_AN_OBJECT = "not-an-object"
    UNRECOGNIZED_KEY = "unrecognized-key"
    MISSING_KEY = "missing-key"
    WRONG_DATA_TYPE = "wrong-data-type"
    FIELD_DECODE_ERROR = "field-decode-error"
    PARENT_MISMATCH = "parent-mismatch"

    # Signing
    NO_VAULT = "no-vault"
    MISSING_IDENTITY_KEY = "missing-identity-key"
    INCORRECT_IDENTITY_KEY = "incorrect-identity-key"
    PENDANT_CONSUMED = "pendant-consumed"

    # Format & Runtime
    FORMAT_ERROR = "format-error"
    CONFIGURATION_ERROR = "configuration-error"
    RUNTIME_ERROR = "runtime-error"


def get_type_uri(code: ErrorCode) -> str:
    """Return the problem-type URI under :data:`BASE_TYPE_URI` for ``code``."""
    return f"{BASE_TYPE_URI}/{code.value}"
