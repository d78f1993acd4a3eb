"""Typed exception hierarchy for fog-human-json.

All exceptions inherit from :class:`FogJsonError`, which carries a stable
:class:`~fog_human_json.errors.codes.ErrorCode`, a log level and a structured
context mapping. Two layers sit on top of it:

- :class:`DecodeError` for a single JSON value that could not become a Value.
  It records the leaf failure kind plus the structural path (object keys and
  array indexes) leading to the offending value.
- :class:`ObjectError` and its subclasses for Document / Entry / Query objects.
  Field-level decode failures wrap the :class:`DecodeError` unchanged, so the
  full path survives up to the caller.

Examples
--------
>>> from fog_human_json.errors import DecodeError, DecodeErrorKind
>>> err = DecodeError(DecodeErrorKind.INVALID_INTEGER).within_index(0).within_key("a")
>>> err.location
"object key 'a' -> array index 0"
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from fog_human_json.errors.codes import ErrorCode, get_type_uri

if TYPE_CHECKING:
    from fog_human_json.primitives import Hash, Identity

__all__ = [
    "DecodeError",
    "DecodeErrorKind",
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
]


class FogJsonError(Exception):
    """Base exception for all fog-human-json errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    code : ErrorCode, optional
        Stable error code. Defaults to ``ErrorCode.RUNTIME_ERROR``.
    log_level : int, optional
        Level at which callers should log this error. Defaults to ``logging.ERROR``.
    cause : Exception | None, optional
        Underlying exception, exposed as ``__cause__``. Defaults to None.
    context : Mapping[str, object] | None, optional
        Structured details for logs and reports. Defaults to None.

    Examples
    --------
    >>> error = FogJsonError("Operation failed")
    >>> str(error)
    'FogJsonError[runtime-error]: Operation failed'
    """

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode = ErrorCode.RUNTIME_ERROR,
        log_level: int = logging.ERROR,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.log_level = log_level
        self.context: dict[str, object] = dict(context) if context else {}
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-compatible report of this error.

        Returns
        -------
        dict[str, object]
            Mapping with ``type``, ``title``, ``code``, ``detail`` and, when
            present, ``context``.
        """
        report: dict[str, object] = {
            "type": get_type_uri(self.code),
            "title": self.__class__.__name__,
            "code": self.code.value,
            "detail": self.message,
        }
        if self.context:
            report["context"] = dict(self.context)
        return report

    def __str__(self) -> str:
        """Return formatted error string.

        Returns
        -------
        str
            Formatted error string (e.g., "MissingKeyError[missing-key]: ...").
        """
        base = f"{self.__class__.__name__}[{self.code.value}]: {self.message}"
        if self.__cause__ and not isinstance(self.__cause__, FogJsonError):
            base += f" (caused by: {type(self.__cause__).__name__})"
        return base


# Decode layer


class DecodeErrorKind(StrEnum):
    """Leaf failure kinds for JSON → Value conversion."""

    MALFORMED_TAG = ErrorCode.MALFORMED_TAG.value
    UNRECOGNIZED_TYPE = ErrorCode.UNRECOGNIZED_TYPE.value
    INVALID_BASE64 = ErrorCode.INVALID_BASE64.value
    INVALID_HEX = ErrorCode.INVALID_HEX.value
    INVALID_BASE58 = ErrorCode.INVALID_BASE58.value
    INVALID_TIME = ErrorCode.INVALID_TIME.value
    INVALID_FLOAT = ErrorCode.INVALID_FLOAT.value
    INVALID_INTEGER = ErrorCode.INVALID_INTEGER.value
    INVALID_LOCKBOX = ErrorCode.INVALID_LOCKBOX.value
    INVALID_TEXT = ErrorCode.INVALID_TEXT.value


_KIND_DESCRIPTIONS: Final[dict[DecodeErrorKind, str]] = {
    DecodeErrorKind.MALFORMED_TAG: "bad fog-pack type (missing a colon at end of type)",
    DecodeErrorKind.UNRECOGNIZED_TYPE: "unrecognized fog-pack type",
    DecodeErrorKind.INVALID_BASE64: "invalid Base64",
    DecodeErrorKind.INVALID_HEX: "invalid hexadecimal",
    DecodeErrorKind.INVALID_BASE58: "invalid Base58",
    DecodeErrorKind.INVALID_TIME: "invalid time",
    DecodeErrorKind.INVALID_FLOAT: "invalid floating-point value",
    DecodeErrorKind.INVALID_INTEGER: "invalid integer",
    DecodeErrorKind.INVALID_LOCKBOX: "invalid lockbox",
    DecodeErrorKind.INVALID_TEXT: "text is not valid Unicode (unpaired surrogate)",
}


@dataclass(frozen=True, slots=True)
class IndexSegment:
    """Array position on a decode error path."""

    index: int

    def describe(self) -> str:
        return f"array index {self.index}"

    def to_json(self) -> int:
        return self.index


@dataclass(frozen=True, slots=True)
class KeySegment:
    """Object key on a decode error path."""

    key: str

    def describe(self) -> str:
        return f"object key {self.key!r}"

    def to_json(self) -> str:
        return self.key


type PathSegment = IndexSegment | KeySegment


class DecodeError(FogJsonError):
    """A JSON value could not be converted to a fog-pack Value.

    The error is a leaf ``kind`` plus the ``path`` of segments from the root of
    the decoded tree down to the failing value. Containers re-raise a child's
    error with their own segment prepended via :meth:`within_index` or
    :meth:`within_key`, which keeps the leaf kind and cause intact.

    Parameters
    ----------
    kind : DecodeErrorKind
        Leaf failure kind.
    detail : str | None, optional
        Extra detail for the leaf, such as the unrecognized type token or the
        time parser's message. Defaults to None.
    path : tuple[PathSegment, ...], optional
        Segments from the root to the failing value. Defaults to the root.
    cause : Exception | None, optional
        Underlying parser exception. Defaults to None.
    """

    def __init__(
        self,
        kind: DecodeErrorKind,
        *,
        detail: str | None = None,
        path: tuple[PathSegment, ...] = (),
        cause: Exception | None = None,
    ) -> None:
        self.kind = kind
        self.detail = detail
        self.path = path
        context: dict[str, object] = {
            "kind": kind.value,
            "path": [segment.to_json() for segment in path],
        }
        if detail is not None:
            context["detail"] = detail
        super().__init__(
            self._render(kind, detail, path),
            code=ErrorCode(kind.value),
            log_level=logging.WARNING,
            cause=cause,
            context=context,
        )

    @staticmethod
    def _render(
        kind: DecodeErrorKind, detail: str | None, path: tuple[PathSegment, ...]
    ) -> str:
        leaf = _KIND_DESCRIPTIONS[kind]
        if kind is DecodeErrorKind.UNRECOGNIZED_TYPE and detail is not None:
            leaf = f'{leaf} "{detail}"'
        elif detail is not None:
            leaf = f"{leaf} ({detail})"
        return " -> ".join([*(segment.describe() for segment in path), leaf])

    @property
    def location(self) -> str:
        """Human-readable path to the failing value (empty at the root)."""
        return " -> ".join(segment.describe() for segment in self.path)

    def _with_segment(self, segment: PathSegment) -> DecodeError:
        cause = self.__cause__ if isinstance(self.__cause__, Exception) else None
        return DecodeError(
            self.kind,
            detail=self.detail,
            path=(segment, *self.path),
            cause=cause,
        )

    def within_index(self, index: int) -> DecodeError:
        """Return a copy located one array level deeper, under ``index``."""
        return self._with_segment(IndexSegment(index))

    def within_key(self, key: str) -> DecodeError:
        """Return a copy located one object level deeper, under ``key``."""
        return self._with_segment(KeySegment(key))


class FogPackError(FogJsonError):
    """Failure reported by the binary document / entry layer."""

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.FORMAT_ERROR, cause=cause, context=context)


# Object layer


class ObjectError(FogJsonError):
    """Base class for Document / Entry / Query conversion failures.

    Parameters
    ----------
    message : str
        Human-readable error message.
    code : ErrorCode
        Stable error code for the failure kind.
    field : str | None, optional
        Name of the JSON field the failure belongs to. Defaults to None.
    cause : Exception | None, optional
        Underlying exception. Defaults to None.
    context : Mapping[str, object] | None, optional
        Additional structured details. Defaults to None.
    """

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        field: str | None = None,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        combined: dict[str, object] = dict(context or {})
        if field is not None:
            combined.setdefault("field", field)
        self.field = field
        super().__init__(
            message,
            code=code,
            log_level=logging.WARNING,
            cause=cause,
            context=combined,
        )


class NotAnObjectError(ObjectError):
    """The root JSON value was not an object."""

    def __init__(self, found: str) -> None:
        super().__init__(
            "Expected a root Object for Doc/Entry/Query conversion",
            code=ErrorCode.NOT_AN_OBJECT,
            context={"found": found},
        )


class UnrecognizedKeyError(ObjectError):
    """The object contained a key outside the recognized set."""

    def __init__(self, key: str) -> None:
        super().__init__(
            f'Unrecognized key ("{key}") while parsing fog-pack Object',
            code=ErrorCode.UNRECOGNIZED_KEY,
            field=key,
        )


class MissingKeyError(ObjectError):
    """A required key was absent."""

    def __init__(self, key: str) -> None:
        super().__init__(
            f'Missing required key "{key}" for root object',
            code=ErrorCode.MISSING_KEY,
            field=key,
        )


class WrongDataTypeError(ObjectError):
    """A field decoded to a Value of the wrong shape."""

    def __init__(self, field: str, *, found: str | None = None) -> None:
        context = {"found": found} if found is not None else None
        super().__init__(
            f'Wrong data type for key "{field}"',
            code=ErrorCode.WRONG_DATA_TYPE,
            field=field,
            context=context,
        )


class FieldDecodeError(ObjectError):
    """Decoding a field's value failed.

    The wrapped :class:`DecodeError` is kept as ``source`` (and ``__cause__``)
    so its kind and path stay available to the caller.
    """

    def __init__(self, field: str, source: DecodeError) -> None:
        self.source = source
        super().__init__(
            f"Data conversion failed for key {field!r}: {source.message}",
            code=ErrorCode.FIELD_DECODE_ERROR,
            field=field,
            cause=source,
            context={
                "kind": source.kind.value,
                "path": [field, *(segment.to_json() for segment in source.path)],
            },
        )


class UnderlyingFormatError(ObjectError):
    """The binary layer refused to form the result."""

    def __init__(self, source: FogPackError) -> None:
        self.source = source
        super().__init__(
            f"Failed to form the fog-pack result: {source.message}",
            code=ErrorCode.FORMAT_ERROR,
            cause=source,
        )


class ParentMismatchError(ObjectError):
    """An entry draft was completed with a parent it does not name."""

    def __init__(self, expected: Hash, actual: Hash) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Parent document {actual} does not match entry parent {expected}",
            code=ErrorCode.PARENT_MISMATCH,
            field="parent",
            context={"expected": str(expected), "actual": str(actual)},
        )


class NoVaultError(ObjectError):
    """A signer was requested but no key vault was supplied."""

    def __init__(self) -> None:
        super().__init__(
            "A signer was specified but no vault is available to find its key",
            code=ErrorCode.NO_VAULT,
            field="signer",
        )


class MissingIdentityKeyError(ObjectError):
    """The vault holds no key for the requested signer."""

    def __init__(self, identity: Identity) -> None:
        self.identity = identity
        super().__init__(
            f"Vault has no Identity Key for {identity}",
            code=ErrorCode.MISSING_IDENTITY_KEY,
            field="signer",
            context={"identity": str(identity)},
        )


class IncorrectIdentityKeyError(ObjectError):
    """The key supplied for signing does not belong to the expected signer."""

    def __init__(self, expected: Identity) -> None:
        self.expected = expected
        super().__init__(
            f"Incorrect Identity Key for signing, needed {expected}",
            code=ErrorCode.INCORRECT_IDENTITY_KEY,
            field="signer",
            context={"expected": str(expected)},
        )


class PendantConsumedError(ObjectError):
    """A signing pendant was completed a second time."""

    def __init__(self, expected: Identity) -> None:
        self.expected = expected
        super().__init__(
            f"Signing request for {expected} was already consumed",
            code=ErrorCode.PENDANT_CONSUMED,
            field="signer",
            context={"expected": str(expected)},
        )


# Configuration


class SettingsError(FogJsonError):
    """Runtime settings failed validation.

    Parameters
    ----------
    message : str
        Human-readable error message.
    errors : list[dict[str, object]] | None, optional
        Validation error entries with field / issue details. Defaults to None.
    cause : Exception | None, optional
        Underlying validation exception. Defaults to None.
    context : Mapping[str, object] | None, optional
        Additional context. Defaults to None.
    """

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, object]] | None = None,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        combined_context: dict[str, object] = dict(context or {})
        if errors:
            combined_context["errors"] = errors
        super().__init__(
            message,
            code=ErrorCode.CONFIGURATION_ERROR,
            log_level=logging.CRITICAL,
            cause=cause,
            context=combined_context,
        )
