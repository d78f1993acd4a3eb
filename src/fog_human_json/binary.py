"""Binary document and entry layer.

Values are stored as canonical MessagePack (via ``msgspec``): map keys in
lexicographic UTF-8 order, integers in their smallest width, and extension
types for the variants MessagePack has no native form for. Because the form
is canonical, equal Values always produce equal bytes and therefore equal
content hashes.

The lifecycle mirrors the JSON object layer:

- :class:`NewDocument` / :class:`NewEntry` are unsigned builders. They carry
  the compression setting and at most one signature.
- :meth:`NewDocument.finalize` / :meth:`NewEntry.finalize` freeze them into
  :class:`Document` / :class:`Entry`, which serialize with ``to_bytes`` and are
  checked (hash, signature, canonical data) by ``from_bytes``.

The content hash covers the schema or parent, the entry key and the data. It
does not cover the signature or the compression setting.

Examples
--------
>>> from fog_human_json.binary import NewDocument
>>> from fog_human_json.values import Str
>>> doc = NewDocument.new(Str("hello")).finalize()
>>> doc.deserialize()
Str(value='hello')
"""

from __future__ import annotations

import struct
import zlib
from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import Final, Self, assert_never

import msgspec

from fog_human_json.errors import FogPackError
from fog_human_json.keys import SIGNATURE_LEN, IdentityKey, verify_signature
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

__all__ = [
    "DEFAULT_COMPRESSION_LEVEL",
    "MAX_DATA_SIZE",
    "CompressionSetting",
    "DefaultCompression",
    "Document",
    "Entry",
    "NewDocument",
    "NewEntry",
    "decode_value",
    "encode_value",
]

MAX_DATA_SIZE: Final[int] = 1 << 20
DEFAULT_COMPRESSION_LEVEL: Final[int] = 3
FORMAT_VERSION: Final[int] = 1


class ExtCode(IntEnum):
    """MessagePack extension type codes for non-native variants."""

    F32 = 1
    HASH = 2
    IDENTITY = 3
    STREAM_ID = 4
    LOCK_ID = 5
    DATA_LOCKBOX = 6
    IDENTITY_LOCKBOX = 7
    STREAM_LOCKBOX = 8
    LOCK_LOCKBOX = 9
    TIMESTAMP = 10


_EXT_TYPES: Final[dict[ExtCode, type]] = {
    ExtCode.HASH: Hash,
    ExtCode.IDENTITY: Identity,
    ExtCode.STREAM_ID: StreamId,
    ExtCode.LOCK_ID: LockId,
    ExtCode.DATA_LOCKBOX: DataLockbox,
    ExtCode.IDENTITY_LOCKBOX: IdentityLockbox,
    ExtCode.STREAM_LOCKBOX: StreamLockbox,
    ExtCode.LOCK_LOCKBOX: LockLockbox,
}
_EXT_CODES: Final[dict[type, ExtCode]] = {kind: code for code, kind in _EXT_TYPES.items()}
_TIMESTAMP: Final[struct.Struct] = struct.Struct(">qI")


class DefaultCompression(Enum):
    """Sentinel for "compression not specified"; the object's default level applies."""

    DEFAULT = "default"


type CompressionSetting = int | None | DefaultCompression


def _ext_hook(code: int, data: memoryview) -> Value:
    raw = bytes(data)
    if code == ExtCode.F32:
        if len(raw) != 4:
            msg = "F32 extension must hold 4 bytes"
            raise ValueError(msg)
        return F32.from_bits(int.from_bytes(raw, "big"))
    if code == ExtCode.TIMESTAMP:
        if len(raw) != _TIMESTAMP.size:
            msg = "Timestamp extension must hold 12 bytes"
            raise ValueError(msg)
        seconds, nanos = _TIMESTAMP.unpack(raw)
        if nanos >= 1_000_000_000:
            msg = "Timestamp nanoseconds out of range"
            raise ValueError(msg)
        return Timestamp(seconds, nanos)
    try:
        kind = _EXT_TYPES[ExtCode(code)]
    except ValueError as exc:
        msg = f"unknown extension type {code}"
        raise ValueError(msg) from exc
    return kind(raw)


_ENCODER: Final[msgspec.msgpack.Encoder] = msgspec.msgpack.Encoder()
_DECODER: Final[msgspec.msgpack.Decoder[object]] = msgspec.msgpack.Decoder(ext_hook=_ext_hook)


def _to_wire(value: Value) -> object:
    match value:
        case Null():
            return None
        case Bool(flag):
            return flag
        case Int(number):
            return number
        case F32():
            return msgspec.msgpack.Ext(int(ExtCode.F32), value.bits.to_bytes(4, "big"))
        case F64(number):
            return number
        case Str(text):
            return text
        case Bin(raw):
            return raw
        case Array(items):
            return [_to_wire(item) for item in items]
        case Map(entries):
            return {key: _to_wire(item) for key, item in entries.items()}
        case Timestamp(seconds, nanos):
            return msgspec.msgpack.Ext(int(ExtCode.TIMESTAMP), _TIMESTAMP.pack(seconds, nanos))
        case (
            Hash()
            | Identity()
            | StreamId()
            | LockId()
            | DataLockbox()
            | IdentityLockbox()
            | StreamLockbox()
            | LockLockbox()
        ):
            return msgspec.msgpack.Ext(int(_EXT_CODES[type(value)]), value.raw)
        case _:
            assert_never(value)


def _from_wire(obj: object) -> Value:
    match obj:
        case None:
            return Null()
        case bool():
            return Bool(obj)
        case int():
            return Int(obj)
        case float():
            return F64(obj)
        case str():
            return Str(obj)
        case bytes():
            return Bin(obj)
        case list():
            return Array(tuple(_from_wire(item) for item in obj))
        case dict():
            keys = list(obj)
            if not all(isinstance(key, str) for key in keys):
                msg = "map keys must be strings"
                raise FogPackError(msg)
            if keys != sorted(keys, key=lambda key: key.encode("utf-8")):
                msg = "map keys are not in canonical order"
                raise FogPackError(msg)
            return Map({key: _from_wire(item) for key, item in obj.items()})
        case (
            F32()
            | Hash()
            | Identity()
            | StreamId()
            | LockId()
            | DataLockbox()
            | IdentityLockbox()
            | StreamLockbox()
            | LockLockbox()
            | Timestamp()
        ):
            return obj
        case _:
            msg = f"unsupported MessagePack item {type(obj).__name__}"
            raise FogPackError(msg)


def encode_value(value: Value) -> bytes:
    """Encode ``value`` to canonical MessagePack."""
    return _ENCODER.encode(_to_wire(value))


def decode_value(data: bytes) -> Value:
    """Decode canonical MessagePack into a Value.

    Raises
    ------
    FogPackError
        If the bytes are malformed or not in canonical form.
    """
    try:
        value = _from_wire(_DECODER.decode(data))
    except (msgspec.DecodeError, ValueError) as exc:
        msg = f"Malformed fog-pack data: {exc}"
        raise FogPackError(msg, cause=exc) from exc
    if encode_value(value) != data:
        msg = "fog-pack data is not in canonical form"
        raise FogPackError(msg)
    return value


def _encode_checked(value: Value) -> bytes:
    data = encode_value(value)
    if len(data) > MAX_DATA_SIZE:
        msg = f"Encoded data is {len(data)} bytes, limit is {MAX_DATA_SIZE}"
        raise FogPackError(msg, context={"size": len(data), "limit": MAX_DATA_SIZE})
    return data


def _validate_compression(setting: CompressionSetting) -> CompressionSetting:
    if isinstance(setting, DefaultCompression) or setting is None:
        return setting
    if isinstance(setting, bool) or not 0 <= setting <= 255:
        msg = f"Compression level {setting!r} outside 0..255"
        raise FogPackError(msg)
    return setting


def _resolve_level(setting: CompressionSetting, default: int | None) -> int | None:
    return default if isinstance(setting, DefaultCompression) else setting


def _compress(data: bytes, level: int | None) -> tuple[bool, bytes]:
    if level is None:
        return False, data
    packed = zlib.compress(data, min(level, 9))
    if len(packed) >= len(data):
        return False, data
    return True, packed


def _decompress(payload: bytes) -> bytes:
    inflater = zlib.decompressobj()
    try:
        data = inflater.decompress(payload, MAX_DATA_SIZE + 1)
    except zlib.error as exc:
        msg = f"Corrupt compressed payload: {exc}"
        raise FogPackError(msg, cause=exc) from exc
    if len(data) > MAX_DATA_SIZE or inflater.unconsumed_tail or not inflater.eof:
        msg = "Compressed payload is truncated or exceeds the size limit"
        raise FogPackError(msg)
    return data


type Signature = tuple[Identity, bytes]


def _sign(existing: Signature | None, content_hash: Hash, key: IdentityKey) -> Signature:
    if existing is not None:
        msg = f"Already signed by {existing[0]}"
        raise FogPackError(msg)
    return key.id, key.sign(content_hash.raw)


def _wire_signature(signature: Signature | None) -> object:
    if signature is None:
        return None
    identity, sig = signature
    return [_to_wire(identity), sig]


def _read_signature(obj: object, content_hash: Hash) -> Signature | None:
    if obj is None:
        return None
    match obj:
        case [Identity() as identity, bytes() as sig] if len(sig) == SIGNATURE_LEN:
            if not verify_signature(identity, content_hash.raw, sig):
                msg = f"Signature by {identity} does not verify"
                raise FogPackError(msg)
            return identity, sig
        case _:
            msg = "Malformed signature"
            raise FogPackError(msg)


def _unpack_envelope(raw: bytes, size: int) -> list[object]:
    try:
        envelope = _DECODER.decode(raw)
    except (msgspec.DecodeError, ValueError) as exc:
        msg = f"Malformed fog-pack envelope: {exc}"
        raise FogPackError(msg, cause=exc) from exc
    if not isinstance(envelope, list) or len(envelope) != size or envelope[0] != FORMAT_VERSION:
        msg = "Unsupported fog-pack envelope"
        raise FogPackError(msg)
    return envelope


def _document_hash(schema: Hash | None, data: bytes) -> Hash:
    header = None if schema is None else _to_wire(schema)
    return Hash.of(_ENCODER.encode([header, data]))


def _entry_hash(parent: Hash, key: str, data: bytes) -> Hash:
    return Hash.of(_ENCODER.encode([_to_wire(parent), key, data]))


@dataclass(frozen=True, slots=True)
class NewDocument:
    """Unsigned (or freshly signed) document under construction.

    Build with :meth:`new`; the constructor does no validation.
    """

    data: bytes
    schema: Hash | None
    hash: Hash
    compression: CompressionSetting = DefaultCompression.DEFAULT
    default_compression: int | None = DEFAULT_COMPRESSION_LEVEL
    signature: Signature | None = None

    @classmethod
    def new(
        cls,
        data: Value,
        schema: Hash | None = None,
        *,
        default_compression: int | None = DEFAULT_COMPRESSION_LEVEL,
    ) -> NewDocument:
        """Encode ``data`` into a new unsigned document.

        Parameters
        ----------
        data : Value
            Document content.
        schema : Hash | None, optional
            Hash of the schema document this document claims to follow.
            Defaults to None.
        default_compression : int | None, optional
            Level used when no explicit compression is set. Defaults to 3.

        Raises
        ------
        FogPackError
            If the encoded data exceeds :data:`MAX_DATA_SIZE`.
        """
        encoded = _encode_checked(data)
        return cls(
            data=encoded,
            schema=schema,
            hash=_document_hash(schema, encoded),
            default_compression=_validate_compression(default_compression),
        )

    @property
    def signer(self) -> Identity | None:
        return None if self.signature is None else self.signature[0]

    def with_compression(self, setting: CompressionSetting) -> NewDocument:
        """Return a copy with ``setting`` (a level, None to disable, or the default)."""
        return replace(self, compression=_validate_compression(setting))

    def sign(self, key: IdentityKey) -> NewDocument:
        """Return a copy signed by ``key``.

        Raises
        ------
        FogPackError
            If the document already carries a signature.
        """
        return replace(self, signature=_sign(self.signature, self.hash, key))

    def finalize(self) -> Document:
        return Document(
            data=self.data,
            schema=self.schema,
            hash=self.hash,
            compression=_resolve_level(self.compression, self.default_compression),
            signature=self.signature,
        )


@dataclass(frozen=True, slots=True)
class Document:
    """Finished, immutable document."""

    data: bytes
    schema: Hash | None
    hash: Hash
    compression: int | None
    signature: Signature | None = None

    @property
    def signer(self) -> Identity | None:
        return None if self.signature is None else self.signature[0]

    def deserialize(self) -> Value:
        return decode_value(self.data)

    def to_bytes(self) -> bytes:
        compressed, payload = _compress(self.data, self.compression)
        schema = None if self.schema is None else _to_wire(self.schema)
        return _ENCODER.encode(
            [FORMAT_VERSION, schema, _wire_signature(self.signature), compressed, payload]
        )

    @classmethod
    def from_bytes(cls, raw: bytes) -> Self:
        """Parse and verify a serialized document.

        Raises
        ------
        FogPackError
            If the bytes are malformed, the data is not canonical, or the
            signature does not verify.
        """
        _, schema, signature, compressed, payload = _unpack_envelope(raw, 5)
        if not (schema is None or isinstance(schema, Hash)):
            msg = "Document schema must be a Hash"
            raise FogPackError(msg)
        if not isinstance(compressed, bool) or not isinstance(payload, bytes):
            msg = "Malformed document payload"
            raise FogPackError(msg)
        data = _decompress(payload) if compressed else payload
        decode_value(data)
        content_hash = _document_hash(schema, data)
        return cls(
            data=data,
            schema=schema,
            hash=content_hash,
            compression=DEFAULT_COMPRESSION_LEVEL if compressed else None,
            signature=_read_signature(signature, content_hash),
        )


@dataclass(frozen=True, slots=True)
class NewEntry:
    """Unsigned (or freshly signed) entry attached to a parent document."""

    data: bytes
    key: str
    parent: Hash
    hash: Hash
    compression: CompressionSetting = DefaultCompression.DEFAULT
    default_compression: int | None = DEFAULT_COMPRESSION_LEVEL
    signature: Signature | None = None

    @classmethod
    def new(
        cls,
        data: Value,
        key: str,
        parent: Document,
        *,
        default_compression: int | None = DEFAULT_COMPRESSION_LEVEL,
    ) -> NewEntry:
        """Encode ``data`` as an entry under ``key`` of ``parent``.

        Raises
        ------
        FogPackError
            If the encoded data exceeds :data:`MAX_DATA_SIZE`.
        """
        encoded = _encode_checked(data)
        return cls(
            data=encoded,
            key=key,
            parent=parent.hash,
            hash=_entry_hash(parent.hash, key, encoded),
            default_compression=_validate_compression(default_compression),
        )

    @property
    def signer(self) -> Identity | None:
        return None if self.signature is None else self.signature[0]

    def with_compression(self, setting: CompressionSetting) -> NewEntry:
        return replace(self, compression=_validate_compression(setting))

    def sign(self, key: IdentityKey) -> NewEntry:
        """Return a copy signed by ``key``; raises FogPackError if already signed."""
        return replace(self, signature=_sign(self.signature, self.hash, key))

    def finalize(self) -> Entry:
        return Entry(
            data=self.data,
            key=self.key,
            parent=self.parent,
            hash=self.hash,
            compression=_resolve_level(self.compression, self.default_compression),
            signature=self.signature,
        )


@dataclass(frozen=True, slots=True)
class Entry:
    """Finished, immutable entry."""

    data: bytes
    key: str
    parent: Hash
    hash: Hash
    compression: int | None
    signature: Signature | None = None

    @property
    def signer(self) -> Identity | None:
        return None if self.signature is None else self.signature[0]

    def deserialize(self) -> Value:
        return decode_value(self.data)

    def to_bytes(self) -> bytes:
        compressed, payload = _compress(self.data, self.compression)
        return _ENCODER.encode(
            [
                FORMAT_VERSION,
                _to_wire(self.parent),
                self.key,
                _wire_signature(self.signature),
                compressed,
                payload,
            ]
        )

    @classmethod
    def from_bytes(cls, raw: bytes) -> Self:
        """Parse and verify a serialized entry.

        Raises
        ------
        FogPackError
            If the bytes are malformed, the data is not canonical, or the
            signature does not verify.
        """
        _, parent, key, signature, compressed, payload = _unpack_envelope(raw, 6)
        if not isinstance(parent, Hash) or not isinstance(key, str):
            msg = "Entry parent must be a Hash and key a string"
            raise FogPackError(msg)
        if not isinstance(compressed, bool) or not isinstance(payload, bytes):
            msg = "Malformed entry payload"
            raise FogPackError(msg)
        data = _decompress(payload) if compressed else payload
        decode_value(data)
        content_hash = _entry_hash(parent, key, data)
        return cls(
            data=data,
            key=key,
            parent=parent,
            hash=content_hash,
            compression=DEFAULT_COMPRESSION_LEVEL if compressed else None,
            signature=_read_signature(signature, content_hash),
        )
