"""Tests for fog_human_json.binary module."""

from __future__ import annotations

import math
from dataclasses import replace

import msgspec
import pytest

from fog_human_json.binary import (
    MAX_DATA_SIZE,
    DefaultCompression,
    Document,
    Entry,
    NewDocument,
    NewEntry,
    decode_value,
    encode_value,
)
from fog_human_json.errors import FogPackError
from fog_human_json.keys import IdentityKey
from fog_human_json.primitives import DataLockbox, Hash, Identity, Timestamp
from fog_human_json.values import F32, F64, Array, Bin, Int, Map, Str, Value


class TestCanonicalValues:
    """Tests for the canonical MessagePack form."""

    @pytest.mark.parametrize(
        "value",
        [
            Int(1),
            Int(-(2**63)),
            F32(math.nan),
            F64(0.1),
            Bin(b"\x00\x01"),
            Array((Str("x"), Map({"b": Int(1), "a": Int(2)}))),
            Hash.of(b"x"),
            DataLockbox.from_parts(bytes(24), bytes(16)),
            Timestamp(-5, 7),
        ],
        ids=lambda value: type(value).__name__,
    )
    def test_encode_decode(self, value: Value) -> None:
        """Canonical bytes decode back to the same Value."""
        assert decode_value(encode_value(value)) == value

    def test_smallest_integer_width(self) -> None:
        assert encode_value(Int(1)) == b"\x01"

    def test_rejects_unsorted_map(self) -> None:
        """Map keys out of UTF-8 order are not canonical."""
        with pytest.raises(FogPackError, match="canonical order"):
            decode_value(msgspec.msgpack.encode({"b": 1, "a": 2}))

    def test_rejects_wide_integer(self) -> None:
        """An integer wider than needed is not canonical."""
        with pytest.raises(FogPackError, match="canonical form"):
            decode_value(b"\xcd\x00\x01")

    def test_rejects_non_string_key(self) -> None:
        with pytest.raises(FogPackError):
            decode_value(msgspec.msgpack.encode({1: 2}))

    @pytest.mark.parametrize(
        "raw",
        [b"\x92\x01", msgspec.msgpack.encode(msgspec.msgpack.Ext(99, b"x")), b"\xc1"],
    )
    def test_rejects_malformed(self, raw: bytes) -> None:
        """Truncated, unknown or reserved input is a format error."""
        with pytest.raises(FogPackError):
            decode_value(raw)


class TestDocument:
    """Tests for NewDocument / Document."""

    def test_hash_covers_schema(self, schema_hash: Hash) -> None:
        """The schema is part of the content hash."""
        plain = NewDocument.new(Int(1))
        with_schema = NewDocument.new(Int(1), schema_hash)
        assert plain.hash != with_schema.hash

    def test_hash_excludes_compression(self) -> None:
        """Compression changes the bytes but not the hash."""
        data = Str("a" * 4000)
        packed = NewDocument.new(data).finalize()
        raw = NewDocument.new(data).with_compression(None).finalize()
        assert packed.to_bytes() != raw.to_bytes()
        assert Document.from_bytes(packed.to_bytes()).hash == raw.hash

    def test_compression_resolution(self) -> None:
        """The default setting resolves to the document's default level."""
        doc = NewDocument.new(Int(1), default_compression=7)
        assert doc.compression is DefaultCompression.DEFAULT
        assert doc.finalize().compression == 7
        assert doc.with_compression(0).finalize().compression == 0
        assert doc.with_compression(None).finalize().compression is None

    @pytest.mark.parametrize("setting", [256, -1, True])
    def test_rejects_bad_compression(self, setting: int) -> None:
        with pytest.raises(FogPackError, match="Compression level"):
            NewDocument.new(Int(1)).with_compression(setting)

    def test_bytes_round_trip(self, schema_hash: Hash, identity_key: IdentityKey) -> None:
        """A signed, compressed document survives serialization."""
        data = Map({"text": Str("fog " * 500), "n": Int(3)})
        doc = NewDocument.new(data, schema_hash).sign(identity_key).finalize()
        restored = Document.from_bytes(doc.to_bytes())
        assert restored.hash == doc.hash
        assert restored.schema == schema_hash
        assert restored.signer == identity_key.id
        assert restored.compression == 3
        assert restored.deserialize() == data

    def test_tampered_signature(self, identity_key: IdentityKey) -> None:
        """A signature that does not verify is rejected."""
        doc = NewDocument.new(Int(1)).sign(identity_key).finalize()
        tampered = replace(doc, signature=(identity_key.id, bytes(64)))
        with pytest.raises(FogPackError, match="does not verify"):
            Document.from_bytes(tampered.to_bytes())

    def test_sign_twice(self, identity_key: IdentityKey, other_key: IdentityKey) -> None:
        """A document carries at most one signature."""
        signed = NewDocument.new(Int(1)).sign(identity_key)
        with pytest.raises(FogPackError, match="Already signed"):
            signed.sign(other_key)

    def test_size_limit(self) -> None:
        """Data above the size limit cannot form a document."""
        with pytest.raises(FogPackError) as exc_info:
            NewDocument.new(Bin(bytes(MAX_DATA_SIZE)))
        assert exc_info.value.context["limit"] == MAX_DATA_SIZE

    def test_rejects_entry_bytes(self, parent_doc: Document) -> None:
        entry = NewEntry.new(Int(1), "k", parent_doc).finalize()
        with pytest.raises(FogPackError, match="envelope"):
            Document.from_bytes(entry.to_bytes())


class TestEntry:
    """Tests for NewEntry / Entry."""

    def test_hash_covers_parent_and_key(self, parent_doc: Document) -> None:
        """Different keys or parents give different hashes."""
        other_parent = NewDocument.new(Int(0)).finalize()
        base = NewEntry.new(Int(1), "a", parent_doc)
        assert base.parent == parent_doc.hash
        assert base.hash != NewEntry.new(Int(1), "b", parent_doc).hash
        assert base.hash != NewEntry.new(Int(1), "a", other_parent).hash

    def test_bytes_round_trip(self, parent_doc: Document, identity_key: IdentityKey) -> None:
        """A signed entry survives serialization."""
        entry = NewEntry.new(Str("value"), "$fog-key", parent_doc).sign(identity_key).finalize()
        restored = Entry.from_bytes(entry.to_bytes())
        assert restored.hash == entry.hash
        assert restored.key == "$fog-key"
        assert restored.parent == parent_doc.hash
        assert isinstance(restored.signer, Identity)
        assert restored.signer == identity_key.id
        assert restored.deserialize() == Str("value")
