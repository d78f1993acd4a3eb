"""Tests for fog_human_json.document module."""

from __future__ import annotations

import json

import pytest

from fog_human_json.binary import MAX_DATA_SIZE, NewDocument
from fog_human_json.document import doc_to_json, json_to_doc
from fog_human_json.encoder import encode
from fog_human_json.errors import (
    DecodeErrorKind,
    ErrorCode,
    FieldDecodeError,
    IndexSegment,
    KeySegment,
    MissingKeyError,
    NotAnObjectError,
    UnderlyingFormatError,
    UnrecognizedKeyError,
    WrongDataTypeError,
)
from fog_human_json.keys import IdentityKey
from fog_human_json.primitives import Hash
from fog_human_json.signing import SignDocument
from fog_human_json.values import Array, Int, Map, Str


def _unsigned(value: object) -> NewDocument:
    doc = json_to_doc(value)  # type: ignore[arg-type]
    assert isinstance(doc, NewDocument)
    return doc


class TestShape:
    """Tests for the document object's keys."""

    def test_minimal(self) -> None:
        """Only ``data`` is required."""
        doc = _unsigned({"data": [1, "$fog-Int:2"]})
        assert doc.schema is None
        assert doc.signer is None
        assert doc.finalize().deserialize() == Array((Int(1), Int(2)))

    def test_from_json_text(self, schema_hash: Hash) -> None:
        """Hand-written JSON text is accepted as parsed by ``json``."""
        text = f'{{"data": {{"title": "Notes"}}, "schema": "$fog-Hash:{schema_hash}"}}'
        doc = _unsigned(json.loads(text))
        assert doc.schema == schema_hash
        assert doc.finalize().deserialize() == Map({"title": Str("Notes")})

    @pytest.mark.parametrize(
        ("value", "found"), [([1], "array"), ("data", "string"), (None, "null")]
    )
    def test_not_an_object(self, value: object, found: str) -> None:
        """The root must be a JSON object."""
        with pytest.raises(NotAnObjectError) as exc_info:
            json_to_doc(value)  # type: ignore[arg-type]
        assert exc_info.value.context["found"] == found
        assert exc_info.value.code is ErrorCode.NOT_AN_OBJECT

    def test_unrecognized_key(self) -> None:
        """Keys outside the document set are rejected by name."""
        with pytest.raises(UnrecognizedKeyError) as exc_info:
            json_to_doc({"data": 1, "extra": 2})
        assert exc_info.value.field == "extra"
        assert 'Unrecognized key ("extra")' in exc_info.value.message

    def test_missing_data(self) -> None:
        with pytest.raises(MissingKeyError) as exc_info:
            json_to_doc({"schema": None})
        assert exc_info.value.field == "data"

    def test_unrecognized_reported_before_missing(self) -> None:
        """An unknown key wins over a missing one."""
        with pytest.raises(UnrecognizedKeyError):
            json_to_doc({"extra": 1})


class TestFields:
    """Tests for field decoding and type checks."""

    def test_field_decode_error_keeps_path(self) -> None:
        """Decode failures inside a field keep the kind and path."""
        with pytest.raises(FieldDecodeError) as exc_info:
            json_to_doc({"data": {"a": ["$fog-Int:notanumber"]}})
        error = exc_info.value
        assert error.field == "data"
        assert error.source.kind is DecodeErrorKind.INVALID_INTEGER
        assert error.source.path == (KeySegment("a"), IndexSegment(0))
        assert error.context["path"] == ["data", "a", 0]
        assert isinstance(error.__cause__, type(error.source))

    def test_lone_surrogate_in_data(self) -> None:
        """Text that cannot be encoded is a field decode error, not a crash."""
        with pytest.raises(FieldDecodeError) as exc_info:
            json_to_doc(json.loads('{"data": {"note": "\\ud800"}}'))
        error = exc_info.value
        assert error.field == "data"
        assert error.source.kind is DecodeErrorKind.INVALID_TEXT
        assert error.context["path"] == ["data", "note"]

    @pytest.mark.parametrize(
        ("obj", "field", "found"),
        [
            ({"data": 1, "schema": "not a hash"}, "schema", "Str"),
            ({"data": 1, "schema": None}, "schema", "Null"),
            ({"data": 1, "signer": "$fog-Hash:" + str(Hash.of(b"x"))}, "signer", "Hash"),
        ],
    )
    def test_wrong_data_type(self, obj: dict[str, object], field: str, found: str) -> None:
        """Schema must be a Hash and signer an Identity."""
        with pytest.raises(WrongDataTypeError) as exc_info:
            json_to_doc(obj)  # type: ignore[arg-type]
        assert exc_info.value.field == field
        assert exc_info.value.context["found"] == found


class TestCompression:
    """Tests for the compression tri-state."""

    @pytest.mark.parametrize(
        ("obj", "expected"),
        [
            ({"data": 1}, 3),
            ({"data": 1, "compression": None}, None),
            ({"data": 1, "compression": 0}, 0),
            ({"data": 1, "compression": 5}, 5),
            ({"data": 1, "compression": 255}, 255),
        ],
    )
    def test_valid(self, obj: dict[str, object], expected: int | None) -> None:
        """Absent uses the default, null disables, integers set the level."""
        assert _unsigned(obj).finalize().compression == expected

    def test_default_level_configurable(self) -> None:
        doc = json_to_doc({"data": 1}, default_compression=None)
        assert isinstance(doc, NewDocument)
        assert doc.finalize().compression is None

    @pytest.mark.parametrize(
        ("raw", "found"),
        [
            (300, "number"),
            (-1, "number"),
            (1.5, "number"),
            (True, "boolean"),
            ("5", "string"),
            ("$fog-Int:5", "string"),
            ([5], "array"),
        ],
    )
    def test_invalid(self, raw: object, found: str) -> None:
        """Anything but null or an integer in 0..255 is the wrong type."""
        with pytest.raises(WrongDataTypeError) as exc_info:
            json_to_doc({"data": 1, "compression": raw})  # type: ignore[dict-item]
        assert exc_info.value.field == "compression"
        assert exc_info.value.context["found"] == found


class TestSigner:
    """Tests for documents naming a signer."""

    def test_returns_pendant(self, identity_key: IdentityKey) -> None:
        """A signer field yields a pendant bound to that Identity."""
        pendant = json_to_doc({"data": 1, "signer": encode(identity_key.id)})
        assert isinstance(pendant, SignDocument)
        assert pendant.signer == identity_key.id
        signed = pendant.complete(identity_key).finalize()
        assert signed.signer == identity_key.id
        assert signed.hash == pendant.unsigned.hash


class TestDocToJson:
    """Tests for rendering finished documents."""

    def test_minimal(self) -> None:
        """Only data is written when there is no schema or signer."""
        doc = _unsigned({"data": "$fog-Str:$fog-x", "compression": 9}).finalize()
        assert doc_to_json(doc) == {"data": "$fog-Str:$fog-x"}

    def test_round_trip(self, schema_hash: Hash) -> None:
        """Rendering and converting again reproduces the content hash."""
        doc = _unsigned(
            {"data": {"n": "$fog-F32:0.5", "b": "$fog-Bin:AAEC"}, "schema": encode(schema_hash)}
        ).finalize()
        out = doc_to_json(doc)
        assert out["schema"] == encode(schema_hash)
        again = _unsigned(json.loads(json.dumps(out))).finalize()
        assert again.hash == doc.hash

    def test_round_trip_signed(self, identity_key: IdentityKey) -> None:
        """A signed document renders its signer and rebuilds to a pendant."""
        pendant = json_to_doc({"data": [True, None], "signer": encode(identity_key.id)})
        assert isinstance(pendant, SignDocument)
        doc = pendant.complete(identity_key).finalize()
        out = doc_to_json(doc)
        assert out["signer"] == encode(identity_key.id)
        again = json_to_doc(out)
        assert isinstance(again, SignDocument)
        assert again.complete(identity_key).finalize().hash == doc.hash


class TestFormatErrors:
    """Tests for binary-layer rejections."""

    def test_oversize(self) -> None:
        """Data above the size limit surfaces as an underlying format error."""
        with pytest.raises(UnderlyingFormatError) as exc_info:
            json_to_doc({"data": "a" * MAX_DATA_SIZE})
        assert exc_info.value.code is ErrorCode.FORMAT_ERROR
