"""Tests for fog_human_json.decoder module."""

from __future__ import annotations

import calendar
import json
import math

import base58
import pytest

from fog_human_json.decoder import decode
from fog_human_json.encoder import encode_base64
from fog_human_json.errors import DecodeError, DecodeErrorKind, IndexSegment, KeySegment
from fog_human_json.primitives import Hash, Identity, LockLockbox, StreamId, Timestamp
from fog_human_json.values import F32, F64, Array, Bin, Bool, Int, Map, Null, Str


def _kind_of(payload: object) -> DecodeErrorKind:
    with pytest.raises(DecodeError) as exc_info:
        decode(payload)  # type: ignore[arg-type]
    return exc_info.value.kind


class TestNumbers:
    """Tests for JSON number handling."""

    @pytest.mark.parametrize(
        ("number", "expected"),
        [
            (0, Int(0)),
            (2**64 - 1, Int(2**64 - 1)),
            (-(2**63), Int(-(2**63))),
            (2**64, F64(float(2**64))),
            (-(2**63) - 1, F64(float(-(2**63) - 1))),
            (1.5, F64(1.5)),
        ],
    )
    def test_integer_ranges(self, number: float, expected: object) -> None:
        """Integers in the 64-bit ranges are Int; anything else is F64."""
        assert decode(number) == expected

    def test_scalars_pass_through(self) -> None:
        """null and booleans decode to Null and Bool."""
        assert decode(None) == Null()
        assert decode(True) == Bool(True)
        assert decode(False) == Bool(False)


class TestTags:
    """Tests for the $fog- tag grammar."""

    def test_plain_string(self) -> None:
        """Strings without the prefix are plain Str."""
        assert decode("hello") == Str("hello")
        assert decode("$fog") == Str("$fog")

    def test_str_payload_not_trimmed(self) -> None:
        """The Str payload is kept exactly, including spaces and colons."""
        assert decode("$fog-Str: a:b ") == Str(" a:b ")

    def test_malformed_tag(self) -> None:
        """A prefixed string without a colon is a malformed tag."""
        with pytest.raises(DecodeError) as exc_info:
            decode("$fog-NoColonHere")
        assert exc_info.value.kind is DecodeErrorKind.MALFORMED_TAG
        assert exc_info.value.path == ()

    def test_unrecognized_type_names_token(self) -> None:
        """An unknown type token is reported by name."""
        with pytest.raises(DecodeError) as exc_info:
            decode("$fog-Bogus:xyz")
        assert exc_info.value.kind is DecodeErrorKind.UNRECOGNIZED_TYPE
        assert exc_info.value.detail == "Bogus"
        assert 'unrecognized fog-pack type "Bogus"' in str(exc_info.value)

    @pytest.mark.parametrize("text", ["$fog-str:x", "$fog-:x", "$fog-Int :5"])
    def test_token_is_exact(self, text: str) -> None:
        """Type tokens are case-sensitive and not trimmed."""
        assert _kind_of(text) is DecodeErrorKind.UNRECOGNIZED_TYPE


class TestIntegers:
    """Tests for $fog-Int payloads."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("$fog-Int:42", 42),
            ("$fog-Int: 42 ", 42),
            ("$fog-Int:+7", 7),
            ("$fog-Int:-0", 0),
            ("$fog-Int:-9223372036854775808", -(2**63)),
            ("$fog-Int:18446744073709551615", 2**64 - 1),
        ],
    )
    def test_valid(self, text: str, expected: int) -> None:
        """Signed payloads parse as i64, others as u64."""
        assert decode(text) == Int(expected)

    @pytest.mark.parametrize(
        "text",
        [
            "$fog-Int:notanumber",
            "$fog-Int:",
            "$fog-Int:1.0",
            "$fog-Int:1_000",
            "$fog-Int:-9223372036854775809",
            "$fog-Int:18446744073709551616",
        ],
    )
    def test_invalid(self, text: str) -> None:
        """Malformed or out-of-range payloads are invalid integers."""
        assert _kind_of(text) is DecodeErrorKind.INVALID_INTEGER


class TestFloats:
    """Tests for float and hex payloads."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("$fog-F64:0.25", F64(0.25)),
            ("$fog-F64: -1e3 ", F64(-1000.0)),
            ("$fog-F64:inf", F64(math.inf)),
            ("$fog-F64:-Infinity", F64(-math.inf)),
            ("$fog-F32:1.5", F32(1.5)),
            ("$fog-F32:NaN", F32(math.nan)),
        ],
    )
    def test_decimal(self, text: str, expected: object) -> None:
        """Decimal payloads are trimmed and parsed."""
        assert decode(text) == expected

    @pytest.mark.parametrize(
        "text", ["$fog-F64:abc", "$fog-F64:1_000.0", "$fog-F32:", "$fog-F32:0x10"]
    )
    def test_invalid_float(self, text: str) -> None:
        """Non-numeric payloads are invalid floats."""
        assert _kind_of(text) is DecodeErrorKind.INVALID_FLOAT

    @pytest.mark.parametrize(
        ("payload", "bits"),
        [
            ("1.0000000596046447753906250001", 0x3F800001),
            ("1.0000000596046447753906249999", 0x3F800000),
            ("1.000000059604644775390625", 0x3F800000),
            ("340282356779733661637539395458142568447", 0x7F7FFFFF),
            ("340282356779733661637539395458142568448", 0x7F800000),
            ("-1.0000000596046447753906250001", 0xBF800001),
            ("-0.0", 0x80000000),
        ],
    )
    def test_f32_rounds_directly(self, payload: str, bits: int) -> None:
        """F32 decimals round once to float32, ties to even."""
        value = decode(f"$fog-F32:{payload}")
        assert isinstance(value, F32)
        assert value.bits == bits

    def test_hex_restores_bits(self) -> None:
        """Hex payloads restore the exact IEEE bit pattern."""
        value = decode("$fog-F32Hex:7fc00001")
        assert isinstance(value, F32)
        assert value.bits == 0x7FC00001
        f64 = decode("$fog-F64Hex:FFF0000000000000")
        assert f64 == F64(-math.inf)

    @pytest.mark.parametrize(
        "text",
        ["$fog-F32Hex:7fc0000", "$fog-F32Hex:7fc000000", "$fog-F64Hex:zz00000000000000"],
    )
    def test_invalid_hex(self, text: str) -> None:
        """Hex payloads must be exactly 8 / 16 hex digits."""
        assert _kind_of(text) is DecodeErrorKind.INVALID_HEX


class TestBase64:
    """Tests for Bin and lockbox payloads."""

    def test_padding_optional(self) -> None:
        """Padded and unpadded Base64 decode identically."""
        expected = Bin(bytes([0, 1, 2, 3, 4]))
        assert decode("$fog-Bin:AAECAwQ") == expected
        assert decode("$fog-Bin:AAECAwQ=") == expected

    @pytest.mark.parametrize(
        "text", ["$fog-Bin:A", "$fog-Bin:AA*A", "$fog-Bin:AAECAwR", "$fog-Bin:AA==="]
    )
    def test_invalid(self, text: str) -> None:
        """Bad alphabet, length, padding or trailing bits are rejected."""
        assert _kind_of(text) is DecodeErrorKind.INVALID_BASE64

    def test_lockbox_container_checked(self) -> None:
        """Well-formed Base64 that is not a lockbox container is an invalid lockbox."""
        text = f"$fog-DataLockbox:{encode_base64(b'short')}"
        assert _kind_of(text) is DecodeErrorKind.INVALID_LOCKBOX

    def test_lockbox_kind_checked(self) -> None:
        """A container of another kind is rejected."""
        other = LockLockbox.from_parts(bytes(24), bytes(16))
        text = f"$fog-StreamLockbox:{encode_base64(other.raw)}"
        assert _kind_of(text) is DecodeErrorKind.INVALID_LOCKBOX

    def test_lockbox_bad_base64(self) -> None:
        """Lockbox payloads report Base64 failures first."""
        assert _kind_of("$fog-LockLockbox:!!") is DecodeErrorKind.INVALID_BASE64


class TestBase58:
    """Tests for identifier payloads."""

    def test_valid_identifier(self) -> None:
        """Base58 payloads decode into the tagged identifier type."""
        digest = Hash.of(b"content")
        assert decode(f"$fog-Hash:{digest.to_base58()}") == digest
        stream = StreamId.from_body(bytes(range(32)))
        assert decode(f"$fog-StreamId: {stream.to_base58()} ") == stream

    @pytest.mark.parametrize("payload", ["0OIl", "", "2g"])
    def test_invalid(self, payload: str) -> None:
        """Bad characters or a wrong width are invalid Base58."""
        assert _kind_of(f"$fog-Identity:{payload}") is DecodeErrorKind.INVALID_BASE58

    def test_wrong_version(self) -> None:
        """A body with an unknown version byte is rejected."""
        text = base58.b58encode(bytes([2]) + bytes(32)).decode("ascii")
        assert _kind_of(f"$fog-Identity:{text}") is DecodeErrorKind.INVALID_BASE58
        valid = Identity.from_body(bytes(32)).to_base58()
        assert isinstance(decode(f"$fog-Identity:{valid}"), Identity)


class TestTime:
    """Tests for RFC 3339 payloads."""

    def test_epoch(self) -> None:
        """The epoch decodes to zero seconds."""
        assert decode("$fog-Time:1970-01-01T00:00:00Z") == Timestamp(0, 0)

    def test_offset_and_truncation(self) -> None:
        """Offsets are applied and digits past nanoseconds are dropped."""
        value = decode("$fog-Time:2001-02-03T04:05:06.123456789123+01:00")
        assert value == Timestamp(calendar.timegm((2001, 2, 3, 3, 5, 6)), 123_456_789)

    def test_leap_second(self) -> None:
        """A leap second rolls into the next second."""
        value = decode("$fog-Time:1998-12-31T23:59:60Z")
        assert value == Timestamp(calendar.timegm((1999, 1, 1, 0, 0, 0)), 0)

    @pytest.mark.parametrize(
        "payload",
        [
            "not a time",
            "2021-02-30T00:00:00Z",
            "2021-01-01T00:00:00",
            "2021-01-01T25:00:00Z",
            "\u0662\u0660\u0662\u0661-01-01T00:00:00Z",
        ],
    )
    def test_invalid(self, payload: str) -> None:
        """Invalid date-times carry the parser's message."""
        with pytest.raises(DecodeError) as exc_info:
            decode(f"$fog-Time:{payload}")
        assert exc_info.value.kind is DecodeErrorKind.INVALID_TIME
        assert exc_info.value.detail


class TestContainers:
    """Tests for arrays, objects and error paths."""

    def test_nested(self) -> None:
        """Arrays and objects recurse."""
        assert decode({"b": [1, "x"], "a": {}}) == Map(
            {"a": Map({}), "b": Array((Int(1), Str("x")))}
        )

    def test_error_path(self) -> None:
        """Child failures carry the key and index path from the root."""
        with pytest.raises(DecodeError) as exc_info:
            decode({"a": ["$fog-Int:notanumber"]})
        error = exc_info.value
        assert error.kind is DecodeErrorKind.INVALID_INTEGER
        assert error.path == (KeySegment("a"), IndexSegment(0))
        assert "object key 'a' -> array index 0 -> invalid integer" in str(error)

    def test_error_path_deep_index(self) -> None:
        """Indexes count from zero within their own array."""
        with pytest.raises(DecodeError) as exc_info:
            decode([1, [2, 3, "$fog-Bogus:"]])
        assert exc_info.value.path == (IndexSegment(1), IndexSegment(2))

    def test_rejects_non_json(self) -> None:
        """Objects JSON cannot produce are a programming error."""
        with pytest.raises(TypeError):
            decode((1, 2))  # type: ignore[arg-type]


class TestText:
    """Tests for strings that are not valid Unicode text."""

    @pytest.mark.parametrize("text", ["\ud800", "a\udc00b", "$fog-Str:\ud800"])
    def test_lone_surrogate_value(self, text: str) -> None:
        """A lone surrogate, as json.loads can produce, is invalid text."""
        assert _kind_of(text) is DecodeErrorKind.INVALID_TEXT

    def test_lone_surrogate_key(self) -> None:
        """Object keys are checked and the path names the bad key."""
        with pytest.raises(DecodeError) as exc_info:
            decode(json.loads('{"a": {"\\ud800": 1}}'))
        error = exc_info.value
        assert error.kind is DecodeErrorKind.INVALID_TEXT
        assert error.path == (KeySegment("a"), KeySegment("\ud800"))
        assert isinstance(error.__cause__, UnicodeEncodeError)

    def test_paired_surrogates_are_text(self) -> None:
        assert decode(json.loads('"\\ud83d\\ude00"')) == Str("\U0001f600")
