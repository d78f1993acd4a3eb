"""Fixed-width identifiers, lockbox containers and timestamps.

These are the primitive fog-pack types that cannot be expressed with plain
JSON scalars. Each one owns its textual form:

- ``Hash``, ``Identity``, ``StreamId`` and ``LockId`` are a version byte plus a
  32-byte body, written as Base58 (Bitcoin alphabet).
- The four lockbox types are opaque encrypted containers. Only the container
  framing is checked here: version byte, kind byte, 24-byte nonce and a
  ciphertext at least as long as its 16-byte authentication tag.
- ``Timestamp`` is UTC seconds plus nanoseconds, written as RFC 3339.

Constructors raise ``ValueError`` on malformed input; the decoder turns those
into typed decode errors.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import IntEnum
from typing import ClassVar, Final, Self

import base58

__all__ = [
    "DataLockbox",
    "Hash",
    "Identity",
    "IdentityLockbox",
    "LockId",
    "LockLockbox",
    "LockboxKind",
    "StreamId",
    "StreamLockbox",
    "Timestamp",
]

PRIMITIVE_VERSION: Final[int] = 1
BODY_LEN: Final[int] = 32
NONCE_LEN: Final[int] = 24
TAG_LEN: Final[int] = 16


@dataclass(frozen=True, slots=True)
class _FixedId:
    raw: bytes

    def __post_init__(self) -> None:
        if len(self.raw) != BODY_LEN + 1:
            msg = f"{type(self).__name__} must be {BODY_LEN + 1} bytes, got {len(self.raw)}"
            raise ValueError(msg)
        if self.raw[0] != PRIMITIVE_VERSION:
            msg = f"Unsupported {type(self).__name__} version {self.raw[0]}"
            raise ValueError(msg)

    @classmethod
    def from_body(cls, body: bytes) -> Self:
        """Build the identifier from its 32-byte body."""
        return cls(bytes([PRIMITIVE_VERSION]) + bytes(body))

    @classmethod
    def from_base58(cls, text: str) -> Self:
        """Parse the Base58 form.

        Raises
        ------
        ValueError
            If the text is not Base58 or does not decode to a valid identifier.
        """
        if not text:
            msg = "empty Base58 string"
            raise ValueError(msg)
        return cls(base58.b58decode(text))

    @property
    def body(self) -> bytes:
        return self.raw[1:]

    def to_base58(self) -> str:
        return base58.b58encode(self.raw).decode("ascii")

    def __str__(self) -> str:
        return self.to_base58()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_base58()!r})"


@dataclass(frozen=True, slots=True, repr=False)
class Hash(_FixedId):
    """BLAKE2b-256 content digest."""

    @classmethod
    def of(cls, data: bytes) -> Hash:
        """Hash ``data``.

        Examples
        --------
        >>> Hash.of(b"abc") == Hash.of(b"abc")
        True
        """
        return cls.from_body(hashlib.blake2b(data, digest_size=BODY_LEN).digest())


@dataclass(frozen=True, slots=True, repr=False)
class Identity(_FixedId):
    """Public signing identity (Ed25519 public key)."""


@dataclass(frozen=True, slots=True, repr=False)
class StreamId(_FixedId):
    """Identifier of a symmetric stream key."""


@dataclass(frozen=True, slots=True, repr=False)
class LockId(_FixedId):
    """Identifier of an asymmetric lock key."""


class LockboxKind(IntEnum):
    """Payload kind recorded in the second byte of a lockbox container."""

    IDENTITY = 1
    STREAM = 2
    LOCK = 3
    DATA = 4


@dataclass(frozen=True, slots=True)
class _Lockbox:
    raw: bytes
    kind: ClassVar[LockboxKind]

    def __post_init__(self) -> None:
        name = type(self).__name__
        if len(self.raw) < 2 + NONCE_LEN + TAG_LEN:
            msg = f"{name} is truncated ({len(self.raw)} bytes)"
            raise ValueError(msg)
        if self.raw[0] != PRIMITIVE_VERSION:
            msg = f"Unsupported {name} version {self.raw[0]}"
            raise ValueError(msg)
        if self.raw[1] != self.kind:
            msg = f"{name} container holds kind {self.raw[1]}, expected {int(self.kind)}"
            raise ValueError(msg)

    @classmethod
    def from_parts(cls, nonce: bytes, ciphertext: bytes) -> Self:
        """Frame an already-encrypted payload as a container."""
        if len(nonce) != NONCE_LEN:
            msg = f"nonce must be {NONCE_LEN} bytes"
            raise ValueError(msg)
        return cls(bytes([PRIMITIVE_VERSION, cls.kind]) + bytes(nonce) + bytes(ciphertext))

    @property
    def nonce(self) -> bytes:
        return self.raw[2 : 2 + NONCE_LEN]

    @property
    def ciphertext(self) -> bytes:
        return self.raw[2 + NONCE_LEN :]


@dataclass(frozen=True, slots=True)
class DataLockbox(_Lockbox):
    """Encrypted arbitrary data."""

    kind: ClassVar[LockboxKind] = LockboxKind.DATA


@dataclass(frozen=True, slots=True)
class IdentityLockbox(_Lockbox):
    """Encrypted identity key."""

    kind: ClassVar[LockboxKind] = LockboxKind.IDENTITY


@dataclass(frozen=True, slots=True)
class StreamLockbox(_Lockbox):
    """Encrypted stream key."""

    kind: ClassVar[LockboxKind] = LockboxKind.STREAM


@dataclass(frozen=True, slots=True)
class LockLockbox(_Lockbox):
    """Encrypted lock key."""

    kind: ClassVar[LockboxKind] = LockboxKind.LOCK


_EPOCH: Final[datetime] = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_SECOND: Final[timedelta] = timedelta(seconds=1)
NANOS_PER_SECOND: Final[int] = 1_000_000_000
MIN_SECONDS: Final[int] = (datetime(1, 1, 1, tzinfo=UTC) - _EPOCH) // _ONE_SECOND
MAX_SECONDS: Final[int] = (datetime(9999, 12, 31, 23, 59, 59, tzinfo=UTC) - _EPOCH) // _ONE_SECOND

_RFC3339 = re.compile(
    r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"[Tt ](?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<offset>[Zz]|[+-]\d{2}:\d{2})",
    re.ASCII,
)


@dataclass(frozen=True, slots=True, order=True)
class Timestamp:
    """UTC timestamp with nanosecond precision.

    Nanoseconds are normalized into ``[0, 1e9)`` on construction, carrying
    into (or borrowing from) ``seconds``.

    Examples
    --------
    >>> Timestamp(10, 1_500_000_000)
    Timestamp(seconds=11, nanos=500000000)
    >>> Timestamp(0, 454_000_000).to_rfc3339()
    '1970-01-01T00:00:00.454Z'
    """

    seconds: int
    nanos: int = 0

    def __post_init__(self) -> None:
        carry, nanos = divmod(self.nanos, NANOS_PER_SECOND)
        seconds = self.seconds + carry
        if not MIN_SECONDS <= seconds <= MAX_SECONDS:
            msg = f"timestamp {seconds}s is outside years 1-9999"
            raise ValueError(msg)
        object.__setattr__(self, "seconds", seconds)
        object.__setattr__(self, "nanos", nanos)

    @classmethod
    def now(cls) -> Timestamp:
        return cls.from_datetime(datetime.now(UTC))

    @classmethod
    def from_datetime(cls, value: datetime) -> Timestamp:
        """Convert an aware ``datetime`` (microsecond precision)."""
        if value.tzinfo is None:
            msg = "naive datetime has no UTC offset"
            raise ValueError(msg)
        delta = value - _EPOCH
        return cls(delta // _ONE_SECOND, (delta % _ONE_SECOND).microseconds * 1000)

    def to_datetime(self) -> datetime:
        """Convert to an aware ``datetime``, truncating to microseconds."""
        return _EPOCH + timedelta(seconds=self.seconds, microseconds=self.nanos // 1000)

    @classmethod
    def from_rfc3339(cls, text: str) -> Timestamp:
        """Parse an RFC 3339 date-time.

        Fractional digits beyond nanoseconds are truncated. A leap second
        (``:60``) rolls over into the following second.

        Raises
        ------
        ValueError
            If ``text`` is not a valid RFC 3339 date-time.
        """
        match = _RFC3339.fullmatch(text)
        if match is None:
            msg = f"{text!r} is not an RFC 3339 date-time"
            raise ValueError(msg)
        second = int(match["second"])
        if second > 60:
            msg = f"second {second} out of range"
            raise ValueError(msg)
        local = datetime(
            int(match["year"]),
            int(match["month"]),
            int(match["day"]),
            int(match["hour"]),
            int(match["minute"]),
            min(second, 59),
            tzinfo=UTC,
        )
        offset = match["offset"]
        offset_seconds = 0
        if offset not in {"Z", "z"}:
            hours, minutes = int(offset[1:3]), int(offset[4:6])
            if hours > 23 or minutes > 59:
                msg = f"offset {offset} out of range"
                raise ValueError(msg)
            offset_seconds = (hours * 3600 + minutes * 60) * (-1 if offset[0] == "-" else 1)
        fraction = match["fraction"] or ""
        nanos = int(fraction[:9].ljust(9, "0"))
        seconds = (local - _EPOCH) // _ONE_SECOND - offset_seconds + (second - min(second, 59))
        return cls(seconds, nanos)

    def to_rfc3339(self) -> str:
        """Format as RFC 3339 in UTC with 0, 3, 6 or 9 fractional digits."""
        moment = _EPOCH + timedelta(seconds=self.seconds)
        text = (
            f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
            f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
        )
        if self.nanos == 0:
            fraction = ""
        elif self.nanos % 1_000_000 == 0:
            fraction = f".{self.nanos // 1_000_000:03d}"
        elif self.nanos % 1000 == 0:
            fraction = f".{self.nanos // 1000:06d}"
        else:
            fraction = f".{self.nanos:09d}"
        return f"{text}{fraction}Z"

    def __str__(self) -> str:
        return self.to_rfc3339()
