"""The fog-pack Value model.

``Value`` is a closed union of frozen dataclasses. Every variant is
self-describing, so a Value can round-trip through JSON or MessagePack
without outside context. Floating point variants compare by bit pattern,
which keeps NaN payloads equal to themselves.

Examples
--------
>>> from fog_human_json.values import Array, Int, Map, Str
>>> Map({"b": Int(2), "a": Array((Str("x"),))}).keys()
['a', 'b']
"""

from __future__ import annotations

import math
import struct
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Final

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

__all__ = [
    "I64_MIN",
    "U64_MAX",
    "Array",
    "Bin",
    "Bool",
    "F32",
    "F64",
    "Int",
    "Map",
    "Null",
    "Str",
    "Value",
    "type_name",
]

I64_MIN: Final[int] = -(2**63)
I64_MAX: Final[int] = 2**63 - 1
U64_MAX: Final[int] = 2**64 - 1


@dataclass(frozen=True, slots=True)
class Null:
    """The null value."""


@dataclass(frozen=True, slots=True)
class Bool:
    value: bool


@dataclass(frozen=True, slots=True)
class Int:
    """Integer covering both the signed and unsigned 64-bit ranges."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not I64_MIN <= self.value <= U64_MAX:
            msg = f"{self.value!r} is outside the 64-bit integer range"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True, eq=False)
class F32:
    """Single-precision float, held as ``numpy.float32``."""

    value: np.float32

    def __post_init__(self) -> None:
        if not isinstance(self.value, np.float32):
            object.__setattr__(self, "value", np.float32(self.value))

    @classmethod
    def from_bits(cls, bits: int) -> F32:
        return cls(np.uint32(bits).view(np.float32))

    @property
    def bits(self) -> int:
        return int(self.value.view(np.uint32))

    def is_finite(self) -> bool:
        return bool(np.isfinite(self.value))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, F32):
            return NotImplemented
        return self.bits == other.bits

    def __hash__(self) -> int:
        return hash((F32, self.bits))


@dataclass(frozen=True, slots=True, eq=False)
class F64:
    """Double-precision float."""

    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", float(self.value))

    @classmethod
    def from_bits(cls, bits: int) -> F64:
        return cls(struct.unpack(">d", bits.to_bytes(8, "big"))[0])

    @property
    def bits(self) -> int:
        return int.from_bytes(struct.pack(">d", self.value), "big")

    def is_finite(self) -> bool:
        return math.isfinite(self.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, F64):
            return NotImplemented
        return self.bits == other.bits

    def __hash__(self) -> int:
        return hash((F64, self.bits))


@dataclass(frozen=True, slots=True)
class Str:
    value: str


@dataclass(frozen=True, slots=True)
class Bin:
    value: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", bytes(self.value))


@dataclass(frozen=True, slots=True)
class Array:
    """Ordered sequence of Values."""

    items: tuple[Value, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Value]:
        return iter(self.items)


@dataclass(frozen=True, slots=True)
class Map:
    """String-keyed mapping, stored in lexicographic key order.

    Keys are ordered by their UTF-8 bytes, matching the canonical binary form.
    """

    entries: Mapping[str, Value] = field(default_factory=dict)

    def __post_init__(self) -> None:
        ordered = dict(sorted(self.entries.items(), key=lambda item: item[0].encode("utf-8")))
        object.__setattr__(self, "entries", ordered)

    @classmethod
    def of(cls, pairs: Iterable[tuple[str, Value]]) -> Map:
        return cls(dict(pairs))

    def keys(self) -> list[str]:
        return list(self.entries)

    def get(self, key: str) -> Value | None:
        return self.entries.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __getitem__(self, key: str) -> Value:
        return self.entries[key]

    def __len__(self) -> int:
        return len(self.entries)

    def __hash__(self) -> int:
        return hash(tuple(self.entries.items()))


type Value = (
    Null
    | Bool
    | Int
    | F32
    | F64
    | Str
    | Bin
    | Array
    | Map
    | Hash
    | Identity
    | StreamId
    | LockId
    | DataLockbox
    | IdentityLockbox
    | StreamLockbox
    | LockLockbox
    | Timestamp
)


def type_name(value: Value) -> str:
    """Return the fog-pack name of ``value``'s variant (e.g. ``"Int"``)."""
    return type(value).__name__
