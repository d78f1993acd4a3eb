"""Validator expressions and queries.

A validator is written as an externally tagged Value: either a bare kind name
(``"Any"``, ``"Int"``) or a single-key map ``{"<Kind>": {params}}``. Parameters
that are themselves validators are parsed recursively: ``items`` for arrays,
``values`` / ``req`` / ``opt`` for maps, the variant list of ``Multi`` and the
variant map of ``Enum``. ``Ref`` names another validator type and takes a
string body: ``{"Ref": "<name>"}``. Other parameters are kept as raw Values.

Converting back with :meth:`Validator.to_value` is canonical: a validator
without parameters is always written as its bare kind name.

Checking a Value against a validator is schema logic and lives elsewhere;
this module only models and normalizes the expressions.

Examples
--------
>>> from fog_human_json.validator import parse_validator
>>> from fog_human_json.values import Map, Str
>>> parse_validator(Map({"Any": Map({})})).to_value()
Str(value='Any')
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final

from fog_human_json.errors import FogPackError
from fog_human_json.values import Array, Map, Null, Str, Value

__all__ = ["NewQuery", "Query", "Validator", "ValidatorKind", "parse_validator"]


class ValidatorKind(StrEnum):
    """Validator expression kinds."""

    ANY = "Any"
    NULL = "Null"
    BOOL = "Bool"
    INT = "Int"
    F32 = "F32"
    F64 = "F64"
    STR = "Str"
    BIN = "Bin"
    ARRAY = "Array"
    MAP = "Map"
    TIME = "Time"
    HASH = "Hash"
    IDENTITY = "Identity"
    STREAM_ID = "StreamId"
    LOCK_ID = "LockId"
    DATA_LOCKBOX = "DataLockbox"
    IDENTITY_LOCKBOX = "IdentityLockbox"
    STREAM_LOCKBOX = "StreamLockbox"
    LOCK_LOCKBOX = "LockLockbox"
    MULTI = "Multi"
    ENUM = "Enum"
    REF = "Ref"


_NESTED_PARAMS: Final[dict[ValidatorKind, frozenset[str]]] = {
    ValidatorKind.ARRAY: frozenset({"items"}),
    ValidatorKind.MAP: frozenset({"values", "req", "opt"}),
}


@dataclass(frozen=True, slots=True)
class Validator:
    """Parsed validator expression.

    Attributes
    ----------
    kind : ValidatorKind
        Expression kind.
    params : Mapping[str, Value]
        Non-validator parameters such as ``max_len`` or ``in``.
    items : Validator | None
        Element validator (``Array``).
    values : Validator | None
        Value validator for unlisted keys (``Map``).
    req, opt : Mapping[str, Validator]
        Required and optional field validators (``Map``).
    variants : tuple[Validator, ...]
        Alternatives (``Multi``).
    enum : Mapping[str, Validator | None]
        Named variants and their content validators (``Enum``).
    ref : str | None
        Referenced type name (``Ref``).
    """

    kind: ValidatorKind
    params: Mapping[str, Value] = field(default_factory=dict)
    items: Validator | None = None
    values: Validator | None = None
    req: Mapping[str, Validator] = field(default_factory=dict)
    opt: Mapping[str, Validator] = field(default_factory=dict)
    variants: tuple[Validator, ...] = ()
    enum: Mapping[str, Validator | None] = field(default_factory=dict)
    ref: str | None = None

    def to_value(self) -> Value:
        """Render as the canonical externally tagged Value."""
        if self.kind is ValidatorKind.REF:
            return Map({self.kind.value: Str(self.ref or "")})
        if self.kind is ValidatorKind.MULTI:
            return Map({self.kind.value: Array(tuple(v.to_value() for v in self.variants))})
        if self.kind is ValidatorKind.ENUM:
            return Map(
                {
                    self.kind.value: Map(
                        {
                            name: Null() if inner is None else inner.to_value()
                            for name, inner in self.enum.items()
                        }
                    )
                }
            )
        body: dict[str, Value] = dict(self.params)
        if self.items is not None:
            body["items"] = self.items.to_value()
        if self.values is not None:
            body["values"] = self.values.to_value()
        if self.req:
            body["req"] = Map({name: v.to_value() for name, v in self.req.items()})
        if self.opt:
            body["opt"] = Map({name: v.to_value() for name, v in self.opt.items()})
        if not body:
            return Str(self.kind.value)
        return Map({self.kind.value: Map(body)})


def _kind(name: str) -> ValidatorKind:
    try:
        return ValidatorKind(name)
    except ValueError as exc:
        msg = f"Unknown validator kind {name!r}"
        raise FogPackError(msg, cause=exc, context={"kind": name}) from exc


def _field_map(kind: ValidatorKind, name: str, value: Value) -> dict[str, Validator]:
    if not isinstance(value, Map):
        msg = f"{kind.value}.{name} must be a map of validators"
        raise FogPackError(msg)
    return {key: parse_validator(inner) for key, inner in value.entries.items()}


def _parse_body(kind: ValidatorKind, body: Value) -> Validator:
    if kind is ValidatorKind.REF:
        if not isinstance(body, Str):
            msg = "Ref validator takes a type name string"
            raise FogPackError(msg)
        return Validator(kind, ref=body.value)
    if kind is ValidatorKind.MULTI:
        if not isinstance(body, Array):
            msg = "Multi validator takes an array of validators"
            raise FogPackError(msg)
        return Validator(kind, variants=tuple(parse_validator(item) for item in body))
    if kind is ValidatorKind.ENUM:
        if not isinstance(body, Map):
            msg = "Enum validator takes a map of variant names"
            raise FogPackError(msg)
        return Validator(
            kind,
            enum={
                name: None if isinstance(inner, Null) else parse_validator(inner)
                for name, inner in body.entries.items()
            },
        )
    if not isinstance(body, Map):
        msg = f"{kind.value} validator parameters must be a map"
        raise FogPackError(msg)
    nested = _NESTED_PARAMS.get(kind, frozenset())
    params = {name: value for name, value in body.entries.items() if name not in nested}
    found = {name: value for name, value in body.entries.items() if name in nested}
    items = found.get("items")
    values = found.get("values")
    return Validator(
        kind,
        params=params,
        items=None if items is None else parse_validator(items),
        values=None if values is None else parse_validator(values),
        req=_field_map(kind, "req", found["req"]) if "req" in found else {},
        opt=_field_map(kind, "opt", found["opt"]) if "opt" in found else {},
    )


def parse_validator(value: Value) -> Validator:
    """Interpret ``value`` as a validator expression.

    Raises
    ------
    FogPackError
        If ``value`` is not a well-formed validator.
    """
    match value:
        case Str(name):
            kind = _kind(name)
            if kind is ValidatorKind.REF:
                msg = "Ref validator needs a type name"
                raise FogPackError(msg)
            return Validator(kind)
        case Map(entries) if len(entries) == 1:
            ((name, body),) = entries.items()
            return _parse_body(_kind(name), body)
        case _:
            msg = "A validator is a kind name or a single-key map"
            raise FogPackError(msg)


@dataclass(frozen=True, slots=True)
class NewQuery:
    """Query under construction: a validator to run against ``key``'s entries."""

    key: str
    validator: Validator

    def finalize(self) -> Query:
        return Query(key=self.key, validator=self.validator)


@dataclass(frozen=True, slots=True)
class Query:
    """Finished query."""

    key: str
    validator: Validator
