"""Queries as hand-editable JSON.

A query object is ``{"validator": <validator>, "key": "<string>"}``. The
validator is passed through a throwaway unsigned, schemaless document
(build, finalize, deserialize) in both directions, so two hand-written
validators that mean the same thing always come out identical.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from fog_human_json.binary import NewDocument
from fog_human_json.encoder import encode
from fog_human_json.fields import (
    decode_field,
    expect_str,
    require_fields,
    require_object,
    wrap_format_error,
)
from fog_human_json.logging import get_logger
from fog_human_json.validator import NewQuery, Query, parse_validator
from fog_human_json.values import Str

if TYPE_CHECKING:
    from fog_human_json.types import JsonObject, JsonValue
    from fog_human_json.values import Value

__all__ = ["json_to_query", "query_to_json"]

logger = get_logger(__name__)

QUERY_KEYS: Final[frozenset[str]] = frozenset({"validator", "key"})
QUERY_REQUIRED: Final[tuple[str, ...]] = ("validator", "key")


def _through_document(value: Value) -> Value:
    return wrap_format_error(lambda: NewDocument.new(value).finalize().deserialize())


def json_to_query(value: JsonValue) -> NewQuery:
    """Convert a JSON query object into a :class:`NewQuery`.

    Raises
    ------
    NotAnObjectError, UnrecognizedKeyError, MissingKeyError
        If the object's shape is wrong.
    FieldDecodeError
        If a field's value fails to decode.
    WrongDataTypeError
        If ``key`` is not a string.
    UnderlyingFormatError
        If the validator does not survive the document round trip or is not a
        well-formed validator expression.

    Examples
    --------
    >>> query = json_to_query({"validator": {"Int": {"max": 10}}, "key": "count"})
    >>> query.validator.kind
    <ValidatorKind.INT: 'Int'>
    """
    obj = require_object(value)
    require_fields(obj, allowed=QUERY_KEYS, required=QUERY_REQUIRED)
    raw_validator = decode_field(obj, "validator")
    key = expect_str("key", decode_field(obj, "key"))
    validator = wrap_format_error(lambda: parse_validator(_through_document(raw_validator)))
    logger.debug("Query assembled", extra={"operation": "json_to_query", "key": key})
    return NewQuery(key=key, validator=validator)


def query_to_json(query: NewQuery | Query) -> JsonObject:
    """Render a query as a JSON object."""
    validator = _through_document(query.validator.to_value())
    return {"validator": encode(validator), "key": encode(Str(query.key))}
