"""Documents as hand-editable JSON.

A document object has the shape::

    {"data": <value>, "schema"?: "$fog-Hash:...", "signer"?: "$fog-Identity:...",
     "compression"?: null | 0..255}

:func:`json_to_doc` turns it into a :class:`~fog_human_json.binary.NewDocument`
(or, when a signer is named, a :class:`~fog_human_json.signing.SignDocument`);
:func:`doc_to_json` goes the other way for a finished document.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from fog_human_json.binary import (
    DEFAULT_COMPRESSION_LEVEL,
    CompressionSetting,
    Document,
    NewDocument,
)
from fog_human_json.encoder import encode
from fog_human_json.fields import (
    decode_field,
    expect_hash,
    expect_identity,
    optional_field,
    parse_compression,
    require_fields,
    require_object,
    wrap_format_error,
)
from fog_human_json.logging import get_logger
from fog_human_json.settings import SignerResolution
from fog_human_json.signing import SignDocument, resolve_signer

if TYPE_CHECKING:
    from fog_human_json.keys import Vault
    from fog_human_json.primitives import Hash, Identity
    from fog_human_json.types import JsonObject, JsonValue
    from fog_human_json.values import Value

__all__ = ["DocumentFields", "build_document", "doc_to_json", "json_to_doc", "parse_document"]

logger = get_logger(__name__)

DOCUMENT_KEYS: Final[frozenset[str]] = frozenset({"data", "schema", "signer", "compression"})
DOCUMENT_REQUIRED: Final[tuple[str, ...]] = ("data",)


@dataclass(frozen=True, slots=True)
class DocumentFields:
    """Validated fields of a document object."""

    data: Value
    schema: Hash | None
    signer: Identity | None
    compression: CompressionSetting


def parse_document(value: JsonValue) -> DocumentFields:
    """Check the shape of a document object and decode its fields.

    Raises
    ------
    NotAnObjectError, UnrecognizedKeyError, MissingKeyError
        If the object's shape is wrong.
    FieldDecodeError
        If a field's value fails to decode.
    WrongDataTypeError
        If ``schema`` is not a Hash, ``signer`` not an Identity, or
        ``compression`` not null or an integer in ``[0, 255]``.
    """
    obj = require_object(value)
    require_fields(obj, allowed=DOCUMENT_KEYS, required=DOCUMENT_REQUIRED)
    return DocumentFields(
        data=decode_field(obj, "data"),
        schema=optional_field(obj, "schema", expect_hash),
        signer=optional_field(obj, "signer", expect_identity),
        compression=parse_compression(obj),
    )


def build_document(fields: DocumentFields, *, default_compression: int | None) -> NewDocument:
    """Form the unsigned document for ``fields``."""
    return wrap_format_error(
        lambda: NewDocument.new(
            fields.data, fields.schema, default_compression=default_compression
        ).with_compression(fields.compression)
    )


def json_to_doc(
    value: JsonValue,
    *,
    default_compression: int | None = DEFAULT_COMPRESSION_LEVEL,
    signer_resolution: SignerResolution = SignerResolution.PENDANT,
    vault: Vault | None = None,
) -> NewDocument | SignDocument:
    """Convert a JSON document object into a document.

    Parameters
    ----------
    value : JsonValue
        Parsed JSON.
    default_compression : int | None, optional
        Level applied when ``compression`` is absent. Defaults to 3.
    signer_resolution : SignerResolution, optional
        What to do with a ``signer`` field. Defaults to returning a pendant.
    vault : Vault | None, optional
        Key source for the vault strategy. Defaults to None.

    Returns
    -------
    NewDocument | SignDocument
        The document, or a pendant awaiting the signer's key.

    Raises
    ------
    ObjectError
        Any subclass, as described in :func:`parse_document`, plus
        ``UnderlyingFormatError`` when the binary layer rejects the result and,
        under the vault strategy, ``NoVaultError`` / ``MissingIdentityKeyError``.

    Examples
    --------
    >>> doc = json_to_doc({"data": [1, "$fog-Int:2"], "compression": None})
    >>> doc.compression is None
    True
    """
    fields = parse_document(value)
    unsigned = build_document(fields, default_compression=default_compression)
    logger.debug(
        "Document assembled",
        extra={"operation": "json_to_doc", "hash": str(unsigned.hash)},
    )
    return resolve_signer(
        unsigned, fields.signer, SignDocument, strategy=signer_resolution, vault=vault
    )


def doc_to_json(doc: Document) -> JsonObject:
    """Render a finished document as a JSON object.

    The compression setting is not part of the output.
    """
    out: JsonObject = {"data": encode(doc.deserialize())}
    if doc.schema is not None:
        out["schema"] = encode(doc.schema)
    if doc.signer is not None:
        out["signer"] = encode(doc.signer)
    return out
