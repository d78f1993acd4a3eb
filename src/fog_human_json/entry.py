"""Entries as hand-editable JSON.

An entry object has the shape::

    {"data": <value>, "key": "<string>", "parent": "$fog-Hash:...",
     "signer"?: "$fog-Identity:...", "compression"?: null | 0..255}

Entries need their parent document to be built, and the JSON only names the
parent by hash. Conversion is therefore two-step: :func:`json_to_entry`
validates the object into an :class:`EntryDraft`, and
:meth:`EntryDraft.attach` completes it once the caller has fetched the
parent document.

Examples
--------
>>> from fog_human_json.binary import NewDocument
>>> from fog_human_json.encoder import encode
>>> from fog_human_json.values import Null
>>> parent = NewDocument.new(Null()).finalize()
>>> draft = json_to_entry({"data": 1, "key": "k", "parent": encode(parent.hash)})
>>> draft.attach(parent).key
'k'
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from fog_human_json.binary import (
    DEFAULT_COMPRESSION_LEVEL,
    CompressionSetting,
    DefaultCompression,
    Document,
    Entry,
    NewEntry,
)
from fog_human_json.encoder import encode
from fog_human_json.errors import ParentMismatchError
from fog_human_json.fields import (
    decode_field,
    expect_hash,
    expect_identity,
    expect_str,
    optional_field,
    parse_compression,
    require_fields,
    require_object,
    wrap_format_error,
)
from fog_human_json.logging import get_logger
from fog_human_json.settings import SignerResolution
from fog_human_json.signing import SignEntry, lookup_key, sign_unsigned
from fog_human_json.values import Str

if TYPE_CHECKING:
    from fog_human_json.keys import IdentityKey, Vault
    from fog_human_json.primitives import Hash, Identity
    from fog_human_json.types import JsonObject, JsonValue
    from fog_human_json.values import Value

__all__ = ["EntryDraft", "entry_to_json", "json_to_entry"]

logger = get_logger(__name__)

ENTRY_KEYS: Final[frozenset[str]] = frozenset(
    {"data", "key", "parent", "signer", "compression"}
)
ENTRY_REQUIRED: Final[tuple[str, ...]] = ("data", "key", "parent")


@dataclass(frozen=True, slots=True)
class EntryDraft:
    """Validated entry fields waiting for the parent document.

    Attributes
    ----------
    data : Value
        Entry content.
    key : str
        Entry key within the parent.
    parent : Hash
        Hash of the parent document named by the JSON.
    signer : Identity | None
        Requested signer, if any.
    compression : CompressionSetting
        Compression tri-state.
    default_compression : int | None
        Level used when ``compression`` is the default.
    signing_key : IdentityKey | None
        Key already resolved from a vault; when set, :meth:`attach` signs
        in-line instead of returning a pendant.
    """

    data: Value
    key: str
    parent: Hash
    signer: Identity | None = None
    compression: CompressionSetting = DefaultCompression.DEFAULT
    default_compression: int | None = DEFAULT_COMPRESSION_LEVEL
    signing_key: IdentityKey | None = None

    def attach(self, parent: Document) -> NewEntry | SignEntry:
        """Build the entry under ``parent``.

        Parameters
        ----------
        parent : Document
            The resolved parent document.

        Returns
        -------
        NewEntry | SignEntry
            The entry (signed when a vault key was resolved), or a pendant
            awaiting the signer's key.

        Raises
        ------
        ParentMismatchError
            If ``parent`` is not the document this draft names.
        UnderlyingFormatError
            If the binary layer rejects the entry.
        """
        if parent.hash != self.parent:
            raise ParentMismatchError(self.parent, parent.hash)
        unsigned = wrap_format_error(
            lambda: NewEntry.new(
                self.data, self.key, parent, default_compression=self.default_compression
            ).with_compression(self.compression)
        )
        logger.debug(
            "Entry assembled",
            extra={"operation": "attach_entry", "hash": str(unsigned.hash), "key": self.key},
        )
        if self.signing_key is not None:
            return sign_unsigned(unsigned, self.signing_key)
        if self.signer is not None:
            logger.debug(
                "Signing pendant created",
                extra={
                    "operation": "attach_entry",
                    "signer": str(self.signer),
                    "status": "pending",
                },
            )
            return SignEntry(unsigned, self.signer)
        return unsigned


def json_to_entry(
    value: JsonValue,
    *,
    default_compression: int | None = DEFAULT_COMPRESSION_LEVEL,
    signer_resolution: SignerResolution = SignerResolution.PENDANT,
    vault: Vault | None = None,
) -> EntryDraft:
    """Validate a JSON entry object into an :class:`EntryDraft`.

    Under the vault strategy the signer's key is looked up here, so a missing
    vault or key is reported before the parent document is fetched.

    Raises
    ------
    NotAnObjectError, UnrecognizedKeyError, MissingKeyError
        If the object's shape is wrong.
    FieldDecodeError
        If a field's value fails to decode.
    WrongDataTypeError
        If ``key`` is not a string, ``parent`` not a Hash, ``signer`` not an
        Identity, or ``compression`` is invalid.
    NoVaultError, MissingIdentityKeyError
        Under the vault strategy, when the signer's key cannot be found.
    """
    obj = require_object(value)
    require_fields(obj, allowed=ENTRY_KEYS, required=ENTRY_REQUIRED)
    data = decode_field(obj, "data")
    key = expect_str("key", decode_field(obj, "key"))
    parent = expect_hash("parent", decode_field(obj, "parent"))
    signer = optional_field(obj, "signer", expect_identity)
    compression = parse_compression(obj)
    signing_key = None
    if signer is not None and signer_resolution == SignerResolution.VAULT:
        signing_key = lookup_key(signer, vault)
    return EntryDraft(
        data=data,
        key=key,
        parent=parent,
        signer=signer,
        compression=compression,
        default_compression=default_compression,
        signing_key=signing_key,
    )


def entry_to_json(entry: Entry) -> JsonObject:
    """Render a finished entry as a JSON object.

    The key is escaped like any other string, so keys starting with ``$fog-``
    survive the trip back through :func:`json_to_entry`.
    """
    out: JsonObject = {
        "data": encode(entry.deserialize()),
        "key": encode(Str(entry.key)),
        "parent": encode(entry.parent),
    }
    if entry.signer is not None:
        out["signer"] = encode(entry.signer)
    return out
