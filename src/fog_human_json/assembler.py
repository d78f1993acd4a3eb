"""Configured entry point for JSON → object conversion.

:class:`ObjectAssembler` binds :class:`~fog_human_json.settings.RuntimeSettings`
and an optional key vault to the document, entry and query converters, so
callers configure compression defaults and signer resolution once per
deployment instead of per call.

Examples
--------
>>> from fog_human_json.assembler import ObjectAssembler
>>> from fog_human_json.settings import load_settings
>>> assembler = ObjectAssembler(load_settings(assembler={"default_compression": None}))
>>> assembler.json_to_doc({"data": "hi"}).finalize().compression is None
True
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fog_human_json.document import doc_to_json, json_to_doc
from fog_human_json.entry import entry_to_json, json_to_entry
from fog_human_json.logging import get_logger
from fog_human_json.query import json_to_query, query_to_json
from fog_human_json.settings import RuntimeSettings

if TYPE_CHECKING:
    from fog_human_json.binary import Document, Entry, NewDocument
    from fog_human_json.entry import EntryDraft
    from fog_human_json.keys import Vault
    from fog_human_json.settings import SignerResolution
    from fog_human_json.signing import SignDocument
    from fog_human_json.types import JsonObject, JsonValue
    from fog_human_json.validator import NewQuery, Query

__all__ = ["ObjectAssembler"]

logger = get_logger(__name__)


class ObjectAssembler:
    """Convert JSON objects to documents, entries and queries under fixed settings.

    Parameters
    ----------
    settings : RuntimeSettings | None, optional
        Runtime configuration. Defaults to ``RuntimeSettings()`` (environment
        plus defaults).
    vault : Vault | None, optional
        Key source used when ``signer_resolution`` is ``"vault"``. Defaults to
        None.
    """

    def __init__(self, settings: RuntimeSettings | None = None, vault: Vault | None = None) -> None:
        self.settings = settings if settings is not None else RuntimeSettings()
        self.vault = vault
        logger.debug(
            "Assembler configured",
            extra={
                "operation": "configure_assembler",
                "signer_resolution": str(self.signer_resolution),
                "has_vault": vault is not None,
            },
        )

    @property
    def default_compression(self) -> int | None:
        return self.settings.assembler.default_compression

    @property
    def signer_resolution(self) -> SignerResolution:
        return self.settings.assembler.signer_resolution

    def json_to_doc(self, value: JsonValue) -> NewDocument | SignDocument:
        """See :func:`fog_human_json.document.json_to_doc`."""
        return json_to_doc(
            value,
            default_compression=self.default_compression,
            signer_resolution=self.signer_resolution,
            vault=self.vault,
        )

    def json_to_entry(self, value: JsonValue) -> EntryDraft:
        """See :func:`fog_human_json.entry.json_to_entry`."""
        return json_to_entry(
            value,
            default_compression=self.default_compression,
            signer_resolution=self.signer_resolution,
            vault=self.vault,
        )

    def json_to_query(self, value: JsonValue) -> NewQuery:
        return json_to_query(value)

    def doc_to_json(self, doc: Document) -> JsonObject:
        return doc_to_json(doc)

    def entry_to_json(self, entry: Entry) -> JsonObject:
        return entry_to_json(entry)

    def query_to_json(self, query: NewQuery | Query) -> JsonObject:
        return query_to_json(query)
