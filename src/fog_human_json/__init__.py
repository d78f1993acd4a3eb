"""Human-editable JSON for fog-pack values, documents, entries and queries.

Examples
--------
>>> import fog_human_json as fhj
>>> fhj.encode(fhj.decode({"n": "$fog-Int:5"}))
{'n': 5}
"""

from __future__ import annotations

from fog_human_json.assembler import ObjectAssembler
from fog_human_json.binary import (
    DefaultCompression,
    Document,
    Entry,
    NewDocument,
    NewEntry,
)
from fog_human_json.decoder import decode
from fog_human_json.document import doc_to_json, json_to_doc
from fog_human_json.encoder import encode
from fog_human_json.entry import EntryDraft, entry_to_json, json_to_entry
from fog_human_json.errors import (
    DecodeError,
    DecodeErrorKind,
    ErrorCode,
    FogJsonError,
    FogPackError,
    ObjectError,
)
from fog_human_json.keys import IdentityKey, MemoryVault, Vault
from fog_human_json.query import json_to_query, query_to_json
from fog_human_json.settings import RuntimeSettings, SignerResolution, load_settings
from fog_human_json.signing import SignDocument, SignEntry
from fog_human_json.validator import NewQuery, Query, Validator
from fog_human_json.values import Value

__all__ = [
    "DecodeError",
    "DecodeErrorKind",
    "DefaultCompression",
    "Document",
    "Entry",
    "EntryDraft",
    "ErrorCode",
    "FogJsonError",
    "FogPackError",
    "IdentityKey",
    "MemoryVault",
    "NewDocument",
    "NewEntry",
    "NewQuery",
    "ObjectAssembler",
    "ObjectError",
    "Query",
    "RuntimeSettings",
    "SignDocument",
    "SignEntry",
    "SignerResolution",
    "Validator",
    "Value",
    "Vault",
    "decode",
    "doc_to_json",
    "encode",
    "entry_to_json",
    "json_to_doc",
    "json_to_entry",
    "json_to_query",
    "load_settings",
    "query_to_json",
]
