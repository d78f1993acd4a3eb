"""Shared pytest fixtures for the fog-human-json test suite.

This module provides reusable fixtures for:
- Deterministic identity keys and an in-memory vault
- Sample hashes and a finished parent document
- Settings isolated from ``FOG_JSON_*`` environment variables
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from fog_human_json.binary import Document, NewDocument
from fog_human_json.keys import IdentityKey, MemoryVault
from fog_human_json.primitives import Hash
from fog_human_json.values import Map, Str

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def identity_key() -> IdentityKey:
    """Signing key with a fixed seed."""
    return IdentityKey.from_seed(bytes(range(32)))


@pytest.fixture
def other_key() -> IdentityKey:
    """Second signing key, distinct from ``identity_key``."""
    return IdentityKey.from_seed(bytes(range(32, 64)))


@pytest.fixture
def vault(identity_key: IdentityKey) -> MemoryVault:
    """Vault holding ``identity_key`` only."""
    return MemoryVault([identity_key])


@pytest.fixture
def schema_hash() -> Hash:
    return Hash.of(b"example schema")


@pytest.fixture
def parent_doc() -> Document:
    """Finished unsigned document used as an entry parent."""
    return NewDocument.new(Map({"title": Str("parent")})).finalize()


@pytest.fixture(autouse=True)
def clean_fog_env() -> Iterator[None]:
    """Hide ``FOG_JSON_*`` variables from the settings layer during a test."""
    saved = {key: value for key, value in os.environ.items() if key.startswith("FOG_JSON_")}
    for key in saved:
        del os.environ[key]
    try:
        yield
    finally:
        for key in [key for key in os.environ if key.startswith("FOG_JSON_")]:
            del os.environ[key]
        os.environ.update(saved)
