"""Identity keys and key vaults.

An :class:`IdentityKey` is an Ed25519 signing key; its public half is the
:class:`~fog_human_json.primitives.Identity` named in ``signer`` fields. A
:class:`Vault` maps identities back to keys for in-line signing.

Examples
--------
>>> from fog_human_json.keys import IdentityKey, MemoryVault
>>> key = IdentityKey.generate()
>>> vault = MemoryVault([key])
>>> vault.find_id(key.id) is key
True
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Final, Protocol, runtime_checkable

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from fog_human_json.primitives import Identity

__all__ = ["SIGNATURE_LEN", "IdentityKey", "MemoryVault", "Vault", "verify_signature"]

SIGNATURE_LEN: Final[int] = 64


class IdentityKey:
    """Ed25519 private key paired with its :class:`Identity`.

    Parameters
    ----------
    private_key : Ed25519PrivateKey
        Underlying signing key.
    """

    __slots__ = ("_id", "_private_key")

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._private_key = private_key
        public = private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
        self._id = Identity.from_body(public)

    @classmethod
    def generate(cls) -> IdentityKey:
        """Create a fresh random key."""
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_seed(cls, seed: bytes) -> IdentityKey:
        """Rebuild a key from its 32-byte seed."""
        return cls(Ed25519PrivateKey.from_private_bytes(seed))

    @property
    def id(self) -> Identity:
        return self._id

    def sign(self, message: bytes) -> bytes:
        return self._private_key.sign(message)

    def __repr__(self) -> str:
        return f"IdentityKey({self._id})"


def verify_signature(identity: Identity, message: bytes, signature: bytes) -> bool:
    """Check ``signature`` over ``message`` against ``identity``."""
    try:
        public_key = Ed25519PublicKey.from_public_bytes(identity.body)
        public_key.verify(signature, message)
    except (InvalidSignature, ValueError):
        return False
    return True


@runtime_checkable
class Vault(Protocol):
    """Lookup from :class:`Identity` to the matching :class:`IdentityKey`.

    Vaults are owned by the caller; implementations decide their own locking.
    """

    def find_id(self, identity: Identity) -> IdentityKey | None:
        """Return the key for ``identity``, or None when it is not held."""
        ...


class MemoryVault:
    """In-process :class:`Vault` backed by a dict."""

    def __init__(self, keys: Iterable[IdentityKey] = ()) -> None:
        self._keys: dict[Identity, IdentityKey] = {key.id: key for key in keys}

    def add(self, key: IdentityKey) -> Identity:
        self._keys[key.id] = key
        return key.id

    def find_id(self, identity: Identity) -> IdentityKey | None:
        return self._keys.get(identity)

    def __len__(self) -> int:
        return len(self._keys)
