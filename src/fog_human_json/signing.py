"""Signing pendants and signer resolution.

When a ``signer`` field is present, the object cannot be finished until a
matching :class:`~fog_human_json.keys.IdentityKey` is supplied. Under the
pendant strategy the converter returns a :class:`SignDocument` or
:class:`SignEntry` bound to the requested Identity. Completing it consumes
it: the result is either the signed object or a terminal
:class:`~fog_human_json.errors.IncorrectIdentityKeyError`. Under the vault
strategy the key is looked up and applied in-line.

Examples
--------
>>> from fog_human_json.binary import NewDocument
>>> from fog_human_json.keys import IdentityKey
>>> from fog_human_json.values import Null
>>> key = IdentityKey.generate()
>>> pendant = SignDocument(NewDocument.new(Null()), key.id)
>>> pendant.complete(key).signer == key.id
True
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from fog_human_json.binary import NewDocument, NewEntry
from fog_human_json.errors import (
    IncorrectIdentityKeyError,
    MissingIdentityKeyError,
    NoVaultError,
    PendantConsumedError,
)
from fog_human_json.fields import wrap_format_error
from fog_human_json.logging import get_logger
from fog_human_json.settings import SignerResolution

if TYPE_CHECKING:
    from fog_human_json.keys import IdentityKey, Vault
    from fog_human_json.primitives import Identity

__all__ = [
    "SignDocument",
    "SignEntry",
    "lookup_key",
    "resolve_signer",
    "sign_unsigned",
]

logger = get_logger(__name__)


def sign_unsigned[T: (NewDocument, NewEntry)](unsigned: T, key: IdentityKey) -> T:
    """Sign ``unsigned`` with ``key``, reporting binary-layer failures as object errors."""
    signed = wrap_format_error(lambda: unsigned.sign(key))
    logger.debug(
        "Signed %s",
        type(unsigned).__name__,
        extra={"operation": "sign", "signer": str(key.id), "hash": str(unsigned.hash)},
    )
    return signed


class _SigningPendant[T: (NewDocument, NewEntry)]:
    """Unsigned object waiting for the key of a specific Identity."""

    __slots__ = ("_consumed", "_lock", "_signer", "_unsigned")

    def __init__(self, unsigned: T, signer: Identity) -> None:
        self._unsigned = unsigned
        self._signer = signer
        self._consumed = False
        self._lock = threading.Lock()

    @property
    def signer(self) -> Identity:
        """Identity whose key must complete this pendant."""
        return self._signer

    @property
    def unsigned(self) -> T:
        """The object that will be signed."""
        return self._unsigned

    @property
    def consumed(self) -> bool:
        return self._consumed

    def complete(self, key: IdentityKey) -> T:
        """Sign with ``key`` and return the signed object.

        The pendant is consumed by the first call, whatever its outcome.

        Raises
        ------
        PendantConsumedError
            If the pendant was already completed.
        IncorrectIdentityKeyError
            If ``key`` does not belong to :attr:`signer`.
        UnderlyingFormatError
            If the binary layer refuses the signature.
        """
        with self._lock:
            if self._consumed:
                raise PendantConsumedError(self._signer)
            self._consumed = True
        if key.id != self._signer:
            logger.warning(
                "Signing key does not match requested signer",
                extra={
                    "operation": "complete_pendant",
                    "expected": str(self._signer),
                    "actual": str(key.id),
                },
            )
            raise IncorrectIdentityKeyError(self._signer)
        return sign_unsigned(self._unsigned, key)

    def __repr__(self) -> str:
        state = "consumed" if self._consumed else "pending"
        return f"{type(self).__name__}(signer={self._signer}, {state})"


class SignDocument(_SigningPendant[NewDocument]):
    """Document waiting for its signer's key."""

    __slots__ = ()


class SignEntry(_SigningPendant[NewEntry]):
    """Entry waiting for its signer's key."""

    __slots__ = ()


def lookup_key(signer: Identity, vault: Vault | None) -> IdentityKey:
    """Find ``signer``'s key in ``vault``.

    Raises
    ------
    NoVaultError
        If no vault was supplied.
    MissingIdentityKeyError
        If the vault does not hold the key.
    """
    if vault is None:
        raise NoVaultError()
    key = vault.find_id(signer)
    if key is None:
        raise MissingIdentityKeyError(signer)
    return key


def resolve_signer[T: (NewDocument, NewEntry)](
    unsigned: T,
    signer: Identity | None,
    pendant: type[_SigningPendant[T]],
    *,
    strategy: SignerResolution,
    vault: Vault | None,
) -> T | _SigningPendant[T]:
    """Apply the configured signer strategy to a freshly built object.

    Returns the object itself when there is no signer, a pendant under the
    pendant strategy, or the object signed from ``vault`` under the vault
    strategy.
    """
    if signer is None:
        return unsigned
    if strategy == SignerResolution.VAULT:
        return sign_unsigned(unsigned, lookup_key(signer, vault))
    logger.debug(
        "Signing pendant created",
        extra={"operation": "resolve_signer", "signer": str(signer), "status": "pending"},
    )
    return pendant(unsigned, signer)
