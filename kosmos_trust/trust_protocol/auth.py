"""
Authority-proof providers.

The services never authenticate callers themselves. They ask an injected
AuthorityProvider whether a party authorized a specific Invocation, and the
provider raises AuthorizationError when it did not.

- MockAllAuthority: every party authorizes everything (tests and demos only)
- GrantedAuthority: an explicit set of acting parties
- Ed25519Authority: parties are hex Ed25519 verify keys; each invocation
  must carry a valid signature from the party (PyNaCl)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional, Set, Tuple

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from .config import IDENTITY_KEY_BYTES, SIGNATURE_BYTES
from .exceptions import AuthorizationError
from .interfaces import AuthorityProvider
from .types import Invocation

logger = logging.getLogger(__name__)

Signer = Callable[[str, Invocation], Optional[bytes]]


class MockAllAuthority(AuthorityProvider):
    """
    Grants every authority check.

    Notes:
    - Mirrors a host running with all authorizations mocked.
    - It does NOT provide any security.
    """

    def require_authority(self, party: str, invocation: Invocation) -> None:
        logger.debug("Mock authority granted %s for %s", party, invocation.operation)


class GrantedAuthority(AuthorityProvider):
    """
    Grants authority only to the parties currently acting.

    Example:
        >>> authority = GrantedAuthority()
        >>> with authority.acting_as("GADMIN"):
        ...     whitelist.add_issuer("GISSUER")
    """

    def __init__(self, *parties: str) -> None:
        self._acting: Set[str] = set(parties)

    def grant(self, *parties: str) -> None:
        self._acting.update(parties)

    def revoke(self, *parties: str) -> None:
        self._acting.difference_update(parties)

    @contextmanager
    def acting_as(self, *parties: str) -> Iterator[None]:
        previous = set(self._acting)
        self._acting = set(parties)
        try:
            yield
        finally:
            self._acting = previous

    def require_authority(self, party: str, invocation: Invocation) -> None:
        if party not in self._acting:
            raise AuthorizationError(
                f"{party} did not authorize {invocation.operation}"
            )


class Ed25519Authority(AuthorityProvider):
    """
    Signature-backed authority proofs.

    A party authorizes an invocation by signing ``invocation.to_bytes()``
    with the Ed25519 key whose verify key (hex) is the party identity.
    Signatures are taken from those presented via ``signed()`` first, then
    from the optional ``signer`` callback (a local keyring).
    """

    def __init__(self, signer: Optional[Signer] = None) -> None:
        self._signer = signer
        self._presented: Dict[str, bytes] = {}

    @contextmanager
    def signed(self, signatures: Dict[str, bytes]) -> Iterator[None]:
        previous = self._presented
        self._presented = dict(signatures)
        try:
            yield
        finally:
            self._presented = previous

    def _signature_for(self, party: str, invocation: Invocation) -> Optional[bytes]:
        signature = self._presented.get(party)
        if signature is None and self._signer is not None:
            signature = self._signer(party, invocation)
        return signature

    def require_authority(self, party: str, invocation: Invocation) -> None:
        verify_key = _verify_key_from_identity(party)
        signature = self._signature_for(party, invocation)
        if signature is None:
            raise AuthorizationError(
                f"missing signature from {party} for {invocation.operation}"
            )
        if not isinstance(signature, (bytes, bytearray)) or len(signature) != SIGNATURE_BYTES:
            raise AuthorizationError("malformed signature")

        try:
            verify_key.verify(invocation.to_bytes(), bytes(signature))
        except BadSignatureError as exc:
            raise AuthorizationError(
                f"invalid signature from {party} for {invocation.operation}"
            ) from exc
        logger.debug("Verified signature from %s for %s", party, invocation.operation)


class Keyring:
    """Local signing keys, usable as an Ed25519Authority signer."""

    def __init__(self, *keys: SigningKey) -> None:
        self._keys: Dict[str, SigningKey] = {}
        for key in keys:
            self.add(key)

    def add(self, key: SigningKey) -> str:
        identity = identity_of(key)
        self._keys[identity] = key
        return identity

    def identities(self) -> Tuple[str, ...]:
        return tuple(self._keys)

    def __call__(self, party: str, invocation: Invocation) -> Optional[bytes]:
        key = self._keys.get(party)
        if key is None:
            return None
        return sign_invocation(key, invocation)


def generate_identity() -> Tuple[SigningKey, str]:
    """Generate a new signing key and return it with its identity string."""
    key = SigningKey.generate()
    return key, identity_of(key)


def identity_of(key: SigningKey) -> str:
    return key.verify_key.encode().hex()


def signing_key_from_seed(seed_hex: str) -> SigningKey:
    try:
        seed = bytes.fromhex(seed_hex)
    except ValueError as exc:
        raise ValueError("signing key seed must be hex") from exc
    if len(seed) != IDENTITY_KEY_BYTES:
        raise ValueError(f"signing key seed must be {IDENTITY_KEY_BYTES} bytes")
    return SigningKey(seed)


def sign_invocation(key: SigningKey, invocation: Invocation) -> bytes:
    return key.sign(invocation.to_bytes()).signature


def _verify_key_from_identity(party: str) -> VerifyKey:
    try:
        raw = bytes.fromhex(party)
    except (TypeError, ValueError) as exc:
        raise AuthorizationError(f"identity is not a verify key: {party!r}") from exc
    if len(raw) != IDENTITY_KEY_BYTES:
        raise AuthorizationError(f"identity is not a verify key: {party!r}")
    return VerifyKey(raw)
