"""Public API for trust_protocol."""
from __future__ import annotations

from importlib import import_module

from .auth import Ed25519Authority, GrantedAuthority, Keyring, MockAllAuthority
from .directory import ServiceDirectory
from .exceptions import (
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    LedgerError,
    NotFoundError,
    StateError,
    TrustProtocolError,
)
from .gate import ProofGate
from .interfaces import AuthorityProvider, ProofVerifier, WhitelistReader
from .ledger import EventLog, Ledger
from .registry import IdentityRegistry
from .types import DidStatus, Event, Invocation, StorageKey
from .verifiers import load_verifier, select_backend
from .whitelist import IssuerAuthority

__all__ = [
    "IdentityRegistry",
    "IssuerAuthority",
    "ProofGate",
    "ServiceDirectory",
    "Ledger",
    "EventLog",
    "DidStatus",
    "Event",
    "Invocation",
    "StorageKey",
    "AuthorityProvider",
    "ProofVerifier",
    "WhitelistReader",
    "MockAllAuthority",
    "GrantedAuthority",
    "Ed25519Authority",
    "Keyring",
    "load_verifier",
    "select_backend",
    "TrustProtocolError",
    "ConflictError",
    "NotFoundError",
    "AuthorizationError",
    "StateError",
    "ConfigurationError",
    "LedgerError",
    "PlaceholderVerifier",
    "HmacVerifier",
    "CallbackVerifier",
]

_LAZY_EXPORTS = {
    "PlaceholderVerifier": "verifiers.placeholder",
    "HmacVerifier": "verifiers.hmac_verifier",
    "CallbackVerifier": "verifiers.callback",
}


def __getattr__(name: str):
    if name in _LAZY_EXPORTS:
        module = import_module(f"{__name__}.{_LAZY_EXPORTS[name]}")
        value = getattr(module, name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
