"""
Common types for the trust protocol.

This module provides:
1. DidStatus - lifecycle status of an identity record
2. StorageKey - typed key for the ledger (kind, entity id, field)
3. Invocation - the message a party authorizes for a mutating call
4. Event - structured record published on every committed mutation
5. validate_* helpers for identities, DIDs, documents and public inputs
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple

import cbor2

from .config import (
    INVOCATION_DOMAIN_SEPARATOR,
    MAX_DID_LENGTH,
    MAX_DOCUMENT_ENTRIES,
    MAX_IDENTITY_LENGTH,
    MAX_LABEL_LENGTH,
    MAX_PUBLIC_INPUTS,
    STORAGE_LAYOUT,
)

# ============================================================================
# DID STATUS
# ============================================================================


class DidStatus(Enum):
    """
    Lifecycle status of a DID record.

    ACTIVE -> REVOKED is the only transition; REVOKED is terminal.
    """

    ACTIVE = 1
    REVOKED = 2


# ============================================================================
# STORAGE KEY
# ============================================================================


@dataclass(frozen=True)
class StorageKey:
    """
    Typed ledger key indexed by (entity kind, entity id, field tag).

    Example:
        >>> key = StorageKey("did", "did:kosmos:1", "status")
        >>> key.as_tuple()
        ('did', 'did:kosmos:1', 'status')
    """

    kind: str
    entity_id: str
    field: str

    def __post_init__(self) -> None:
        fields = STORAGE_LAYOUT.get(self.kind)
        if fields is None:
            raise ValueError(f"Unknown storage kind: {self.kind!r}")
        if self.field not in fields:
            raise ValueError(
                f"Unknown field {self.field!r} for kind {self.kind!r}"
            )

    def as_tuple(self) -> Tuple[str, str, str]:
        return (self.kind, self.entity_id, self.field)


# ============================================================================
# INVOCATION
# ============================================================================


@dataclass(frozen=True)
class Invocation:
    """
    A mutating call a party must authorize.

    The canonical CBOR encoding, prefixed with a domain separator, is the
    message an authority proof (signature) is checked against.

    Attributes:
        contract: Service instance the call targets (e.g. "issuer-whitelist")
        operation: Operation name (e.g. "add_issuer")
        args: Positional arguments of the call
    """

    contract: str
    operation: str
    args: Tuple[Any, ...] = ()

    def to_bytes(self) -> bytes:
        payload = [self.contract, self.operation, list(self.args)]
        return INVOCATION_DOMAIN_SEPARATOR + cbor2.dumps(payload, canonical=True)


# ============================================================================
# EVENT
# ============================================================================


@dataclass(frozen=True)
class Event:
    """
    Structured event published by a committed mutation.

    Attributes:
        tag: Event tag (see config.EVENT_TAGS)
        subject: DID, issuer or admin the event is about
        payload: Extra data (controller, public inputs, ...)
        timestamp: Unix timestamp at publication
    """

    tag: str
    subject: str
    payload: Any = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tag": self.tag,
            "subject": self.subject,
            "payload": self.payload,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        if not isinstance(data, dict) or "tag" not in data or "subject" not in data:
            raise ValueError("Invalid event format: missing required fields")
        return cls(
            tag=data["tag"],
            subject=data["subject"],
            payload=data.get("payload"),
            timestamp=data.get("timestamp", time.time()),
        )


# ============================================================================
# VALIDATION HELPERS
# ============================================================================


def validate_identity(value: Any, name: str = "identity") -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be str")
    if not value:
        raise ValueError(f"{name} must not be empty")
    if len(value) > MAX_IDENTITY_LENGTH:
        raise ValueError(f"{name} too long")
    return value


def validate_did(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError("did must be str")
    if not value:
        raise ValueError("did must not be empty")
    if len(value) > MAX_DID_LENGTH:
        raise ValueError("did too long")
    return value


def validate_document(document: Any) -> Dict[str, Any]:
    """
    Check a DID document and return a detached copy.

    Documents are opaque to the registry: only their shape is checked
    (short string labels, CBOR values that decode back unchanged). Insertion
    order is kept. Tuples are rejected since they would come back as lists.

    Raises:
        TypeError: If the document is not a mapping of str labels
        ValueError: If it has too many entries, an invalid label, or a
            value that cannot be stored
    """
    if not isinstance(document, dict):
        raise TypeError("document must be a dict")
    if len(document) > MAX_DOCUMENT_ENTRIES:
        raise ValueError("document has too many entries")
    for label in document:
        if not isinstance(label, str):
            raise TypeError("document labels must be str")
        if not label or len(label) > MAX_LABEL_LENGTH:
            raise ValueError(f"invalid document label: {label!r}")
    return _detach(document, "document")


def validate_public_inputs(public_inputs: Any) -> List[Any]:
    """
    Check proof public inputs and return a detached copy.

    Inputs are recorded in the zkp_verify event, so they must be storable in
    a ledger snapshot.
    """
    if not isinstance(public_inputs, list):
        raise TypeError("public_inputs must be a list")
    if len(public_inputs) > MAX_PUBLIC_INPUTS:
        raise ValueError("too many public inputs")
    return _detach(public_inputs, "public_inputs")


def _detach(value: Any, name: str) -> Any:
    try:
        copy = cbor2.loads(cbor2.dumps(value))
    except cbor2.CBOREncodeError as exc:
        raise ValueError(f"{name} is not serializable: {exc}") from exc
    if copy != value:
        raise ValueError(f"{name} does not survive CBOR encoding unchanged")
    return copy
