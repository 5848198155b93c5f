"""
Identity registry: DID -> (controller, document, status).

Record lifecycle:
    NonExistent --register--> ACTIVE --revoke--> REVOKED (terminal)
    update_document is a self-loop on ACTIVE only.

Records are never deleted. The controller is fixed at registration and is
the only party that can update or revoke the record.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from .config import (
    EVENT_DID_REGISTERED,
    EVENT_DID_REVOKED,
    EVENT_DID_UPDATED,
    EVENT_DOCUMENT_UPDATED,
    KIND_DID,
)
from .exceptions import ConflictError, NotFoundError, StateError
from .interfaces import AuthorityProvider
from .ledger import Ledger, Transaction
from .types import (
    DidStatus,
    Invocation,
    StorageKey,
    validate_did,
    validate_document,
    validate_identity,
)

logger = logging.getLogger(__name__)

REGISTRY_CONTRACT = "did-registry"


def _key(did: str, field: str) -> StorageKey:
    return StorageKey(KIND_DID, did, field)


class IdentityRegistry:
    """Owns DID records and enforces controller-only mutation."""

    def __init__(self, ledger: Ledger, authority: AuthorityProvider) -> None:
        self._ledger = ledger
        self._authority = authority

    def _invocation(self, operation: str, *args: Any) -> Invocation:
        return Invocation(REGISTRY_CONTRACT, operation, args)

    def _require_controller(self, txn: Transaction, did: str) -> str:
        controller = txn.get(_key(did, "controller"))
        if controller is None:
            raise NotFoundError(f"DID not found: {did}")
        return controller

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    def register(self, controller: str, did: str, document: Dict[str, Any]) -> None:
        """
        Register a new DID controlled by ``controller``.

        Args:
            controller: Identity that will control the record; must authorize
                the call
            did: Identifier to register
            document: Label -> value mapping (public keys, service endpoints)

        Raises:
            ConflictError: If the DID is already registered
            AuthorizationError: If ``controller`` did not authorize the call
        """
        validate_identity(controller, "controller")
        validate_did(did)
        stored_document = validate_document(document)

        with self._ledger.transaction() as txn:
            if txn.has(_key(did, "controller")):
                raise ConflictError(f"DID already registered: {did}")

            self._authority.require_authority(
                controller, self._invocation("register", controller, did, stored_document)
            )

            txn.set(_key(did, "controller"), controller)
            txn.set(_key(did, "document"), stored_document)
            txn.set(_key(did, "status"), DidStatus.ACTIVE.value)
            txn.emit(EVENT_DID_REGISTERED, did, controller)

        logger.info("Registered %s (controller %s)", did, controller)

    def update_document(self, did: str, new_document: Dict[str, Any]) -> None:
        """
        Replace the document of an active DID.

        Raises:
            NotFoundError: If the DID is not registered
            AuthorizationError: If the controller did not authorize the call
            StateError: If the DID has been revoked
        """
        validate_did(did)
        stored_document = validate_document(new_document)

        with self._ledger.transaction() as txn:
            controller = self._require_controller(txn, did)
            self._authority.require_authority(
                controller, self._invocation("update_document", did, stored_document)
            )

            status = DidStatus(txn.get(_key(did, "status")))
            if status is not DidStatus.ACTIVE:
                raise StateError(f"Cannot update a revoked DID: {did}")

            txn.set(_key(did, "document"), stored_document)
            txn.emit(EVENT_DID_UPDATED, did, EVENT_DOCUMENT_UPDATED)

        logger.info("Updated document of %s", did)

    def revoke(self, did: str) -> None:
        """
        Permanently revoke a DID.

        Revoking an already revoked DID is rejected with StateError, the same
        way document updates on a revoked DID are.

        Raises:
            NotFoundError: If the DID is not registered
            AuthorizationError: If the controller did not authorize the call
            StateError: If the DID is already revoked
        """
        validate_did(did)

        with self._ledger.transaction() as txn:
            controller = self._require_controller(txn, did)
            self._authority.require_authority(
                controller, self._invocation("revoke", did)
            )

            status = DidStatus(txn.get(_key(did, "status")))
            if status is DidStatus.REVOKED:
                raise StateError(f"DID already revoked: {did}")

            txn.set(_key(did, "status"), DidStatus.REVOKED.value)
            txn.emit(EVENT_DID_REVOKED, did, controller)

        logger.info("Revoked %s", did)

    # ========================================================================
    # READS
    # ========================================================================

    def resolve(self, did: str) -> Tuple[DidStatus, Dict[str, Any]]:
        """Return ``(status, document)`` for a registered DID."""
        validate_did(did)
        if not self._ledger.has(_key(did, "controller")):
            raise NotFoundError(f"DID not found: {did}")

        status = DidStatus(self._ledger.get(_key(did, "status")))
        document = validate_document(self._ledger.get(_key(did, "document")))
        logger.debug("Resolved %s (%s)", did, status.name)
        return status, document

    def get_controller(self, did: str) -> str:
        validate_did(did)
        controller = self._ledger.get(_key(did, "controller"))
        if controller is None:
            raise NotFoundError(f"DID not found: {did}")
        return controller

    def exists(self, did: str) -> bool:
        return self._ledger.has(_key(validate_did(did), "controller"))
