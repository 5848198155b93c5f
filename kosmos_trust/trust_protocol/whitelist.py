"""
Issuer authority: the admin-controlled whitelist of trusted issuers.

A single admin, set once by ``initialize``, is the only party allowed to
change the issuer set or hand the admin role to someone else. Membership
queries are total and never fail.
"""

from __future__ import annotations

import logging
from typing import List

from .config import (
    DEFAULT_WHITELIST_INSTANCE,
    EVENT_ADMIN_CHANGED,
    EVENT_ISSUER_ADDED,
    EVENT_ISSUER_REMOVED,
    EVENT_WHITELIST_INITIALIZED,
    KIND_WHITELIST,
)
from .exceptions import ConfigurationError, ConflictError, NotFoundError
from .interfaces import AuthorityProvider
from .ledger import Ledger, Transaction
from .types import Invocation, StorageKey, validate_identity

logger = logging.getLogger(__name__)


class IssuerAuthority:
    """Whitelist of issuer identities guarded by a single admin."""

    def __init__(
        self,
        ledger: Ledger,
        authority: AuthorityProvider,
        instance: str = DEFAULT_WHITELIST_INSTANCE,
    ) -> None:
        self._ledger = ledger
        self._authority = authority
        self.instance = instance
        self._admin_key = StorageKey(KIND_WHITELIST, instance, "admin")
        self._issuers_key = StorageKey(KIND_WHITELIST, instance, "issuers")

    def _require_admin(self, txn: Transaction, operation: str, *args: str) -> str:
        admin = txn.get(self._admin_key)
        if admin is None:
            raise ConfigurationError(f"Whitelist {self.instance} not initialized")
        self._authority.require_authority(
            admin, Invocation(self.instance, operation, args)
        )
        return admin

    def initialize(self, admin: str) -> None:
        """
        Set the admin and start with an empty issuer set.

        Raises:
            ConflictError: If the whitelist is already initialized
        """
        validate_identity(admin, "admin")
        with self._ledger.transaction() as txn:
            if txn.has(self._admin_key):
                raise ConflictError(f"Whitelist {self.instance} already initialized")
            txn.set(self._admin_key, admin)
            txn.set(self._issuers_key, [])
            txn.emit(EVENT_WHITELIST_INITIALIZED, admin)

        logger.info("Initialized whitelist %s (admin %s)", self.instance, admin)

    def add_issuer(self, issuer: str) -> None:
        """
        Add a trusted issuer. Requires the admin's authority.

        Raises:
            AuthorizationError: If the admin did not authorize the call
            ConflictError: If the issuer is already whitelisted
        """
        validate_identity(issuer, "issuer")
        with self._ledger.transaction() as txn:
            self._require_admin(txn, "add_issuer", issuer)

            issuers = list(txn.get(self._issuers_key, []))
            if issuer in issuers:
                raise ConflictError(f"Issuer already whitelisted: {issuer}")

            issuers.append(issuer)
            txn.set(self._issuers_key, issuers)
            txn.emit(EVENT_ISSUER_ADDED, issuer)

        logger.info("Whitelisted issuer %s", issuer)

    def remove_issuer(self, issuer: str) -> None:
        """
        Remove a trusted issuer. Requires the admin's authority.

        Raises:
            AuthorizationError: If the admin did not authorize the call
            NotFoundError: If the issuer is not whitelisted
        """
        validate_identity(issuer, "issuer")
        with self._ledger.transaction() as txn:
            self._require_admin(txn, "remove_issuer", issuer)

            issuers = list(txn.get(self._issuers_key, []))
            if issuer not in issuers:
                raise NotFoundError(f"Issuer not found in whitelist: {issuer}")

            issuers.remove(issuer)
            txn.set(self._issuers_key, issuers)
            txn.emit(EVENT_ISSUER_REMOVED, issuer)

        logger.info("Removed issuer %s", issuer)

    def set_admin(self, new_admin: str) -> None:
        """Hand the admin role to ``new_admin``. Requires the current admin's authority."""
        validate_identity(new_admin, "new_admin")
        with self._ledger.transaction() as txn:
            self._require_admin(txn, "set_admin", new_admin)
            txn.set(self._admin_key, new_admin)
            txn.emit(EVENT_ADMIN_CHANGED, new_admin)

        logger.info("Whitelist %s admin is now %s", self.instance, new_admin)

    def is_whitelisted(self, issuer: str) -> bool:
        if not isinstance(issuer, str):
            return False
        return issuer in self._ledger.get(self._issuers_key, [])

    def get_issuers(self) -> List[str]:
        """Whitelisted issuers in insertion order; empty if never initialized."""
        return list(self._ledger.get(self._issuers_key, []))

    def get_admin(self) -> str:
        admin = self._ledger.get(self._admin_key)
        if admin is None:
            raise ConfigurationError(f"Whitelist {self.instance} not initialized")
        return admin

    def is_initialized(self) -> bool:
        return self._ledger.has(self._admin_key)
