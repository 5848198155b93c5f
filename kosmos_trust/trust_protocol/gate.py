"""
Proof gate: accepts a proof only from a whitelisted issuer.

Issuer trust and cryptographic validity are separate checks. The gate holds
a handle to an issuer whitelist (resolved through a ServiceDirectory on every
call, never cached) and a pluggable ProofVerifier. An untrusted issuer is
rejected before the verifier is ever invoked.
"""

from __future__ import annotations

import logging
from typing import Any, List

from .config import (
    DEFAULT_GATE_INSTANCE,
    EVENT_GATE_INITIALIZED,
    EVENT_GATE_REFERENCE_CHANGED,
    EVENT_PROOF_VERIFIED,
    KIND_GATE,
    MAX_PROOF_BYTES,
)
from .directory import ServiceDirectory
from .exceptions import AuthorizationError, ConfigurationError, ConflictError
from .interfaces import AuthorityProvider, ProofVerifier
from .ledger import Ledger
from .types import Invocation, StorageKey, validate_identity, validate_public_inputs

logger = logging.getLogger(__name__)


class ProofGate:
    """Composes an issuer whitelist check with a proof verifier."""

    def __init__(
        self,
        ledger: Ledger,
        authority: AuthorityProvider,
        directory: ServiceDirectory,
        verifier: ProofVerifier,
        instance: str = DEFAULT_GATE_INSTANCE,
    ) -> None:
        if not isinstance(verifier, ProofVerifier):
            raise TypeError("verifier must implement ProofVerifier")
        self._ledger = ledger
        self._authority = authority
        self._directory = directory
        self._verifier = verifier
        self.instance = instance
        self._ref_key = StorageKey(KIND_GATE, instance, "authority_ref")
        self._admin_key = StorageKey(KIND_GATE, instance, "admin")

    @property
    def verifier(self) -> ProofVerifier:
        return self._verifier

    def initialize(self, issuer_authority_ref: str, admin: str) -> None:
        """
        Point the gate at an issuer whitelist.

        Args:
            issuer_authority_ref: Directory handle of the whitelist to consult
            admin: Identity allowed to repoint the gate later

        Raises:
            ConflictError: If the gate already has a reference
        """
        validate_identity(issuer_authority_ref, "issuer_authority_ref")
        validate_identity(admin, "admin")
        with self._ledger.transaction() as txn:
            if txn.has(self._ref_key):
                raise ConflictError(f"Gate {self.instance} already initialized")
            txn.set(self._ref_key, issuer_authority_ref)
            txn.set(self._admin_key, admin)
            txn.emit(EVENT_GATE_INITIALIZED, issuer_authority_ref, admin)

        logger.info(
            "Initialized gate %s -> %s (admin %s)",
            self.instance,
            issuer_authority_ref,
            admin,
        )

    def set_issuer_authority_reference(self, new_ref: str) -> None:
        """
        Repoint the gate at another whitelist. Requires the gate admin's authority.

        Raises:
            ConfigurationError: If the gate was never initialized
            AuthorizationError: If the gate admin did not authorize the call
        """
        validate_identity(new_ref, "issuer_authority_ref")
        with self._ledger.transaction() as txn:
            admin = txn.get(self._admin_key)
            if admin is None:
                raise ConfigurationError(f"Gate {self.instance} not initialized")
            self._authority.require_authority(
                admin,
                Invocation(self.instance, "set_issuer_authority_reference", (new_ref,)),
            )
            txn.set(self._ref_key, new_ref)
            txn.emit(EVENT_GATE_REFERENCE_CHANGED, new_ref, admin)

        logger.info("Gate %s now consults %s", self.instance, new_ref)

    def verify_proof(self, issuer: str, proof: bytes, public_inputs: List[Any]) -> bool:
        """
        Verify a proof submitted on behalf of ``issuer``.

        Returns:
            The verifier's verdict. False is a normal outcome, distinct from an
            untrusted issuer.

        Raises:
            ConfigurationError: If the gate has no whitelist reference
            AuthorizationError: If the issuer is not whitelisted
        """
        validate_identity(issuer, "issuer")
        if not isinstance(proof, (bytes, bytearray)):
            raise TypeError("proof must be bytes")
        if len(proof) > MAX_PROOF_BYTES:
            raise ValueError("proof too large")
        public_inputs = validate_public_inputs(public_inputs)

        with self._ledger.transaction() as txn:
            ref = txn.get(self._ref_key)
            if ref is None:
                raise ConfigurationError(
                    f"Gate {self.instance} has no issuer authority reference"
                )

            whitelist = self._directory.resolve(ref)
            if not whitelist.is_whitelisted(issuer):
                logger.warning("Rejected proof from untrusted issuer %s", issuer)
                raise AuthorizationError(f"Issuer is not trusted: {issuer}")

            is_valid = bool(self._verifier.verify(bytes(proof), list(public_inputs)))
            if is_valid:
                txn.emit(EVENT_PROOF_VERIFIED, issuer, list(public_inputs))

        if is_valid:
            logger.info("Verified proof from %s", issuer)
        else:
            logger.warning(
                "Proof from %s failed %s verification",
                issuer,
                self._verifier.backend_name,
            )
        return is_valid

    def get_issuer_authority_reference(self) -> str:
        ref = self._ledger.get(self._ref_key)
        if ref is None:
            raise ConfigurationError(f"Gate {self.instance} not initialized")
        return ref

    def get_admin(self) -> str:
        admin = self._ledger.get(self._admin_key)
        if admin is None:
            raise ConfigurationError(f"Gate {self.instance} not initialized")
        return admin
