"""
Keyed HMAC proof verifier.

A designated-verifier stand-in for a SNARK verifier: a proof is valid when
it equals HMAC-SHA256(verification_key, domain_sep || CBOR(public_inputs)).
Whoever holds the verification key can also produce proofs, so this backend
fits deployments where the issuer and the verifier share the key.
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

import cbor2
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac

from ..config import VERIFIER_DOMAIN_SEPARATOR
from ..exceptions import ConfigurationError
from ..interfaces import ProofVerifier

VERIFICATION_KEY_ENV_VAR = "KOSMOS_VERIFICATION_KEY"
MIN_KEY_BYTES = 32


def _load_key_from_env() -> bytes:
    value = os.getenv(VERIFICATION_KEY_ENV_VAR)
    if not value:
        raise ConfigurationError(
            f"{VERIFICATION_KEY_ENV_VAR} is not set; the hmac verifier needs a key"
        )
    try:
        return bytes.fromhex(value)
    except ValueError as exc:
        raise ConfigurationError(f"{VERIFICATION_KEY_ENV_VAR} must be hex") from exc


def _message(public_inputs: List[Any]) -> bytes:
    return VERIFIER_DOMAIN_SEPARATOR + cbor2.dumps(list(public_inputs), canonical=True)


class HmacVerifier(ProofVerifier):
    """HMAC-SHA256 designated-verifier proofs."""

    _BACKEND_NAME = "hmac"

    def __init__(self, verification_key: Optional[bytes] = None) -> None:
        key = verification_key if verification_key is not None else _load_key_from_env()
        if not isinstance(key, (bytes, bytearray)):
            raise TypeError("verification_key must be bytes")
        if len(key) < MIN_KEY_BYTES:
            raise ConfigurationError(
                f"verification key must be at least {MIN_KEY_BYTES} bytes"
            )
        self._key = bytes(key)

    @property
    def backend_name(self) -> str:
        return self._BACKEND_NAME

    def prove(self, public_inputs: List[Any]) -> bytes:
        """Produce the proof this verifier accepts for ``public_inputs``."""
        mac = hmac.HMAC(self._key, hashes.SHA256())
        mac.update(_message(public_inputs))
        return mac.finalize()

    def verify(self, proof: bytes, public_inputs: List[Any]) -> bool:
        if not isinstance(proof, (bytes, bytearray)) or not proof:
            return False
        try:
            message = _message(public_inputs)
        except (cbor2.CBOREncodeError, TypeError):
            return False

        mac = hmac.HMAC(self._key, hashes.SHA256())
        mac.update(message)
        try:
            mac.verify(bytes(proof))
        except InvalidSignature:
            return False
        return True

    def get_backend_info(self) -> Dict[str, Any]:
        return {
            "name": self.backend_name,
            "hash": "SHA-256",
            "security": "designated_verifier",
        }
