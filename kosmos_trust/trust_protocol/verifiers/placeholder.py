"""
Placeholder proof verifier.

WARNING: This is NOT cryptographic verification. It accepts any non-empty
proof with non-empty public inputs and exists so the gate can be exercised
without a real SNARK verifier.
"""

from __future__ import annotations

from typing import Any, Dict, List

from ..interfaces import ProofVerifier


class PlaceholderVerifier(ProofVerifier):
    """Accepts a proof when both the proof and its public inputs are non-empty."""

    _BACKEND_NAME = "placeholder"

    @property
    def backend_name(self) -> str:
        return self._BACKEND_NAME

    def verify(self, proof: bytes, public_inputs: List[Any]) -> bool:
        if not isinstance(proof, (bytes, bytearray)):
            return False
        if not isinstance(public_inputs, list):
            return False
        return len(proof) > 0 and len(public_inputs) > 0

    def get_backend_info(self) -> Dict[str, Any]:
        return {
            "name": self.backend_name,
            "security": "none",
        }
