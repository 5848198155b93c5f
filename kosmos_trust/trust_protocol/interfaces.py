"""
Interfaces for the collaborators the trust protocol depends on.

- ProofVerifier: pluggable proof verification routine
- AuthorityProvider: host capability "does the acting party hold authority X"
- WhitelistReader: the issuer-trust query the proof gate consumes
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Protocol, runtime_checkable

from .exceptions import AuthorizationError
from .types import Invocation


class ProofVerifier(ABC):
    """
    Verification routine contract: ``(proof, public_inputs) -> bool``.

    Implementations must be stateless and deterministic given their inputs
    and the verification key they were built with. Returning False is a
    normal outcome; raising is reserved for misuse.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        ...

    @abstractmethod
    def verify(self, proof: bytes, public_inputs: List[Any]) -> bool:
        ...

    def get_backend_info(self) -> Dict[str, Any]:
        return {"name": self.backend_name}


class AuthorityProvider(ABC):
    """Checks that ``party`` authorized ``invocation``; raises AuthorizationError otherwise."""

    @abstractmethod
    def require_authority(self, party: str, invocation: Invocation) -> None:
        ...

    def verify_acting_party(self, party: str, invocation: Invocation) -> bool:
        try:
            self.require_authority(party, invocation)
        except AuthorizationError:
            return False
        return True


@runtime_checkable
class WhitelistReader(Protocol):
    def is_whitelisted(self, issuer: str) -> bool:
        ...
