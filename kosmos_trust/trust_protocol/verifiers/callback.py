"""Adapter turning a plain function into a ProofVerifier."""

from __future__ import annotations

from typing import Any, Callable, List

from ..interfaces import ProofVerifier

VerifyFunction = Callable[[bytes, List[Any]], bool]


class CallbackVerifier(ProofVerifier):
    """
    Wrap ``fn(proof, public_inputs) -> bool``.

    ``calls`` counts invocations, which makes it convenient to assert that
    the gate never reached the verifier.
    """

    def __init__(self, fn: VerifyFunction, name: str = "callback") -> None:
        if not callable(fn):
            raise TypeError("fn must be callable")
        self._fn = fn
        self._name = name
        self.calls = 0

    @property
    def backend_name(self) -> str:
        return self._name

    def verify(self, proof: bytes, public_inputs: List[Any]) -> bool:
        self.calls += 1
        return bool(self._fn(proof, public_inputs))
