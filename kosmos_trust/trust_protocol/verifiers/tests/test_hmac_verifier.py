"""
Unit tests for the HMAC designated-verifier backend.
"""

from __future__ import annotations

import pytest

from ...exceptions import ConfigurationError
from ..hmac_verifier import HmacVerifier

KEY = bytes(range(32))
INPUTS = [700, "vc_hash_123"]


def test_accepts_matching_proof() -> None:
    verifier = HmacVerifier(KEY)
    proof = verifier.prove(INPUTS)
    assert len(proof) == 32
    assert verifier.verify(proof, INPUTS) is True


def test_rejects_proof_for_other_inputs() -> None:
    verifier = HmacVerifier(KEY)
    proof = verifier.prove(INPUTS)
    assert verifier.verify(proof, [701, "vc_hash_123"]) is False


def test_rejects_proof_under_other_key() -> None:
    proof = HmacVerifier(b"\xaa" * 32).prove(INPUTS)
    assert HmacVerifier(KEY).verify(proof, INPUTS) is False


def test_is_deterministic() -> None:
    assert HmacVerifier(KEY).prove(INPUTS) == HmacVerifier(KEY).prove(INPUTS)


@pytest.mark.parametrize("proof", [b"", "not-bytes", b"\x00" * 32])
def test_rejects_malformed_or_wrong_proofs(proof) -> None:
    assert HmacVerifier(KEY).verify(proof, INPUTS) is False


def test_rejects_unencodable_inputs() -> None:
    verifier = HmacVerifier(KEY)
    assert verifier.verify(b"\x00" * 32, [object()]) is False


def test_key_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KOSMOS_VERIFICATION_KEY", KEY.hex())
    assert HmacVerifier().prove(INPUTS) == HmacVerifier(KEY).prove(INPUTS)


def test_missing_env_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("KOSMOS_VERIFICATION_KEY", raising=False)
    with pytest.raises(ConfigurationError):
        HmacVerifier()


def test_non_hex_env_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KOSMOS_VERIFICATION_KEY", "not-hex")
    with pytest.raises(ConfigurationError):
        HmacVerifier()


def test_short_key_rejected() -> None:
    with pytest.raises(ConfigurationError):
        HmacVerifier(b"short")
