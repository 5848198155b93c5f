"""
Unit tests for choosing and building the gate's verifier backend.
"""

from __future__ import annotations

import sys

import pytest

from ...exceptions import ConfigurationError
from ...interfaces import ProofVerifier
from .. import VERIFIER_BACKENDS, load_verifier, select_backend

HMAC_MODULE = "kosmos_trust.trust_protocol.verifiers.hmac_verifier"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("KOSMOS_VERIFIER_BACKEND", raising=False)
    monkeypatch.delenv("KOSMOS_VERIFICATION_KEY", raising=False)


def test_placeholder_is_the_fallback() -> None:
    assert select_backend() == "placeholder"
    assert select_backend("") == "placeholder"


def test_env_var_used_when_nothing_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KOSMOS_VERIFIER_BACKEND", "hmac")
    assert select_backend() == "hmac"
    assert select_backend("placeholder") == "placeholder"


@pytest.mark.parametrize("name", ["groth16", "HMAC"])
def test_unknown_backend_names_the_choices(name: str) -> None:
    with pytest.raises(ConfigurationError, match="hmac, placeholder"):
        select_backend(name)


def test_unknown_env_backend_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KOSMOS_VERIFIER_BACKEND", "mock")
    with pytest.raises(ConfigurationError):
        load_verifier()


def test_every_backend_builds_a_verifier(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KOSMOS_VERIFICATION_KEY", "11" * 32)
    for name in VERIFIER_BACKENDS:
        verifier = load_verifier(name)
        assert isinstance(verifier, ProofVerifier)
        assert verifier.backend_name == name


def test_hmac_without_key_is_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="KOSMOS_VERIFICATION_KEY"):
        load_verifier("hmac")


def test_placeholder_does_not_import_hmac_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delitem(sys.modules, HMAC_MODULE, raising=False)
    load_verifier("placeholder")
    assert HMAC_MODULE not in sys.modules
