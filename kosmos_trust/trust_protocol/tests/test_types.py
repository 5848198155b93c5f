"""
Unit tests for protocol types and argument validation.
"""

from __future__ import annotations

import pytest

from ..config import INVOCATION_DOMAIN_SEPARATOR
from ..types import (
    DidStatus,
    Event,
    Invocation,
    StorageKey,
    validate_did,
    validate_document,
    validate_identity,
    validate_public_inputs,
)


def test_did_status_values() -> None:
    assert DidStatus(1) is DidStatus.ACTIVE
    assert DidStatus(2) is DidStatus.REVOKED
    with pytest.raises(ValueError):
        DidStatus(3)


def test_storage_key_is_hashable_value() -> None:
    a = StorageKey("did", "did:kosmos:1", "status")
    b = StorageKey("did", "did:kosmos:1", "status")
    assert a == b
    assert {a: 1}[b] == 1
    assert a.as_tuple() == ("did", "did:kosmos:1", "status")


def test_invocation_bytes_are_domain_separated_and_deterministic() -> None:
    first = Invocation("did-registry", "update_document", ("did:kosmos:1", {"b": 2, "a": 1}))
    second = Invocation("did-registry", "update_document", ("did:kosmos:1", {"a": 1, "b": 2}))
    assert first.to_bytes().startswith(INVOCATION_DOMAIN_SEPARATOR)
    assert first.to_bytes() == second.to_bytes()


def test_invocation_bytes_differ_per_operation() -> None:
    add = Invocation("issuer-whitelist", "add_issuer", ("GISSUER",))
    remove = Invocation("issuer-whitelist", "remove_issuer", ("GISSUER",))
    other = Invocation("bureau-b", "add_issuer", ("GISSUER",))
    assert len({add.to_bytes(), remove.to_bytes(), other.to_bytes()}) == 3


def test_event_dict_round_trip() -> None:
    event = Event(tag="zkp_verify", subject="GISSUER", payload=[700], timestamp=1.5)
    assert Event.from_dict(event.to_dict()) == event


def test_event_from_dict_requires_fields() -> None:
    with pytest.raises(ValueError):
        Event.from_dict({"tag": "iss_add"})


def test_validate_identity() -> None:
    assert validate_identity("GADMIN") == "GADMIN"
    with pytest.raises(TypeError):
        validate_identity(42)
    with pytest.raises(ValueError):
        validate_identity("")
    with pytest.raises(ValueError):
        validate_identity("G" * 257)


def test_validate_did() -> None:
    assert validate_did("did:kosmos:1") == "did:kosmos:1"
    with pytest.raises(TypeError):
        validate_did(b"did:kosmos:1")
    with pytest.raises(ValueError):
        validate_did("d" * 257)


def test_validate_document_preserves_order_and_detaches() -> None:
    source = {"z": 1, "a": {"nested": [1, 2]}}
    copy = validate_document(source)
    assert list(copy) == ["z", "a"]
    assert copy == source
    copy["a"]["nested"].append(3)
    assert source["a"]["nested"] == [1, 2]


def test_validate_document_entry_limit() -> None:
    with pytest.raises(ValueError, match="too many entries"):
        validate_document({f"k{i}": i for i in range(65)})


def test_validate_document_rejects_values_changed_by_encoding() -> None:
    with pytest.raises(ValueError, match="unchanged"):
        validate_document({"keys": ("GA", "GB")})
    with pytest.raises(ValueError, match="not serializable"):
        validate_document({"fn": object()})


def test_validate_public_inputs() -> None:
    inputs = [700, "vc_hash_123", {"age": 21}]
    copy = validate_public_inputs(inputs)
    assert copy == inputs
    copy[2]["age"] = 99
    assert inputs[2]["age"] == 21

    with pytest.raises(TypeError):
        validate_public_inputs((700,))
    with pytest.raises(ValueError, match="too many"):
        validate_public_inputs(list(range(65)))
    with pytest.raises(ValueError, match="unchanged"):
        validate_public_inputs([(1, 2)])
