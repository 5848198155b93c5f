"""
Unit tests for ledger transactions, event delivery and CBOR snapshots.
"""

from __future__ import annotations

import cbor2
import pytest

from ..exceptions import LedgerError
from ..ledger import EventLog, Ledger
from ..types import StorageKey

ADMIN_KEY = StorageKey("whitelist", "issuer-whitelist", "admin")
ISSUERS_KEY = StorageKey("whitelist", "issuer-whitelist", "issuers")


def test_commit_applies_writes_and_events() -> None:
    ledger = Ledger()
    with ledger.transaction() as txn:
        txn.set(ADMIN_KEY, "GADMIN")
        txn.emit("wl_init", "GADMIN")
        assert ledger.has(ADMIN_KEY) is False
        assert txn.get(ADMIN_KEY) == "GADMIN"

    assert ledger.get(ADMIN_KEY) == "GADMIN"
    assert [event.tag for event in ledger.events.all()] == ["wl_init"]


def test_exception_discards_writes_and_events() -> None:
    ledger = Ledger()
    with pytest.raises(RuntimeError):
        with ledger.transaction() as txn:
            txn.set(ADMIN_KEY, "GADMIN")
            txn.emit("wl_init", "GADMIN")
            raise RuntimeError("abort")

    assert ledger.has(ADMIN_KEY) is False
    assert len(ledger.events) == 0


def test_nested_transaction_joins_outer() -> None:
    ledger = Ledger()
    with pytest.raises(RuntimeError):
        with ledger.transaction() as outer:
            outer.set(ADMIN_KEY, "GADMIN")
            with ledger.transaction() as inner:
                assert inner is outer
                inner.set(ISSUERS_KEY, ["GISSUER"])
            assert ledger.has(ISSUERS_KEY) is False
            raise RuntimeError("abort outer")

    assert ledger.has(ADMIN_KEY) is False
    assert ledger.has(ISSUERS_KEY) is False


def test_set_requires_storage_key() -> None:
    ledger = Ledger()
    with pytest.raises(TypeError):
        with ledger.transaction() as txn:
            txn.set(("whitelist", "x", "admin"), "GADMIN")


def test_storage_key_rejects_unknown_layout() -> None:
    with pytest.raises(ValueError):
        StorageKey("bank", "x", "balance")
    with pytest.raises(ValueError):
        StorageKey("did", "did:kosmos:1", "balance")


def test_subscribers_see_committed_events_only() -> None:
    seen = []
    log = EventLog()
    log.subscribe(seen.append)
    ledger = Ledger(events=log)

    with pytest.raises(RuntimeError):
        with ledger.transaction() as txn:
            txn.emit("iss_add", "GDROPPED")
            raise RuntimeError("abort")
    with ledger.transaction() as txn:
        txn.emit("iss_add", "GKEPT")

    assert [event.subject for event in seen] == ["GKEPT"]


def test_failing_subscriber_does_not_break_commit(caplog) -> None:
    seen = []
    log = EventLog()

    def explode(event):
        raise RuntimeError("subscriber down")

    log.subscribe(explode)
    log.subscribe(seen.append)
    ledger = Ledger(events=log)

    with ledger.transaction() as txn:
        txn.set(ADMIN_KEY, "GADMIN")
        txn.emit("wl_init", "GADMIN")
        txn.emit("iss_add", "GISSUER")

    assert ledger.get(ADMIN_KEY) == "GADMIN"
    assert [event.tag for event in ledger.events.all()] == ["wl_init", "iss_add"]
    assert [event.tag for event in seen] == ["wl_init", "iss_add"]
    assert "subscriber down" in caplog.text


def test_subscribe_requires_callable() -> None:
    with pytest.raises(TypeError):
        EventLog().subscribe("not callable")


def test_keys_filter_by_kind() -> None:
    ledger = Ledger()
    with ledger.transaction() as txn:
        txn.set(ADMIN_KEY, "GADMIN")
        txn.set(StorageKey("did", "did:kosmos:1", "status"), 1)
    assert ledger.keys("did") == [StorageKey("did", "did:kosmos:1", "status")]
    assert len(ledger.keys()) == 2


def test_snapshot_round_trip(tmp_path) -> None:
    ledger = Ledger()
    with ledger.transaction() as txn:
        txn.set(ADMIN_KEY, "GADMIN")
        txn.set(ISSUERS_KEY, ["GA", "GB"])
        txn.set(StorageKey("did", "did:kosmos:1", "document"), {"pubkey": b"\x01\x02"})
        txn.emit("iss_add", "GA")

    path = tmp_path / "state.cbor"
    ledger.save(path)
    restored = Ledger.load(path)

    assert restored.get(ADMIN_KEY) == "GADMIN"
    assert restored.get(ISSUERS_KEY) == ["GA", "GB"]
    assert restored.get(StorageKey("did", "did:kosmos:1", "document")) == {"pubkey": b"\x01\x02"}
    assert [(e.tag, e.subject) for e in restored.events.all()] == [("iss_add", "GA")]


def test_load_rejects_unknown_version() -> None:
    data = cbor2.dumps({"v": 99, "state": [], "events": []})
    with pytest.raises(LedgerError, match="Unsupported snapshot version"):
        Ledger.from_snapshot(data)


def test_load_rejects_garbage() -> None:
    with pytest.raises(LedgerError):
        Ledger.from_snapshot(b"\xff\xff\xff")
    with pytest.raises(LedgerError):
        Ledger.from_snapshot(cbor2.dumps([1, 2, 3]))


def test_load_rejects_bad_entries() -> None:
    data = cbor2.dumps({"v": 1, "state": [["bank", "x", "balance", 1]], "events": []})
    with pytest.raises(LedgerError):
        Ledger.from_snapshot(data)


def test_load_missing_file(tmp_path) -> None:
    with pytest.raises(LedgerError):
        Ledger.load(tmp_path / "missing.cbor")
