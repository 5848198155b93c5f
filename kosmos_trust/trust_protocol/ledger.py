"""
Transactional key-value ledger with an append-only event log.

Stands in for the host's durable storage. Every public service operation
runs inside ``Ledger.transaction()``: writes and events are staged on the
transaction and applied together when the block exits normally. An exception
discards the whole unit.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

import cbor2

from .config import SNAPSHOT_VERSION
from .exceptions import LedgerError
from .types import Event, StorageKey

logger = logging.getLogger(__name__)

EventSubscriber = Callable[[Event], None]

_MISSING = object()


class EventLog:
    """Append-only event broadcast. Subscribers observe; the core never reads back."""

    def __init__(self) -> None:
        self._events: List[Event] = []
        self._subscribers: List[EventSubscriber] = []

    def subscribe(self, subscriber: EventSubscriber) -> None:
        if not callable(subscriber):
            raise TypeError("subscriber must be callable")
        self._subscribers.append(subscriber)

    def publish(self, *events: Event) -> None:
        """
        Append events, then notify subscribers.

        A failing subscriber is logged and skipped. Events are already part of
        the committed log when subscribers run.
        """
        self._events.extend(events)
        for event in events:
            for subscriber in list(self._subscribers):
                try:
                    subscriber(event)
                except Exception:
                    logger.exception(
                        "Event subscriber %r failed on %s", subscriber, event.tag
                    )

    def all(self) -> List[Event]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)


class Transaction:
    """Staged writes and events for one atomic unit."""

    def __init__(self, ledger: "Ledger") -> None:
        self._ledger = ledger
        self._writes: Dict[StorageKey, Any] = {}
        self._events: List[Event] = []

    def has(self, key: StorageKey) -> bool:
        if key in self._writes:
            return True
        return self._ledger.has(key)

    def get(self, key: StorageKey, default: Any = None) -> Any:
        value = self._writes.get(key, _MISSING)
        if value is not _MISSING:
            return value
        return self._ledger.get(key, default)

    def set(self, key: StorageKey, value: Any) -> None:
        if not isinstance(key, StorageKey):
            raise TypeError("key must be StorageKey")
        self._writes[key] = value

    def emit(self, tag: str, subject: str, payload: Any = None) -> None:
        self._events.append(Event(tag=tag, subject=subject, payload=payload))

    @property
    def pending_writes(self) -> int:
        return len(self._writes)


class Ledger:
    """
    In-memory ledger keyed by StorageKey.

    Transactions are serialized by a re-entrant lock. A transaction opened
    while another is active on the same thread joins the outer unit, so a
    service calling another service on the same ledger commits once.

    Example:
        >>> ledger = Ledger()
        >>> with ledger.transaction() as txn:
        ...     txn.set(StorageKey("gate", "proof-gate", "admin"), "GADMIN")
        >>> ledger.get(StorageKey("gate", "proof-gate", "admin"))
        'GADMIN'
    """

    def __init__(self, events: Optional[EventLog] = None) -> None:
        self._data: Dict[StorageKey, Any] = {}
        self._lock = threading.RLock()
        self._active: Optional[Transaction] = None
        self.events = events if events is not None else EventLog()

    def has(self, key: StorageKey) -> bool:
        return key in self._data

    def get(self, key: StorageKey, default: Any = None) -> Any:
        return self._data.get(key, default)

    def keys(self, kind: Optional[str] = None) -> List[StorageKey]:
        return [key for key in self._data if kind is None or key.kind == kind]

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        with self._lock:
            if self._active is not None:
                yield self._active
                return

            txn = Transaction(self)
            self._active = txn
            try:
                yield txn
            except BaseException:
                logger.debug(
                    "Transaction aborted, discarding %d staged writes",
                    txn.pending_writes,
                )
                raise
            else:
                self._commit(txn)
            finally:
                self._active = None

    def _commit(self, txn: Transaction) -> None:
        self._data.update(txn._writes)
        self.events.publish(*txn._events)
        logger.debug(
            "Committed %d writes, %d events", len(txn._writes), len(txn._events)
        )

    # ========================================================================
    # SNAPSHOTS (CBOR)
    # ========================================================================

    def to_snapshot(self) -> bytes:
        entries = [[*key.as_tuple(), value] for key, value in self._data.items()]
        data = {
            "v": SNAPSHOT_VERSION,
            "state": entries,
            "events": [event.to_dict() for event in self.events.all()],
        }
        try:
            return cbor2.dumps(data)
        except cbor2.CBOREncodeError as exc:
            raise LedgerError(f"Failed to serialize ledger: {exc}") from exc

    @classmethod
    def from_snapshot(cls, data: bytes) -> "Ledger":
        try:
            obj = cbor2.loads(data)
        except cbor2.CBORDecodeError as exc:
            raise LedgerError(f"Failed to deserialize ledger: {exc}") from exc

        if not isinstance(obj, dict):
            raise LedgerError("Invalid snapshot format")
        version = obj.get("v")
        if version != SNAPSHOT_VERSION:
            raise LedgerError(
                f"Unsupported snapshot version: {version} "
                f"(expected {SNAPSHOT_VERSION})"
            )

        ledger = cls()
        try:
            for kind, entity_id, field_tag, value in obj.get("state", []):
                ledger._data[StorageKey(kind, entity_id, field_tag)] = value
            for raw in obj.get("events", []):
                ledger.events._events.append(Event.from_dict(raw))
        except (TypeError, ValueError) as exc:
            raise LedgerError(f"Invalid snapshot entry: {exc}") from exc
        return ledger

    def save(self, path: Union[str, Path]) -> None:
        target = Path(path)
        payload = self.to_snapshot()
        tmp = target.with_name(target.name + ".tmp")
        try:
            tmp.write_bytes(payload)
            tmp.replace(target)
        except OSError as exc:
            raise LedgerError(f"Failed to write snapshot {target}: {exc}") from exc
        logger.info("Saved ledger snapshot to %s", target)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Ledger":
        source = Path(path)
        try:
            data = source.read_bytes()
        except OSError as exc:
            raise LedgerError(f"Failed to read snapshot {source}: {exc}") from exc
        return cls.from_snapshot(data)
