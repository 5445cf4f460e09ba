"""Storage abstractions for loyalty card documents."""
from __future__ import annotations

import copy
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from stampcard.card.errors import CardNotFound
from stampcard.card.schemas import Card, CardPatch
from stampcard.config import runtime_config

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[Optional[Card]], Any]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Subscription:
    """Handle for a live card subscription."""

    def __init__(self, on_close: Callable[[], None]) -> None:
        self._on_close = on_close
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._on_close()


class CardStore(Protocol):
    async def ready(self) -> None:
        ...

    async def get(self, card_id: str) -> Card | None:
        ...

    async def create_if_absent(self, card_id: str, card: Card) -> bool:
        ...

    async def update(self, card_id: str, patch: CardPatch) -> None:
        ...

    def subscribe(self, card_id: str, on_change: SnapshotCallback) -> Subscription:
        ...


class InMemoryCardStore:
    """In-memory card documents with synchronous change fan-out."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._subscribers: Dict[str, List[Tuple[str, SnapshotCallback]]] = {}
        self._clock = clock or _utc_now

    async def ready(self) -> None:
        return None

    def _snapshot(self, card_id: str) -> Card | None:
        data = self._docs.get(card_id)
        if data is None:
            return None
        return Card.from_document(card_id, copy.deepcopy(data))

    def _next_timestamp(self, previous: Optional[datetime]) -> datetime:
        now = self._clock()
        if previous is not None and now <= previous:
            now = previous + timedelta(microseconds=1)
        return now

    def _notify(self, card_id: str) -> None:
        for sub_id, callback in list(self._subscribers.get(card_id, [])):
            try:
                callback(self._snapshot(card_id))
            except Exception:
                logger.exception("Card subscriber %s failed for card %s", sub_id, card_id)

    async def get(self, card_id: str) -> Card | None:
        return self._snapshot(card_id)

    async def create_if_absent(self, card_id: str, card: Card) -> bool:
        if card_id in self._docs:
            return False
        doc = card.to_document()
        doc["updatedAt"] = self._next_timestamp(None)
        self._docs[card_id] = doc
        self._notify(card_id)
        return True

    async def update(self, card_id: str, patch: CardPatch) -> None:
        current = self._docs.get(card_id)
        if current is None:
            raise CardNotFound(f"card {card_id} not found")
        merged = {**current, **patch.to_fields()}
        merged["updatedAt"] = self._next_timestamp(current.get("updatedAt"))
        self._docs[card_id] = merged
        self._notify(card_id)

    async def delete(self, card_id: str) -> bool:
        """Out-of-band removal; the ledger itself never deletes cards."""
        removed = self._docs.pop(card_id, None) is not None
        if removed:
            self._notify(card_id)
        return removed

    def subscribe(self, card_id: str, on_change: SnapshotCallback) -> Subscription:
        sub_id = uuid.uuid4().hex
        self._subscribers.setdefault(card_id, []).append((sub_id, on_change))

        def _close() -> None:
            subs = self._subscribers.get(card_id, [])
            self._subscribers[card_id] = [(sid, cb) for sid, cb in subs if sid != sub_id]

        subscription = Subscription(_close)
        on_change(self._snapshot(card_id))
        return subscription


def card_store_from_env() -> CardStore:
    backend = runtime_config.get_card_backend()
    if backend == "firestore":
        try:
            from stampcard.card.firestore_repository import FirestoreCardStore

            return FirestoreCardStore()
        except Exception as e:
            raise RuntimeError(f"Failed to initialize FirestoreCardStore: {e}")
    if backend == "memory":
        return InMemoryCardStore()
    raise RuntimeError(f"LOYALTY_CARD_BACKEND must be 'memory' or 'firestore'. Got: '{backend}'")
