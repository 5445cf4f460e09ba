"""Synchronization core: one subscription, one in-memory card state."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List, Optional

from stampcard.card.repository import CardStore, Subscription
from stampcard.card.schemas import Card, CardPatch, CardState, SyncStatus

logger = logging.getLogger(__name__)

StateListener = Callable[[CardState], Any]


def derive_is_owner(card: Optional[Card], identity: Optional[str]) -> bool:
    if card is None or not identity:
        return False
    return card.owner_identity == identity


class CardSync:
    """Holds the latest delivered snapshot and re-derives access on every delivery.

    Listeners receive the whole new state each time; nothing from a previous
    snapshot is carried over. An absent snapshot is terminal for the session.
    """

    def __init__(self, store: CardStore, card_id: str, identity: str) -> None:
        self._store = store
        self.card_id = card_id
        self.identity = identity
        self._state = CardState(card_id=card_id, identity=identity)
        self._listeners: List[StateListener] = []
        self._first_snapshot = asyncio.Event()
        self._subscription: Optional[Subscription] = None

    @property
    def state(self) -> CardState:
        return self._state

    @property
    def owner_mode(self) -> bool:
        return self._state.status is SyncStatus.synced and self._state.is_owner

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    async def start(self) -> CardState:
        if self._subscription is None:
            self._subscription = self._store.subscribe(self.card_id, self._on_snapshot)
        await self._first_snapshot.wait()
        return self._state

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.close()

    def _on_snapshot(self, card: Optional[Card]) -> None:
        if self._state.status is SyncStatus.not_found:
            return
        if card is None:
            logger.warning("Card %s not found; switching to read-only", self.card_id)
            state = CardState(
                card_id=self.card_id,
                identity=self.identity,
                status=SyncStatus.not_found,
            )
        else:
            state = CardState(
                card_id=self.card_id,
                identity=self.identity,
                status=SyncStatus.synced,
                card=card,
                is_owner=derive_is_owner(card, self.identity),
            )
        self._state = state
        self._first_snapshot.set()
        for listener in list(self._listeners):
            listener(state)

    async def read_latest(self) -> Optional[Card]:
        return await self._store.get(self.card_id)

    async def write(self, patch: CardPatch) -> None:
        await self._store.update(self.card_id, patch)
