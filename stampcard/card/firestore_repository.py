"""Firestore-backed loyalty card store."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from pydantic import ValidationError

from stampcard.card.repository import SnapshotCallback, Subscription
from stampcard.card.schemas import Card, CardPatch
from stampcard.config import runtime_config

try:  # pragma: no cover - optional dependency
    from google.api_core import exceptions as gcp_exceptions  # type: ignore
    from google.cloud import firestore  # type: ignore
except Exception:  # pragma: no cover - optional dependency
    firestore = None
    gcp_exceptions = None

logger = logging.getLogger(__name__)


class FirestoreCardStore:
    """Cards live at `<collection>/<card_id>`; blocking client calls run in worker threads."""

    def __init__(self, client: Optional[object] = None, collection: Optional[str] = None) -> None:
        if firestore is None:
            raise RuntimeError("google-cloud-firestore not installed")
        if client is None:
            project = runtime_config.get_firestore_project()
            if not project:
                raise RuntimeError("GCP project is required for Firestore card store")
            client = firestore.Client(project=project)  # type: ignore[arg-type]
        self._client = client
        self._collection = collection or runtime_config.get_card_collection()

    def _doc(self, card_id: str):
        return self._client.collection(self._collection).document(card_id)

    async def ready(self) -> None:
        return None

    async def get(self, card_id: str) -> Card | None:
        snap = await asyncio.to_thread(self._doc(card_id).get)
        if not snap or not snap.exists:
            return None
        return Card.from_document(card_id, snap.to_dict() or {})

    async def create_if_absent(self, card_id: str, card: Card) -> bool:
        data = card.to_document()
        data["updatedAt"] = firestore.SERVER_TIMESTAMP
        try:
            await asyncio.to_thread(self._doc(card_id).create, data)
        except gcp_exceptions.Conflict:
            logger.info("Card %s already exists; keeping existing owner", card_id)
            return False
        return True

    async def update(self, card_id: str, patch: CardPatch) -> None:
        fields = patch.to_fields()
        fields["updatedAt"] = firestore.SERVER_TIMESTAMP
        await asyncio.to_thread(self._doc(card_id).update, fields)

    def subscribe(self, card_id: str, on_change: SnapshotCallback) -> Subscription:
        loop = asyncio.get_running_loop()

        def _on_snapshot(doc_snapshots, changes, read_time) -> None:
            card: Card | None = None
            try:
                for snap in doc_snapshots:
                    if snap.exists:
                        card = Card.from_document(card_id, snap.to_dict() or {})
            except ValidationError:
                # every watch callback delivers exactly one result
                logger.exception("Unreadable snapshot for card %s; treating it as not found", card_id)
                card = None
            # watch callbacks arrive on a client thread
            loop.call_soon_threadsafe(on_change, card)

        watch = self._doc(card_id).on_snapshot(_on_snapshot)
        return Subscription(watch.unsubscribe)
