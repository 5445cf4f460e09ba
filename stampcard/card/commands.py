"""Owner mutation commands: read latest, compute, partial write.

No version token travels with the write, so two owner sessions racing on the
same card can overwrite each other's points or rewards (last write wins for
the fields it touches).
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from stampcard.card import ledger
from stampcard.card.errors import PreconditionFailure, ValidationFailure
from stampcard.card.interaction import Interaction
from stampcard.card.locator import random_id
from stampcard.card.schemas import CardPatch, MutationOutcome
from stampcard.card.sync import CardSync

logger = logging.getLogger(__name__)

RESET_CONFIRM = "Reset the points and the reward list?"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def delete_confirm(name: str) -> str:
    return f'Delete "{name}"?'


def redeem_confirm(name: str, cost: int) -> str:
    return f'Redeem "{name}" for {cost} points?'


class CardCommands:
    def __init__(
        self,
        sync: CardSync,
        ui: Interaction,
        id_fn: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._sync = sync
        self._ui = ui
        self._id_fn = id_fn or random_id
        self._clock = clock or _utc_now

    def _permitted(self, action: str) -> bool:
        if self._sync.owner_mode:
            return True
        logger.warning(
            "Ignoring %s on card %s: session is %s (owner=%s)",
            action,
            self._sync.card_id,
            self._sync.state.status.value,
            self._sync.state.is_owner,
        )
        return False

    def _reject(self, exc: Exception) -> MutationOutcome:
        self._ui.alert(str(exc))
        return MutationOutcome.rejected

    async def _change_points(self, action: str, delta: int) -> MutationOutcome:
        if not self._permitted(action):
            return MutationOutcome.inert
        card = await self._sync.read_latest()
        if card is None:
            logger.warning("Card %s vanished before %s", self._sync.card_id, action)
            return MutationOutcome.inert
        await self._sync.write(CardPatch(points=ledger.apply_point_delta(card.points, delta)))
        return MutationOutcome.applied

    async def add_point(self) -> MutationOutcome:
        return await self._change_points("add_point", 1)

    async def subtract_point(self) -> MutationOutcome:
        return await self._change_points("subtract_point", -1)

    async def reset(self) -> MutationOutcome:
        if not self._permitted("reset"):
            return MutationOutcome.inert
        if not self._ui.confirm(RESET_CONFIRM):
            return MutationOutcome.cancelled
        await self._sync.write(CardPatch(points=0, rewards=[]))
        return MutationOutcome.applied

    async def _save_image_url(self, action: str, raw: Optional[str], field: str) -> MutationOutcome:
        if not self._permitted(action):
            return MutationOutcome.inert
        try:
            url = ledger.validate_image_url(raw)
        except ValidationFailure as exc:
            return self._reject(exc)
        await self._sync.write(CardPatch(**{field: url}))
        return MutationOutcome.applied

    async def save_banner_url(self, raw: Optional[str]) -> MutationOutcome:
        return await self._save_image_url("save_banner_url", raw, "banner_image_url")

    async def save_stamp_url(self, raw: Optional[str]) -> MutationOutcome:
        return await self._save_image_url("save_stamp_url", raw, "stamp_image_url")

    async def add_reward(self, name: Optional[str], cost: Any, note: Optional[str] = None) -> MutationOutcome:
        if not self._permitted("add_reward"):
            return MutationOutcome.inert
        try:
            clean_name = ledger.validate_reward_name(name)
            clean_cost = ledger.parse_reward_cost(cost)
        except ValidationFailure as exc:
            return self._reject(exc)
        card = await self._sync.read_latest()
        if card is None:
            logger.warning("Card %s vanished before add_reward", self._sync.card_id)
            return MutationOutcome.inert
        rewards = ledger.prepend_reward(
            card.reward_entries,
            name=clean_name,
            cost=clean_cost,
            note=(note or "").strip(),
            id_fn=self._id_fn,
            created_at_ms=int(self._clock().timestamp() * 1000),
        )
        await self._sync.write(CardPatch(rewards=rewards))
        return MutationOutcome.applied

    async def redeem_reward(self, reward_id: str) -> MutationOutcome:
        if not self._permitted("redeem_reward"):
            return MutationOutcome.inert
        card = await self._sync.read_latest()
        reward = card.find_reward(reward_id) if card else None
        if reward is None:
            return MutationOutcome.inert
        try:
            remaining = ledger.redeem_points(card.points, reward)
        except PreconditionFailure as exc:
            return self._reject(exc)
        if not self._ui.confirm(redeem_confirm(reward.name, reward.cost)):
            return MutationOutcome.cancelled
        await self._sync.write(CardPatch(points=remaining))
        return MutationOutcome.applied

    async def delete_reward(self, reward_id: str) -> MutationOutcome:
        if not self._permitted("delete_reward"):
            return MutationOutcome.inert
        card = await self._sync.read_latest()
        reward = card.find_reward(reward_id) if card else None
        if reward is None:
            return MutationOutcome.inert
        if not self._ui.confirm(delete_confirm(reward.name)):
            return MutationOutcome.cancelled
        await self._sync.write(CardPatch(rewards=ledger.remove_reward(card.reward_entries, reward_id)))
        return MutationOutcome.applied
