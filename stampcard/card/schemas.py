"""Schemas for the shared loyalty card document and its projected view."""
from __future__ import annotations

import copy
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator

logger = logging.getLogger(__name__)


def _coerce_points(value: Any) -> int:
    try:
        return max(0, int(float(value or 0)))
    except (TypeError, ValueError):
        return 0


class Reward(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    cost: int = Field(..., gt=0)
    note: str = ""
    created_at: int = Field(default=0, alias="createdAt")

    @field_validator("note", mode="before")
    @classmethod
    def _note_default(cls, value: Any) -> str:
        return value or ""


class Card(BaseModel):
    """One loyalty card; the document key is `id`, everything else is stored."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    owner_identity: str = Field(..., alias="ownerIdentity")
    points: int = 0
    rewards: List[Reward] = Field(default_factory=list)
    banner_image_url: str = Field(default="", alias="bannerImageUrl")
    stamp_image_url: str = Field(default="", alias="stampImageUrl")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    _stored_rewards: Optional[List[Any]] = PrivateAttr(default=None)

    @field_validator("points", mode="before")
    @classmethod
    def _clamp_points(cls, value: Any) -> int:
        return _coerce_points(value)

    @field_validator("banner_image_url", "stamp_image_url", mode="before")
    @classmethod
    def _url_default(cls, value: Any) -> str:
        return value or ""

    @classmethod
    def initial(cls, card_id: str, owner_identity: str) -> "Card":
        return cls(id=card_id, owner_identity=owner_identity)

    @classmethod
    def from_document(cls, card_id: str, data: Dict[str, Any]) -> "Card":
        rewards: List[Reward] = []
        raw_rewards = data.get("rewards")
        stored = list(raw_rewards) if isinstance(raw_rewards, list) else []
        for raw in stored:
            try:
                rewards.append(Reward.model_validate(raw))
            except ValidationError as exc:
                logger.warning("Skipping invalid reward on card %s: %s", card_id, exc)
        payload = {key: value for key, value in data.items() if key != "rewards"}
        card = cls.model_validate({**payload, "id": card_id, "rewards": rewards})
        card._stored_rewards = stored
        return card

    @property
    def reward_entries(self) -> List[Any]:
        """Reward array as stored, including entries the view skips."""
        if self._stored_rewards is not None:
            return list(self._stored_rewards)
        return [reward.model_dump(by_alias=True) for reward in self.rewards]

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude={"id", "updated_at"})

    def find_reward(self, reward_id: str) -> Optional[Reward]:
        for reward in self.rewards:
            if reward.id == reward_id:
                return reward
        return None


class CardPatch(BaseModel):
    """Partial update; only fields that are set are written."""

    model_config = ConfigDict(populate_by_name=True)

    points: Optional[int] = Field(default=None, ge=0)
    # stored entries pass through untouched so unreadable ones survive a rewrite
    rewards: Optional[List[Any]] = None
    banner_image_url: Optional[str] = Field(default=None, alias="bannerImageUrl")
    stamp_image_url: Optional[str] = Field(default=None, alias="stampImageUrl")

    @field_validator("rewards", mode="before")
    @classmethod
    def _reward_entries(cls, value: Any) -> Any:
        if value is None:
            return None
        return [item.model_dump(by_alias=True) if isinstance(item, Reward) else item for item in value]

    def to_fields(self) -> Dict[str, Any]:
        fields = self.model_dump(by_alias=True, exclude_none=True, exclude={"rewards"})
        if self.rewards is not None:
            fields["rewards"] = copy.deepcopy(self.rewards)
        return fields


class SyncStatus(str, Enum):
    initializing = "initializing"
    synced = "synced"
    not_found = "not_found"
    failed = "failed"


class CardState(BaseModel):
    card_id: Optional[str] = None
    identity: Optional[str] = None
    status: SyncStatus = SyncStatus.initializing
    card: Optional[Card] = None
    is_owner: bool = False
    error: Optional[str] = None


class MutationOutcome(str, Enum):
    applied = "applied"
    cancelled = "cancelled"
    rejected = "rejected"
    inert = "inert"


class BadgeKind(str, Enum):
    owner = "owner"
    viewer = "viewer"
    not_found = "not_found"
    failed = "failed"
    initializing = "initializing"


class ModeBadge(BaseModel):
    kind: BadgeKind
    label: str


class StampSlot(BaseModel):
    index: int
    collected: bool
    image_url: Optional[str] = None
    title: str


class BannerView(BaseModel):
    image_url: Optional[str] = None
    show_placeholder: bool = True


class RewardRow(BaseModel):
    id: str
    name: str
    cost: int
    note: str = ""
    redeem_enabled: bool = False
    delete_enabled: bool = False


class CardView(BaseModel):
    card_id: Optional[str] = None
    badge: ModeBadge
    points: int = 0
    stamps: List[StampSlot] = Field(default_factory=list)
    banner: BannerView = Field(default_factory=BannerView)
    rewards: List[RewardRow] = Field(default_factory=list)
    rewards_empty: bool = True
    controls_enabled: bool = False
    owner_settings_visible: bool = False
    banner_url_input: str = ""
    stamp_url_input: str = ""
    message: Optional[str] = None


class ShareResult(BaseModel):
    link: str
    copied: bool = False
