"""Pure ledger rules: point arithmetic, reward catalog edits, input validation."""
from __future__ import annotations

import math
import re
from typing import Any, Callable, Iterable, List

from stampcard.card.errors import PreconditionFailure, ValidationFailure
from stampcard.card.schemas import Reward

IMAGE_URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)

IMAGE_URL_MESSAGE = "Please paste a full image URL (starting with https://)."
REWARD_NAME_MESSAGE = "Please enter a reward name."
REWARD_COST_MESSAGE = "Points required must be a positive integer."

# largest integer a JSON number carries exactly
MAX_REWARD_COST = 2**53 - 1


def insufficient_points_message(points: int, cost: int) -> str:
    return f"Not enough points (currently {points}, need {cost})."


def apply_point_delta(points: int, delta: int) -> int:
    return max(0, points + delta)


def validate_image_url(raw: str | None) -> str:
    url = (raw or "").strip()
    if url and not IMAGE_URL_PATTERN.match(url):
        raise ValidationFailure(IMAGE_URL_MESSAGE)
    return url


def validate_reward_name(raw: str | None) -> str:
    name = (raw or "").strip()
    if not name:
        raise ValidationFailure(REWARD_NAME_MESSAGE)
    return name


def parse_reward_cost(raw: Any) -> int:
    """Parse a user-entered cost and floor it to whole points."""
    if isinstance(raw, bool):
        raise ValidationFailure(REWARD_COST_MESSAGE)
    if isinstance(raw, int):
        cost = raw
    else:
        if isinstance(raw, str):
            text = raw.strip()
            if not text:
                raise ValidationFailure(REWARD_COST_MESSAGE)
            try:
                value = float(text)
            except ValueError:
                raise ValidationFailure(REWARD_COST_MESSAGE)
        elif isinstance(raw, float):
            value = raw
        else:
            raise ValidationFailure(REWARD_COST_MESSAGE)
        if not math.isfinite(value):
            raise ValidationFailure(REWARD_COST_MESSAGE)
        cost = math.floor(value)
    # 0 < value < 1 floors to zero, which would be a free reward
    if cost < 1 or cost > MAX_REWARD_COST:
        raise ValidationFailure(REWARD_COST_MESSAGE)
    return cost


def _entry_id(entry: Any) -> Any:
    if isinstance(entry, Reward):
        return entry.id
    if isinstance(entry, dict):
        return entry.get("id")
    return None


def new_reward_id(existing: Iterable[Any], id_fn: Callable[[], str]) -> str:
    taken = {_entry_id(entry) for entry in existing}
    reward_id = id_fn()
    while reward_id in taken:
        reward_id = id_fn()
    return reward_id


def prepend_reward(
    rewards: List[Any],
    name: str,
    cost: int,
    note: str,
    id_fn: Callable[[], str],
    created_at_ms: int,
) -> List[Any]:
    """Put a new reward in front of the stored entries, which are kept as they are."""
    reward = Reward(
        id=new_reward_id(rewards, id_fn),
        name=name,
        cost=cost,
        note=note,
        created_at=created_at_ms,
    )
    return [reward, *rewards]


def redeem_points(points: int, reward: Reward) -> int:
    if points < reward.cost:
        raise PreconditionFailure(insufficient_points_message(points, reward.cost))
    return points - reward.cost


def remove_reward(rewards: List[Any], reward_id: str) -> List[Any]:
    return [entry for entry in rewards if _entry_id(entry) != reward_id]
