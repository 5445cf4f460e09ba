"""Pure projection of card state into a renderable view."""
from __future__ import annotations

from typing import List

from stampcard.card.schemas import (
    BadgeKind,
    BannerView,
    Card,
    CardState,
    CardView,
    ModeBadge,
    RewardRow,
    StampSlot,
    SyncStatus,
)
from stampcard.config.runtime_config import DEFAULT_STAMP_IMAGE_URL, STAMP_SLOTS

BADGE_LABELS = {
    BadgeKind.owner: "Editable (Owner)",
    BadgeKind.viewer: "Read-only (Viewer)",
    BadgeKind.not_found: "Card not found",
    BadgeKind.failed: "Startup failed",
    BadgeKind.initializing: "Loading",
}
NOT_FOUND_MESSAGE = "This card id does not exist or has been deleted."
EMPTY_REWARDS_MESSAGE = "No rewards yet. Use \"Add reward\" to create one."


def _badge(kind: BadgeKind) -> ModeBadge:
    return ModeBadge(kind=kind, label=BADGE_LABELS[kind])


def project_stamps(points: int, stamp_image_url: str = "") -> List[StampSlot]:
    image_url = stamp_image_url.strip() or DEFAULT_STAMP_IMAGE_URL
    slots = []
    for index in range(1, STAMP_SLOTS + 1):
        collected = index <= points
        slots.append(
            StampSlot(
                index=index,
                collected=collected,
                image_url=image_url if collected else None,
                title=f"Stamp {index} collected" if collected else f"Stamp {index}",
            )
        )
    return slots


def project_banner(banner_image_url: str = "") -> BannerView:
    url = banner_image_url.strip()
    if url:
        return BannerView(image_url=url, show_placeholder=False)
    return BannerView()


def project_rewards(card: Card, is_owner: bool) -> List[RewardRow]:
    return [
        RewardRow(
            id=reward.id,
            name=reward.name,
            cost=reward.cost,
            note=reward.note,
            redeem_enabled=is_owner and card.points >= reward.cost,
            delete_enabled=is_owner,
        )
        for reward in card.rewards
    ]


def project(state: CardState) -> CardView:
    if state.status is SyncStatus.failed:
        return CardView(card_id=state.card_id, badge=_badge(BadgeKind.failed), message=state.error)
    if state.status is SyncStatus.not_found:
        return CardView(card_id=state.card_id, badge=_badge(BadgeKind.not_found), message=NOT_FOUND_MESSAGE)
    card = state.card
    if state.status is SyncStatus.initializing or card is None:
        return CardView(card_id=state.card_id, badge=_badge(BadgeKind.initializing))

    is_owner = state.is_owner
    rewards = project_rewards(card, is_owner)
    return CardView(
        card_id=card.id,
        badge=_badge(BadgeKind.owner if is_owner else BadgeKind.viewer),
        points=card.points,
        stamps=project_stamps(card.points, card.stamp_image_url),
        banner=project_banner(card.banner_image_url),
        rewards=rewards,
        rewards_empty=not rewards,
        controls_enabled=is_owner,
        owner_settings_visible=is_owner,
        banner_url_input=card.banner_image_url,
        stamp_url_input=card.stamp_image_url,
        message=None if rewards else EMPTY_REWARDS_MESSAGE,
    )
