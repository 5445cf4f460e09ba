"""Shared realtime loyalty card ledger."""

from stampcard.card.commands import CardCommands
from stampcard.card.errors import (
    CardNotFound,
    LoyaltyCardError,
    PreconditionFailure,
    StartupFailure,
    ValidationFailure,
)
from stampcard.card.projector import project
from stampcard.card.repository import CardStore, InMemoryCardStore, card_store_from_env
from stampcard.card.schemas import Card, CardPatch, CardState, CardView, MutationOutcome, Reward, SyncStatus
from stampcard.card.session import CardSessionContext, LoyaltyCardSession
from stampcard.card.sync import CardSync, derive_is_owner

__all__ = [
    "Card",
    "CardPatch",
    "CardState",
    "CardView",
    "Reward",
    "SyncStatus",
    "MutationOutcome",
    "CardStore",
    "InMemoryCardStore",
    "card_store_from_env",
    "CardSync",
    "derive_is_owner",
    "CardCommands",
    "CardSessionContext",
    "LoyaltyCardSession",
    "project",
    "LoyaltyCardError",
    "StartupFailure",
    "ValidationFailure",
    "PreconditionFailure",
    "CardNotFound",
]
