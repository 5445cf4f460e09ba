"""Loyalty card error taxonomy."""
from __future__ import annotations


class LoyaltyCardError(Exception):
    """Base loyalty card error."""


class StartupFailure(LoyaltyCardError):
    """Identity or store did not become ready within the startup bound."""


class ValidationFailure(LoyaltyCardError):
    """User input rejected before any write."""


class PreconditionFailure(LoyaltyCardError):
    """Ledger state does not allow the operation (e.g. not enough points)."""


class CardNotFound(LoyaltyCardError):
    """Raised by stores when a card document is missing."""
