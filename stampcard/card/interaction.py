"""User-facing collaborators: confirmations, alerts, prompts, clipboard."""
from __future__ import annotations

from typing import List, Optional, Protocol, Tuple

from stampcard.card.errors import LoyaltyCardError


class ClipboardDenied(LoyaltyCardError):
    """Clipboard write refused or unavailable."""


class Interaction(Protocol):
    def confirm(self, message: str) -> bool:
        ...

    def alert(self, message: str) -> None:
        ...

    def prompt(self, message: str, default: str = "") -> Optional[str]:
        ...


class Clipboard(Protocol):
    async def write_text(self, text: str) -> None:
        ...


class RequestInteraction:
    """Interaction whose confirmation answer is known up front.

    Used per HTTP request (the answer travels with the request) and in tests.
    Alerts and prompts are collected for the caller to display.
    """

    def __init__(self, confirmed: bool = True) -> None:
        self.confirmed = confirmed
        self.confirmations: List[str] = []
        self.messages: List[str] = []
        self.prompts: List[Tuple[str, str]] = []

    def confirm(self, message: str) -> bool:
        self.confirmations.append(message)
        return self.confirmed

    def alert(self, message: str) -> None:
        self.messages.append(message)

    def prompt(self, message: str, default: str = "") -> Optional[str]:
        self.prompts.append((message, default))
        return default


class MemoryClipboard:
    def __init__(self) -> None:
        self.text: Optional[str] = None

    async def write_text(self, text: str) -> None:
        self.text = text


class UnavailableClipboard:
    async def write_text(self, text: str) -> None:
        raise ClipboardDenied("clipboard is not available")
