"""Session wiring: identity, locator, store, sync core, commands, projector."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional

from stampcard.card.commands import CardCommands
from stampcard.card.errors import StartupFailure
from stampcard.card.identity import FileIdentityProvider, IdentityProvider, IdentityResolver
from stampcard.card.interaction import (
    Clipboard,
    ClipboardDenied,
    Interaction,
    RequestInteraction,
    UnavailableClipboard,
)
from stampcard.card.locator import CardLocator, FileBackedLocation, PageLocation, random_id, share_link
from stampcard.card.projector import project
from stampcard.card.repository import CardStore, card_store_from_env
from stampcard.card.schemas import Card, CardState, CardView, MutationOutcome, ShareResult, SyncStatus
from stampcard.card.sync import CardSync

logger = logging.getLogger(__name__)

STARTUP_FAILED_MESSAGE = "Startup failed: the identity provider or the card store did not become ready."
WRITE_FAILED_MESSAGE = "Saving the card failed. Check the logs for details."
SHARE_PROMPT = "Copy this link to share (read-only)"

ViewListener = Callable[[CardView], Any]


@dataclass
class CardSessionContext:
    """Collaborators for one session, passed explicitly to every component."""

    store: CardStore
    identity_provider: IdentityProvider
    location: PageLocation
    interaction: Interaction = field(default_factory=lambda: RequestInteraction(confirmed=False))
    clipboard: Clipboard = field(default_factory=UnavailableClipboard)
    startup_timeout: Optional[float] = None
    id_fn: Callable[[], str] = random_id
    clock: Optional[Callable[[], datetime]] = None

    @classmethod
    def from_env(cls) -> "CardSessionContext":
        return cls(
            store=card_store_from_env(),
            identity_provider=FileIdentityProvider(),
            location=FileBackedLocation(),
        )


class LoyaltyCardSession:
    def __init__(self, context: CardSessionContext) -> None:
        self.context = context
        self.identity: Optional[str] = None
        self.card_id: Optional[str] = None
        self.sync: Optional[CardSync] = None
        self._state = CardState()
        self._view_listeners: List[ViewListener] = []
        self._start_lock = asyncio.Lock()

    @property
    def state(self) -> CardState:
        if self.sync is not None:
            return self.sync.state
        return self._state

    @property
    def view(self) -> CardView:
        return project(self.state)

    def add_view_listener(self, listener: ViewListener) -> Callable[[], None]:
        self._view_listeners.append(listener)

        def _remove() -> None:
            if listener in self._view_listeners:
                self._view_listeners.remove(listener)

        return _remove

    def _publish(self, state: CardState) -> None:
        view = project(state)
        for listener in list(self._view_listeners):
            listener(view)

    def _fail(self, exc: Exception) -> None:
        self._state = CardState(card_id=self.card_id, status=SyncStatus.failed, error=str(exc))
        self.context.interaction.alert(STARTUP_FAILED_MESSAGE)
        self._publish(self._state)

    async def start(self) -> CardView:
        ctx = self.context
        try:
            resolver = IdentityResolver(ctx.identity_provider, ctx.store, timeout=ctx.startup_timeout)
            self.identity = await resolver.resolve()
            self.card_id = CardLocator(ctx.location, id_fn=ctx.id_fn).resolve()

            if await ctx.store.get(self.card_id) is None:
                created = await ctx.store.create_if_absent(self.card_id, Card.initial(self.card_id, self.identity))
                if created:
                    logger.info("Created card %s owned by %s", self.card_id, self.identity)

            sync = CardSync(ctx.store, self.card_id, self.identity)
            sync.add_listener(self._publish)
            self.sync = sync
            await sync.start()
            logger.info("Card %s synced for %s (owner=%s)", self.card_id, self.identity, sync.owner_mode)
        except StartupFailure as exc:
            logger.error("Loyalty card startup failed: %s", exc)
            self._fail(exc)
            raise
        except Exception as exc:
            logger.exception("Loyalty card startup failed")
            self.sync = None
            self._fail(exc)
            raise
        return self.view

    async def ensure_started(self) -> CardView:
        async with self._start_lock:
            if self.state.status is SyncStatus.failed:
                raise StartupFailure(self.state.error or STARTUP_FAILED_MESSAGE)
            if self.sync is None:
                return await self.start()
        return self.view

    def commands(self, ui: Optional[Interaction] = None) -> CardCommands:
        if self.sync is None:
            raise StartupFailure("loyalty card session is not started")
        return CardCommands(
            self.sync,
            ui or self.context.interaction,
            id_fn=self.context.id_fn,
            clock=self.context.clock,
        )

    async def run_command(
        self,
        operation: Callable[[CardCommands], Awaitable[MutationOutcome]],
        ui: Optional[Interaction] = None,
    ) -> MutationOutcome:
        """Run one command; store failures are logged, shown, and re-raised."""
        ui = ui or self.context.interaction
        commands = self.commands(ui)
        try:
            return await operation(commands)
        except Exception:
            logger.exception("Loyalty card command failed on card %s", self.card_id)
            ui.alert(WRITE_FAILED_MESSAGE)
            raise

    async def share(self, ui: Optional[Interaction] = None) -> ShareResult:
        if self.card_id is None:
            raise StartupFailure("loyalty card session is not started")
        ui = ui or self.context.interaction
        link = share_link(self.context.location.href, self.card_id)
        try:
            await self.context.clipboard.write_text(link)
        except ClipboardDenied:
            ui.prompt(SHARE_PROMPT, link)
            return ShareResult(link=link, copied=False)
        return ShareResult(link=link, copied=True)

    def close(self) -> None:
        if self.sync is not None:
            self.sync.stop()
