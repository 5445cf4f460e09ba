"""Anonymous session identity and the bounded startup readiness wait."""
from __future__ import annotations

import asyncio
import json
import logging
import uuid
from pathlib import Path
from typing import Optional, Protocol

from stampcard.card.errors import StartupFailure
from stampcard.card.repository import CardStore
from stampcard.config import runtime_config

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    def current_identity(self) -> Optional[str]:
        ...

    async def signed_in(self) -> str:
        ...


class StaticIdentityProvider:
    def __init__(self, identity: str) -> None:
        self._identity = identity

    def current_identity(self) -> Optional[str]:
        return self._identity

    async def signed_in(self) -> str:
        return self._identity


class DeferredIdentityProvider:
    """Identity delivered later by an external sign-in flow."""

    def __init__(self) -> None:
        self._identity: Optional[str] = None
        self._event = asyncio.Event()

    def sign_in(self, identity: str) -> None:
        self._identity = identity
        self._event.set()

    def current_identity(self) -> Optional[str]:
        return self._identity

    async def signed_in(self) -> str:
        await self._event.wait()
        return self._identity or ""


class FileIdentityProvider:
    """Anonymous identity minted once and kept in the state directory."""

    def __init__(self, state_dir: Optional[Path] = None) -> None:
        self.path = (state_dir or runtime_config.get_state_dir()) / "identity.json"
        self._identity: Optional[str] = None

    def _load(self) -> Optional[str]:
        try:
            with open(self.path, "r") as f:
                return json.load(f).get("identity") or None
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable identity file %s: %s", self.path, exc)
            return None

    def _save(self, identity: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump({"identity": identity}, f)

    def current_identity(self) -> Optional[str]:
        return self._identity

    async def signed_in(self) -> str:
        if self._identity:
            return self._identity
        identity = self._load()
        if not identity:
            identity = uuid.uuid4().hex
            self._save(identity)
            logger.info("Minted anonymous identity in %s", self.path)
        self._identity = identity
        return identity


class IdentityResolver:
    """Blocks ledger access until both the store and an identity are ready."""

    def __init__(
        self,
        provider: IdentityProvider,
        store: CardStore,
        timeout: Optional[float] = None,
    ) -> None:
        self._provider = provider
        self._store = store
        self._timeout = timeout if timeout is not None else runtime_config.get_startup_timeout_seconds()

    async def _wait_ready(self) -> str:
        await self._store.ready()
        return await self._provider.signed_in()

    async def resolve(self) -> str:
        try:
            identity = await asyncio.wait_for(self._wait_ready(), timeout=self._timeout)
        except asyncio.TimeoutError:
            raise StartupFailure(
                f"identity/store not ready after {self._timeout:.2f}s"
            ) from None
        if not identity:
            raise StartupFailure("identity provider returned an empty identity")
        return identity
