from __future__ import annotations

import itertools
from typing import Callable

import pytest

from stampcard.card.identity import StaticIdentityProvider
from stampcard.card.interaction import MemoryClipboard, RequestInteraction
from stampcard.card.locator import InMemoryLocation
from stampcard.card.repository import InMemoryCardStore
from stampcard.card.session import CardSessionContext, LoyaltyCardSession

BASE_URL = "http://localhost:8000/"


@pytest.fixture
def store() -> InMemoryCardStore:
    return InMemoryCardStore()


@pytest.fixture
def ids() -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def make_session(store: InMemoryCardStore, ids: Callable[[], str]):
    def _make(
        identity: str = "owner-1",
        href: str = BASE_URL,
        confirmed: bool = True,
        **overrides,
    ) -> LoyaltyCardSession:
        context = CardSessionContext(
            store=overrides.pop("store", store),
            identity_provider=overrides.pop("identity_provider", StaticIdentityProvider(identity)),
            location=overrides.pop("location", InMemoryLocation(href)),
            interaction=overrides.pop("interaction", RequestInteraction(confirmed=confirmed)),
            clipboard=overrides.pop("clipboard", MemoryClipboard()),
            id_fn=overrides.pop("id_fn", ids),
            **overrides,
        )
        return LoyaltyCardSession(context)

    return _make
