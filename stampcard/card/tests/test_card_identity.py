from __future__ import annotations

import asyncio
import json

import pytest

from stampcard.card.errors import StartupFailure
from stampcard.card.identity import (
    DeferredIdentityProvider,
    FileIdentityProvider,
    IdentityResolver,
    StaticIdentityProvider,
)
from stampcard.card.repository import InMemoryCardStore


def test_static_identity_resolves():
    resolver = IdentityResolver(StaticIdentityProvider("u1"), InMemoryCardStore(), timeout=0.5)
    assert asyncio.run(resolver.resolve()) == "u1"


def test_identity_that_never_arrives_is_a_startup_failure():
    resolver = IdentityResolver(DeferredIdentityProvider(), InMemoryCardStore(), timeout=0.05)
    with pytest.raises(StartupFailure):
        asyncio.run(resolver.resolve())


def test_identity_arriving_within_bound_is_accepted():
    async def _scenario():
        provider = DeferredIdentityProvider()
        asyncio.get_running_loop().call_later(0.01, provider.sign_in, "late-user")
        return await IdentityResolver(provider, InMemoryCardStore(), timeout=1.0).resolve()

    assert asyncio.run(_scenario()) == "late-user"


def test_store_that_never_gets_ready_is_a_startup_failure():
    class StuckStore(InMemoryCardStore):
        async def ready(self) -> None:
            await asyncio.sleep(10)

    resolver = IdentityResolver(StaticIdentityProvider("u1"), StuckStore(), timeout=0.05)
    with pytest.raises(StartupFailure):
        asyncio.run(resolver.resolve())


def test_empty_identity_is_rejected():
    resolver = IdentityResolver(StaticIdentityProvider(""), InMemoryCardStore(), timeout=0.5)
    with pytest.raises(StartupFailure):
        asyncio.run(resolver.resolve())


def test_file_identity_is_stable_across_providers(tmp_path):
    first = FileIdentityProvider(state_dir=tmp_path)
    identity = asyncio.run(first.signed_in())
    assert identity
    assert first.current_identity() == identity

    second = FileIdentityProvider(state_dir=tmp_path)
    assert second.current_identity() is None
    assert asyncio.run(second.signed_in()) == identity
    with open(tmp_path / "identity.json") as f:
        assert json.load(f) == {"identity": identity}


def test_file_identity_replaces_unreadable_file(tmp_path):
    (tmp_path / "identity.json").write_text("{not json")
    provider = FileIdentityProvider(state_dir=tmp_path)
    identity = asyncio.run(provider.signed_in())
    assert identity
    assert json.loads((tmp_path / "identity.json").read_text())["identity"] == identity
