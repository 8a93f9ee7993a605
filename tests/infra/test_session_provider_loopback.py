"""Testes do LoopbackSessionProvider (dev/testes)."""

from __future__ import annotations

import asyncio

import pytest

from zapgate.domain.protocols.session_provider import (
    PairingCodeIssued,
    ProviderEvent,
    SessionConnected,
    SessionDisconnected,
)
from zapgate.infra.credential_store_memory import InMemoryCredentialStore
from zapgate.infra.session_provider_loopback import LoopbackSessionProvider


class _Sink:
    def __init__(self) -> None:
        self.events: list[ProviderEvent] = []

    def __call__(self, event: ProviderEvent) -> None:
        self.events.append(event)


class TestLoopbackSessionProvider:
    """Simulação do protocolo."""

    @pytest.mark.asyncio
    async def test_without_credentials_issues_pairing_code(self) -> None:
        provider = LoopbackSessionProvider(InMemoryCredentialStore())
        sink = _Sink()

        await provider.connect(sink)

        assert len(sink.events) == 1
        event = sink.events[0]
        assert isinstance(event, PairingCodeIssued)
        assert event.data.startswith("2@")
        assert event.data.count(",") == 3

    @pytest.mark.asyncio
    async def test_with_credentials_connects(self) -> None:
        provider = LoopbackSessionProvider(InMemoryCredentialStore({"me": {"name": "bot"}}))
        sink = _Sink()

        await provider.connect(sink)

        assert isinstance(sink.events[0], SessionConnected)
        message_id = await sink.events[0].handle.send("919999999999", "Olá")
        assert message_id.startswith("3EB0")
        assert provider.handle is not None
        assert provider.handle.sent == [{"id": message_id, "to": "919999999999", "text": "Olá"}]

    @pytest.mark.asyncio
    async def test_complete_pairing_persists_credentials(self) -> None:
        store = InMemoryCredentialStore()
        provider = LoopbackSessionProvider(store, device_name="Registro")
        sink = _Sink()
        await provider.connect(sink)

        await provider.complete_pairing()

        assert isinstance(sink.events[-1], SessionConnected)
        credentials = await store.load()
        assert credentials is not None
        assert credentials["me"] == {"name": "Registro"}

    @pytest.mark.asyncio
    async def test_auto_pair(self) -> None:
        provider = LoopbackSessionProvider(InMemoryCredentialStore(), auto_pair_after=0.01)
        sink = _Sink()
        await provider.connect(sink)

        for _ in range(200):
            if isinstance(sink.events[-1], SessionConnected):
                break
            await asyncio.sleep(0.005)

        assert isinstance(sink.events[-1], SessionConnected)
        await provider.aclose()

    @pytest.mark.asyncio
    async def test_drop_closes_handle(self) -> None:
        provider = LoopbackSessionProvider(InMemoryCredentialStore({"k": "v"}))
        sink = _Sink()
        await provider.connect(sink)
        handle = sink.events[0].handle

        provider.drop(401)

        assert sink.events[-1] == SessionDisconnected(cause=401)
        with pytest.raises(ConnectionError):
            await handle.send("919999999999", "Olá")

    @pytest.mark.asyncio
    async def test_reset_credentials(self) -> None:
        store = InMemoryCredentialStore({"k": "v"})
        provider = LoopbackSessionProvider(store)
        await provider.reset_credentials()
        assert await store.load() is None

    def test_drop_before_connect_fails(self) -> None:
        provider = LoopbackSessionProvider(InMemoryCredentialStore())
        with pytest.raises(RuntimeError):
            provider.drop()
