"""Testes das factories de store e provider."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from zapgate.config.settings import Settings
from zapgate.domain.protocols.session_provider import EventSink, SessionProvider
from zapgate.infra.credential_store_file import FileCredentialStore
from zapgate.infra.credential_store_memory import InMemoryCredentialStore
from zapgate.infra.provider_factory import create_credential_store, create_session_provider
from zapgate.infra.session_provider_loopback import LoopbackSessionProvider


class ExternalProvider(SessionProvider):
    def __init__(self, settings: Settings, credential_store: Any) -> None:
        self.settings = settings
        self.credential_store = credential_store

    async def connect(self, emit: EventSink) -> None:
        return None


def build_external(settings: Settings, credential_store: Any) -> SessionProvider:
    return ExternalProvider(settings, credential_store)


def build_not_a_provider(settings: Settings, credential_store: Any) -> object:
    return object()


class TestCreateCredentialStore:
    def test_file_backend(self, tmp_path: Path) -> None:
        settings = Settings(credential_store_backend="file", session_dir=str(tmp_path))
        store = create_credential_store(settings)
        assert isinstance(store, FileCredentialStore)
        assert store.path.parent == tmp_path

    def test_memory_backend(self) -> None:
        store = create_credential_store(Settings(credential_store_backend="memory"))
        assert isinstance(store, InMemoryCredentialStore)

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError, match="não reconhecido"):
            create_credential_store(Settings(credential_store_backend="redis"))


class TestCreateSessionProvider:
    def test_loopback(self) -> None:
        provider = create_session_provider(Settings(credential_store_backend="memory"))
        assert isinstance(provider, LoopbackSessionProvider)

    def test_external_factory(self) -> None:
        settings = Settings(session_provider=f"{__name__}:build_external")
        store = InMemoryCredentialStore()
        provider = create_session_provider(settings, credential_store=store)
        assert isinstance(provider, ExternalProvider)
        assert provider.credential_store is store

    def test_factory_must_return_provider(self) -> None:
        settings = Settings(session_provider=f"{__name__}:build_not_a_provider")
        with pytest.raises(TypeError):
            create_session_provider(settings, credential_store=InMemoryCredentialStore())

    def test_missing_module(self) -> None:
        settings = Settings(session_provider="zapgate_inexistente.modulo:build")
        with pytest.raises(ModuleNotFoundError):
            create_session_provider(settings, credential_store=InMemoryCredentialStore())
