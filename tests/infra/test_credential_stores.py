"""Testes dos CredentialStores (arquivo e memória)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from zapgate.domain.protocols.credential_store import CredentialStoreError
from zapgate.infra.credential_store_file import CREDENTIALS_FILENAME, FileCredentialStore
from zapgate.infra.credential_store_memory import InMemoryCredentialStore


class TestFileCredentialStore:
    """Persistência em SESSION_DIR."""

    @pytest.mark.asyncio
    async def test_load_missing_returns_none(self, tmp_path: Path) -> None:
        store = FileCredentialStore(tmp_path / "auth_info")
        assert await store.load() is None

    @pytest.mark.asyncio
    async def test_save_creates_dir_and_file(self, tmp_path: Path) -> None:
        session_dir = tmp_path / "auth_info"
        store = FileCredentialStore(session_dir)

        await store.save({"me": {"name": "bot"}, "registration_id": 42})

        assert store.path == session_dir / CREDENTIALS_FILENAME
        assert json.loads(store.path.read_text(encoding="utf-8"))["registration_id"] == 42
        assert await store.load() == {"me": {"name": "bot"}, "registration_id": 42}
        assert not list(session_dir.glob("*.tmp"))

    @pytest.mark.asyncio
    async def test_credentials_survive_new_instance(self, tmp_path: Path) -> None:
        """Pareamento sobrevive a restart do processo."""
        await FileCredentialStore(tmp_path).save({"k": "v"})
        assert await FileCredentialStore(tmp_path).load() == {"k": "v"}

    @pytest.mark.asyncio
    async def test_clear(self, tmp_path: Path) -> None:
        store = FileCredentialStore(tmp_path)
        await store.save({"k": "v"})
        await store.clear()
        assert await store.load() is None
        await store.clear()

    @pytest.mark.asyncio
    async def test_corrupted_file_raises(self, tmp_path: Path) -> None:
        (tmp_path / CREDENTIALS_FILENAME).write_text("{not json", encoding="utf-8")
        with pytest.raises(CredentialStoreError):
            await FileCredentialStore(tmp_path).load()

    @pytest.mark.asyncio
    async def test_non_object_file_raises(self, tmp_path: Path) -> None:
        (tmp_path / CREDENTIALS_FILENAME).write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(CredentialStoreError):
            await FileCredentialStore(tmp_path).load()


class TestInMemoryCredentialStore:
    @pytest.mark.asyncio
    async def test_roundtrip_is_isolated(self) -> None:
        original = {"me": {"name": "bot"}}
        store = InMemoryCredentialStore()
        await store.save(original)
        original["me"]["name"] = "alterado"

        loaded = await store.load()
        assert loaded == {"me": {"name": "bot"}}

    @pytest.mark.asyncio
    async def test_seeded_and_cleared(self) -> None:
        store = InMemoryCredentialStore({"k": "v"})
        assert await store.load() == {"k": "v"}
        await store.clear()
        assert await store.load() is None
