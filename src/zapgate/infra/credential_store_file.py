"""CredentialStore em arquivo JSON dentro de SESSION_DIR.

I/O roda em thread (anyio) para não bloquear o event loop.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import anyio

from zapgate.domain.protocols.credential_store import CredentialStore, CredentialStoreError
from zapgate.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

CREDENTIALS_FILENAME = "creds.json"


class FileCredentialStore(CredentialStore):
    """Persiste credenciais em `<session_dir>/creds.json`."""

    def __init__(self, session_dir: str | Path) -> None:
        self._dir = Path(session_dir)
        self._path = self._dir / CREDENTIALS_FILENAME

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> dict[str, Any] | None:
        return await anyio.to_thread.run_sync(self._read)

    async def save(self, credentials: dict[str, Any]) -> None:
        await anyio.to_thread.run_sync(self._write, credentials)

    async def clear(self) -> None:
        await anyio.to_thread.run_sync(self._remove)

    def _read(self) -> dict[str, Any] | None:
        if not self._path.exists():
            logger.debug("Credenciais não encontradas", extra={"session_dir": str(self._dir)})
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error(
                "credential_load_failed",
                extra={"session_dir": str(self._dir), "error": type(exc).__name__},
            )
            raise CredentialStoreError(f"Falha ao carregar credenciais: {type(exc).__name__}") from exc
        if not isinstance(data, dict):
            raise CredentialStoreError("Arquivo de credenciais inválido")
        return data

    def _write(self, credentials: dict[str, Any]) -> None:
        tmp_path = self._path.with_suffix(".json.tmp")
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(credentials), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            logger.error(
                "credential_save_failed",
                extra={"session_dir": str(self._dir), "error": type(exc).__name__},
            )
            raise CredentialStoreError(f"Falha ao salvar credenciais: {type(exc).__name__}") from exc
        logger.debug("Credenciais salvas", extra={"session_dir": str(self._dir)})

    def _remove(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as exc:
            raise CredentialStoreError(f"Falha ao remover credenciais: {type(exc).__name__}") from exc
        logger.info("Credenciais removidas", extra={"session_dir": str(self._dir)})
