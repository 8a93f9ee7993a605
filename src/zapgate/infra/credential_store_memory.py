"""Implementação de CredentialStore em memória (apenas dev/testes)."""

from __future__ import annotations

import copy
from typing import Any

from zapgate.domain.protocols.credential_store import CredentialStore


class InMemoryCredentialStore(CredentialStore):
    """Armazenamento em memória (não usar em produção: perde o pareamento no restart)."""

    def __init__(self, credentials: dict[str, Any] | None = None) -> None:
        self._credentials = copy.deepcopy(credentials) if credentials else None

    async def load(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._credentials)

    async def save(self, credentials: dict[str, Any]) -> None:
        self._credentials = copy.deepcopy(credentials)

    async def clear(self) -> None:
        self._credentials = None
