"""Contrato de persistência das credenciais da sessão.

Usado apenas pelo Session Provider; o core nunca lê credenciais.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class CredentialStoreError(Exception):
    """Erro ao persistir ou carregar credenciais."""

    pass


class CredentialStore(ABC):
    """Contrato abstrato para armazenamento de credenciais."""

    @abstractmethod
    async def load(self) -> dict[str, Any] | None:
        """Carrega credenciais salvas.

        Returns:
            Credenciais ou None se a sessão nunca foi pareada

        Raises:
            CredentialStoreError: Se leitura falhar
        """
        ...

    @abstractmethod
    async def save(self, credentials: dict[str, Any]) -> None:
        """Persiste credenciais (chamado a cada atualização do provider).

        Raises:
            CredentialStoreError: Se persistência falhar
        """
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Remove credenciais (novo pareamento será exigido)."""
        ...
