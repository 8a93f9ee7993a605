"""Contrato do Session Provider (implementação do protocolo de mensagens).

O provider estabelece a conexão e reporta o ciclo de vida via eventos
emitidos no `EventSink` recebido em `connect()`:

- PairingCodeIssued: novo QR code para pareamento
- SessionConnected: sessão aberta; carrega o SessionHandle
- SessionDisconnected: conexão encerrada, com a causa bruta

O sink é thread-safe: providers baseados em threads podem chamá-lo
diretamente. Eventos são aplicados na ordem de emissão.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from zapgate.domain.disconnect import DisconnectReason


class SessionHandle(ABC):
    """Conexão viva com a rede de mensagens (nunca reutilizada após queda)."""

    @abstractmethod
    async def send(self, recipient_id: str, body: str) -> str:
        """Envia texto para `recipient_id` (apenas dígitos).

        Returns:
            ID da mensagem atribuído pelo provider

        Raises:
            Exception: qualquer falha do provider/rede
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Encerra a conexão e libera recursos."""
        ...


@dataclass(frozen=True, slots=True)
class PairingCodeIssued:
    data: str


@dataclass(frozen=True, slots=True)
class SessionConnected:
    handle: SessionHandle


@dataclass(frozen=True, slots=True)
class SessionDisconnected:
    """Queda da conexão.

    `cause` é o valor bruto do provider (status code, texto ou exceção);
    `reason` permite ao provider informar a classificação diretamente.
    """

    cause: Any = None
    reason: DisconnectReason | None = None


ProviderEvent = PairingCodeIssued | SessionConnected | SessionDisconnected
EventSink = Callable[[ProviderEvent], None]


class SessionProvider(ABC):
    """Fábrica de conexões com a rede de mensagens."""

    @abstractmethod
    async def connect(self, emit: EventSink) -> None:
        """Inicia uma tentativa de conexão.

        Deve retornar assim que a tentativa estiver em andamento; o desfecho
        chega via `emit`. Exceções aqui equivalem a uma desconexão com
        motivo PROVIDER_ERROR.
        """
        ...

    async def reset_credentials(self) -> None:
        """Descarta credenciais salvas para forçar novo pareamento."""
        return None

    async def aclose(self) -> None:
        """Libera recursos do provider no encerramento do processo."""
        return None
