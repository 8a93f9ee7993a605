"""Session Provider loopback (dev/testes; não usar em prod).

Simula o protocolo: sem credenciais emite QR code; com credenciais (ou após
`complete_pairing()`) abre uma sessão cujo envio apenas registra a mensagem.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from datetime import UTC, datetime
from typing import Any

from zapgate.domain.protocols.credential_store import CredentialStore
from zapgate.domain.protocols.session_provider import (
    EventSink,
    PairingCodeIssued,
    SessionConnected,
    SessionDisconnected,
    SessionHandle,
    SessionProvider,
)
from zapgate.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class LoopbackSessionHandle(SessionHandle):
    """Sessão simulada; guarda mensagens enviadas em `sent`."""

    def __init__(self, device_name: str) -> None:
        self.device_name = device_name
        self.sent: list[dict[str, str]] = []
        self.closed = False

    async def send(self, recipient_id: str, body: str) -> str:
        if self.closed:
            raise ConnectionError("Connection Closed")
        message_id = "3EB0" + secrets.token_hex(8).upper()
        self.sent.append({"id": message_id, "to": recipient_id, "text": body})
        return message_id

    async def close(self) -> None:
        self.closed = True


class LoopbackSessionProvider(SessionProvider):
    """Provider em memória para desenvolvimento local e testes."""

    def __init__(
        self,
        credential_store: CredentialStore,
        device_name: str = "zapgate",
        auto_pair_after: float | None = None,
    ) -> None:
        self._store = credential_store
        self._device_name = device_name
        self._auto_pair_after = auto_pair_after
        self._emit: EventSink | None = None
        self._pair_task: asyncio.Task[None] | None = None
        self.handle: LoopbackSessionHandle | None = None
        self.connect_calls = 0

    async def connect(self, emit: EventSink) -> None:
        self.connect_calls += 1
        self._emit = emit
        self.handle = None
        if self._pair_task is not None:
            self._pair_task.cancel()
            self._pair_task = None

        credentials = await self._store.load()
        if credentials:
            self._open_session(emit)
            return

        emit(PairingCodeIssued(self._new_pairing_code()))
        if self._auto_pair_after is not None:
            self._pair_task = asyncio.create_task(self._auto_pair(self._auto_pair_after))

    async def complete_pairing(self) -> None:
        """Simula a leitura do QR code no celular."""
        if self._emit is None:
            raise RuntimeError("connect() ainda não foi chamado")
        await self._store.save(self._new_credentials())
        self._open_session(self._emit)

    def drop(self, cause: Any = "connection_lost") -> None:
        """Simula queda da conexão reportada pela rede (ex.: 401 para logout)."""
        if self._emit is None:
            raise RuntimeError("connect() ainda não foi chamado")
        if self.handle is not None:
            self.handle.closed = True
        self._emit(SessionDisconnected(cause=cause))

    async def reset_credentials(self) -> None:
        await self._store.clear()

    async def aclose(self) -> None:
        if self._pair_task is not None:
            self._pair_task.cancel()
            self._pair_task = None

    async def _auto_pair(self, delay: float) -> None:
        await asyncio.sleep(delay)
        logger.info("loopback_auto_pair", extra={"delay_seconds": delay})
        await self.complete_pairing()

    def _open_session(self, emit: EventSink) -> None:
        self.handle = LoopbackSessionHandle(self._device_name)
        emit(SessionConnected(self.handle))

    def _new_credentials(self) -> dict[str, Any]:
        return {
            "me": {"name": self._device_name},
            "registration_id": secrets.randbelow(16380) + 1,
            "paired_at": datetime.now(tz=UTC).isoformat(),
        }

    @staticmethod
    def _new_pairing_code() -> str:
        ref = secrets.token_urlsafe(24)
        keys = ",".join(secrets.token_urlsafe(32) for _ in range(3))
        return f"2@{ref},{keys}"
