"""Outbound Dispatcher: envio de mensagens de texto pela sessão ativa.

Responsabilidade:
- Validar e normalizar a requisição (telefone apenas dígitos, texto não vazio)
- Recusar envio fora de CONNECTED sem tocar no provider
- Mapear sucesso/falha do provider para SendResult estável
- Registrar todo desfecho para auditoria (prévia limitada do corpo)

Nunca faz retry: reconexão é responsabilidade exclusiva do ConnectionManager.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

from zapgate.application.connection_manager import ConnectionManager
from zapgate.domain.errors import (
    FailureKind,
    GatewayError,
    NotConnectedError,
    ProviderError,
    ValidationError,
)
from zapgate.domain.models import SendFailure, SendResult
from zapgate.domain.recipient import (
    build_send_request,
    mask_recipient,
    normalize_phone,
    preview_body,
)
from zapgate.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class OutboundDispatcher:
    """Orquestra validação, checagem de conexão e envio."""

    def __init__(
        self,
        manager: ConnectionManager,
        *,
        min_digits: int = 10,
        max_body_chars: int = 4096,
        preview_chars: int = 50,
        mask_pii: bool = True,
    ) -> None:
        self._manager = manager
        self._min_digits = min_digits
        self._max_body_chars = max_body_chars
        self._preview_chars = preview_chars
        self._mask_pii = mask_pii
        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def in_flight(self) -> int:
        """Envios aguardando resposta do provider."""
        return self._in_flight

    async def send(self, recipient: str | None, body: str | None) -> SendResult:
        """Envia `body` para `recipient`.

        Nunca lança erros de domínio: toda falha vira SendResult com
        FailureKind (validation, not_connected, logged_out, provider).
        """
        try:
            request = build_send_request(
                recipient,
                body,
                min_digits=self._min_digits,
                max_body_chars=self._max_body_chars,
            )
        except ValidationError as exc:
            return self._failed(exc, normalize_phone(recipient or ""), body or "")

        try:
            handle = await self._manager.acquire_handle()
        except NotConnectedError as exc:
            return self._failed(exc, request.recipient_id, request.body)

        self._enter()
        try:
            raw_id = await handle.send(request.recipient_id, request.body)
        except asyncio.CancelledError:
            logger.warning(
                "outbound_message_cancelled",
                extra=self._audit_fields(request.recipient_id, request.body),
            )
            raise
        except Exception as exc:
            # Inclui sessão que caiu entre a checagem e o envio
            error = ProviderError(str(exc) or type(exc).__name__)
            return self._failed(error, request.recipient_id, request.body)
        finally:
            self._leave()

        message_id = str(raw_id) if raw_id is not None else None
        logger.info(
            "outbound_message_sent",
            extra={
                **self._audit_fields(request.recipient_id, request.body),
                "provider_message_id": message_id,
            },
        )
        return SendResult(
            success=True,
            provider_message_id=message_id,
            recipient_id=request.recipient_id,
        )

    async def drain(self, timeout: float) -> int:
        """Aguarda envios em andamento por até `timeout` segundos.

        Returns:
            Quantidade de envios ainda pendentes ao final da espera
        """
        if self._in_flight == 0:
            return 0
        logger.info(
            "outbound_drain_started",
            extra={"pending": self._in_flight, "grace_seconds": timeout},
        )
        try:
            await asyncio.wait_for(self._idle.wait(), timeout)
        except TimeoutError:
            logger.warning(
                "outbound_drain_timeout",
                extra={"pending": self._in_flight, "grace_seconds": timeout},
            )
        return self._in_flight

    def _enter(self) -> None:
        self._in_flight += 1
        self._idle.clear()

    def _leave(self) -> None:
        self._in_flight -= 1
        if self._in_flight == 0:
            self._idle.set()

    def _failed(self, error: GatewayError, recipient_id: str, body: str) -> SendResult:
        fields = {
            **self._audit_fields(recipient_id, body),
            "failure_kind": error.kind.value,
            "error": str(error),
        }
        if error.kind is FailureKind.PROVIDER:
            logger.error("outbound_message_failed", extra=fields)
        else:
            logger.warning("outbound_message_rejected", extra=fields)

        return SendResult(
            success=False,
            recipient_id=recipient_id or None,
            failure=SendFailure(
                kind=error.kind,
                message=str(error),
                pairing_path=getattr(error, "pairing_path", None),
            ),
        )

    def _audit_fields(self, recipient_id: str, body: str) -> dict[str, Any]:
        recipient = mask_recipient(recipient_id) if self._mask_pii else recipient_id
        return {
            "recipient": recipient,
            "body_preview": preview_body(body, self._preview_chars),
            "body_length": len(body),
            "logged_at": datetime.now(tz=UTC).isoformat(),
        }
