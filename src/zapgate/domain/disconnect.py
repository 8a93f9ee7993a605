"""Classificação dos motivos de desconexão reportados pelo provider.

Códigos numéricos seguem os status de desconexão do protocolo WhatsApp Web
(401 loggedOut, 408 timedOut/connectionLost, 428 connectionClosed, ...).
"""

from __future__ import annotations

import asyncio
from enum import StrEnum
from typing import Any


class DisconnectReason(StrEnum):
    """Conjunto fechado de motivos de desconexão."""

    LOGGED_OUT = "logged_out"
    """Sessão revogada remotamente (terminal)."""

    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    PROVIDER_ERROR = "provider_error"

    @property
    def is_terminal(self) -> bool:
        """Somente logout encerra a reconexão automática."""
        return self is DisconnectReason.LOGGED_OUT


_STATUS_CODE_REASONS: dict[int, DisconnectReason] = {
    401: DisconnectReason.LOGGED_OUT,
    408: DisconnectReason.TIMEOUT,
    428: DisconnectReason.NETWORK_ERROR,  # connectionClosed
    503: DisconnectReason.NETWORK_ERROR,  # unavailableService
    515: DisconnectReason.NETWORK_ERROR,  # restartRequired
    403: DisconnectReason.PROVIDER_ERROR,  # forbidden
    411: DisconnectReason.PROVIDER_ERROR,  # multideviceMismatch
    440: DisconnectReason.PROVIDER_ERROR,  # connectionReplaced
    500: DisconnectReason.PROVIDER_ERROR,  # badSession
}

_TEXT_REASONS: dict[str, DisconnectReason] = {
    "logged_out": DisconnectReason.LOGGED_OUT,
    "loggedout": DisconnectReason.LOGGED_OUT,
    "timeout": DisconnectReason.TIMEOUT,
    "timed_out": DisconnectReason.TIMEOUT,
    "timedout": DisconnectReason.TIMEOUT,
    "network_error": DisconnectReason.NETWORK_ERROR,
    "connection_lost": DisconnectReason.NETWORK_ERROR,
    "connection_closed": DisconnectReason.NETWORK_ERROR,
    "provider_error": DisconnectReason.PROVIDER_ERROR,
    "bad_session": DisconnectReason.PROVIDER_ERROR,
}


def _extract_status_code(cause: Any) -> int | None:
    if isinstance(cause, bool):
        return None
    if isinstance(cause, int):
        return cause
    for attr in ("status_code", "code"):
        value = getattr(cause, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def classify_disconnect(cause: Any) -> DisconnectReason:
    """Mapeia a causa bruta reportada pelo provider para DisconnectReason.

    Aceita o próprio DisconnectReason, status code numérico, texto
    ("logged_out", "timeout", ...) ou exceção (com `status_code`/`code`
    quando disponível). Causas desconhecidas viram NETWORK_ERROR: nunca
    LOGGED_OUT, para não abandonar uma sessão recuperável.
    """
    if isinstance(cause, DisconnectReason):
        return cause

    status_code = _extract_status_code(cause)
    if status_code is not None:
        return _STATUS_CODE_REASONS.get(status_code, DisconnectReason.NETWORK_ERROR)

    if isinstance(cause, str):
        key = cause.strip().lower().replace("-", "_").replace(" ", "_")
        return _TEXT_REASONS.get(key, DisconnectReason.NETWORK_ERROR)

    if isinstance(cause, (TimeoutError, asyncio.TimeoutError)):
        return DisconnectReason.TIMEOUT
    if isinstance(cause, (ConnectionError, OSError)):
        return DisconnectReason.NETWORK_ERROR

    return DisconnectReason.NETWORK_ERROR
