"""Eventos que disparam transições de fase da conexão."""

from __future__ import annotations

from enum import StrEnum


class ConnectionEvent(StrEnum):
    """Gatilhos da FSM de conexão."""

    # === Emitidos pelo Session Provider ===
    PAIRING_CODE = "PAIRING_CODE"
    """Novo QR code disponível para pareamento."""

    CONNECTED = "CONNECTED"
    """Sessão aberta e autenticada."""

    DISCONNECTED = "DISCONNECTED"
    """Conexão encerrada (motivo classificado à parte)."""

    # === Decisões do Connection Manager ===
    LOGGED_OUT = "LOGGED_OUT"
    """Motivo da queda é logout remoto (terminal)."""

    RECONNECT_DUE = "RECONNECT_DUE"
    """Backoff expirou (ou restart manual); nova tentativa vai começar."""

    RESTART_REQUESTED = "RESTART_REQUESTED"
    """Operador pediu novo pareamento após logout."""

    SHUTDOWN_REQUESTED = "SHUTDOWN_REQUESTED"
    """Processo recebeu sinal de encerramento."""

    STOPPED = "STOPPED"
    """Recursos liberados; FSM volta ao repouso final."""
