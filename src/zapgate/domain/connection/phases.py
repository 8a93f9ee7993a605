"""Fases canônicas da conexão com a rede de mensagens.

- Existe exatamente uma conexão por processo
- Fase só muda via tabela de transições (FSM)
"""

from __future__ import annotations

from enum import StrEnum


class ConnectionPhase(StrEnum):
    """5 fases do ciclo de vida da sessão."""

    IDLE = "idle"
    """Sem conexão ativa; tentativa de conexão pode estar em andamento."""

    PAIRING = "pairing"
    """Aguardando leitura do QR code (pairing code disponível)."""

    CONNECTED = "connected"
    """Sessão autenticada; envio permitido."""

    DISCONNECTED = "disconnected"
    """Conexão caiu; reconexão pode estar agendada."""

    SHUTTING_DOWN = "shutting_down"
    """Sessão revogada (logout) ou processo encerrando; sem reconexão automática."""
