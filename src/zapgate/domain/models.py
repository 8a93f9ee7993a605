"""Modelos de domínio do envio outbound e do status da conexão."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel

from zapgate.domain.connection.phases import ConnectionPhase
from zapgate.domain.errors import FailureKind


class SendRequest(BaseModel):
    """Requisição de envio já normalizada (efêmera, nunca persistida)."""

    recipient_id: str  # Apenas dígitos (DDI + DDD + número)
    body: str


class SendFailure(BaseModel):
    """Falha classificada de um envio."""

    kind: FailureKind
    message: str
    pairing_path: str | None = None  # Preenchido em falhas de conexão


class SendResult(BaseModel):
    """Resultado estável do envio outbound."""

    success: bool
    provider_message_id: str | None = None
    recipient_id: str | None = None
    failure: SendFailure | None = None


@dataclass(frozen=True, slots=True)
class StatusSnapshot:
    """Fotografia imutável da conexão publicada a cada transição.

    Leitores recebem sempre o objeto inteiro (antes ou depois da transição),
    nunca campos misturados.
    """

    phase: ConnectionPhase
    started_at: datetime
    updated_at: datetime
    pairing_code: str | None = None
    last_error: str | None = None
    reconnect_attempt: int = 0
    next_reconnect_at: datetime | None = None

    @property
    def connected(self) -> bool:
        return self.phase is ConnectionPhase.CONNECTED

    @property
    def pairing_code_available(self) -> bool:
        return self.pairing_code is not None

    @property
    def fatal(self) -> bool:
        """Logout remoto: só sai daqui com restart manual."""
        return self.phase is ConnectionPhase.SHUTTING_DOWN and self.last_error == "logged_out"

    def uptime_seconds(self, now: datetime) -> float:
        return max(0.0, (now - self.started_at).total_seconds())
