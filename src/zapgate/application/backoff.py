"""Política de reconexão (backoff) do Connection Manager."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from zapgate.config.settings import Settings

ReconnectStrategy = Literal["fixed", "exponential"]

# 2**32 * base já excede qualquer teto realista
_MAX_EXPONENT = 32


@dataclass(frozen=True)
class ReconnectPolicy:
    """Configuração de backoff com defaults conservadores.

    max_attempts=0 significa tentativas ilimitadas: o serviço existe para
    permanecer alcançável, então só logout remoto encerra a reconexão.
    """

    base_delay_seconds: float = 5.0
    max_delay_seconds: float = 60.0
    strategy: ReconnectStrategy = "exponential"
    max_attempts: int = 0

    def delay_for(self, attempt: int) -> float:
        """Espera antes da tentativa `attempt` (0 = primeira após a queda)."""
        if self.strategy == "fixed":
            return self.base_delay_seconds
        backoff = (2 ** min(max(attempt, 0), _MAX_EXPONENT)) * self.base_delay_seconds
        return min(backoff, self.max_delay_seconds)

    def exhausted(self, attempt: int) -> bool:
        """True se o limite explícito de tentativas foi atingido."""
        return self.max_attempts > 0 and attempt >= self.max_attempts

    @classmethod
    def from_settings(cls, settings: Settings) -> ReconnectPolicy:
        strategy = settings.reconnect_strategy.lower()
        return cls(
            base_delay_seconds=settings.reconnect_delay_seconds,
            max_delay_seconds=settings.reconnect_max_delay_seconds,
            strategy="fixed" if strategy == "fixed" else "exponential",
            max_attempts=settings.reconnect_max_attempts,
        )
