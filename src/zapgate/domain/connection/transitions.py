"""Tabela de transições da conexão.

- TRANSITIONS[(fase_atual, evento)] = próxima_fase
- Validação pura: sem side effects
"""

from __future__ import annotations

from zapgate.domain.connection.events import ConnectionEvent
from zapgate.domain.connection.phases import ConnectionPhase

_Phase = ConnectionPhase
_Event = ConnectionEvent

TRANSITIONS: dict[tuple[ConnectionPhase, ConnectionEvent], ConnectionPhase] = {
    # === IDLE (tentativa de conexão em andamento) ===
    (_Phase.IDLE, _Event.PAIRING_CODE): _Phase.PAIRING,
    (_Phase.IDLE, _Event.CONNECTED): _Phase.CONNECTED,
    (_Phase.IDLE, _Event.DISCONNECTED): _Phase.DISCONNECTED,
    # === PAIRING ===
    (_Phase.PAIRING, _Event.PAIRING_CODE): _Phase.PAIRING,
    (_Phase.PAIRING, _Event.CONNECTED): _Phase.CONNECTED,
    (_Phase.PAIRING, _Event.DISCONNECTED): _Phase.DISCONNECTED,
    # === CONNECTED ===
    (_Phase.CONNECTED, _Event.DISCONNECTED): _Phase.DISCONNECTED,
    # === DISCONNECTED ===
    (_Phase.DISCONNECTED, _Event.LOGGED_OUT): _Phase.SHUTTING_DOWN,
    (_Phase.DISCONNECTED, _Event.RECONNECT_DUE): _Phase.IDLE,
    # === SHUTTING_DOWN (terminal até restart manual ou stop) ===
    (_Phase.SHUTTING_DOWN, _Event.RESTART_REQUESTED): _Phase.IDLE,
    (_Phase.SHUTTING_DOWN, _Event.STOPPED): _Phase.IDLE,
}

# Encerramento do processo é aceito de qualquer fase
for _phase in ConnectionPhase:
    TRANSITIONS[(_phase, _Event.SHUTDOWN_REQUESTED)] = _Phase.SHUTTING_DOWN


def validate_transition(
    current_phase: ConnectionPhase, event: ConnectionEvent
) -> tuple[bool, ConnectionPhase | None, str]:
    """Valida se uma transição é permitida.

    Retorna:
    - (True, next_phase, ""): transição válida
    - (False, None, motivo): transição inválida

    Nunca lança exceção; apenas valida.
    """
    key = (current_phase, event)
    if key not in TRANSITIONS:
        return (
            False,
            None,
            f"No transition from {current_phase} on event {event}",
        )
    return True, TRANSITIONS[key], ""
