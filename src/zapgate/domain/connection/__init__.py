"""Máquina de estados da conexão WhatsApp (fases, eventos, transições)."""

from zapgate.domain.connection.events import ConnectionEvent
from zapgate.domain.connection.phases import ConnectionPhase
from zapgate.domain.connection.transitions import TRANSITIONS, validate_transition

__all__ = [
    "ConnectionEvent",
    "ConnectionPhase",
    "TRANSITIONS",
    "validate_transition",
]
