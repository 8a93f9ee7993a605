"""Publicação do status da conexão para a camada HTTP."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from zapgate.domain.connection.phases import ConnectionPhase
from zapgate.domain.models import StatusSnapshot


class StatusPublisher:
    """Snapshot read-mostly da conexão.

    Cada publicação troca a referência para um novo StatusSnapshot imutável;
    leitores concorrentes veem o snapshot anterior ou o novo, inteiro.
    Escrito apenas pelo ConnectionManager.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        now = self._clock()
        self._lock = threading.Lock()
        self._snapshot = StatusSnapshot(
            phase=ConnectionPhase.IDLE,
            started_at=now,
            updated_at=now,
        )

    def snapshot(self) -> StatusSnapshot:
        with self._lock:
            return self._snapshot

    def publish(self, **changes: Any) -> StatusSnapshot:
        """Aplica `changes` sobre o snapshot atual e publica o resultado."""
        with self._lock:
            self._snapshot = replace(self._snapshot, updated_at=self._clock(), **changes)
            return self._snapshot

    def now(self) -> datetime:
        return self._clock()
