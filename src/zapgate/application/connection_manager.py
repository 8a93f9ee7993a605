"""Connection Manager: dono único da sessão WhatsApp.

Responsabilidades:
- Iniciar a conexão via Session Provider e aplicar seus eventos na ordem
- Conduzir a FSM de conexão (ver domain/connection/transitions.py)
- Classificar quedas e agendar reconexão com backoff (uma por vez)
- Entregar o SessionHandle vivo apenas enquanto CONNECTED
- Publicar snapshots no StatusPublisher a cada transição

O lock protege apenas transições em memória; connect() e close() rodam
fora dele para não serializar leituras de status atrás de I/O de rede.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from zapgate.application.backoff import ReconnectPolicy
from zapgate.application.status import StatusPublisher
from zapgate.domain.connection import ConnectionEvent, ConnectionPhase, validate_transition
from zapgate.domain.disconnect import DisconnectReason, classify_disconnect
from zapgate.domain.errors import LoggedOutFatal, NotConnectedError
from zapgate.domain.models import StatusSnapshot
from zapgate.domain.protocols.session_provider import (
    EventSink,
    PairingCodeIssued,
    ProviderEvent,
    SessionConnected,
    SessionDisconnected,
    SessionHandle,
    SessionProvider,
)
from zapgate.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

DrainCallback = Callable[[float], Awaitable[Any]]


@dataclass
class _ConnectionState:
    """Estado mutável da conexão; acessado apenas sob o lock do manager."""

    phase: ConnectionPhase = ConnectionPhase.IDLE
    pairing_code: str | None = None
    last_disconnect_reason: DisconnectReason | None = None
    reconnect_attempt: int = 0
    session_handle: SessionHandle | None = None
    next_reconnect_at: datetime | None = None


def _describe_cause(cause: Any) -> str | None:
    if cause is None:
        return None
    if isinstance(cause, BaseException):
        return f"{type(cause).__name__}: {cause}"
    return str(cause)


class ConnectionManager:
    """Gerencia o ciclo de vida da única sessão do processo."""

    def __init__(
        self,
        provider: SessionProvider,
        status: StatusPublisher,
        policy: ReconnectPolicy | None = None,
        *,
        auto_reconnect: bool = True,
        pairing_path: str = "/qr",
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_pairing_code: Callable[[str], None] | None = None,
    ) -> None:
        self._provider = provider
        self._status = status
        self._policy = policy or ReconnectPolicy()
        self._auto_reconnect = auto_reconnect
        self._pairing_path = pairing_path
        self._sleep = sleep
        self._on_pairing_code_issued = on_pairing_code

        self._state = _ConnectionState()
        self._lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._events: asyncio.Queue[tuple[int, ProviderEvent]] | None = None
        self._consumer: asyncio.Task[None] | None = None
        self._reconnect_timer: asyncio.Task[Any] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

        # Cada tentativa de conexão recebe uma geração; eventos de gerações
        # anteriores (handle já invalidado) são descartados.
        self._generation = 0
        self._attempt_in_flight = False
        self._started = False
        self._stopping = False

    # ------------------------------------------------------------------
    # Leitura (observabilidade e testes)
    # ------------------------------------------------------------------

    @property
    def phase(self) -> ConnectionPhase:
        return self._state.phase

    @property
    def reconnect_attempt(self) -> int:
        return self._state.reconnect_attempt

    @property
    def reconnect_scheduled(self) -> bool:
        return self._reconnect_timer is not None and not self._reconnect_timer.done()

    @property
    def pairing_path(self) -> str:
        return self._pairing_path

    def snapshot(self) -> StatusSnapshot:
        """Snapshot consistente, sem aguardar o lock."""
        return self._status.snapshot()

    # ------------------------------------------------------------------
    # Ciclo de vida
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Inicia o consumidor de eventos e a primeira tentativa de conexão.

        Não aguarda o desfecho da conexão: o pareamento pode levar minutos.
        """
        async with self._lock:
            if self._started:
                return
            self._started = True
            self._loop = asyncio.get_running_loop()
            self._events = asyncio.Queue()
            self._consumer = asyncio.create_task(
                self._consume_events(self._events), name="zapgate-connection-events"
            )
            self._publish()

        logger.info(
            "connection_manager_started",
            extra={
                "auto_reconnect": self._auto_reconnect,
                "reconnect_strategy": self._policy.strategy,
                "reconnect_base_delay_seconds": self._policy.base_delay_seconds,
                "reconnect_max_attempts": self._policy.max_attempts,
            },
        )
        self._spawn(self._attempt_connect())

    async def restart(self) -> bool:
        """Reinicia manualmente a sessão após logout ou reconexão abandonada.

        Após logout as credenciais salvas são descartadas para que um novo
        QR code seja emitido.

        Returns:
            True se uma nova tentativa foi iniciada
        """
        async with self._lock:
            state = self._state
            if self._stopping or not self._started:
                return False

            logged_out = state.phase is ConnectionPhase.SHUTTING_DOWN
            idle_disconnected = (
                state.phase is ConnectionPhase.DISCONNECTED
                and not self.reconnect_scheduled
                and not self._attempt_in_flight
            )
            if not (logged_out or idle_disconnected):
                logger.info("session_restart_rejected", extra={"phase": state.phase.value})
                return False

            event = (
                ConnectionEvent.RESTART_REQUESTED if logged_out else ConnectionEvent.RECONNECT_DUE
            )
            self._apply(event)
            state.reconnect_attempt = 0
            self._publish()

        if logged_out:
            try:
                await self._provider.reset_credentials()
            except Exception as exc:
                logger.warning(
                    "credential_reset_failed",
                    extra={"error": type(exc).__name__, "detail": str(exc)},
                )

        logger.info("session_restart_requested", extra={"forget_credentials": logged_out})
        self._spawn(self._attempt_connect())
        return True

    async def shutdown(
        self,
        grace_seconds: float = 10.0,
        drain: DrainCallback | None = None,
    ) -> None:
        """Encerramento gracioso.

        1. Para de agendar reconexões e recusa novos envios
        2. Aguarda envios em andamento por até `grace_seconds` (via `drain`)
        3. Fecha o SessionHandle vivo
        4. Libera o provider, cancela tarefas de fundo e volta a IDLE (final)
        """
        async with self._lock:
            if self._stopping:
                return
            self._stopping = True
            self._apply(ConnectionEvent.SHUTDOWN_REQUESTED)
            self._state.pairing_code = None
            self._state.next_reconnect_at = None
            timer, self._reconnect_timer = self._reconnect_timer, None
            self._publish()

        logger.info("connection_shutdown_started", extra={"grace_seconds": grace_seconds})
        if timer is not None:
            timer.cancel()

        if drain is not None:
            await drain(grace_seconds)

        async with self._lock:
            handle, self._state.session_handle = self._state.session_handle, None
        if handle is not None:
            await self._close_handle(handle)
        try:
            await self._provider.aclose()
        except Exception as exc:
            logger.warning(
                "session_provider_close_failed",
                extra={"error": type(exc).__name__, "detail": str(exc)},
            )

        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        if self._consumer is not None:
            self._consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._consumer
            self._consumer = None

        async with self._lock:
            self._apply(ConnectionEvent.STOPPED)
            self._publish()
        logger.info("connection_shutdown_completed")

    # ------------------------------------------------------------------
    # Acesso ao envio
    # ------------------------------------------------------------------

    async def acquire_handle(self) -> SessionHandle:
        """Retorna o SessionHandle vivo.

        Raises:
            LoggedOutFatal: sessão revogada remotamente
            NotConnectedError: qualquer outra fase diferente de CONNECTED
        """
        async with self._lock:
            state = self._state
            if state.phase is ConnectionPhase.CONNECTED and state.session_handle is not None:
                return state.session_handle
            if (
                state.phase is ConnectionPhase.SHUTTING_DOWN
                and state.last_disconnect_reason is DisconnectReason.LOGGED_OUT
                and not self._stopping
            ):
                raise LoggedOutFatal(
                    "Logged out from WhatsApp. Restart the session and scan QR again.",
                    pairing_path=self._pairing_path,
                )
            raise NotConnectedError(
                "WhatsApp not connected. Please scan QR code first.",
                pairing_path=self._pairing_path,
            )

    # ------------------------------------------------------------------
    # Tentativas de conexão
    # ------------------------------------------------------------------

    async def _attempt_connect(self, from_timer: bool = False) -> bool:
        async with self._lock:
            if from_timer:
                self._reconnect_timer = None
                self._state.next_reconnect_at = None
            if self._stopping or self._attempt_in_flight:
                logger.debug(
                    "connect_attempt_skipped",
                    extra={"stopping": self._stopping, "in_flight": self._attempt_in_flight},
                )
                return False
            if self._state.phase is ConnectionPhase.DISCONNECTED:
                self._apply(ConnectionEvent.RECONNECT_DUE)
            if self._state.phase is not ConnectionPhase.IDLE:
                logger.warning(
                    "connect_attempt_rejected", extra={"phase": self._state.phase.value}
                )
                return False
            self._attempt_in_flight = True
            self._generation += 1
            generation = self._generation
            attempt = self._state.reconnect_attempt
            self._publish()

        logger.info(
            "connect_attempt_started",
            extra={"generation": generation, "reconnect_attempt": attempt},
        )
        emit = self._make_sink(generation)
        try:
            await self._provider.connect(emit)
        except Exception as exc:
            # Falha ao iniciar (ex.: I/O de credenciais) segue o mesmo backoff
            logger.warning(
                "connect_attempt_failed",
                extra={"generation": generation, "error": type(exc).__name__, "detail": str(exc)},
            )
            emit(SessionDisconnected(cause=exc, reason=DisconnectReason.PROVIDER_ERROR))
        return True

    async def _reconnect_after(self, delay: float) -> None:
        await self._sleep(delay)
        await self._attempt_connect(from_timer=True)

    def _schedule_reconnect(self, delay: float) -> None:
        """Agenda a próxima tentativa (chamar sob o lock)."""
        if self.reconnect_scheduled:
            logger.info("reconnect_already_scheduled")
            return
        self._state.next_reconnect_at = self._status.now() + timedelta(seconds=delay)
        self._reconnect_timer = self._spawn(self._reconnect_after(delay))
        logger.info(
            "reconnect_scheduled",
            extra={"delay_seconds": delay, "reconnect_attempt": self._state.reconnect_attempt},
        )

    # ------------------------------------------------------------------
    # Eventos do provider
    # ------------------------------------------------------------------

    def _make_sink(self, generation: int) -> EventSink:
        loop = self._loop
        queue = self._events
        if loop is None or queue is None:
            raise RuntimeError("ConnectionManager.start() ainda não foi chamado")

        def emit(event: ProviderEvent) -> None:
            try:
                loop.call_soon_threadsafe(queue.put_nowait, (generation, event))
            except RuntimeError:
                logger.debug("provider_event_after_loop_closed", extra={"generation": generation})

        return emit

    async def _consume_events(self, queue: asyncio.Queue[tuple[int, ProviderEvent]]) -> None:
        while True:
            generation, event = await queue.get()
            try:
                await self._handle_event(generation, event)
            except Exception:
                logger.exception(
                    "connection_event_failed", extra={"event": type(event).__name__}
                )

    async def _handle_event(self, generation: int, event: ProviderEvent) -> None:
        orphan: SessionHandle | None = None
        async with self._lock:
            if generation != self._generation or self._stopping:
                logger.info(
                    "stale_session_event_ignored",
                    extra={
                        "event": type(event).__name__,
                        "generation": generation,
                        "current_generation": self._generation,
                    },
                )
                if isinstance(event, SessionConnected):
                    orphan = event.handle
            elif isinstance(event, PairingCodeIssued):
                self._on_pairing_code(event)
            elif isinstance(event, SessionConnected):
                orphan = self._on_connected(event)
            elif isinstance(event, SessionDisconnected):
                orphan = self._on_disconnected(event)

        if orphan is not None:
            await self._close_handle(orphan)

    def _on_pairing_code(self, event: PairingCodeIssued) -> None:
        if not self._apply(ConnectionEvent.PAIRING_CODE):
            return
        self._state.pairing_code = event.data
        self._publish()
        logger.info("pairing_code_issued", extra={"pairing_path": self._pairing_path})
        if self._on_pairing_code_issued is not None:
            try:
                self._on_pairing_code_issued(event.data)
            except Exception as exc:
                logger.warning(
                    "pairing_code_callback_failed",
                    extra={"error": type(exc).__name__, "detail": str(exc)},
                )

    def _on_connected(self, event: SessionConnected) -> SessionHandle | None:
        state = self._state
        if event.handle is state.session_handle:
            return None
        if not self._apply(ConnectionEvent.CONNECTED):
            return event.handle

        state.pairing_code = None
        state.reconnect_attempt = 0
        state.last_disconnect_reason = None
        state.next_reconnect_at = None
        state.session_handle = event.handle
        self._attempt_in_flight = False
        self._publish()
        logger.info("session_connected", extra={"generation": self._generation})
        return None

    def _on_disconnected(self, event: SessionDisconnected) -> SessionHandle | None:
        state = self._state
        reason = event.reason or classify_disconnect(event.cause)
        if state.phase is ConnectionPhase.DISCONNECTED and reason.is_terminal:
            # Logout após a queda: revoga a reconexão já agendada
            self._escalate_to_logout()
            return None
        if not self._apply(ConnectionEvent.DISCONNECTED):
            return None

        handle, state.session_handle = state.session_handle, None
        state.pairing_code = None
        state.last_disconnect_reason = reason
        self._attempt_in_flight = False
        logger.warning(
            "session_disconnected",
            extra={"reason": reason.value, "cause": _describe_cause(event.cause)},
        )

        if reason.is_terminal:
            self._apply(ConnectionEvent.LOGGED_OUT)
            logger.error(
                "session_logged_out",
                extra={"pairing_path": self._pairing_path, "action": "restart_and_scan_qr"},
            )
        elif not self._auto_reconnect:
            logger.warning("auto_reconnect_disabled", extra={"reason": reason.value})
        elif self._policy.exhausted(state.reconnect_attempt):
            logger.error(
                "reconnect_attempts_exhausted",
                extra={"reconnect_attempt": state.reconnect_attempt},
            )
        else:
            delay = self._policy.delay_for(state.reconnect_attempt)
            state.reconnect_attempt += 1
            self._schedule_reconnect(delay)

        self._publish()
        return handle

    def _escalate_to_logout(self) -> None:
        state = self._state
        timer, self._reconnect_timer = self._reconnect_timer, None
        if timer is not None:
            timer.cancel()
        state.next_reconnect_at = None
        state.last_disconnect_reason = DisconnectReason.LOGGED_OUT
        self._apply(ConnectionEvent.LOGGED_OUT)
        self._publish()
        logger.error(
            "session_logged_out",
            extra={
                "pairing_path": self._pairing_path,
                "action": "restart_and_scan_qr",
                "reconnect_cancelled": timer is not None,
            },
        )

    # ------------------------------------------------------------------
    # Internos
    # ------------------------------------------------------------------

    def _apply(self, event: ConnectionEvent) -> bool:
        """Aplica uma transição da FSM (chamar sob o lock)."""
        current = self._state.phase
        ok, next_phase, reason = validate_transition(current, event)
        if not ok or next_phase is None:
            logger.warning(
                "connection_transition_rejected",
                extra={"phase": current.value, "event": event.value, "reason": reason},
            )
            return False
        self._state.phase = next_phase
        if next_phase is not current:
            logger.info(
                "connection_phase_changed",
                extra={"from_phase": current.value, "to_phase": next_phase.value, "event": event.value},
            )
        return True

    def _publish(self) -> None:
        state = self._state
        reason = state.last_disconnect_reason
        self._status.publish(
            phase=state.phase,
            pairing_code=state.pairing_code,
            last_error=reason.value if reason else None,
            reconnect_attempt=state.reconnect_attempt,
            next_reconnect_at=state.next_reconnect_at,
        )

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _close_handle(self, handle: SessionHandle) -> None:
        try:
            await handle.close()
        except Exception as exc:
            logger.warning(
                "session_handle_close_failed",
                extra={"error": type(exc).__name__, "detail": str(exc)},
            )
