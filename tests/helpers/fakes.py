"""Dublês de Session Provider controlados pelos testes."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from zapgate.domain.protocols.session_provider import (
    EventSink,
    PairingCodeIssued,
    SessionConnected,
    SessionDisconnected,
    SessionHandle,
    SessionProvider,
)


class FakeSessionHandle(SessionHandle):
    """Handle que registra envios; pode falhar ou bloquear sob demanda."""

    def __init__(self, fail_with: Exception | None = None) -> None:
        self.sent: list[tuple[str, str]] = []
        self.closed = False
        self.close_calls = 0
        self.fail_with = fail_with
        self.gate: asyncio.Event | None = None

    async def send(self, recipient_id: str, body: str) -> str:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        if self.closed:
            raise ConnectionError("Connection Closed")
        self.sent.append((recipient_id, body))
        return f"MSG-{len(self.sent)}"

    async def close(self) -> None:
        self.closed = True
        self.close_calls += 1


class FakeSessionProvider(SessionProvider):
    """Provider cujo desfecho de cada connect() é decidido pelo teste."""

    def __init__(self) -> None:
        self.emits: list[EventSink] = []
        self.connect_failures: list[Exception] = []
        self.reset_calls = 0
        self.closed = False

    @property
    def connect_calls(self) -> int:
        return len(self.emits)

    @property
    def emit(self) -> EventSink:
        return self.emits[-1]

    async def connect(self, emit: EventSink) -> None:
        self.emits.append(emit)
        if self.connect_failures:
            raise self.connect_failures.pop(0)

    async def reset_credentials(self) -> None:
        self.reset_calls += 1

    async def aclose(self) -> None:
        self.closed = True

    def pairing(self, code: str = "2@ref,key") -> None:
        self.emit(PairingCodeIssued(code))

    def connected(self, handle: FakeSessionHandle | None = None) -> FakeSessionHandle:
        handle = handle or FakeSessionHandle()
        self.emit(SessionConnected(handle))
        return handle

    def disconnected(self, cause: object = None) -> None:
        self.emit(SessionDisconnected(cause=cause))


class RecordingSleep:
    """Substitui asyncio.sleep no backoff; `hold=True` mantém o timer pendente."""

    def __init__(self, hold: bool = False) -> None:
        self.delays: list[float] = []
        self.release = asyncio.Event()
        if not hold:
            self.release.set()

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await self.release.wait()


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Cede o loop até `predicate()` ser verdadeiro."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.001)


async def settle(rounds: int = 20) -> None:
    """Deixa o loop processar callbacks e eventos pendentes."""
    for _ in range(rounds):
        await asyncio.sleep(0)
