"""Middlewares de observabilidade."""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

# Logger direto: observability.logging importa este módulo
logger = logging.getLogger(__name__)


def get_correlation_id() -> str:
    """Retorna o correlation_id corrente (ou vazio)."""

    return _correlation_id.get()


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Gera ou propaga correlation_id e registra o desfecho de cada request."""

    def __init__(
        self,
        app: ASGIApp,
        header_name: str = "X-Correlation-ID",
        log_requests: bool = True,
    ) -> None:
        super().__init__(app)
        self._header_name = header_name.lower()
        self._log_requests = log_requests

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        incoming = request.headers.get(self._header_name)
        correlation_id = incoming or str(uuid.uuid4())
        token = _correlation_id.set(correlation_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
            if self._log_requests:
                logger.info(
                    "http_request_completed",
                    extra={
                        "method": request.method,
                        "path": request.url.path,
                        "status_code": response.status_code,
                        "elapsed_ms": round((time.perf_counter() - start) * 1000, 2),
                    },
                )
        finally:
            _correlation_id.reset(token)

        response.headers[self._header_name] = correlation_id
        return response
