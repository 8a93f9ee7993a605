"""Logging estruturado (JSON) do gateway.

Todo evento sai como uma linha JSON com `correlation_id` da request corrente
e a identidade do serviço. Corpo de mensagens nunca entra no log: o
dispatcher registra apenas prévia limitada e tamanho.
"""

from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter

from zapgate.observability.middleware import get_correlation_id

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(correlation_id)s %(service)s"

# uvicorn.access duplicaria http_request_completed do middleware
_UVICORN_LOGGERS: dict[str, int | None] = {
    "uvicorn": None,
    "uvicorn.error": None,
    "uvicorn.access": logging.WARNING,
}


class CorrelationIdFilter(logging.Filter):
    """Anexa correlation_id e identidade do serviço a cada record."""

    def __init__(
        self,
        service_name: str,
        version: str | None = None,
        environment: str | None = None,
    ) -> None:
        super().__init__()
        self._service_name = service_name
        self._static_fields = {
            key: value
            for key, value in (("version", version), ("environment", environment))
            if value
        }

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        # correlation_id explícito em `extra` tem precedência
        if not getattr(record, "correlation_id", None):
            record.correlation_id = get_correlation_id()
        record.service = self._service_name
        for key, value in self._static_fields.items():
            setattr(record, key, value)
        return True


def configure_logging(
    level: str,
    service_name: str,
    *,
    version: str | None = None,
    environment: str | None = None,
) -> None:
    """Instala um único handler JSON no root logger.

    Loggers do uvicorn passam a propagar para o root, então o servidor roda
    com `log_config=None` e tudo sai no mesmo formato.
    """
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(
        JsonFormatter(_LOG_FORMAT, rename_fields={"levelname": "level", "name": "logger"})
    )
    handler.addFilter(CorrelationIdFilter(service_name, version, environment))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]

    for name, override in _UVICORN_LOGGERS.items():
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = []
        uvicorn_logger.propagate = True
        if override is not None:
            uvicorn_logger.setLevel(override)


def get_logger(name: str) -> logging.Logger:
    """Logger do módulo; o filtro do handler injeta os campos padrão."""
    return logging.getLogger(name)
