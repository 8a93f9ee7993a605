"""Fábrica da aplicação FastAPI."""

from __future__ import annotations

import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from zapgate.adapters.pairing.renderer import render_qr_ascii
from zapgate.api.routes import router
from zapgate.application.backoff import ReconnectPolicy
from zapgate.application.connection_manager import ConnectionManager
from zapgate.application.dispatcher import OutboundDispatcher
from zapgate.application.status import StatusPublisher
from zapgate.config.settings import Settings, get_settings
from zapgate.domain.protocols.session_provider import SessionProvider
from zapgate.infra.provider_factory import create_session_provider
from zapgate.observability.logging import configure_logging, get_logger
from zapgate.observability.middleware import CorrelationIdMiddleware

logger = get_logger(__name__)

PAIRING_PATH = "/qr"


def print_pairing_qr(data: str) -> None:
    """Imprime o QR code em stdout para parear sem acesso HTTP."""
    sys.stdout.write(render_qr_ascii(data))
    sys.stdout.write(f"Scan the QR code above or open {PAIRING_PATH}\n")
    sys.stdout.flush()


def create_app(
    settings: Settings | None = None,
    provider: SessionProvider | None = None,
) -> FastAPI:
    """Cria a aplicação FastAPI.

    A conexão WhatsApp é iniciada no startup (lifespan) e encerrada de forma
    graciosa no shutdown, aguardando envios em andamento.
    """
    settings = settings or get_settings()
    configure_logging(
        settings.log_level,
        settings.service_name,
        version=settings.version,
        environment=settings.environment,
    )

    validation_errors: list[str] = []
    validation_errors.extend(settings.validate_reconnect_config())
    validation_errors.extend(settings.validate_session_backend())
    validation_errors.extend(settings.validate_dispatch_config())

    if validation_errors:
        error_msg = "; ".join(validation_errors)
        raise ValueError(f"Configuração inválida: {error_msg}")

    provider = provider or create_session_provider(settings)
    status_publisher = StatusPublisher()
    manager = ConnectionManager(
        provider,
        status_publisher,
        ReconnectPolicy.from_settings(settings),
        auto_reconnect=settings.auto_reconnect,
        pairing_path=PAIRING_PATH,
        on_pairing_code=print_pairing_qr if settings.print_qr_in_terminal else None,
    )
    dispatcher = OutboundDispatcher(
        manager,
        min_digits=settings.min_phone_digits,
        max_body_chars=settings.max_message_length_chars,
        preview_chars=settings.log_preview_chars,
        mask_pii=settings.pii_masking_enabled,
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "service_starting",
            extra={"environment": settings.environment, "pairing_path": PAIRING_PATH},
        )
        await manager.start()
        try:
            yield
        finally:
            logger.info("Shutting down gracefully...")
            await manager.shutdown(settings.shutdown_grace_seconds, drain=dispatcher.drain)

    app = FastAPI(title=settings.service_name, version=settings.version, lifespan=lifespan)
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name=settings.correlation_id_header,
        log_requests=settings.enable_request_logging,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)

    app.state.settings = settings
    app.state.session_provider = provider
    app.state.status_publisher = status_publisher
    app.state.connection_manager = manager
    app.state.dispatcher = dispatcher

    return app
