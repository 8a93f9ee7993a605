"""Dependências injetadas nas rotas."""

from __future__ import annotations

from fastapi import Request

from zapgate.application.connection_manager import ConnectionManager
from zapgate.application.dispatcher import OutboundDispatcher
from zapgate.application.status import StatusPublisher
from zapgate.config.settings import Settings


def get_settings(request: Request) -> Settings:
    """Retorna settings da aplicação."""

    return request.app.state.settings


def get_status_publisher(request: Request) -> StatusPublisher:
    """Retorna o publicador de status da conexão."""

    return request.app.state.status_publisher


def get_connection_manager(request: Request) -> ConnectionManager:
    """Retorna o gerenciador da sessão WhatsApp."""

    return request.app.state.connection_manager


def get_dispatcher(request: Request) -> OutboundDispatcher:
    """Retorna o dispatcher de envio outbound."""

    return request.app.state.dispatcher
