"""Taxonomia de erros do gateway.

Cada erro carrega um FailureKind estável, usado pela camada HTTP para
escolher o status code e pelo chamador para decidir se tenta novamente.
"""

from __future__ import annotations

from enum import StrEnum


class FailureKind(StrEnum):
    """Categorias de falha visíveis ao chamador."""

    VALIDATION = "validation"  # Corrigível pelo chamador; não retentar
    NOT_CONNECTED = "not_connected"  # Transitório; retentar após pareamento
    PROVIDER = "provider"  # Falha de rede/sessão; reconexão é interna
    LOGGED_OUT = "logged_out"  # Terminal; requer novo pareamento manual


class GatewayError(Exception):
    """Erro base do gateway."""

    kind: FailureKind = FailureKind.PROVIDER


class ValidationError(GatewayError):
    """Requisição de envio inválida (telefone ou mensagem)."""

    kind = FailureKind.VALIDATION


class NotConnectedError(GatewayError):
    """Sessão não está conectada; cliente deve aguardar o pareamento."""

    kind = FailureKind.NOT_CONNECTED

    def __init__(self, message: str, pairing_path: str = "/qr") -> None:
        super().__init__(message)
        self.pairing_path = pairing_path


class LoggedOutFatal(NotConnectedError):
    """Sessão revogada remotamente; reconexão automática foi encerrada."""

    kind = FailureKind.LOGGED_OUT


class ProviderError(GatewayError):
    """Falha reportada pelo Session Provider."""

    kind = FailureKind.PROVIDER
