"""Rotas HTTP: status, pareamento e envio de mensagens."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel

from zapgate.adapters.pairing.renderer import render_pairing_page, render_qr_data_url
from zapgate.api.dependencies import (
    get_connection_manager,
    get_dispatcher,
    get_settings,
    get_status_publisher,
)
from zapgate.application.connection_manager import ConnectionManager
from zapgate.application.dispatcher import OutboundDispatcher
from zapgate.application.status import StatusPublisher
from zapgate.config.settings import Settings
from zapgate.domain.errors import FailureKind
from zapgate.domain.models import SendFailure
from zapgate.observability.logging import get_logger
from zapgate.observability.middleware import get_correlation_id

logger = get_logger(__name__)

router = APIRouter()

_FAILURE_STATUS: dict[FailureKind, int] = {
    FailureKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    FailureKind.NOT_CONNECTED: status.HTTP_503_SERVICE_UNAVAILABLE,
    FailureKind.LOGGED_OUT: status.HTTP_503_SERVICE_UNAVAILABLE,
    FailureKind.PROVIDER: status.HTTP_502_BAD_GATEWAY,
}

_SEND_EXAMPLE = {"phone": "919999999999", "message": "Hello World"}


class SendMessageBody(BaseModel):
    """Payload de POST /send-message."""

    phone: str | None = None
    message: str | None = None


class SampleMessageBody(BaseModel):
    """Payload opcional de POST /test."""

    phone: str | None = None
    message: str | None = None


def _now_iso() -> str:
    return datetime.now(tz=UTC).isoformat()


def _pairing_url(request: Request, path: str) -> str:
    return f"{str(request.base_url).rstrip('/')}{path}"


def _failure_response(
    failure: SendFailure,
    request: Request,
    extra: dict[str, Any] | None = None,
) -> JSONResponse:
    payload: dict[str, Any] = {
        "success": False,
        "error": failure.message,
        "error_code": failure.kind.value.upper(),
        "correlation_id": get_correlation_id(),
        "timestamp": _now_iso(),
    }
    if failure.pairing_path:
        payload["qrUrl"] = _pairing_url(request, failure.pairing_path)
    if extra:
        payload.update(extra)
    return JSONResponse(status_code=_FAILURE_STATUS[failure.kind], content=payload)


@router.get("/")
def root(
    settings: Settings = Depends(get_settings),
    publisher: StatusPublisher = Depends(get_status_publisher),
) -> dict[str, Any]:
    """Health check com estado da conexão."""
    snapshot = publisher.snapshot()
    return {
        "status": "running",
        "connected": snapshot.connected,
        "service": settings.service_name,
        "timestamp": _now_iso(),
        "uptime": round(snapshot.uptime_seconds(publisher.now()), 3),
    }


@router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    """Healthcheck simples para orquestradores."""
    return {"status": "ok", "service": settings.service_name, "version": settings.version}


@router.get("/status")
def connection_status(
    settings: Settings = Depends(get_settings),
    publisher: StatusPublisher = Depends(get_status_publisher),
) -> dict[str, Any]:
    """Snapshot completo da conexão (nunca parcialmente atualizado)."""
    snapshot = publisher.snapshot()
    next_at = snapshot.next_reconnect_at
    return {
        "connected": snapshot.connected,
        "phase": snapshot.phase.value,
        "qrReady": snapshot.pairing_code_available,
        "lastError": snapshot.last_error,
        "reconnectAttempt": snapshot.reconnect_attempt,
        "nextReconnectAt": next_at.isoformat() if next_at else None,
        "fatal": snapshot.fatal,
        "startedAt": snapshot.started_at.isoformat(),
        "uptime": round(snapshot.uptime_seconds(publisher.now()), 3),
        "timestamp": _now_iso(),
        "environment": settings.environment,
    }


@router.get("/qr")
def pairing_code(
    response_format: str | None = Query(None, alias="format"),
    publisher: StatusPublisher = Depends(get_status_publisher),
) -> Response:
    """QR code de pareamento (HTML por padrão, JSON com ?format=json)."""
    snapshot = publisher.snapshot()
    if snapshot.connected:
        return JSONResponse(
            {
                "status": "connected",
                "message": "Already connected to WhatsApp",
                "timestamp": _now_iso(),
            }
        )
    if snapshot.fatal:
        return JSONResponse(
            {
                "status": "logged_out",
                "message": "Logged out from WhatsApp. POST /session/restart and scan the new QR.",
                "timestamp": _now_iso(),
            }
        )
    if snapshot.pairing_code is None:
        return JSONResponse(
            {
                "status": "loading",
                "message": "QR Code not ready, please wait...",
                "timestamp": _now_iso(),
            }
        )

    try:
        data_url = render_qr_data_url(snapshot.pairing_code)
    except Exception as exc:
        logger.error("qr_render_failed", extra={"error": type(exc).__name__})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="qr_render_failed",
        ) from exc

    if response_format == "json":
        return JSONResponse({"status": "pairing", "qr": data_url, "timestamp": _now_iso()})
    return HTMLResponse(render_pairing_page(data_url))


@router.post("/send-message")
async def send_message(
    body: SendMessageBody,
    request: Request,
    dispatcher: OutboundDispatcher = Depends(get_dispatcher),
) -> JSONResponse:
    """Envia mensagem de texto (funcionalidade principal)."""
    if not body.phone or not body.message:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "error": "Phone number and message are required",
                "error_code": FailureKind.VALIDATION.value.upper(),
                "example": _SEND_EXAMPLE,
            },
        )

    result = await dispatcher.send(body.phone, body.message)
    if result.failure is not None:
        extra = None
        if result.failure.kind is FailureKind.VALIDATION:
            extra = {"received": body.phone, "cleaned": result.recipient_id or ""}
        return _failure_response(result.failure, request, extra)

    return JSONResponse(
        {
            "success": True,
            "message": "Message sent successfully",
            "data": {
                "to": body.phone,
                "cleanPhone": result.recipient_id,
                "messageLength": len(body.message),
                "messageId": result.provider_message_id,
                "timestamp": _now_iso(),
            },
        }
    )


@router.post("/test")
async def send_test_message(
    request: Request,
    body: SampleMessageBody | None = None,
    settings: Settings = Depends(get_settings),
    dispatcher: OutboundDispatcher = Depends(get_dispatcher),
) -> JSONResponse:
    """Envia mensagem de teste para validar a integração."""
    phone = (body.phone if body else None) or settings.test_recipient
    message = (body.message if body else None) or settings.test_message

    result = await dispatcher.send(phone, message)
    if result.failure is not None:
        return _failure_response(result.failure, request)

    return JSONResponse(
        {
            "success": True,
            "message": "Test message sent successfully",
            "to": phone,
            "messageId": result.provider_message_id,
            "timestamp": _now_iso(),
        }
    )


@router.post("/session/restart")
async def restart_session(
    manager: ConnectionManager = Depends(get_connection_manager),
) -> dict[str, Any]:
    """Reinicia a sessão após logout (novo QR code) ou reconexão abandonada."""
    started = await manager.restart()
    if not started:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "restart_not_allowed", "phase": manager.phase.value},
        )
    return {
        "success": True,
        "status": "restarting",
        "qrPath": manager.pairing_path,
        "timestamp": _now_iso(),
    }
