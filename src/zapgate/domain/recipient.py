"""Normalização e validação de requisições outbound.

Inclui helpers de log que nunca expõem o corpo completo da mensagem.
"""

from __future__ import annotations

import re

from zapgate.domain.errors import ValidationError
from zapgate.domain.models import SendRequest

_NON_DIGITS = re.compile(r"[^0-9]")


def normalize_phone(raw: str) -> str:
    """Remove tudo que não é dígito ("+91 99999-99999" -> "919999999999")."""
    return _NON_DIGITS.sub("", raw or "")


def build_send_request(
    recipient: str | None,
    body: str | None,
    min_digits: int = 10,
    max_body_chars: int = 4096,
) -> SendRequest:
    """Valida e normaliza uma requisição de envio.

    Raises:
        ValidationError: telefone com menos de `min_digits` dígitos,
            mensagem vazia ou acima do limite
    """
    if not body or not body.strip():
        raise ValidationError("message is required and must not be empty")
    if len(body) > max_body_chars:
        raise ValidationError(f"message exceeds maximum length of {max_body_chars} characters")

    digits = normalize_phone(recipient or "")
    if len(digits) < min_digits:
        raise ValidationError(
            f"Invalid phone number format: expected at least {min_digits} digits"
        )

    return SendRequest(recipient_id=digits, body=body)


def mask_recipient(digits: str) -> str:
    """Mascara o número para logs ("919999999999" -> "91******9999")."""
    if len(digits) <= 6:
        return "*" * len(digits)
    return f"{digits[:2]}{'*' * (len(digits) - 6)}{digits[-4:]}"


def preview_body(body: str, limit: int = 50) -> str:
    """Prévia limitada do corpo para auditoria."""
    if len(body) <= limit:
        return body
    return body[:limit] + "..."
