"""Configurações da aplicação via variáveis de ambiente.

Env vars sem prefixo (PORT, SESSION_DIR, AUTO_RECONNECT, RECONNECT_DELAY,
LOG_LEVEL, CORS_ORIGIN, BOT_NAME, ...).
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from zapgate.observability.logging import get_logger

VALID_RECONNECT_STRATEGIES = frozenset({"fixed", "exponential"})
VALID_CREDENTIAL_BACKENDS = frozenset({"file", "memory"})


class Settings(BaseSettings):
    """Configurações lidas do ambiente."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    # Aplicação
    service_name: str = "zapgate"
    version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"
    host: str = "0.0.0.0"  # noqa: S104 - bind padrão do container
    port: int = 3000
    cors_origin: str = "*"  # Lista separada por vírgula

    # Sessão WhatsApp
    bot_name: str = "Customer Registration Bot"  # Nome exibido em "Aparelhos conectados"
    session_dir: str = "./auth_info"  # Local das credenciais persistidas
    credential_store_backend: str = "file"  # file | memory
    session_provider: str = "loopback"  # loopback | pacote.modulo:factory
    loopback_auto_pair_seconds: float | None = None  # Apenas loopback: simula leitura do QR
    print_qr_in_terminal: bool = False  # Imprime o QR em stdout a cada novo código

    # Reconexão
    auto_reconnect: bool = True
    reconnect_delay_seconds: float = 5.0  # Base do backoff
    reconnect_delay: int | None = None  # Legado (ms)
    reconnect_max_delay_seconds: float = 60.0  # Teto do backoff exponencial
    reconnect_strategy: str = "exponential"  # fixed | exponential
    reconnect_max_attempts: int = 0  # 0 = ilimitado
    shutdown_grace_seconds: float = 10.0  # Janela para envios em andamento

    # Envio (outbound)
    min_phone_digits: int = 10
    max_message_length_chars: int = 4096
    log_preview_chars: int = 50  # Prévia do corpo no log de auditoria
    pii_masking_enabled: bool = True
    test_recipient: str = "919999999999"
    test_message: str = (
        "🎉 Test message from WhatsApp API - Customer Registration System is working!"
    )

    # Observabilidade
    correlation_id_header: str = "X-Correlation-ID"
    enable_request_logging: bool = True

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        # Aceita "info", "debug", "warn"...
        level = value.strip().upper()
        return "WARNING" if level == "WARN" else level

    @property
    def cors_origins(self) -> list[str]:
        """Origens CORS permitidas."""
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Retorna True se ambiente é produção."""
        return self.environment.lower() in ("production", "prod")

    @property
    def is_staging(self) -> bool:
        """Retorna True se ambiente é staging."""
        return self.environment.lower() in ("staging", "stage")

    def validate_reconnect_config(self) -> list[str]:
        """Valida política de reconexão.

        Retorna lista de erros (vazia = OK).
        """
        errors: list[str] = []
        if self.reconnect_delay_seconds <= 0:
            errors.append("RECONNECT_DELAY_SECONDS deve ser > 0")
        if self.reconnect_max_delay_seconds < self.reconnect_delay_seconds:
            errors.append("RECONNECT_MAX_DELAY_SECONDS deve ser >= RECONNECT_DELAY_SECONDS")
        strategy = self.reconnect_strategy.lower()
        if strategy not in VALID_RECONNECT_STRATEGIES:
            errors.append(
                f"RECONNECT_STRATEGY '{strategy}' inválido. "
                f"Valores válidos: {sorted(VALID_RECONNECT_STRATEGIES)}"
            )
        if self.reconnect_max_attempts < 0:
            errors.append("RECONNECT_MAX_ATTEMPTS deve ser >= 0 (0 = ilimitado)")
        if self.shutdown_grace_seconds < 0:
            errors.append("SHUTDOWN_GRACE_SECONDS deve ser >= 0")
        return errors

    def validate_session_backend(self) -> list[str]:
        """Valida provider de sessão e store de credenciais por ambiente."""
        errors: list[str] = []
        backend = self.credential_store_backend.lower()
        if backend not in VALID_CREDENTIAL_BACKENDS:
            errors.append(
                f"CREDENTIAL_STORE_BACKEND '{backend}' inválido. "
                f"Valores válidos: {sorted(VALID_CREDENTIAL_BACKENDS)}"
            )
        if backend == "file" and not self.session_dir:
            errors.append("CREDENTIAL_STORE_BACKEND=file requer SESSION_DIR configurado")

        provider = self.session_provider.strip()
        if provider != "loopback" and ":" not in provider:
            errors.append(
                "SESSION_PROVIDER deve ser 'loopback' ou um caminho 'pacote.modulo:factory'"
            )

        if self.is_staging or self.is_production:
            # Sessão pareada precisa sobreviver a restart do processo
            if backend == "memory":
                errors.append("CREDENTIAL_STORE_BACKEND=memory é proibido em staging/production")
            if provider == "loopback":
                errors.append("SESSION_PROVIDER=loopback é proibido em staging/production")
        return errors

    def validate_dispatch_config(self) -> list[str]:
        """Valida limites do envio outbound."""
        errors: list[str] = []
        if self.min_phone_digits < 1:
            errors.append("MIN_PHONE_DIGITS deve ser >= 1")
        if self.max_message_length_chars < 1:
            errors.append("MAX_MESSAGE_LENGTH_CHARS deve ser >= 1")
        if self.log_preview_chars < 0:
            errors.append("LOG_PREVIEW_CHARS deve ser >= 0")
        return errors

    def model_post_init(self, __context: Any) -> None:
        """Converte RECONNECT_DELAY legado (ms) para segundos.

        RECONNECT_DELAY_SECONDS explícito tem precedência.
        """
        if self.reconnect_delay is None:
            return
        logger: logging.Logger = get_logger(__name__)
        if "reconnect_delay_seconds" in self.model_fields_set:
            logger.warning(
                "RECONNECT_DELAY ignorado: RECONNECT_DELAY_SECONDS já configurado",
                extra={"reconnect_delay_seconds": self.reconnect_delay_seconds},
            )
            return
        self.reconnect_delay_seconds = self.reconnect_delay / 1000
        logger.info(
            "RECONNECT_DELAY (ms) convertido para segundos",
            extra={"reconnect_delay_seconds": self.reconnect_delay_seconds},
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Retorna uma instância cacheada de Settings."""
    return Settings()
