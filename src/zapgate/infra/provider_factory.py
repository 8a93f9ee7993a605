"""Factories de CredentialStore e SessionProvider a partir de Settings."""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING

from zapgate.domain.protocols.credential_store import CredentialStore
from zapgate.domain.protocols.session_provider import SessionProvider
from zapgate.infra.credential_store_file import FileCredentialStore
from zapgate.infra.credential_store_memory import InMemoryCredentialStore
from zapgate.infra.session_provider_loopback import LoopbackSessionProvider
from zapgate.observability.logging import get_logger

if TYPE_CHECKING:
    from zapgate.config.settings import Settings

logger: logging.Logger = get_logger(__name__)


def create_credential_store(settings: Settings) -> CredentialStore:
    """Cria o store de credenciais conforme CREDENTIAL_STORE_BACKEND."""
    backend = settings.credential_store_backend.lower()
    if backend == "file":
        logger.info("Usando FileCredentialStore", extra={"session_dir": settings.session_dir})
        return FileCredentialStore(settings.session_dir)
    if backend == "memory":
        logger.info("Usando InMemoryCredentialStore (não usar em produção)")
        return InMemoryCredentialStore()
    raise ValueError(f"Backend de credenciais não reconhecido: {backend}")


def create_session_provider(
    settings: Settings,
    credential_store: CredentialStore | None = None,
) -> SessionProvider:
    """Cria o Session Provider configurado.

    SESSION_PROVIDER aceita "loopback" ou "pacote.modulo:factory"; a factory
    recebe `settings` e `credential_store` como kwargs e deve retornar um
    SessionProvider.
    """
    store = credential_store or create_credential_store(settings)
    target = settings.session_provider.strip()

    if target == "loopback":
        logger.info("Usando LoopbackSessionProvider (dev/testes)")
        return LoopbackSessionProvider(
            store,
            device_name=settings.bot_name,
            auto_pair_after=settings.loopback_auto_pair_seconds,
        )

    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise ValueError(f"SESSION_PROVIDER inválido: {target}")

    factory = getattr(importlib.import_module(module_name), attr)
    provider = factory(settings=settings, credential_store=store)
    if not isinstance(provider, SessionProvider):
        raise TypeError(f"{target} não retornou um SessionProvider")

    logger.info("Usando SessionProvider externo", extra={"provider": target})
    return provider
