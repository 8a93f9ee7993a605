"""Implementações de infraestrutura (credenciais e providers de sessão)."""

from zapgate.infra.credential_store_file import FileCredentialStore
from zapgate.infra.credential_store_memory import InMemoryCredentialStore
from zapgate.infra.provider_factory import create_credential_store, create_session_provider
from zapgate.infra.session_provider_loopback import (
    LoopbackSessionHandle,
    LoopbackSessionProvider,
)

__all__ = [
    "FileCredentialStore",
    "InMemoryCredentialStore",
    "LoopbackSessionHandle",
    "LoopbackSessionProvider",
    "create_credential_store",
    "create_session_provider",
]
