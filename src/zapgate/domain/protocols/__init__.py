"""Contratos dos colaboradores externos consumidos pelo core."""

from zapgate.domain.protocols.credential_store import CredentialStore, CredentialStoreError
from zapgate.domain.protocols.session_provider import (
    EventSink,
    PairingCodeIssued,
    ProviderEvent,
    SessionConnected,
    SessionDisconnected,
    SessionHandle,
    SessionProvider,
)

__all__ = [
    "CredentialStore",
    "CredentialStoreError",
    "EventSink",
    "PairingCodeIssued",
    "ProviderEvent",
    "SessionConnected",
    "SessionDisconnected",
    "SessionHandle",
    "SessionProvider",
]
