from __future__ import annotations

from collections.abc import Iterator

import pytest

from zapgate.config.settings import get_settings

_ENV_VARS = (
    "PORT",
    "SESSION_DIR",
    "BOT_NAME",
    "LOG_LEVEL",
    "AUTO_RECONNECT",
    "RECONNECT_DELAY",
    "RECONNECT_DELAY_SECONDS",
    "PRINT_QR_IN_TERMINAL",
    "CORS_ORIGIN",
    "ENVIRONMENT",
    "SESSION_PROVIDER",
    "CREDENTIAL_STORE_BACKEND",
)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
