"""Configurações centralizadas do zapgate.

Uso típico:
    from zapgate.config import get_settings
"""

from zapgate.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
