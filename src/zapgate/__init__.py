"""zapgate: gateway HTTP para notificações WhatsApp com sessão persistente."""

__version__ = "0.1.0"
