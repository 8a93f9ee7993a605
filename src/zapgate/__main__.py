"""Entrada `python -m zapgate`: sobe o servidor HTTP com uvicorn."""

from __future__ import annotations

import uvicorn

from zapgate.api.app import create_app
from zapgate.config.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings)
    # log_config=None preserva o logging JSON configurado em create_app
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
