"""ASGI entrypoint for running the service."""
from __future__ import annotations

import uvicorn

from .config import get_settings


def run() -> None:
    """Convenience wrapper used by the ``stock-dashboard`` script."""

    settings = get_settings()
    uvicorn.run(
        "stock_dashboard.api:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_config=None,
    )


if __name__ == "__main__":
    run()
