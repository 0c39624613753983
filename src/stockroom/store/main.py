"""ASGI entrypoint for running the reference item store."""
from __future__ import annotations

import uvicorn

from ..config import get_settings
from ..logger import setup_logger
from .management import cli_init_database


def run() -> None:
    """Create tables and serve the store on port 8000."""

    settings = get_settings()
    setup_logger("stockroom", settings.log_level)
    cli_init_database()
    uvicorn.run(
        "stockroom.store.api:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
