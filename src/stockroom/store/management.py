"""Administrative helpers for the reference item store."""
from __future__ import annotations

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from .database import Base, engine

logger = logging.getLogger(__name__)


async def init_database(db_engine: AsyncEngine | None = None, *, reset: bool = False) -> None:
    """Create the ``items`` table, dropping existing data first when ``reset``."""

    engine_to_use = db_engine or engine
    async with engine_to_use.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Item store schema ready on %s", engine_to_use.url)


def cli_init_database(reset: bool = False) -> None:
    """Synchronous wrapper used by the store runner."""

    asyncio.run(init_database(reset=reset))


if __name__ == "__main__":
    cli_init_database()
