"""
Async connection pool for the analytics database.

The engine is built once at process start and handed to whoever needs it;
``ReadDatabase`` owns its lifetime.
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from insight_agent.common.errors import ConfigurationError
from insight_agent.common.logger import get_logger
from insight_agent.common.settings import Settings

logger = get_logger("database")

ASYNC_DRIVER = "postgresql+asyncpg"


def normalize_database_url(url: str) -> str:
    """Points a Postgres URL at the asyncpg driver.

    ``postgres://`` and ``postgresql://`` (the forms hosting providers hand
    out) and any other ``postgresql+<driver>`` URL are rewritten to
    ``postgresql+asyncpg://``. Non-Postgres URLs are returned unchanged.

    Raises:
        ConfigurationError: If the URL cannot be parsed.
    """
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    try:
        parsed = make_url(url)
    except ArgumentError as exc:
        raise ConfigurationError(f"Invalid database URL: {exc}") from exc

    if parsed.get_backend_name() != "postgresql":
        return url
    return parsed.set(drivername=ASYNC_DRIVER).render_as_string(hide_password=False)


def create_read_engine(
    url: Optional[str],
    pool_size: int = 5,
    max_overflow: int = 5,
    pool_recycle: int = 1800,
) -> AsyncEngine:
    """Creates the pooled async engine used for tool queries.

    Args:
        url: Database URL. A read-only account is expected; the executor
            marks every transaction read-only regardless.
        pool_size: Persistent connections kept in the pool.
        max_overflow: Extra connections allowed under load.
        pool_recycle: Seconds after which a pooled connection is replaced.

    Raises:
        ConfigurationError: If no URL is configured.
    """
    if not url:
        raise ConfigurationError(
            "COPILOT_DATABASE_URL is not configured. Set it in your environment variables."
        )

    engine = create_async_engine(
        normalize_database_url(url),
        pool_pre_ping=True,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_recycle=pool_recycle,
    )
    logger.info(f"Created read engine (pool_size={pool_size}, max_overflow={max_overflow}).")
    return engine


class ReadDatabase:
    """Owns the read engine between process start and shutdown."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReadDatabase":
        return cls(
            create_read_engine(
                settings.database_url,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_recycle=settings.db_pool_recycle,
            )
        )

    async def dispose(self) -> None:
        """Closes every pooled connection."""
        logger.info("Disposing read engine.")
        await self.engine.dispose()

    async def __aenter__(self) -> "ReadDatabase":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.dispose()
