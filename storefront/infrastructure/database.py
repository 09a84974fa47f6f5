"""Async SQLAlchemy engine, settings, and the pooled connection provider."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from storefront.domain.cancellation import CancellationSignal, run_cancellable
from storefront.domain.errors import StoreConnectionError

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Carries credentials; never logged or repr'd.
    database_url: str = Field(repr=False)
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: float = 30.0
    max_page_size: int = 100


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def describe_url(url: str | URL) -> str:
    """Return ``host/database`` for log and error messages."""
    parsed = make_url(url)
    return f"{parsed.host or 'local'}/{parsed.database or ''}"


def create_engine(settings: Settings) -> AsyncEngine:
    # hide_parameters keeps bound values (credentials included) out of error text.
    return create_async_engine(
        settings.database_url,
        echo=False,
        pool_pre_ping=True,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_timeout=settings.pool_timeout,
        hide_parameters=True,
    )


class Base(DeclarativeBase):
    """Shared declarative base for the table definitions."""


async def init_schema(engine: AsyncEngine) -> None:
    """Dev/test bootstrap: create the tables if they do not exist.

    The schema is owned outside this package; production never calls this.
    """
    from storefront.infrastructure.persistence import models  # noqa: F401  registers tables

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


class ConnectionProvider:
    """Hands out pooled connections, one per call.

    The pool is the only shared resource.  ``borrowed`` counts connections
    currently checked out through this provider.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._target = describe_url(engine.url)
        self._borrowed = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> ConnectionProvider:
        provider = cls(create_engine(settings))
        logger.info("Connection pool created for %s", provider._target)
        return provider

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def borrowed(self) -> int:
        return self._borrowed

    @asynccontextmanager
    async def acquire(
        self, signal: CancellationSignal | None = None
    ) -> AsyncIterator[AsyncConnection]:
        """Borrow a connection for the duration of the ``async with`` block.

        Raises CanceledError if the signal fires while the session is being
        opened, and StoreConnectionError if it cannot be opened at all.
        """
        try:
            conn = await run_cancellable(self._engine.connect().start(), signal)
        except (OSError, sa_exc.DBAPIError, sa_exc.TimeoutError) as exc:
            logger.warning("Could not open a connection to %s", self._target)
            raise StoreConnectionError(
                f"could not open a connection to {self._target}"
            ) from exc

        self._borrowed += 1
        try:
            yield conn
        finally:
            self._borrowed -= 1
            await conn.close()

    async def dispose(self) -> None:
        await self._engine.dispose()
        logger.info("Connection pool for %s disposed", self._target)
