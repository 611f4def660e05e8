"""Database engine lifecycle for the slug store and owning models."""

from __future__ import annotations

import gc

import structlog
from sqlalchemy import Engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel, create_engine

logger = structlog.get_logger()


class Database:
    """Own the SQLAlchemy engine and the table schema.

    Tables are created from ``SQLModel.metadata``, so owning models must be
    imported before ``create_all`` runs.
    """

    def __init__(self, url: str, *, echo: bool = False) -> None:
        """Initialize database.

        Args:
            url: SQLAlchemy database URL (e.g. ``sqlite:///slugs.db``).
            echo: Log emitted SQL.
        """
        self.url = url
        # NullPool gives every worker thread its own connection
        self._engine: Engine | None = create_engine(url, poolclass=NullPool, echo=echo)
        logger.info("database_init", url=url)

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            msg = "Database has been closed"
            raise RuntimeError(msg)
        return self._engine

    def create_all(self) -> None:
        """Create the slug table and every registered model table."""
        SQLModel.metadata.create_all(self.engine)

    async def close(self) -> None:
        """Dispose of the database engine."""
        self.close_sync()

    def close_sync(self) -> None:
        """Synchronously dispose of the database engine."""
        if self._engine:
            self._engine.dispose()
            self._engine = None

        gc.collect()
