"""Shared async repository helpers for SQLModel session work."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

from sqlmodel import Session

if TYPE_CHECKING:
    from sqlalchemy import Engine

T = TypeVar("T")


class AsyncRepository:
    """Run sync SQLModel session work on a worker thread for async callers.

    Every call opens its own session, so concurrent callers never share
    connection state. Objects returned are detached (``expire_on_commit`` is off).
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    async def _run_session(self, fn: Callable[[Session], T]) -> T:
        """Run a sync function inside a Session on a worker thread."""

        def _run() -> T:
            with Session(self._engine, expire_on_commit=False) as session:
                return fn(session)

        return await asyncio.to_thread(_run)

    async def _run_transaction(self, fn: Callable[[Session], T]) -> T:
        """Like ``_run_session`` but commits on success and rolls back on error."""

        def _run() -> T:
            with Session(self._engine, expire_on_commit=False) as session, session.begin():
                return fn(session)

        return await asyncio.to_thread(_run)
