"""Database persistence for slug records."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, func, select

from friendly_slugs.core.errors import ConflictError
from friendly_slugs.models import Slug, stored_scope

from .repository import AsyncRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine
    from sqlmodel.sql.expression import SelectOfScalar

logger = structlog.get_logger()


def exact_slug_statement(
    name: str, scope: str | None, sluggable_type: str, sequence: int
) -> SelectOfScalar[Slug]:
    """Select the slug with exactly this identity."""
    return select(Slug).where(
        Slug.name == name,
        Slug.scope == stored_scope(scope),
        Slug.sluggable_type == sluggable_type,
        Slug.sequence == sequence,
    )


def owner_history_statement(owner_id: int, sluggable_type: str) -> SelectOfScalar[Slug]:
    """Select an owner's slugs, oldest first."""
    return (
        select(Slug)
        .where(Slug.sluggable_id == owner_id, Slug.sluggable_type == sluggable_type)
        .order_by(col(Slug.created_at), col(Slug.id))
    )


def latest_slug_statement(owner_id: int, sluggable_type: str) -> SelectOfScalar[Slug]:
    """Select an owner's most recently created slug."""
    return (
        select(Slug)
        .where(Slug.sluggable_id == owner_id, Slug.sluggable_type == sluggable_type)
        .order_by(col(Slug.created_at).desc(), col(Slug.id).desc())
        .limit(1)
    )


def latest_slugs(session: Session, owner_ids: Iterable[int], sluggable_type: str) -> dict[int, Slug]:
    """Map each owner id to its current slug (owners without slugs are left out)."""
    ids = list(owner_ids)
    if not ids:
        return {}
    statement = (
        select(Slug)
        .where(col(Slug.sluggable_id).in_(ids), Slug.sluggable_type == sluggable_type)
        .order_by(col(Slug.created_at), col(Slug.id))
    )
    latest: dict[int, Slug] = {}
    for slug in session.exec(statement):
        latest[slug.sluggable_id] = slug
    return latest


class SlugRepository(AsyncRepository):
    """Persist and query slugs.

    Rows are only ever inserted, except for ``reactivate`` and the cascade in
    ``delete_for_owner``. The unique constraint on
    ``(name, scope, sluggable_type, sequence)`` is the only guard against
    concurrent writers; ``insert`` turns a violation into ``ConflictError``.
    """

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    async def find_exact(
        self, name: str, scope: str | None, sluggable_type: str, sequence: int = 1
    ) -> Slug | None:
        """Get the slug with exactly this identity, if any."""

        def _get(session: Session) -> Slug | None:
            return session.exec(exact_slug_statement(name, scope, sluggable_type, sequence)).first()

        return await self._run_session(_get)

    async def find_by_name_scope(
        self, name: str, scope: str | None, sluggable_type: str
    ) -> list[Slug]:
        """Get every sequence of a slug name within a scope."""

        def _get(session: Session) -> list[Slug]:
            statement = (
                select(Slug)
                .where(
                    Slug.name == name,
                    Slug.scope == stored_scope(scope),
                    Slug.sluggable_type == sluggable_type,
                )
                .order_by(col(Slug.sequence))
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get)

    async def latest_for_owner(self, owner_id: int, sluggable_type: str) -> Slug | None:
        """Get the owner's current slug."""

        def _get(session: Session) -> Slug | None:
            return session.exec(latest_slug_statement(owner_id, sluggable_type)).first()

        return await self._run_session(_get)

    async def latest_for_owners(
        self, owner_ids: Iterable[int], sluggable_type: str
    ) -> dict[int, Slug]:
        """Get the current slug of several owners at once."""
        ids = list(owner_ids)
        return await self._run_session(lambda session: latest_slugs(session, ids, sluggable_type))

    async def history_for_owner(self, owner_id: int, sluggable_type: str) -> list[Slug]:
        """Get all slugs an owner ever had, oldest first."""

        def _get(session: Session) -> list[Slug]:
            return list(session.exec(owner_history_statement(owner_id, sluggable_type)).all())

        return await self._run_session(_get)

    async def max_sequence(self, name: str, scope: str | None, sluggable_type: str) -> int:
        """Get the highest sequence used for a name within a scope (0 if unused)."""

        def _get(session: Session) -> int:
            statement = select(func.max(Slug.sequence)).where(
                Slug.name == name,
                Slug.scope == stored_scope(scope),
                Slug.sluggable_type == sluggable_type,
            )
            return session.exec(statement).one() or 0

        return await self._run_session(_get)

    async def insert(self, slug: Slug) -> Slug:
        """Insert a new slug.

        Raises:
            ConflictError: If the (name, scope, type, sequence) tuple is taken.
        """

        identity = (slug.name, slug.scope_value, slug.sluggable_type, slug.sequence)

        def _save(session: Session) -> Slug:
            session.add(slug)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise ConflictError(*identity) from e
            session.refresh(slug)
            return slug

        saved = await self._run_session(_save)
        logger.debug(
            "slug_inserted",
            name=saved.name,
            sequence=saved.sequence,
            sluggable_type=saved.sluggable_type,
            sluggable_id=saved.sluggable_id,
        )
        return saved

    async def reactivate(self, slug: Slug) -> Slug:
        """Make an owner's older slug its current one again.

        The row is recreated with the same identity in a single transaction, so
        the friendly id keeps its sequence and becomes the most recent slug.
        """

        def _swap(session: Session) -> Slug:
            session.exec(delete(Slug).where(col(Slug.id) == slug.id))
            renewed = Slug(
                name=slug.name,
                sequence=slug.sequence,
                scope=slug.scope,
                sluggable_type=slug.sluggable_type,
                sluggable_id=slug.sluggable_id,
            )
            session.add(renewed)
            try:
                session.flush()
            except IntegrityError as e:
                raise ConflictError(
                    slug.name, slug.scope_value, slug.sluggable_type, slug.sequence
                ) from e
            return renewed

        return await self._run_transaction(_swap)

    async def delete_for_owner(self, owner_id: int, sluggable_type: str) -> int:
        """Delete every slug of an owner. Returns the number of rows removed."""

        def _delete(session: Session) -> int:
            result = session.exec(
                delete(Slug).where(
                    col(Slug.sluggable_id) == owner_id, Slug.sluggable_type == sluggable_type
                )
            )
            session.commit()
            return result.rowcount

        return await self._run_session(_delete)
