"""Resolve one friendly id or primary key to a record."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import and_
from sqlmodel import Session, SQLModel, select

from friendly_slugs.core import codec
from friendly_slugs.core.errors import NotFoundError
from friendly_slugs.models import Slug, stored_scope
from friendly_slugs.services.sluggable import SluggableModel, scope_param
from friendly_slugs.services.storage.repository import AsyncRepository
from friendly_slugs.services.storage.slug_repository import latest_slug_statement

from .base import FinderOptions, Resolution, scope_hint

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()


class SingleResolver(AsyncRepository):
    """Find a single owning record by friendly id, falling back to its primary key."""

    def __init__(self, engine: Engine, sluggable: SluggableModel) -> None:
        super().__init__(engine)
        self._sluggable = sluggable

    async def resolve_one(
        self, token: object, options: FinderOptions | None = None
    ) -> Resolution[Any]:
        """Resolve a token to one record.

        Integers and model instances are primary keys. Strings are parsed as
        friendly ids first; a purely numeric string that matches no slug is
        then tried as a primary key.

        Args:
            token: Friendly id, primary key, or record instance.
            options: Scope and extra conditions for the lookup.

        Returns:
            Resolution with the record and the slug used to find it.

        Raises:
            NotFoundError: If no record matches.
        """
        options = options or FinderOptions()
        scope = scope_param(options.scope)
        model = self._sluggable.model

        def _find(session: Session) -> Resolution[Any]:
            if isinstance(token, model):
                return self._by_primary_key(session, token.id, token, options, scope)  # type: ignore[attr-defined]
            if isinstance(token, int) and not isinstance(token, bool):
                if not codec.in_range(token):
                    raise self._not_found(token, scope)
                return self._by_primary_key(session, token, token, options, scope)

            text = str(token)
            resolution = self._by_friendly_id(session, text, options, scope)
            if resolution is not None:
                return resolution
            if not codec.is_numeric_id(text):
                raise self._not_found(token, scope)
            return self._by_primary_key(session, int(text), token, options, scope)

        resolution = await self._run_session(_find)
        logger.debug(
            "find_one",
            sluggable_type=self._sluggable.sluggable_type,
            token=str(token),
            found_by_friendly_id=resolution.found_by_friendly_id,
        )
        return resolution

    def _by_friendly_id(
        self, session: Session, text: str, options: FinderOptions, scope: str | None
    ) -> Resolution[Any] | None:
        model = self._sluggable.model
        name, sequence = codec.parse(text)
        statement = (
            select(model, Slug)
            .join(
                Slug,
                and_(
                    Slug.sluggable_id == self._sluggable.id_column,
                    Slug.sluggable_type == self._sluggable.sluggable_type,
                ),
            )
            .where(
                Slug.name == name,
                Slug.scope == stored_scope(scope),
                Slug.sequence == sequence,
                *options.conditions,
            )
        )
        row = session.exec(statement).first()
        if row is None:
            return None
        record, finder_slug = row
        return Resolution(record, text, finder_slug, self._current_slug(session, record))

    def _by_primary_key(
        self,
        session: Session,
        pk: int,
        token: object,
        options: FinderOptions,
        scope: str | None,
    ) -> Resolution[Any]:
        statement = select(self._sluggable.model).where(
            self._sluggable.id_column == pk, *options.conditions
        )
        record = session.exec(statement).first()
        if record is None:
            raise self._not_found(token, scope)
        return Resolution(record, token, None, self._current_slug(session, record))

    def _current_slug(self, session: Session, record: SQLModel) -> Slug | None:
        statement = latest_slug_statement(record.id, self._sluggable.sluggable_type)  # type: ignore[attr-defined]
        return session.exec(statement).first()

    def _not_found(self, token: object, scope: str | None) -> NotFoundError:
        return NotFoundError(
            f"Couldn't find {self._sluggable.sluggable_type} with ID={token}",
            tokens=[token],
            expected=1,
            actual=0,
            scope_hint=scope_hint(self._sluggable.options, scope),
        )
