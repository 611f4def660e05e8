"""Resolve a mixed collection of friendly ids and primary keys in one query."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import and_, or_
from sqlmodel import Session, SQLModel, col, select

from friendly_slugs.core import codec
from friendly_slugs.core.errors import NotFoundError
from friendly_slugs.models import Slug
from friendly_slugs.services.sluggable import SluggableModel, scope_param
from friendly_slugs.services.storage.repository import AsyncRepository
from friendly_slugs.services.storage.slug_repository import exact_slug_statement, latest_slugs

from .base import FinderOptions, Resolution, expected_size

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()


@dataclass
class _Classified:
    """Tokens split into primary keys, matched slugs and dead ends."""

    ids: list[int] = field(default_factory=list)
    slugs: list[Slug] = field(default_factory=list)
    unresolved: list[object] = field(default_factory=list)
    tokens_by_owner: dict[int, object] = field(default_factory=dict)

    def requested_size(self) -> int:
        """Distinct records asked for; unresolved tokens each count as one."""
        owners = set(self.ids) | {slug.sluggable_id for slug in self.slugs}
        return len(owners) + len(self.unresolved)


def _unique(tokens: Iterable[object]) -> list[object]:
    seen: set[object] = set()
    unique: list[object] = []
    for token in tokens:
        key = (type(token).__name__, token.id) if isinstance(token, SQLModel) else token
        if key in seen:
            continue
        seen.add(key)
        unique.append(token)
    return unique


class BatchResolver(AsyncRepository):
    """Find several owning records at once, all or nothing."""

    def __init__(self, engine: Engine, sluggable: SluggableModel) -> None:
        super().__init__(engine)
        self._sluggable = sluggable

    async def resolve_many(
        self, tokens: Iterable[object], options: FinderOptions | None = None
    ) -> list[Resolution[Any]]:
        """Resolve every token or fail.

        Integers and model instances are primary keys. Strings are looked up
        as exact slugs first; a string that matches no slug but is purely
        numeric is treated as a primary key instead.

        Args:
            tokens: Friendly ids, primary keys or records, in any mix.
            options: Scope, conditions, ordering and pagination.

        Returns:
            Resolutions in query order, one per distinct record.

        Raises:
            NotFoundError: If the number of records found differs from the
                number expected after offset and limit.
        """
        options = options or FinderOptions()
        requested = _unique(tokens)

        def _find(session: Session) -> list[Resolution[Any]]:
            classified = self._classify(session, requested, options)
            records = self._fetch(session, classified, options)

            expected = expected_size(classified.requested_size(), options)
            if len(records) != expected:
                logger.info(
                    "find_many_size_mismatch",
                    sluggable_type=self._sluggable.sluggable_type,
                    expected=expected,
                    actual=len(records),
                )
                raise NotFoundError(
                    f"Couldn't find all {self._sluggable.sluggable_type} records with IDs "
                    f"({', '.join(str(t) for t in requested)}) "
                    f"(found {len(records)} results, but was looking for {expected})",
                    tokens=requested,
                    expected=expected,
                    actual=len(records),
                )

            return self._attach_slugs(session, records, classified)

        return await self._run_session(_find)

    def _classify(
        self, session: Session, tokens: list[object], options: FinderOptions
    ) -> _Classified:
        scope = scope_param(options.scope)
        classified = _Classified()
        for token in tokens:
            if isinstance(token, self._sluggable.model):
                pk = token.id  # type: ignore[attr-defined]
            elif isinstance(token, int) and not isinstance(token, bool):
                if not codec.in_range(token):
                    classified.unresolved.append(token)
                    continue
                pk = token
            else:
                text = str(token)
                name, sequence = codec.parse(text)
                slug = session.exec(
                    exact_slug_statement(name, scope, self._sluggable.sluggable_type, sequence)
                ).first()
                if slug is not None:
                    classified.slugs.append(slug)
                    classified.tokens_by_owner[slug.sluggable_id] = token
                    continue
                if not codec.is_numeric_id(text):
                    classified.unresolved.append(token)
                    continue
                pk = int(text)
            classified.ids.append(pk)
            classified.tokens_by_owner.setdefault(pk, token)
        return classified

    def _fetch(self, session: Session, classified: _Classified, options: FinderOptions) -> list[Any]:
        model = self._sluggable.model
        id_column = self._sluggable.id_column
        slug_ids = [slug.id for slug in classified.slugs]
        statement = (
            select(model)
            .join(
                Slug,
                and_(
                    Slug.sluggable_id == id_column,
                    Slug.sluggable_type == self._sluggable.sluggable_type,
                ),
                isouter=True,
            )
            .where(or_(id_column.in_(classified.ids), col(Slug.id).in_(slug_ids)))
            .distinct()
            .order_by(*(options.order_by or (id_column,)))
        )
        if options.conditions:
            statement = statement.where(*options.conditions)
        if options.offset:
            statement = statement.offset(options.offset)
        if options.limit is not None:
            statement = statement.limit(options.limit)

        records: list[Any] = []
        seen: set[int] = set()
        for record in session.exec(statement):
            if record.id in seen:
                continue
            seen.add(record.id)
            records.append(record)
        return records

    def _attach_slugs(
        self, session: Session, records: list[Any], classified: _Classified
    ) -> list[Resolution[Any]]:
        finder_slugs: dict[int, Slug] = {}
        for slug in classified.slugs:
            finder_slugs[slug.sluggable_id] = slug
        current = latest_slugs(
            session, (record.id for record in records), self._sluggable.sluggable_type
        )
        return [
            Resolution(
                record,
                classified.tokens_by_owner.get(record.id),
                finder_slugs.get(record.id),
                current.get(record.id),
            )
            for record in records
        ]
