"""Friendly id service: save hooks, cascade deletes and lookups for owning models."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog
from sqlmodel import Session, SQLModel

from friendly_slugs.core.config import FriendlyIdConfig, SluggableOptions
from friendly_slugs.core.errors import (
    SequenceAssignmentError,
    SlugValidationError,
    UnregisteredModelError,
)
from friendly_slugs.models import Slug
from friendly_slugs.services.finder import BatchResolver, FinderOptions, Resolution, SingleResolver
from friendly_slugs.services.sequencing import SequenceAssigner
from friendly_slugs.services.sluggable import SluggableModel
from friendly_slugs.services.storage import AsyncRepository, SlugRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()


@dataclass
class SaveResult:
    """Outcome of saving an owning record.

    ``errors`` holds record-level messages (e.g. ``Name can not be "new"``);
    when it is non-empty nothing was written.
    """

    record: Any
    slug: Slug | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def saved(self) -> bool:
        return not self.errors


class FriendlyIdService(AsyncRepository):
    """Keep slugs in step with owning records and look records up by friendly id.

    Usage:
        service = FriendlyIdService(database.engine, config)
        service.register(Post)
        result = await service.save(Post(name="Test post"))
        post = (await service.find(Post, "test-post")).record
    """

    def __init__(self, engine: Engine, config: FriendlyIdConfig | None = None) -> None:
        """Initialize friendly id service.

        Args:
            engine: SQLAlchemy engine holding the slug table and owning tables.
            config: Friendly id configuration (defaults apply when omitted).
        """
        super().__init__(engine)
        self.config = config or FriendlyIdConfig()
        self.slugs = SlugRepository(engine)
        self.assigner = SequenceAssigner(self.slugs, self.config.sequence_retries)
        self._models: dict[str, SluggableModel] = {}

    def register(
        self, model: type[SQLModel], options: SluggableOptions | None = None
    ) -> SluggableModel:
        """Register an owning model.

        Options default to the config entry for the model name, then to the
        config's default options.
        """
        sluggable = SluggableModel(model, options or self.config.options_for(model.__name__))
        self._models[sluggable.sluggable_type] = sluggable
        logger.debug(
            "sluggable_registered",
            sluggable_type=sluggable.sluggable_type,
            source=sluggable.options.source,
            scope=sluggable.options.scope,
        )
        return sluggable

    def sluggable(self, model: type[SQLModel] | SQLModel) -> SluggableModel:
        """Get the registration of a model class or instance."""
        model_class = model if isinstance(model, type) else type(model)
        try:
            return self._models[model_class.__name__]
        except KeyError:
            raise UnregisteredModelError(model_class.__name__) from None

    def validation_errors(self, record: SQLModel) -> list[str]:
        """Record-level messages for a source text that can not become a slug."""
        sluggable = self.sluggable(record)
        try:
            self.assigner.candidate_name(sluggable.source_text(record), sluggable.options)
        except SlugValidationError as e:
            return [e.record_message(sluggable.options.source)]
        return []

    async def save(self, record: SQLModel) -> SaveResult:
        """Validate and persist a record, then bring its slug up to date.

        When no slug sequence can be claimed the record write is undone: a new
        record is deleted again and an existing one gets its stored values back.

        Raises:
            SequenceAssignmentError: If no sequence could be claimed for the slug.
        """
        sluggable = self.sluggable(record)
        errors = self.validation_errors(record)
        if errors:
            logger.info("record_invalid", sluggable_type=sluggable.sluggable_type, errors=errors)
            return SaveResult(record, None, errors)

        previous = await self._stored_values(sluggable, record)

        def _save(session: Session) -> SQLModel:
            session.add(record)
            session.commit()
            session.refresh(record)
            return record

        saved = await self._run_session(_save)
        try:
            slug = await self.assigner.assign(
                sluggable.sluggable_type,
                saved.id,  # type: ignore[attr-defined]
                sluggable.source_text(saved),
                sluggable.options,
                sluggable.scope_of(saved),
            )
        except SequenceAssignmentError:
            await self._undo_save(sluggable, saved.id, previous)  # type: ignore[attr-defined]
            raise
        return SaveResult(saved, slug)

    async def _stored_values(
        self, sluggable: SluggableModel, record: SQLModel
    ) -> dict[str, Any] | None:
        """Column values currently stored for a record, None if it is not stored yet."""
        record_id = record.id  # type: ignore[attr-defined]
        if record_id is None:
            return None

        def _get(session: Session) -> dict[str, Any] | None:
            persistent = session.get(sluggable.model, record_id)
            return None if persistent is None else persistent.model_dump()

        return await self._run_session(_get)

    async def _undo_save(
        self, sluggable: SluggableModel, record_id: int, previous: dict[str, Any] | None
    ) -> None:
        def _undo(session: Session) -> None:
            persistent = session.get(sluggable.model, record_id)
            if persistent is None:
                return
            if previous is None:
                session.delete(persistent)
            else:
                for key, value in previous.items():
                    setattr(persistent, key, value)
                session.add(persistent)
            session.commit()

        await self._run_session(_undo)
        logger.warning(
            "save_undone",
            sluggable_type=sluggable.sluggable_type,
            sluggable_id=record_id,
            created=previous is None,
        )

    async def delete(self, record: SQLModel) -> int:
        """Delete a record and all of its slugs. Returns the number of slugs removed."""
        sluggable = self.sluggable(record)
        record_id = record.id  # type: ignore[attr-defined]

        def _delete(session: Session) -> None:
            persistent = session.get(sluggable.model, record_id)
            if persistent is not None:
                session.delete(persistent)
                session.commit()

        await self._run_session(_delete)
        removed = await self.slugs.delete_for_owner(record_id, sluggable.sluggable_type)
        logger.info(
            "record_deleted",
            sluggable_type=sluggable.sluggable_type,
            sluggable_id=record_id,
            slugs_removed=removed,
        )
        return removed

    async def find(
        self, model: type[SQLModel], token: Any, options: FinderOptions | None = None
    ) -> Resolution[Any] | list[Resolution[Any]]:
        """Find one record, or a list of records when given a collection of ids.

        Raises:
            NotFoundError: If a record (or any record of a batch) is missing.
        """
        if isinstance(token, (list, tuple, set, frozenset)):
            return await self.find_many(model, token, options)
        return await SingleResolver(self.engine, self.sluggable(model)).resolve_one(token, options)

    async def find_many(
        self, model: type[SQLModel], tokens: Iterable[Any], options: FinderOptions | None = None
    ) -> list[Resolution[Any]]:
        """Find every record in ``tokens`` or raise ``NotFoundError``."""
        sluggable = self.sluggable(model)
        return await BatchResolver(self.engine, sluggable).resolve_many(tokens, options)

    async def current_slug(self, record: SQLModel) -> Slug | None:
        sluggable = self.sluggable(record)
        return await self.slugs.latest_for_owner(record.id, sluggable.sluggable_type)  # type: ignore[attr-defined]

    async def history(self, record: SQLModel) -> list[Slug]:
        """All slugs of a record, oldest first."""
        sluggable = self.sluggable(record)
        return await self.slugs.history_for_owner(record.id, sluggable.sluggable_type)  # type: ignore[attr-defined]

    async def friendly_id(self, record: SQLModel) -> str:
        """The record's current friendly id, or its primary key when it has no slug."""
        slug = await self.current_slug(record)
        if slug is None:
            return str(record.id)  # type: ignore[attr-defined]
        return slug.friendly_id
