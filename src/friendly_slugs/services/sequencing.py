"""Slug sequence assignment for owning records."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from friendly_slugs.core.config import SluggableOptions
from friendly_slugs.core.errors import (
    BlankSlugError,
    ConflictError,
    ReservedSlugError,
    SequenceAssignmentError,
)
from friendly_slugs.models import Slug, stored_scope

if TYPE_CHECKING:
    from friendly_slugs.services.storage import SlugRepository

logger = structlog.get_logger()

DEFAULT_SEQUENCE_RETRIES = 5


def _log_conflict(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.info(
        "slug_conflict",
        attempt=retry_state.attempt_number,
        name=getattr(exc, "name", None),
        sequence=getattr(exc, "sequence", None),
    )


class SequenceAssigner:
    """Decide whether an owner needs a new slug and claim its sequence.

    Sequences are claimed optimistically: read the highest sequence for the
    name, insert the next one, and start over when a concurrent writer got
    there first. Sequences are never reused or renumbered.

    Usage:
        assigner = SequenceAssigner(slug_repository, max_attempts=5)
        slug = await assigner.assign("Post", post.id, post.name, options)
    """

    def __init__(
        self,
        repository: SlugRepository,
        max_attempts: int = DEFAULT_SEQUENCE_RETRIES,
        *,
        max_wait: float = 0.2,
    ) -> None:
        """Initialize sequence assigner.

        Args:
            repository: Slug store to read and insert slugs.
            max_attempts: Insert attempts before giving up on a name.
            max_wait: Upper bound in seconds for the jittered wait between attempts.
        """
        if max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)
        self._repository = repository
        self.max_attempts = max_attempts
        self.max_wait = max_wait

    @staticmethod
    def candidate_name(raw_text: object, options: SluggableOptions) -> str:
        """Normalize source text into a slug name.

        Raises:
            BlankSlugError: If nothing is left after normalization.
            ReservedSlugError: If the name is a reserved word.
        """
        name = options.normalizer().normalize(raw_text)
        if not name.strip():
            raise BlankSlugError(raw_text)
        if name in options.reserved:
            raise ReservedSlugError(raw_text, name)
        return name

    @staticmethod
    def new_slug_needed(current: Slug | None, name: str, scope: str | None) -> bool:
        """A slug is needed when there is none yet or its name or scope changed."""
        if current is None:
            return True
        return current.name != name or current.scope != stored_scope(scope)

    async def assign(
        self,
        sluggable_type: str,
        owner_id: int,
        raw_text: object,
        options: SluggableOptions,
        scope: str | None = None,
    ) -> Slug:
        """Make sure the owner's current slug matches its source text.

        Args:
            sluggable_type: Discriminator of the owning model.
            owner_id: Primary key of the owning record.
            raw_text: Friendly id source value of the owning record.
            options: Sluggable options of the owning model.
            scope: Scope value, or None for unscoped models.

        Returns:
            The owner's current slug after assignment.

        Raises:
            SlugValidationError: If the source text can not be slugged.
            SequenceAssignmentError: If no sequence could be claimed.
        """
        name = self.candidate_name(raw_text, options)

        current = await self._repository.latest_for_owner(owner_id, sluggable_type)
        if not self.new_slug_needed(current, name, scope):
            return current  # type: ignore[return-value]

        history = await self._repository.history_for_owner(owner_id, sluggable_type)
        previous = next(
            (s for s in reversed(history) if s.name == name and s.scope == stored_scope(scope)),
            None,
        )
        if previous is not None:
            renewed = await self._repository.reactivate(previous)
            logger.info(
                "slug_reused",
                name=renewed.name,
                sequence=renewed.sequence,
                sluggable_type=sluggable_type,
                sluggable_id=owner_id,
            )
            return renewed

        return await self._insert_next(sluggable_type, owner_id, name, scope)

    async def _insert_next(
        self, sluggable_type: str, owner_id: int, name: str, scope: str | None
    ) -> Slug:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_random_exponential(multiplier=0.01, max=self.max_wait),
            retry=retry_if_exception_type(ConflictError),
            before_sleep=_log_conflict,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    sequence = await self._repository.max_sequence(name, scope, sluggable_type) + 1
                    slug = await self._repository.insert(
                        Slug(
                            name=name,
                            sequence=sequence,
                            scope=stored_scope(scope),
                            sluggable_type=sluggable_type,
                            sluggable_id=owner_id,
                        )
                    )
        except RetryError as e:
            logger.error(
                "slug_sequence_exhausted",
                name=name,
                scope=scope,
                sluggable_type=sluggable_type,
                attempts=self.max_attempts,
            )
            raise SequenceAssignmentError(name, scope, sluggable_type, self.max_attempts) from e

        logger.info(
            "slug_created",
            name=slug.name,
            sequence=slug.sequence,
            sluggable_type=sluggable_type,
            sluggable_id=owner_id,
        )
        return slug
