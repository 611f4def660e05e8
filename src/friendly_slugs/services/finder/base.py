"""Finder options and lookup results shared by the single and batch resolvers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from friendly_slugs.core.config import SluggableOptions
from friendly_slugs.models import Slug

T = TypeVar("T")


@dataclass(frozen=True)
class FinderOptions:
    """Recognized options for a friendly id lookup.

    Attributes:
        scope: Scope the friendly id lives in (string, number or record).
        conditions: Extra SQL filters on the owning model, ANDed together.
        order_by: Ordering of batch results. Defaults to primary key order.
        limit: Maximum number of records a batch lookup may return.
        offset: Number of matching records a batch lookup skips.
    """

    scope: object = None
    conditions: tuple[Any, ...] = ()
    order_by: tuple[Any, ...] = ()
    limit: int | None = None
    offset: int | None = None

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 0:
            msg = f"limit must be >= 0, got {self.limit}"
            raise ValueError(msg)
        if self.offset is not None and self.offset < 0:
            msg = f"offset must be >= 0, got {self.offset}"
            raise ValueError(msg)


@dataclass(frozen=True)
class Resolution(Generic[T]):
    """A record returned by a lookup, with how it was found.

    ``finder_slug`` is the slug that matched the token, which may be an old
    one; ``current_slug`` is the record's most recent slug.
    """

    record: T
    token: object
    finder_slug: Slug | None = None
    current_slug: Slug | None = None

    @property
    def found_by_friendly_id(self) -> bool:
        return self.finder_slug is not None

    @property
    def found_by_numeric_id(self) -> bool:
        return self.finder_slug is None

    @property
    def has_better_id(self) -> bool:
        """True when the record has a current slug other than the one used."""
        if self.current_slug is None:
            return False
        if self.finder_slug is None:
            return True
        return self.finder_slug.id != self.current_slug.id

    @property
    def friendly_id(self) -> str:
        if self.current_slug is not None:
            return self.current_slug.friendly_id
        return str(self.record.id)  # type: ignore[attr-defined]


def expected_size(requested: int, options: FinderOptions) -> int:
    """Number of records a batch lookup must return, honoring offset and limit."""
    size = requested - (options.offset or 0)
    if options.limit is not None and size > options.limit:
        size = options.limit
    return max(size, 0)


def scope_hint(options: SluggableOptions, scope: str | None) -> str | None:
    """Explain a failed lookup on a scoped model (None for unscoped models)."""
    if not options.scoped:
        return None
    if scope is None:
        return "(expected scope but got none)"
    return f"and scope={scope}"
