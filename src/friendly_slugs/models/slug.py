from datetime import UTC, datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from friendly_slugs.core import codec

# Stored scope for unscoped slugs. NULL would not take part in the unique constraint.
UNSCOPED = ""


def stored_scope(scope: str | None) -> str:
    """Map an optional scope onto its stored column value."""
    return UNSCOPED if scope is None else scope


class Slug(SQLModel, table=True):
    """A friendly id of one owning record, never changed once created."""

    __tablename__ = "slugs"
    __table_args__ = (
        UniqueConstraint("name", "scope", "sluggable_type", "sequence", name="uq_slug_identity"),
    )

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    sequence: int = Field(default=1, ge=1)
    scope: str = Field(default=UNSCOPED, index=True)
    sluggable_type: str = Field(index=True)
    sluggable_id: int = Field(index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def friendly_id(self) -> str:
        return codec.format(self.name, self.sequence)

    @property
    def scope_value(self) -> str | None:
        """Scope as callers pass it, None when unscoped."""
        return None if self.scope == UNSCOPED else self.scope
