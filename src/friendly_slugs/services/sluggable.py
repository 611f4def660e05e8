"""Binding between an owning SQLModel class and its friendly id options."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlmodel import SQLModel, col

from friendly_slugs.core.config import SluggableOptions
from friendly_slugs.core.errors import MissingAttributeError


def scope_param(value: object) -> str | None:
    """Convert a scope value (string, number or record) to its stored form.

    A blank string is no scope at all, so it never forms a namespace of its own.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, SQLModel) and getattr(value, "id", None) is not None:
        return str(value.id)  # type: ignore[attr-defined]
    return str(value)


@dataclass(frozen=True)
class SluggableModel:
    """An owning model registered for friendly ids.

    The model must be a SQLModel table with an integer primary key named ``id``.
    Slugs point at it through ``sluggable_type``, which is the class name, so
    several models can share one slug table.
    """

    model: type[SQLModel]
    options: SluggableOptions

    def __post_init__(self) -> None:
        for attribute in (self.options.source, self.options.scope):
            if attribute is not None and not hasattr(self.model, attribute):
                raise MissingAttributeError(self.model.__name__, attribute)
        if not hasattr(self.model, "id"):
            raise MissingAttributeError(self.model.__name__, "id")

    @property
    def sluggable_type(self) -> str:
        return self.model.__name__

    @property
    def id_column(self) -> Any:
        return col(self.model.id)  # type: ignore[attr-defined]

    def source_text(self, record: SQLModel) -> object:
        """Value that seeds the record's slug."""
        return getattr(record, self.options.source)

    def scope_of(self, record: SQLModel) -> str | None:
        if self.options.scope is None:
            return None
        return scope_param(getattr(record, self.options.scope))
