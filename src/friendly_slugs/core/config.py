"""Configuration schemas and loading for friendly ids."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from friendly_slugs.core.slug import DEFAULT_SLUG_MAX_LENGTH, SlugNormalizer

DEFAULT_RESERVED_WORDS = ("new", "index")


class SluggableOptions(BaseModel):
    """Friendly id options for one owning model.

    Attributes:
        source: Attribute whose value seeds new slugs.
        scope: Attribute whose value partitions slug uniqueness, or None.
        max_length: Maximum slug length in characters.
        strip_diacritics: Remove accents before slugging.
        strip_non_ascii: Drop non-ASCII characters before slugging.
        reserved: Slug names that may never be used (e.g. route keywords).
    """

    source: str = "name"
    scope: str | None = None
    max_length: int = Field(default=DEFAULT_SLUG_MAX_LENGTH, ge=1)
    strip_diacritics: bool = False
    strip_non_ascii: bool = False
    reserved: list[str] = Field(default_factory=lambda: list(DEFAULT_RESERVED_WORDS))

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: str) -> str:
        if not v or not v.strip():
            msg = "Source attribute cannot be empty"
            raise ValueError(msg)
        return v

    @field_validator("reserved")
    @classmethod
    def validate_reserved(cls, v: list[str]) -> list[str]:
        """Ensure reserved words are non-empty strings."""
        for word in v:
            if not word or not word.strip():
                msg = "Reserved words cannot be empty"
                raise ValueError(msg)
        return v

    @property
    def scoped(self) -> bool:
        return self.scope is not None

    def normalizer(self) -> SlugNormalizer:
        """Build the slug normalizer matching these options."""
        return SlugNormalizer(
            self.max_length,
            strip_diacritics=self.strip_diacritics,
            strip_non_ascii=self.strip_non_ascii,
        )


class FriendlyIdConfig(BaseModel):
    """Complete friendly id configuration."""

    database_url: str = "sqlite:///friendly_slugs.db"
    sequence_retries: int = Field(default=5, ge=1, le=100)
    default_options: SluggableOptions = Field(default_factory=SluggableOptions)
    sluggables: dict[str, SluggableOptions] = Field(default_factory=dict)

    def options_for(self, model_name: str) -> SluggableOptions:
        """Get options for a model name, falling back to the defaults."""
        return self.sluggables.get(model_name, self.default_options)


def load_config(path: str | Path) -> FriendlyIdConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to YAML configuration file.

    Returns:
        Validated FriendlyIdConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValidationError: If config is invalid.
    """
    config_path = Path(path)
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with config_path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return FriendlyIdConfig.model_validate(data)
