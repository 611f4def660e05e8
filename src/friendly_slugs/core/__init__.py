"""Core configuration and utilities for friendly ids."""

from friendly_slugs.core import codec
from friendly_slugs.core.config import (
    DEFAULT_RESERVED_WORDS,
    FriendlyIdConfig,
    SluggableOptions,
    load_config,
)
from friendly_slugs.core.errors import (
    BlankSlugError,
    ConfigurationError,
    ConflictError,
    FriendlyIdError,
    MissingAttributeError,
    NotFoundError,
    ReservedSlugError,
    SequenceAssignmentError,
    SlugValidationError,
    UnregisteredModelError,
)
from friendly_slugs.core.slug import DEFAULT_SLUG_MAX_LENGTH, SlugNormalizer

__all__ = [
    "DEFAULT_RESERVED_WORDS",
    "DEFAULT_SLUG_MAX_LENGTH",
    "FriendlyIdConfig",
    "SluggableOptions",
    "SlugNormalizer",
    "codec",
    "load_config",
    "BlankSlugError",
    "ConfigurationError",
    "ConflictError",
    "FriendlyIdError",
    "MissingAttributeError",
    "NotFoundError",
    "ReservedSlugError",
    "SequenceAssignmentError",
    "SlugValidationError",
    "UnregisteredModelError",
]
