"""Friendly slugs.

Resolve human-readable friendly ids (``my-title``, ``my-title--2``) to
SQLModel records, with sequenced slugs, slug history and primary key fallback.
"""

from friendly_slugs.core.config import FriendlyIdConfig, SluggableOptions, load_config
from friendly_slugs.core.errors import NotFoundError, SequenceAssignmentError
from friendly_slugs.models import Slug
from friendly_slugs.services import Database, FinderOptions, FriendlyIdService, Resolution

__version__ = "0.1.0"
__all__ = [
    "Database",
    "FinderOptions",
    "FriendlyIdConfig",
    "FriendlyIdService",
    "NotFoundError",
    "Resolution",
    "SequenceAssignmentError",
    "Slug",
    "SluggableOptions",
    "__version__",
    "load_config",
]
