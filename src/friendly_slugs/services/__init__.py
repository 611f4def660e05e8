from .finder import BatchResolver, FinderOptions, Resolution, SingleResolver
from .friendly_id import FriendlyIdService, SaveResult
from .sequencing import SequenceAssigner
from .sluggable import SluggableModel, scope_param
from .storage import Database, SlugRepository

__all__ = [
    "BatchResolver",
    "Database",
    "FinderOptions",
    "FriendlyIdService",
    "Resolution",
    "SaveResult",
    "SequenceAssigner",
    "SingleResolver",
    "SlugRepository",
    "SluggableModel",
    "scope_param",
]
