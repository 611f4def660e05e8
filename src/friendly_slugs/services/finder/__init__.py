from .base import FinderOptions, Resolution, expected_size, scope_hint
from .batch import BatchResolver
from .single import SingleResolver

__all__ = [
    "BatchResolver",
    "FinderOptions",
    "Resolution",
    "SingleResolver",
    "expected_size",
    "scope_hint",
]
