from .database import Database
from .repository import AsyncRepository
from .slug_repository import SlugRepository

__all__ = ["AsyncRepository", "Database", "SlugRepository"]
