from collections.abc import Iterator
from pathlib import Path

import pytest
from sample_models import District, Post, Resident

from friendly_slugs.core.config import FriendlyIdConfig, SluggableOptions
from friendly_slugs.services import FriendlyIdService
from friendly_slugs.services.storage import Database, SlugRepository


@pytest.fixture
def database(tmp_path: Path) -> Iterator[Database]:
    db = Database(f"sqlite:///{tmp_path / 'slugs.db'}")
    db.create_all()
    yield db
    db.close_sync()


@pytest.fixture
def repository(database: Database) -> SlugRepository:
    return SlugRepository(database.engine)


@pytest.fixture
def service(database: Database) -> FriendlyIdService:
    service = FriendlyIdService(database.engine, FriendlyIdConfig(sequence_retries=10))
    service.register(Post)
    service.register(District)
    service.register(Resident, SluggableOptions(scope="country"))
    return service
