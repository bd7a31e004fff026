"""
Общие фикстуры: временная база и хранилище событий.
"""

from datetime import datetime

import pytest
import pytest_asyncio

from calbot.app.services.database import DatabaseService
from calbot.app.services.event_store import EventStore


@pytest.fixture
def now():
    """Фиксированный момент для относительных дат."""
    return datetime(2024, 1, 1, 9, 0)


@pytest_asyncio.fixture
async def db(tmp_path):
    service = DatabaseService(db_path=tmp_path / "calbot.db")
    await service.connect()
    yield service
    await service.disconnect()


@pytest_asyncio.fixture
async def store(db):
    return EventStore(db)
