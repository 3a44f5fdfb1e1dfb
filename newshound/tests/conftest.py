"""
Pytest configuration for newshound tests.
"""
from datetime import datetime, timezone

import pytest

from newshound.tests.fakes import (
    FakePool,
    InMemoryAlertRepository,
    InMemoryEventRepository,
)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test."
    )


@pytest.fixture
def base_time() -> datetime:
    return datetime(2024, 3, 14, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fake_pool() -> FakePool:
    return FakePool()


@pytest.fixture
def alert_repo() -> InMemoryAlertRepository:
    return InMemoryAlertRepository()


@pytest.fixture
def event_repo() -> InMemoryEventRepository:
    return InMemoryEventRepository()
