from datetime import datetime, timezone

import pytest

from review_scheduler.config import SchedulerConfig
from review_scheduler.data.memory import InMemoryReviewStore
from review_scheduler.services.reviews import ReviewScheduler, reset_scheduler


@pytest.fixture(autouse=True)
def fresh_default_scheduler():
    # The process-wide scheduler caches an index; never share it across tests
    reset_scheduler()
    yield
    reset_scheduler()


@pytest.fixture
def t0():
    return datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def memory_store():
    return InMemoryReviewStore()


@pytest.fixture
def scheduler(memory_store):
    return ReviewScheduler(memory_store, config=SchedulerConfig())
