from __future__ import annotations

import os
from unittest.mock import AsyncMock

import fakeredis
import pytest

from cache.store import CacheStore
from detection.strategy import ColumnContext, DetectionInput
from llm.gateway import Gateway, PIIDetectionResult

# Keep the module-level app from wiring real providers during tests
os.environ.setdefault("AI_ENABLED", "false")


@pytest.fixture
def email_input() -> DetectionInput:
    """An email column with realistic raw samples."""
    return DetectionInput(
        column_name="email",
        data_type="varchar",
        table_name="customers",
        samples=("a@b.com", "c@d.org", "e@f.net"),
        adjacent_columns=(ColumnContext("first_name", "varchar"), ColumnContext("phone", "varchar")),
    )


@pytest.fixture
def mock_gateway() -> AsyncMock:
    """A gateway double whose detect_pii answers 'not PII' unless told otherwise."""
    gateway = AsyncMock(spec=Gateway)
    gateway.detect_pii.return_value = PIIDetectionResult(is_pii=False, provider="mock")
    return gateway


@pytest.fixture
def fake_redis() -> fakeredis.FakeAsyncRedis:
    return fakeredis.FakeAsyncRedis(decode_responses=True)


@pytest.fixture
def cache_store(fake_redis: fakeredis.FakeAsyncRedis) -> CacheStore:
    return CacheStore(fake_redis)
