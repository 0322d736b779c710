"""Tests for the periodic refresh task."""

from unittest.mock import MagicMock

import pytest

from src.core.config import settings
from src.modules.waits import tasks

pytestmark = pytest.mark.anyio


async def test_periodic_refresh_skips_memory_backend(monkeypatch) -> None:
    redis_factory = MagicMock()
    monkeypatch.setattr(settings, "BLOB_STORE_BACKEND", "memory")
    monkeypatch.setattr(tasks, "get_async_redis_client", redis_factory)

    assert await tasks._refresh_waits_async() is None
    redis_factory.assert_not_called()
