"""
pytest 配置和共享 fixtures。

测试分层：
- unit/: 单元测试（不依赖外部服务，上游 HTTP 由 httpx.MockTransport 模拟）

使用方法：
    # 运行所有测试
    uv run pytest

    # 只运行单元测试
    uv run pytest tests/unit/
"""

import json
from collections.abc import AsyncGenerator, Callable
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from src.core.domain.blob_keys import BlobKeys
from src.core.infrastructure.blob_store import InMemoryBlobStore
from src.modules.catalog.domain.catalog import MasterEntry

# ============================================
# 配置 Fixtures
# ============================================


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    """空的内存 blob store。"""
    return InMemoryBlobStore()


@pytest.fixture
def blob_keys() -> BlobKeys:
    return BlobKeys("test")


# ============================================
# 领域对象 Fixtures
# ============================================


def make_master(
    attraction_id: str,
    endpoint: str | None = None,
    **overrides: Any,
) -> MasterEntry:
    """生成测试用 MasterEntry。"""
    data: dict[str, Any] = {
        "id": attraction_id,
        "displayName": f"Attraction {attraction_id}",
        "shortName": attraction_id.upper(),
        "endpoint": endpoint or f"/api/wait?slug={attraction_id}",
    }
    data.update(overrides)
    return MasterEntry.model_validate(data)


@pytest.fixture
def master_factory() -> Callable[..., MasterEntry]:
    return make_master


def catalog_payload(items: list[dict[str, Any]], *, wrapped: bool = False) -> bytes:
    """生成 catalog JSON 字节。"""
    payload: dict[str, Any] = {
        "version": 1,
        "generated_at": "2025-06-01T09:00:00Z",
        "items": {"items": items} if wrapped else items,
    }
    return json.dumps(payload).encode("utf-8")


@pytest.fixture
def sample_catalog_items() -> list[dict[str, Any]]:
    """示例 catalog 条目（含一个停用条目）。"""
    return [
        {
            "id": "hp",
            "displayName": "Harry Potter and the Forbidden Journey",
            "shortName": "HP",
            "codeName": "FJ",
            "endpoint": "/api/wait?slug=hp",
            "area": "Wizarding World",
        },
        {
            "id": "mario",
            "displayName": "Mario Kart: Koopa's Challenge",
            "shortName": "MK",
            "endpoint": "https://waits.example.com/api/wait?slug=mario",
            "active": True,
        },
        {
            "id": "retired",
            "displayName": "Retired Ride",
            "shortName": "RR",
            "endpoint": "/api/wait?slug=retired",
            "active": False,
        },
    ]


@pytest.fixture
def sample_catalog_bytes(sample_catalog_items) -> bytes:
    return catalog_payload(sample_catalog_items)


# ============================================
# HTTP Client Fixtures
# ============================================


@pytest.fixture
async def api_client_factory() -> AsyncGenerator[Callable[..., AsyncClient], None]:
    """为给定 WaitBoard 创建 API 客户端（不经过 lifespan）。"""
    from main import app
    from src.modules.waits.application.dependencies import get_wait_board

    clients: list[AsyncClient] = []
    original_overrides = dict(app.dependency_overrides)

    def _create(board) -> AsyncClient:
        app.dependency_overrides[get_wait_board] = lambda: board
        client = AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        )
        clients.append(client)
        return client

    yield _create

    for client in clients:
        await client.aclose()

    # 恢复依赖覆盖
    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)
