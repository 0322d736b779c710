"""parkwait Backend - 等待时间刷新服务入口。"""

import asyncio

import sentry_sdk
from fastapi import FastAPI
from fastapi.concurrency import asynccontextmanager
from fastapi.routing import APIRoute
from loguru import logger
from starlette.middleware.cors import CORSMiddleware

from src.core.config import settings
from src.core.domain.exceptions import DomainException
from src.core.infrastructure.blob_store import build_blob_store, check_blob_store_health
from src.core.infrastructure.logging import setup_logging
from src.core.interfaces.http.exceptions import (
    domain_exception_handler,
    global_exception_handler,
)
from src.core.interfaces.http.routers import api_router
from src.modules.waits.application import dependencies as waits_app_deps
from src.modules.waits.infrastructure import dependencies as waits_infra_deps


def custom_generate_unique_id(route: APIRoute) -> str:
    """Generate unique operation IDs for OpenAPI."""
    if route.tags:
        return f"{route.tags[0]}-{route.name}"
    return route.name


# Initialize Sentry if configured
if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(
        dsn=str(settings.SENTRY_DSN),
        enable_tracing=True,
        environment=settings.ENVIRONMENT,
    )


async def _initial_refresh(app: FastAPI) -> None:
    try:
        await app.state.wait_board.load_catalog_and_refresh()
    except Exception as e:
        logger.exception(f"Initial refresh failed: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging()
    logger.info("Starting parkwait backend...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    blob_store = build_blob_store(settings)
    board = waits_infra_deps.build_wait_board(blob_store, settings)
    await board.restore()

    app.state.blob_store = blob_store
    app.state.wait_board = board

    # 首次加载在后台进行，先用快照响应请求
    initial_task: asyncio.Task | None = None
    if settings.REFRESH_ON_STARTUP:
        initial_task = asyncio.create_task(_initial_refresh(app))

    yield

    if initial_task is not None and not initial_task.done():
        initial_task.cancel()
        await asyncio.gather(initial_task, return_exceptions=True)
    await blob_store.close()
    logger.info("Shutting down parkwait backend...")


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Attraction wait-time board: catalog, fan-out refresh, snapshot",
    version="0.1.0",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
    root_path=settings.ROOTPATH,
    generate_unique_id_function=custom_generate_unique_id,
    lifespan=lifespan,
)

# Dependency overrides (application -> infrastructure)
app.dependency_overrides[waits_app_deps.get_wait_board] = (
    waits_infra_deps.get_wait_board
)

# Exception handlers
app.add_exception_handler(DomainException, domain_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# CORS middleware
if settings.all_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_credentials=True,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

# Include API router
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint.

    - blob store 是否可读
    - 上次刷新是否有等待时间（降级时 status 为 degraded）

    Returns:
        健康检查结果，包含整体状态和各组件状态
    """
    board = app.state.wait_board
    await board.sync_from_snapshot()
    blob_health_result = await check_blob_store_health(
        app.state.blob_store, settings.BLOB_STORE_BACKEND
    )

    blob_ok = blob_health_result.status.value == "ok"
    if blob_ok and board.error_message is None:
        overall_status = "healthy"
    elif blob_ok:
        overall_status = "degraded"
    else:
        overall_status = "unhealthy"

    return {
        "status": overall_status,
        "environment": settings.ENVIRONMENT,
        "version": "0.1.0",
        "components": {
            "blob_store": blob_health_result.to_dict(),
            "waits": {
                "last_fetch": (
                    board.last_fetch.isoformat() if board.last_fetch else None
                ),
                "records": len(board.records),
                "error_message": board.error_message,
                "is_refreshing": board.is_refreshing,
            },
        },
    }


@app.get("/", tags=["root"])
async def root():
    """Root endpoint."""
    return {
        "message": "Welcome to parkwait API",
        "docs": f"{settings.API_V1_STR}/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.SERVER_PORT,
        reload=settings.ENVIRONMENT == "local",
    )
