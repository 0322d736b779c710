"""Application configuration."""

from typing import Annotated, Any, Literal
from urllib.parse import urlsplit, urlunsplit

from pydantic import (
    AnyUrl,
    BeforeValidator,
    HttpUrl,
    computed_field,
)
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",")]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "parkwait"
    SERVER_PORT: int = 8000
    ROOTPATH: str = ""
    API_V1_STR: str = "/api/v1"
    FRONTEND_HOST: str = "http://localhost:3000"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    TIMEZONE: str = "Asia/Tokyo"

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []
    CORS_ALLOW_METHODS: list[str] = ["GET", "POST"]
    CORS_ALLOW_HEADERS: list[str] = ["*"]

    @computed_field
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS] + [
            self.FRONTEND_HOST
        ]

    # Sentry
    SENTRY_DSN: HttpUrl | None = None

    # Catalog（主数据目录）
    CATALOG_URL: str = "https://usjwait.moenaigomi.com/api/catalog"
    CATALOG_FETCH_TIMEOUT_SEC: float = 15.0
    # 相对 endpoint 的解析根；为空时取 CATALOG_URL 的 scheme + host
    ENDPOINT_BASE_URL: str | None = None

    @computed_field
    @property
    def endpoint_base_url(self) -> str:
        """解析相对 endpoint 使用的根地址（只保留 scheme 与 host）。"""
        if self.ENDPOINT_BASE_URL:
            return self.ENDPOINT_BASE_URL
        parts = urlsplit(self.CATALOG_URL)
        return urlunsplit((parts.scheme, parts.netloc, "/", "", ""))

    # Status fetch
    STATUS_FETCH_TIMEOUT_SEC: float = 10.0
    STATUS_FETCH_CONCURRENCY: int = 16
    FETCHER_USER_AGENT: str = "Mozilla/5.0 (compatible; parkwait/1.0)"

    # Blob store
    BLOB_STORE_BACKEND: Literal["memory", "file", "redis"] = "memory"
    BLOB_STORE_DIR: str = ".cache/parkwait"
    BLOB_KEY_PREFIX: str = "parkwait"

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"

    # Refresh schedule
    REFRESH_INTERVAL_SEC: int = 300  # 5 minutes
    REFRESH_LOCK_TTL_SEC: int = 120  # 覆盖一次完整 fan-out 的上限
    REFRESH_ON_STARTUP: bool = True

    # Celery Settings
    CELERY_BROKER_URL: str | None = None  # 默认使用 REDIS_URL
    CELERY_RESULT_BACKEND: str | None = None  # 默认使用 REDIS_URL
    CELERY_TASK_SERIALIZER: str = "json"
    CELERY_RESULT_SERIALIZER: str = "json"
    CELERY_ACCEPT_CONTENT: list[str] = ["json"]

    @computed_field
    @property
    def celery_broker_url(self) -> str:
        """获取 Celery Broker URL，默认使用 Redis URL。"""
        return self.CELERY_BROKER_URL or self.REDIS_URL

    @computed_field
    @property
    def celery_result_backend(self) -> str:
        """获取 Celery Result Backend URL，默认使用 Redis URL。"""
        return self.CELERY_RESULT_BACKEND or self.REDIS_URL


settings = Settings()
