"""HTTP status fetcher for one attraction."""

import json
import time
from collections.abc import Callable
from typing import Any
from urllib.parse import urlsplit

import httpx
from loguru import logger
from pydantic import ValidationError

from src.core.config import settings
from src.core.domain.exceptions import (
    DecodeError,
    ProtocolError,
    TransportError,
    URLResolutionError,
)
from src.modules.catalog.domain.catalog import MasterEntry
from src.modules.waits.domain.entities import LiveStatus
from src.modules.waits.domain.ports import StatusFetcher


class HttpStatusFetcher(StatusFetcher):
    """Fetch live wait statistics from an attraction's endpoint.

    - 绝对 URL 原样使用，相对 URL 拼接到根地址上
    - 每次请求追加 `_ts=<unix 秒>`，绕过中间层与客户端缓存
    - 每个请求有固定超时，单个慢接口不会无限拖住整个 fan-out
    """

    CACHE_BUST_PARAM = "_ts"

    ALLOWED_SCHEMES = ("http", "https")

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout_sec: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.base_url = base_url or settings.endpoint_base_url
        self.timeout_sec = timeout_sec or settings.STATUS_FETCH_TIMEOUT_SEC
        self._transport = transport
        self._clock = clock

    async def fetch_status(self, entry: MasterEntry) -> LiveStatus:
        """获取单个 attraction 的实时状态。

        Raises:
            URLResolutionError: endpoint 无法解析
            TransportError: 网络错误或超时
            ProtocolError: 非 2xx 状态码
            DecodeError: 响应体不是预期的 JSON
        """
        url = self.build_request_url(entry.endpoint)
        logger.debug(f"Fetch: {url}")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_sec,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(
                    url,
                    headers={
                        "User-Agent": settings.FETCHER_USER_AGENT,
                        "Accept": "application/json",
                    },
                )
        except httpx.TimeoutException as e:
            raise TransportError(f"Timeout fetching {entry.id}: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Transport error fetching {entry.id}: {e}") from e

        if not response.is_success:
            raise ProtocolError(
                response.status_code,
                f"HTTP {response.status_code} fetching {entry.id}",
            )

        status = self._parse_status(response.content)
        logger.debug(
            f"[{entry.short_name}] current={status.current} "
            f"median={status.median} updated={status.updated} "
            f"scraped_at={status.scraped_at}"
        )
        return status

    def build_request_url(self, endpoint: str) -> httpx.URL:
        """解析 endpoint 并追加防缓存参数。"""
        resolved = self.resolve_endpoint(endpoint, self.base_url)
        return resolved.copy_add_param(
            self.CACHE_BUST_PARAM, str(int(self._clock()))
        )

    @classmethod
    def resolve_endpoint(cls, endpoint: str, base_url: str) -> httpx.URL:
        """Resolve an absolute or root-relative endpoint to an absolute URL.

        拼接边界只保留一个 "/"，避免出现 "//" 或缺少 "/"。
        """
        value = endpoint.strip()
        if not value:
            raise URLResolutionError("Endpoint is empty")

        try:
            scheme = urlsplit(value).scheme
        except ValueError as e:
            raise URLResolutionError(f"Malformed endpoint {endpoint!r}: {e}") from e

        if scheme:
            if scheme.lower() not in cls.ALLOWED_SCHEMES:
                raise URLResolutionError(f"Unsupported scheme in {endpoint!r}")
            candidate = value
        else:
            base = base_url.strip().rstrip("/")
            if not base:
                raise URLResolutionError("No base URL to resolve relative endpoint")
            path = value[1:] if value.startswith("/") else value
            candidate = f"{base}/{path}"

        try:
            url = httpx.URL(candidate)
        except httpx.InvalidURL as e:
            raise URLResolutionError(f"Malformed endpoint {endpoint!r}: {e}") from e

        if url.scheme not in cls.ALLOWED_SCHEMES or not url.host:
            raise URLResolutionError(f"Endpoint {endpoint!r} did not resolve to a URL")
        return url

    @staticmethod
    def _parse_status(content: bytes) -> LiveStatus:
        """响应体可以是单个对象，也可以是取第一个元素的数组。"""
        try:
            payload: Any = json.loads(content)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"Status body is not valid JSON: {e}") from e

        if isinstance(payload, list):
            if not payload:
                raise DecodeError("Status array is empty")
            payload = payload[0]

        if not isinstance(payload, dict):
            raise DecodeError("Status payload must be an object")

        try:
            return LiveStatus.model_validate(payload)
        except ValidationError as e:
            raise DecodeError(f"Unexpected status shape: {e}") from e
