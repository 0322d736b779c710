"""Attraction catalog domain models and ports."""

import json
from datetime import datetime
from typing import Any, Literal, Protocol

from loguru import logger
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)

from src.core.domain.exceptions import DecodeError

CatalogOrigin = Literal["cache", "remote", "not_modified", "fallback"]


class MasterEntry(BaseModel):
    """Catalog metadata for one attraction."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(..., description="稳定主键")
    display_name: str = Field(..., alias="displayName", description="显示名称")
    short_name: str = Field(..., alias="shortName", description="短名称")
    code_name: str | None = Field(default=None, alias="codeName", description="代号")
    api_title: str | None = Field(default=None, alias="apiTitle", description="上游 slug")
    endpoint: str = Field(..., description="状态接口（绝对或根相对 URL）")
    image_url: str | None = Field(default=None, description="图片 URL")
    area: str | None = Field(default=None, description="所在区域")
    active: bool | None = Field(default=None, description="是否启用（缺省视为启用）")

    @property
    def is_active(self) -> bool:
        return self.active is not False


class _ItemsWrapper(BaseModel):
    """`{"items": [...]}` 形式的单层包装。"""

    items: list[MasterEntry]


_ENTRY_LIST = TypeAdapter(list[MasterEntry])


class CatalogFile(BaseModel):
    """Versioned catalog container."""

    model_config = ConfigDict(frozen=True)

    version: int
    generated_at: datetime | None = None
    items: list[MasterEntry]

    @field_validator("generated_at", mode="wrap")
    @classmethod
    def _tolerate_bad_timestamp(
        cls, value: Any, handler: ValidatorFunctionWrapHandler
    ) -> datetime | None:
        # 时间戳无法解析时按缺省处理，不影响整个文件
        try:
            return handler(value)
        except ValidationError:
            return None

    @classmethod
    def decode(cls, data: bytes | str) -> "CatalogFile":
        """Decode raw catalog bytes.

        `items` 既可以是数组，也可以是 `{"items": [...]}` 包装；
        先按数组解析，结构不符时再按包装解析。

        Raises:
            DecodeError: JSON 非法或结构不符合任意一种形态
        """
        try:
            payload = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"Catalog is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise DecodeError("Catalog payload must be a JSON object")

        items = cls._decode_items(payload.get("items"))
        try:
            return cls(
                version=payload.get("version"),
                generated_at=payload.get("generated_at"),
                items=items,
            )
        except ValidationError as e:
            raise DecodeError(f"Invalid catalog header: {e}") from e

    @staticmethod
    def _decode_items(raw: Any) -> list[MasterEntry]:
        try:
            return _ENTRY_LIST.validate_python(raw)
        except ValidationError:
            logger.debug("Catalog items is not a direct array, trying wrapper shape")

        try:
            return _ItemsWrapper.model_validate(raw).items
        except ValidationError as e:
            raise DecodeError(
                "Catalog items must be an array or an object wrapping an array"
            ) from e

    def active_entries(self) -> list[MasterEntry]:
        """返回启用的条目（active 缺省视为启用）。"""
        return [entry for entry in self.items if entry.is_active]


def minimal_fallback() -> list[MasterEntry]:
    """网络与缓存都不可用时的最小目录。"""
    return [
        MasterEntry(
            id="spyxr",
            display_name="SPY×FAMILY XRライド",
            short_name="XRライド",
            code_name="SPY",
            api_title="ev_spy_family_xr",
            endpoint="https://usjwait.moenaigomi.com/api/wait?slug=ev_spy_family_xr",
            image_url="https://www.usj.co.jp/tridiondata/usj/ja/jp/files/images/gds-images/usj-gds-spy-family-2025-b.jpg",
            area="ハリウッド・エリア",
            active=True,
        )
    ]


class CatalogProvider(Protocol):
    """Port for resolving the current master list."""

    async def load(self, force: bool = False) -> list[MasterEntry]: ...

    async def clear_cache(self) -> None: ...
