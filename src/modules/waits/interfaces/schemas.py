"""Wait-time API schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.modules.waits.domain.entities import RecordStatus


class WaitRecordResponse(BaseModel):
    """One attraction row on the board."""

    id: str = Field(..., description="Attraction ID")
    name: str = Field(..., description="显示名称")
    short_name: str = Field(..., description="略称")
    code_name: str | None = Field(None, description="代号")
    wait_minutes: int | None = Field(None, description="当前等待（分钟）")
    status: RecordStatus = Field(..., description="运营状态")
    area: str | None = Field(None, description="区域")
    last_updated: datetime | None = Field(None, description="上游抓取时间")
    updated_text: str | None = Field(None, description="平均值窗口说明")
    median: int | None = None
    min_wait: int | None = None
    min_time: str | None = None
    max_wait: int | None = None
    max_time: str | None = None
    avg_today: int | None = None
    avg_week: int | None = None
    avg_month: int | None = None
    image_url: str | None = None
    is_favorite: bool = Field(False, description="是否已收藏")


class BoardResponse(BaseModel):
    """Board response."""

    records: list[WaitRecordResponse] = Field(default_factory=list)
    last_fetch: datetime | None = Field(None, description="上次刷新完成时间")
    error_message: str | None = Field(None, description="降级提示")
    sort_ascending: bool = Field(True, description="是否升序")
    favorites: list[str] = Field(default_factory=list, description="收藏 ID 列表")
    is_refreshing: bool = Field(False, description="是否正在刷新")


class RefreshRequest(BaseModel):
    """Manual refresh request."""

    include_catalog: bool = Field(False, description="是否重新检查 catalog")
    wipe_caches: bool = Field(False, description="是否先清空 catalog 缓存与快照")

    class Config:
        json_schema_extra = {
            "example": {"include_catalog": True, "wipe_caches": False}
        }


class FavoriteToggleResponse(BaseModel):
    """Favorite toggle response."""

    id: str = Field(..., description="Attraction ID")
    is_favorite: bool = Field(..., description="切换后的收藏状态")


class CatalogEntryResponse(BaseModel):
    """Catalog entry response."""

    id: str
    display_name: str
    short_name: str
    code_name: str | None = None
    endpoint: str
    area: str | None = None
    image_url: str | None = None
