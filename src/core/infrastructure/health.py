"""统一的健康检查类型定义。

所有基础设施组件的健康检查都使用这些类型，确保类型安全和一致性。
"""

from enum import Enum

from pydantic import BaseModel, Field


class HealthStatus(str, Enum):
    """健康检查状态枚举。"""

    OK = "ok"
    ERROR = "error"


class BlobStoreHealthResult(BaseModel):
    """Blob store 健康检查结果。"""

    status: HealthStatus = Field(..., description="健康状态")
    backend: str = Field(..., description="后端类型（memory/file/redis）")
    error: str | None = Field(None, description="错误信息")

    def to_dict(self) -> dict[str, str | None]:
        """转换为字典（用于 API 响应）。"""
        return self.model_dump(mode="json", exclude_none=False)
