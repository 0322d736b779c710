"""Wait-time domain entities."""

import sys
from collections.abc import Iterable
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from src.modules.catalog.domain.catalog import MasterEntry


class RecordStatus(StrEnum):
    """展示记录的运营状态。"""

    OPERATING = "OPERATING"
    UNKNOWN = "UNKNOWN"


class LiveStatus(BaseModel):
    """One attraction's live statistics as of fetch time."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    attraction: str | None = Field(default=None, description="上游名称")
    current: int | None = Field(default=None, description="当前等待（分钟）")
    median: int | None = Field(default=None, description="中位数")
    min_wait: int | None = Field(default=None, alias="min", description="最小值")
    min_time: str | None = Field(default=None, description="最小值出现时刻")
    max_wait: int | None = Field(default=None, alias="max", description="最大值")
    max_time: str | None = Field(default=None, description="最大值出现时刻")
    avg_today: int | None = Field(default=None, description="今日平均")
    avg_week: int | None = Field(default=None, description="近一周平均")
    avg_month: int | None = Field(default=None, description="近一月平均")
    updated: str | None = Field(default=None, description="平均值窗口的显示文本")
    scraped_at: datetime | None = Field(default=None, description="实际抓取时间")
    source: str | None = Field(default=None, description="数据来源")


class DisplayRecord(BaseModel):
    """Master data merged with live status (or with nothing)."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    short_name: str
    code_name: str | None = None
    wait_minutes: int | None = None
    status: RecordStatus = RecordStatus.UNKNOWN
    area: str | None = None
    last_updated: datetime | None = None
    updated_text: str | None = None

    median: int | None = None
    min_wait: int | None = None
    min_time: str | None = None
    max_wait: int | None = None
    max_time: str | None = None
    avg_today: int | None = None
    avg_week: int | None = None
    avg_month: int | None = None

    image_url: str | None = None

    @classmethod
    def from_status(cls, master: MasterEntry, status: LiveStatus) -> "DisplayRecord":
        """由 master + 状态合成。"""
        return cls(
            id=master.id,
            name=master.display_name,
            short_name=master.short_name,
            code_name=master.code_name,
            wait_minutes=status.current,
            status=(
                RecordStatus.UNKNOWN
                if status.current is None
                else RecordStatus.OPERATING
            ),
            area=master.area,
            last_updated=status.scraped_at,
            updated_text=status.updated,
            median=status.median,
            min_wait=status.min_wait,
            min_time=status.min_time,
            max_wait=status.max_wait,
            max_time=status.max_time,
            avg_today=status.avg_today,
            avg_week=status.avg_week,
            avg_month=status.avg_month,
            image_url=master.image_url,
        )

    @classmethod
    def placeholder(cls, master: MasterEntry) -> "DisplayRecord":
        """抓取失败时的占位记录，所有实时字段为空。"""
        return cls(
            id=master.id,
            name=master.display_name,
            short_name=master.short_name,
            code_name=master.code_name,
            area=master.area,
            image_url=master.image_url,
        )


class Snapshot(BaseModel):
    """Last completed refresh, persisted for cold start."""

    records: list[DisplayRecord]
    fetched_at: datetime


def sort_records(
    records: Iterable[DisplayRecord], ascending: bool = True
) -> list[DisplayRecord]:
    """Order records by wait time.

    wait_minutes 为空时按最大值处理（升序排在最后，降序排在最前）；
    相同键保持输入顺序（sorted 在 reverse=True 时同样稳定）。
    """
    return sorted(
        records,
        key=lambda record: (
            sys.maxsize if record.wait_minutes is None else record.wait_minutes
        ),
        reverse=not ascending,
    )
