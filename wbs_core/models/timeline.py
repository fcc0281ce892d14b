"""Timeline (Gantt) layout models."""

from datetime import date
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from .work_item import WorkStatus


class DateViewMode(str, Enum):
    """타임라인 눈금 단위."""
    DAY = "day"
    WEEK = "week"  # 월요일 시작
    MONTH = "month"
    YEAR = "year"


class BarGeometry(BaseModel):
    """막대 위치와 크기 (픽셀)."""
    left: int = Field(..., description="왼쪽 오프셋")
    width: int = Field(..., description="너비")
    start_column: int = Field(..., description="시작 열 인덱스")
    span: int = Field(..., description="차지하는 열 수")
    in_progress: bool = Field(False, description="종료일 없이 진행 중인 실제 막대")


class TimelineRow(BaseModel):
    """화면에 보이는 한 행."""
    item_id: str
    name: str
    indent: int = Field(..., description="표시 깊이 (0부터)")
    level: int
    status: WorkStatus = WorkStatus.NOT_STARTED
    is_milestone: bool = False
    has_children: bool = False
    expanded: bool = True
    planned_bar: Optional[BarGeometry] = None
    actual_bar: Optional[BarGeometry] = None


class MilestoneMarker(BaseModel):
    """마일스톤 타임라인 항목."""
    id: str
    name: str
    planned_end: Optional[date] = None
    actual_end: Optional[date] = None
    status: WorkStatus = WorkStatus.NOT_STARTED


class TimelineLayout(BaseModel):
    """간트 차트 렌더링 입력."""
    min_date: date
    max_date: date
    view_mode: DateViewMode = DateViewMode.DAY
    column_width: int
    columns: list[date] = Field(default_factory=list, description="열 시작 날짜")
    rows: list[TimelineRow] = Field(default_factory=list, description="보이는 행 (전위 순회 순서)")
    today_index: Optional[int] = Field(None, description="오늘 열 인덱스 (범위 밖이면 None)")

    @property
    def total_width(self) -> int:
        return len(self.columns) * self.column_width

    @property
    def visible_ids(self) -> list[str]:
        return [row.item_id for row in self.rows]
