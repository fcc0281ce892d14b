"""Work item models."""

import logging
from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from wbs_core.exceptions import InvalidStatusError
from wbs_core.utils.dates import to_day

logger = logging.getLogger(__name__)


class WorkStatus(str, Enum):
    """작업 진행 상태."""
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"

    @classmethod
    def lookup(cls, token: Any) -> Optional["WorkStatus"]:
        """토큰에 해당하는 상태. 알 수 없으면 None."""
        if isinstance(token, cls):
            return token
        if not isinstance(token, str):
            return None
        key = token.strip()
        if key in _STATUS_ALIASES:
            return _STATUS_ALIASES[key]
        # "in progress", "In-Progress", "InProgress" 모두 허용
        normalized = key.replace("-", "_").replace(" ", "_").upper()
        if normalized in cls.__members__:
            return cls[normalized]
        return _STATUS_ALIASES.get(normalized.replace("_", ""))

    @classmethod
    def parse(cls, token: Any) -> "WorkStatus":
        """상태 토큰 해석. 알 수 없거나 비어 있으면 NOT_STARTED로 처리합니다."""
        status = cls.lookup(token)
        if status is None:
            if token not in (None, ""):
                logger.warning(f"[WorkStatus] 알 수 없는 상태 '{token}' → NOT_STARTED")
            return cls.NOT_STARTED
        return status

    @classmethod
    def parse_strict(cls, token: Any) -> "WorkStatus":
        """상태 토큰 해석. 알 수 없으면 InvalidStatusError."""
        status = cls.lookup(token)
        if status is None:
            raise InvalidStatusError(
                f"알 수 없는 작업 상태입니다: {token!r}",
                details={"status": token},
            )
        return status

    @property
    def progress(self) -> int:
        """상태에 대응하는 진행률 (%)."""
        return STATUS_PROGRESS[self]


# 기존 데이터(중국어 UI)에 저장된 상태 토큰과 붙여 쓴 영문 표기
_STATUS_ALIASES: dict[str, WorkStatus] = {
    "未开始": WorkStatus.NOT_STARTED,
    "进行中": WorkStatus.IN_PROGRESS,
    "已暂停": WorkStatus.PAUSED,
    "已完成": WorkStatus.COMPLETED,
    "NOTSTARTED": WorkStatus.NOT_STARTED,
    "INPROGRESS": WorkStatus.IN_PROGRESS,
    "PAUSED": WorkStatus.PAUSED,
    "COMPLETED": WorkStatus.COMPLETED,
}

STATUS_PROGRESS: dict[WorkStatus, int] = {
    WorkStatus.NOT_STARTED: 0,
    WorkStatus.PAUSED: 25,
    WorkStatus.IN_PROGRESS: 50,
    WorkStatus.COMPLETED: 100,
}


def _split_csv(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


class WorkItem(BaseModel):
    """WBS 작업 항목.

    자식 목록은 저장하지 않습니다. 부모-자식 관계는 parent_id로만 표현하고
    TreeStore가 인덱스를 만들어 관리합니다.
    """
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., description="작업 항목 ID")
    project_id: str = Field(..., description="소속 프로젝트 ID")
    name: str = Field(..., description="작업명")
    description: str = Field("", description="작업 설명")
    parent_id: Optional[str] = Field(None, description="상위 항목 ID (루트는 None)")
    level: int = Field(1, ge=1, description="레벨 (루트 = 1)")
    position: int = Field(0, description="형제 항목 사이의 순서")
    status: WorkStatus = Field(WorkStatus.NOT_STARTED, description="작업 상태")
    # 영속 계층 컬럼명(planned_start_time 등)도 입력으로 허용
    planned_start: Optional[date] = Field(
        None, validation_alias=AliasChoices("planned_start", "planned_start_time"), description="계획 시작일"
    )
    planned_end: Optional[date] = Field(
        None, validation_alias=AliasChoices("planned_end", "planned_end_time"), description="계획 종료일"
    )
    actual_start: Optional[date] = Field(
        None, validation_alias=AliasChoices("actual_start", "actual_start_time"), description="실제 시작일"
    )
    actual_end: Optional[date] = Field(
        None, validation_alias=AliasChoices("actual_end", "actual_end_time"), description="실제 종료일"
    )
    tags: list[str] = Field(default_factory=list, description="태그")
    members: list[str] = Field(default_factory=list, description="참여 인원")
    progress_notes: str = Field("", description="진행 메모")
    is_milestone: bool = Field(False, description="마일스톤 여부")

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> WorkStatus:
        return WorkStatus.parse(value)

    @field_validator("planned_start", "planned_end", "actual_start", "actual_end", mode="before")
    @classmethod
    def _truncate_date(cls, value: Any) -> Optional[date]:
        return to_day(value)

    @field_validator("tags", "members", mode="before")
    @classmethod
    def _parse_csv(cls, value: Any) -> Any:
        return _split_csv(value)

    @field_validator("description", "progress_notes", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def status_progress(self) -> int:
        return self.status.progress
