"""Move (reparent) result models."""

from typing import Optional
from pydantic import BaseModel, Field


class MoveResult(BaseModel):
    """이동 결과. 영속 계층에 그대로 넘겨 저장합니다."""
    item_id: str = Field(..., description="이동한 항목 ID")
    old_parent_id: Optional[str] = Field(None, description="이전 상위 항목 ID")
    new_parent_id: Optional[str] = Field(None, description="새 상위 항목 ID (루트는 None)")
    position: int = Field(0, description="새 형제 그룹에서의 순서")
    level_delta: int = Field(0, description="레벨 변화량")
    levels: dict[str, int] = Field(default_factory=dict, description="재계산된 레벨 (이동 항목 + 하위 항목)")


class PotentialParent(BaseModel):
    """이동 대상으로 선택 가능한 상위 항목."""
    id: str = Field(..., description="항목 ID")
    name: str = Field(..., description="항목명")
    path: str = Field(..., description="루트부터 이어진 표시 경로")
    level: int = Field(..., description="레벨")
    can_accept: bool = Field(True, description="이동 시 최대 깊이를 넘지 않는지 여부")
