"""
상태 기반 진행률 집계.

규칙:
- 상태별 진행률: 미시작 0, 일시중지 25, 진행 중 50, 완료 100
- 자식이 없으면 상태 진행률
- 자식이 있으면 max(상태 진행률, 직속 자식 진행률의 단순 평균)

결과는 캐시하지 않습니다. 항목을 바꾼 뒤에는 호출자가 필요한 항목을 다시 계산합니다.
"""

import logging
import math
from enum import Enum
from typing import Any, Optional

from wbs_core.models import WorkStatus

from .tree_store import TreeStore

logger = logging.getLogger(__name__)


class ProgressBand(str, Enum):
    """진행률 구간 (표시 색상 결정용)."""
    NONE = "NONE"      # 0%
    LOW = "LOW"        # 50% 미만
    MEDIUM = "MEDIUM"  # 100% 미만
    DONE = "DONE"      # 100%


def status_progress(status: Any) -> int:
    """상태 값(열거형 또는 토큰)의 진행률. 알 수 없으면 0."""
    found = WorkStatus.lookup(status)
    return found.progress if found is not None else 0


def progress_band(value: float) -> ProgressBand:
    if value <= 0:
        return ProgressBand.NONE
    if value < 50:
        return ProgressBand.LOW
    if value < 100:
        return ProgressBand.MEDIUM
    return ProgressBand.DONE


def format_progress(value: float) -> str:
    """진행률 표시 문자열 (반올림, 예: 37.5 → "38%")."""
    return f"{math.floor(value + 0.5)}%"


class ProgressCalculator:
    """TreeStore의 현재 상태로 진행률을 계산합니다."""

    def __init__(self, store: TreeStore):
        self.store = store

    def progress(self, item_id: str) -> float:
        """항목 하나의 진행률 (0~100)."""
        return self._rollup([self.store.get(item_id).id])[item_id]

    def progress_map(self, project_id: Optional[str] = None) -> dict[str, float]:
        """모든 항목의 진행률을 한 번의 후위 순회로 계산합니다."""
        root_ids = [
            item.id
            for pid in ([project_id] if project_id is not None else self.store.project_ids())
            for item in self.store.roots(pid)
        ]
        return self._rollup(root_ids)

    def recompute_affected(self, item_id: str) -> dict[str, float]:
        """
        항목과 모든 조상의 진행률.

        상태/구조 변경 후 화면에서 갱신해야 하는 값들입니다.
        """
        chain = [self.store.get(item_id)] + list(self.store.ancestors(item_id))
        top = chain[-1].id
        values = self._rollup([top])
        return {item.id: values[item.id] for item in chain}

    def project_progress(self, project_id: str) -> float:
        """프로젝트 전체 진행률 (루트 항목 진행률의 평균)."""
        roots = self.store.roots(project_id)
        if not roots:
            return 0.0
        values = self._rollup([root.id for root in roots])
        return sum(values[root.id] for root in roots) / len(roots)

    def _rollup(self, start_ids: list[str]) -> dict[str, float]:
        """start_ids 하위 트리 전체의 진행률 (명시적 스택 기반 후위 순회)."""
        values: dict[str, float] = {}
        stack: list[tuple[str, bool]] = [(item_id, False) for item_id in start_ids]

        while stack:
            current_id, children_done = stack.pop()
            children = self.store.children(current_id)
            if not children_done and children:
                stack.append((current_id, True))
                stack.extend((child.id, False) for child in children)
                continue

            own = status_progress(self.store.get(current_id).status)
            if not children:
                values[current_id] = float(own)
                continue

            child_average = sum(values[child.id] for child in children) / len(children)
            values[current_id] = float(max(own, child_average))

        logger.debug(f"[ProgressCalculator] 진행률 계산: {len(values)}개 항목")
        return values
