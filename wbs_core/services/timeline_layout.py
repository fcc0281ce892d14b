"""
타임라인(간트 차트) 레이아웃 계산.

(항목 목록, 펼침 상태, 기준일)만으로 결정되는 순수 계산입니다.
1. 날짜 범위 탐색 (최소 30일 보장)
2. 눈금 열 생성 (일/주/월/년)
3. 보이는 행 목록 (전위 순회, 접힌 항목의 자손 제외)
4. 계획/실제 막대 위치와 너비
5. 오늘 열 인덱스

날짜가 없거나 잘못된 경우에도 예외 없이 기본값을 적용합니다.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import date, timedelta
from typing import Optional, Union

from wbs_core.config import Settings, get_settings
from wbs_core.models import (
    BarGeometry,
    DateViewMode,
    MilestoneMarker,
    TimelineLayout,
    TimelineRow,
    WorkItem,
)
from wbs_core.utils.dates import (
    add_months,
    day_range,
    days_between,
    month_start,
    months_between,
    to_day,
    week_start,
)

from .tree_store import TreeStore

logger = logging.getLogger(__name__)

ItemSource = Union[TreeStore, Iterable[WorkItem]]


def toggle_expand(expand_map: Mapping[str, bool], item_id: str) -> dict[str, bool]:
    """펼침 상태를 뒤집은 새 맵을 반환합니다 (지정되지 않은 항목은 펼침으로 간주)."""
    updated = dict(expand_map)
    updated[item_id] = not expand_map.get(item_id, True)
    return updated


class _Forest:
    """레이아웃 계산용 부모 → 자식 인덱스."""

    def __init__(self, items: list[WorkItem]):
        self.items = {item.id: item for item in items}
        order = {item.id: i for i, item in enumerate(items)}
        self.children: dict[Optional[str], list[WorkItem]] = {}
        for item in self.items.values():
            # 목록에 상위 항목이 없으면 루트로 취급
            parent_id = item.parent_id if item.parent_id in self.items else None
            self.children.setdefault(parent_id, []).append(item)
        for siblings in self.children.values():
            siblings.sort(key=lambda x: (x.position, order[x.id]))

    @property
    def roots(self) -> list[WorkItem]:
        return self.children.get(None, [])

    def preorder(self, expand_map: Optional[Mapping[str, bool]] = None) -> list[tuple[WorkItem, int]]:
        """(항목, 표시 깊이) 전위 순회. expand_map이 주어지면 접힌 항목의 자손은 건너뜁니다."""
        result: list[tuple[WorkItem, int]] = []
        visited: set[str] = set()
        stack = [(item, 0) for item in reversed(self.roots)]
        while stack:
            item, depth = stack.pop()
            if item.id in visited:
                continue
            visited.add(item.id)
            result.append((item, depth))
            if expand_map is not None and not expand_map.get(item.id, True):
                continue
            for child in reversed(self.children.get(item.id, [])):
                stack.append((child, depth + 1))
        return result


class TimelineLayoutBuilder:
    """간트 차트 레이아웃 생성기."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def build(
        self,
        source: ItemSource,
        expand_map: Optional[Mapping[str, bool]] = None,
        *,
        reference_date: Optional[date] = None,
        view_mode: DateViewMode = DateViewMode.DAY,
        column_width: Optional[int] = None,
        project_id: Optional[str] = None,
    ) -> TimelineLayout:
        """
        레이아웃 계산.

        Args:
            source: TreeStore 또는 WorkItem 목록
            expand_map: 항목 ID → 펼침 여부 (없는 항목은 펼침)
            reference_date: 기준일 ("오늘"). 기본값은 date.today()
            view_mode: 눈금 단위
            column_width: 열 너비 (기본값은 설정의 default_column_width)
            project_id: source가 TreeStore일 때 대상 프로젝트

        Returns:
            TimelineLayout: 열, 보이는 행, 막대 위치, 오늘 열 인덱스
        """
        items = self._collect(source, project_id)
        today = to_day(reference_date) or date.today()
        width = column_width if column_width is not None else self.settings.default_column_width
        expand_map = expand_map or {}

        min_date, max_date = self.date_range(items, today)
        columns = self._columns(min_date, max_date, view_mode)

        forest = _Forest(items)
        rows: list[TimelineRow] = []
        for item, depth in forest.preorder(expand_map):
            rows.append(TimelineRow(
                item_id=item.id,
                name=item.name,
                indent=depth,
                level=item.level,
                status=item.status,
                is_milestone=item.is_milestone,
                has_children=bool(forest.children.get(item.id)),
                expanded=expand_map.get(item.id, True),
                planned_bar=self._planned_bar(item, min_date, view_mode, width),
                actual_bar=self._actual_bar(item, min_date, max_date, today, view_mode, width),
            ))

        today_index = None
        if min_date <= today <= max_date:
            today_index = self._column_index(today, min_date, view_mode)

        logger.debug(
            f"[TimelineLayout] {min_date} ~ {max_date}, 열 {len(columns)}개, "
            f"행 {len(rows)}/{len(items)}개, 오늘 열 {today_index}"
        )
        return TimelineLayout(
            min_date=min_date,
            max_date=max_date,
            view_mode=view_mode,
            column_width=width,
            columns=columns,
            rows=rows,
            today_index=today_index,
        )

    def date_range(self, items: list[WorkItem], today: date) -> tuple[date, date]:
        """
        타임라인 날짜 범위.

        최소일은 계획/실제 시작일 중 가장 이른 날(없으면 오늘),
        최대일은 계획/실제 종료일 중 가장 늦은 날(없으면 내일)이며,
        범위가 min_timeline_days보다 짧으면 최소일 기준으로 늘립니다.
        """
        starts = [d for item in items for d in (item.planned_start, item.actual_start) if d is not None]
        ends = [d for item in items for d in (item.planned_end, item.actual_end) if d is not None]

        min_date = min(starts) if starts else today
        max_date = max(ends) if ends else today + timedelta(days=1)

        min_days = self.settings.min_timeline_days
        if days_between(min_date, max_date) < min_days:
            max_date = min_date + timedelta(days=min_days)
        return min_date, max_date

    def initial_expand_state(self, source: ItemSource, expand_level: Optional[int] = None,
                             project_id: Optional[str] = None) -> dict[str, bool]:
        """표시 깊이(0부터)가 expand_level보다 얕은 항목만 펼친 초기 상태."""
        if expand_level is None:
            expand_level = self.settings.default_expand_level
        forest = _Forest(self._collect(source, project_id))
        return {item.id: depth < expand_level for item, depth in forest.preorder()}

    def milestones(self, source: ItemSource, project_id: Optional[str] = None) -> list[MilestoneMarker]:
        """마일스톤 항목 목록 (트리 순서)."""
        forest = _Forest(self._collect(source, project_id))
        return [
            MilestoneMarker(
                id=item.id,
                name=item.name,
                planned_end=item.planned_end,
                actual_end=item.actual_end,
                status=item.status,
            )
            for item, _ in forest.preorder()
            if item.is_milestone
        ]

    # ==================== 내부 처리 ====================

    def _collect(self, source: ItemSource, project_id: Optional[str]) -> list[WorkItem]:
        if isinstance(source, TreeStore):
            return source.items(project_id)
        return list(source)

    def _columns(self, min_date: date, max_date: date, view_mode: DateViewMode) -> list[date]:
        if view_mode == DateViewMode.DAY:
            return day_range(min_date, max_date)

        columns: list[date] = []
        if view_mode == DateViewMode.WEEK:
            current = week_start(min_date)
            while current <= max_date:
                columns.append(current)
                current += timedelta(days=7)
        elif view_mode == DateViewMode.MONTH:
            current = month_start(min_date)
            while current <= max_date:
                columns.append(current)
                current = add_months(current, 1)
        else:
            for year in range(min_date.year, max_date.year + 1):
                columns.append(date(year, 1, 1))
        return columns

    def _column_index(self, day: date, min_date: date, view_mode: DateViewMode) -> int:
        """day가 속한 열 인덱스 (min_date가 속한 열 = 0)."""
        if view_mode == DateViewMode.DAY:
            return days_between(min_date, day)
        if view_mode == DateViewMode.WEEK:
            return days_between(week_start(min_date), week_start(day)) // 7
        if view_mode == DateViewMode.MONTH:
            return months_between(min_date, day)
        return day.year - min_date.year

    def _bar(self, start: date, end: date, min_date: date, view_mode: DateViewMode,
             width: int, in_progress: bool = False) -> Optional[BarGeometry]:
        if end < start:
            return None
        start_column = self._column_index(start, min_date, view_mode)
        span = self._column_index(end, min_date, view_mode) - start_column + 1
        return BarGeometry(
            left=start_column * width,
            width=span * width,
            start_column=start_column,
            span=span,
            in_progress=in_progress,
        )

    def _planned_bar(self, item: WorkItem, min_date: date, view_mode: DateViewMode,
                     width: int) -> Optional[BarGeometry]:
        if item.planned_start is None or item.planned_end is None:
            return None
        return self._bar(item.planned_start, item.planned_end, min_date, view_mode, width)

    def _actual_bar(self, item: WorkItem, min_date: date, max_date: date, today: date,
                    view_mode: DateViewMode, width: int) -> Optional[BarGeometry]:
        if item.actual_start is None:
            return None
        if item.actual_end is not None:
            return self._bar(item.actual_start, item.actual_end, min_date, view_mode, width)
        # 진행 중: 오늘까지, 단 범위 끝(max_date)을 넘지 않음. 시작일이 더 뒤면 시작일 하루
        end = max(item.actual_start, min(today, max_date))
        return self._bar(item.actual_start, end, min_date, view_mode, width, in_progress=True)


def build_timeline_layout(
    source: ItemSource,
    expand_map: Optional[Mapping[str, bool]] = None,
    *,
    reference_date: Optional[date] = None,
    view_mode: DateViewMode = DateViewMode.DAY,
    column_width: Optional[int] = None,
    project_id: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> TimelineLayout:
    """TimelineLayoutBuilder().build() 단축 함수."""
    return TimelineLayoutBuilder(settings=settings).build(
        source,
        expand_map,
        reference_date=reference_date,
        view_mode=view_mode,
        column_width=column_width,
        project_id=project_id,
    )
