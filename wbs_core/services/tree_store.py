"""
작업 항목 트리 저장소입니다.

항목은 id → WorkItem 평면 딕셔너리(arena)에 보관하고, 부모 → 자식 인덱스는
필요할 때 다시 만듭니다. 항목끼리 직접 참조하지 않으므로 순환 참조가 생기지 않습니다.

관리하는 기능:
1. 루트/하위 항목 삽입 (최대 깊이 검사)
2. 필드 수정 (이름, 설명, 상태, 날짜, 부가 정보)
3. 하위 트리 전체 삭제
4. 자식/조상/자손 조회 (모두 반복문 기반 순회)
5. 영속 계층 레코드 적재 및 내보내기
"""

import logging
import uuid
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Optional, Union

from wbs_core.config import Settings, get_settings
from wbs_core.exceptions import (
    CycleDetectedError,
    DepthExceededError,
    DuplicateItemError,
    NotFoundError,
    ProjectMismatchError,
)
from wbs_core.models import WorkItem

logger = logging.getLogger(__name__)

# 호출자가 직접 지정할 수 없는 구조 필드
_STRUCTURAL_FIELDS = {"id", "project_id", "parent_id", "level", "position"}

_UNSET: Any = object()

IndexKey = tuple[str, Optional[str]]


class AncestorChain:
    """
    항목에서 루트까지 올라가는 조상 시퀀스 (항목 자신은 제외).

    순회할 때마다 새로 계산하므로 여러 번 반복해도 같은 결과를 얻고,
    트리가 바뀐 뒤에는 바뀐 구조를 반영합니다.
    """

    def __init__(self, store: "TreeStore", item_id: str):
        store.get(item_id)
        self._store = store
        self._item_id = item_id

    def __iter__(self) -> Iterator[WorkItem]:
        seen = {self._item_id}
        current = self._store.get(self._item_id)
        while current.parent_id is not None:
            if current.parent_id in seen:
                raise CycleDetectedError(
                    f"조상 경로에 순환이 있습니다: {current.parent_id}",
                    details={"item_id": self._item_id, "repeated_id": current.parent_id},
                )
            parent = self._store.find(current.parent_id)
            if parent is None:
                return
            seen.add(parent.id)
            yield parent
            current = parent


class TreeStore:
    """WBS 작업 항목의 메모리 저장소."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._items: dict[str, WorkItem] = {}
        # 입력 순서 (같은 position일 때 정렬 기준)
        self._order: dict[str, int] = {}
        self._seq = 0
        self._index: Optional[dict[IndexKey, list[str]]] = None

    # ==================== 적재 / 내보내기 ====================

    @classmethod
    def from_records(
        cls,
        records: Iterable[Union[Mapping[str, Any], WorkItem]],
        settings: Optional[Settings] = None,
    ) -> "TreeStore":
        """
        영속 계층의 평면 레코드 목록으로 저장소를 만듭니다.

        입력 순서와 무관하게 parent_id 연결로 트리를 구성하며,
        입력 순서는 position이 같을 때의 기본 정렬 기준으로만 사용합니다.

        Raises:
            CycleDetectedError: parent_id 연결에 순환이 있는 경우
            DepthExceededError: 최대 깊이를 넘는 경로가 있는 경우
            ProjectMismatchError: 부모와 자식의 프로젝트가 다른 경우
        """
        store = cls(settings=settings)
        stored_levels: dict[str, Any] = {}

        for record in records:
            if isinstance(record, WorkItem):
                data = record.model_dump()
            else:
                data = dict(record)
            stored_levels[str(data.get("id"))] = data.pop("level", None)
            data["level"] = 1
            item = WorkItem.model_validate(data)
            if item.id in store._items:
                logger.warning(f"[TreeStore] 중복된 항목 ID, 마지막 레코드를 사용합니다: {item.id}")
            store._add(item)

        # 부모가 없는 레코드는 루트로 취급
        for item in store._items.values():
            if item.parent_id is None:
                continue
            parent = store._items.get(item.parent_id)
            if parent is None:
                logger.warning(
                    f"[TreeStore] 상위 항목 {item.parent_id}을(를) 찾을 수 없어 루트로 처리합니다: {item.id}"
                )
                item.parent_id = None
            elif parent.project_id != item.project_id:
                raise ProjectMismatchError(
                    f"상위 항목과 프로젝트가 다릅니다: {item.id}",
                    details={
                        "item_id": item.id,
                        "project_id": item.project_id,
                        "parent_id": parent.id,
                        "parent_project_id": parent.project_id,
                    },
                )

        store._recompute_all_levels()

        for item_id, stored in stored_levels.items():
            item = store._items.get(item_id)
            if item is not None and stored is not None and stored != item.level:
                logger.info(f"[TreeStore] 저장된 레벨 보정: {item_id} {stored} → {item.level}")

        store._normalize_duplicate_positions()
        logger.info(f"[TreeStore] 레코드 적재 완료: {len(store._items)}개")
        return store

    def to_records(self, project_id: Optional[str] = None) -> list[dict[str, Any]]:
        """영속 계층에 넘길 평면 레코드 목록 (트리 전위 순서)."""
        return [item.model_dump(mode="json") for item in self.walk(project_id)]

    # ==================== 조회 ====================

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def find(self, item_id: Optional[str]) -> Optional[WorkItem]:
        """ID로 항목을 찾습니다. 없으면 None."""
        if item_id is None:
            return None
        return self._items.get(item_id)

    def get(self, item_id: str) -> WorkItem:
        """ID로 항목을 가져옵니다. 없으면 NotFoundError."""
        item = self._items.get(item_id)
        if item is None:
            raise NotFoundError(f"작업 항목을 찾을 수 없습니다: {item_id}", details={"item_id": item_id})
        return item

    def items(self, project_id: Optional[str] = None) -> list[WorkItem]:
        """저장된 항목 목록 (입력 순서)."""
        return [
            item for item in self._items.values()
            if project_id is None or item.project_id == project_id
        ]

    def project_ids(self) -> list[str]:
        return list(dict.fromkeys(item.project_id for item in self._items.values()))

    def roots(self, project_id: str) -> list[WorkItem]:
        """프로젝트의 루트 항목 (position 순)."""
        return [self._items[i] for i in self._get_index().get((project_id, None), [])]

    def children(self, item_id: str) -> list[WorkItem]:
        """직속 자식 항목 (position 순)."""
        item = self.get(item_id)
        return [self._items[i] for i in self._get_index().get((item.project_id, item.id), [])]

    def has_children(self, item_id: str) -> bool:
        item = self.get(item_id)
        return bool(self._get_index().get((item.project_id, item.id)))

    def siblings(self, item_id: str) -> list[WorkItem]:
        """같은 형제 그룹의 항목 (자기 자신 포함, position 순)."""
        item = self.get(item_id)
        return [self._items[i] for i in self._get_index().get((item.project_id, item.parent_id), [])]

    def ancestors(self, item_id: str) -> AncestorChain:
        """상위 항목부터 루트까지의 조상 시퀀스 (지연 평가, 재사용 가능)."""
        return AncestorChain(self, item_id)

    def path(self, item_id: str) -> list[WorkItem]:
        """루트부터 항목 자신까지의 경로."""
        chain = list(self.ancestors(item_id))
        chain.reverse()
        chain.append(self.get(item_id))
        return chain

    def descendants(self, item_id: str) -> list[WorkItem]:
        """모든 자손 항목 (전위 순서, 자기 자신 제외)."""
        self.get(item_id)
        index = self._get_index()
        result: list[WorkItem] = []
        stack = list(reversed(self._child_ids(index, item_id)))
        while stack:
            current_id = stack.pop()
            result.append(self._items[current_id])
            stack.extend(reversed(self._child_ids(index, current_id)))
        return result

    def descendant_ids(self, item_id: str) -> set[str]:
        return {item.id for item in self.descendants(item_id)}

    def subtree_height(self, item_id: str) -> int:
        """항목을 루트로 하는 하위 트리의 높이 (잎 항목 = 1)."""
        self.get(item_id)
        index = self._get_index()
        height = 0
        stack = [(item_id, 1)]
        while stack:
            current_id, depth = stack.pop()
            height = max(height, depth)
            for child_id in self._child_ids(index, current_id):
                stack.append((child_id, depth + 1))
        return height

    def walk(self, project_id: Optional[str] = None) -> list[WorkItem]:
        """트리 전위 순회. project_id가 없으면 모든 프로젝트를 순서대로 순회합니다."""
        project_ids = [project_id] if project_id is not None else self.project_ids()
        index = self._get_index()
        result: list[WorkItem] = []
        for pid in project_ids:
            stack = list(reversed(index.get((pid, None), [])))
            while stack:
                current_id = stack.pop()
                result.append(self._items[current_id])
                stack.extend(reversed(self._child_ids(index, current_id)))
        return result

    def next_position(self, project_id: str, parent_id: Optional[str], exclude_id: Optional[str] = None) -> int:
        """형제 그룹 끝에 붙일 position (비어 있으면 0)."""
        positions = [
            self._items[i].position
            for i in self._get_index().get((project_id, parent_id), [])
            if i != exclude_id
        ]
        return max(positions) + 1 if positions else 0

    # ==================== 삽입 ====================

    def insert_root(
        self,
        project_id: str,
        name: str,
        description: str = "",
        item_id: Optional[str] = None,
        **fields: Any,
    ) -> WorkItem:
        """
        프로젝트에 루트(1레벨) 항목을 추가합니다.

        Raises:
            DuplicateItemError: item_id가 이미 사용 중인 경우
        """
        self._check_fields(fields)
        self._check_new_id(item_id)
        item = WorkItem(
            id=item_id or self._new_id(),
            project_id=project_id,
            name=name,
            description=description,
            parent_id=None,
            level=1,
            position=self.next_position(project_id, None),
            **fields,
        )
        self._add(item)
        logger.info(f"[TreeStore] 루트 항목 추가: {item.id} ({item.name})")
        return item

    def insert_child(
        self,
        parent_id: str,
        name: str,
        description: str = "",
        item_id: Optional[str] = None,
        **fields: Any,
    ) -> WorkItem:
        """
        하위 항목을 형제 그룹 끝에 추가합니다.

        Raises:
            NotFoundError: 상위 항목이 없는 경우
            DepthExceededError: 상위 항목이 이미 최대 레벨인 경우
            DuplicateItemError: item_id가 이미 사용 중인 경우
        """
        self._check_fields(fields)
        self._check_new_id(item_id)
        parent = self.get(parent_id)
        if parent.level >= self.settings.max_level:
            raise DepthExceededError(
                f"{self.settings.max_level}레벨 항목에는 하위 항목을 추가할 수 없습니다",
                details={"parent_id": parent_id, "parent_level": parent.level},
            )
        item = WorkItem(
            id=item_id or self._new_id(),
            project_id=parent.project_id,
            name=name,
            description=description,
            parent_id=parent.id,
            level=parent.level + 1,
            position=self.next_position(parent.project_id, parent.id),
            **fields,
        )
        self._add(item)
        logger.info(f"[TreeStore] 하위 항목 추가: {item.id} ({item.name}) → {parent.id}, 레벨 {item.level}")
        return item

    # ==================== 수정 ====================

    def rename(self, item_id: str, name: str) -> WorkItem:
        item = self.get(item_id)
        item.name = name
        return item

    def describe(self, item_id: str, description: Optional[str]) -> WorkItem:
        item = self.get(item_id)
        item.description = description
        return item

    def set_status(self, item_id: str, status: Any) -> WorkItem:
        """상태 변경. 알 수 없는 토큰은 NOT_STARTED로 처리됩니다."""
        item = self.get(item_id)
        item.status = status
        logger.debug(f"[TreeStore] 상태 변경: {item_id} → {item.status.value}")
        return item

    def set_dates(
        self,
        item_id: str,
        *,
        planned_start: Any = _UNSET,
        planned_end: Any = _UNSET,
        actual_start: Any = _UNSET,
        actual_end: Any = _UNSET,
    ) -> WorkItem:
        """날짜 변경. 지정하지 않은 날짜는 그대로 두고, None을 넘기면 지웁니다."""
        item = self.get(item_id)
        return self._apply(item, {
            "planned_start": planned_start,
            "planned_end": planned_end,
            "actual_start": actual_start,
            "actual_end": actual_end,
        })

    def update_details(
        self,
        item_id: str,
        *,
        tags: Any = _UNSET,
        members: Any = _UNSET,
        progress_notes: Any = _UNSET,
        is_milestone: Any = _UNSET,
    ) -> WorkItem:
        """태그, 참여 인원, 진행 메모, 마일스톤 여부 변경."""
        item = self.get(item_id)
        return self._apply(item, {
            "tags": tags,
            "members": members,
            "progress_notes": progress_notes,
            "is_milestone": is_milestone,
        })

    def reorder(self, item_id: str, new_index: int) -> dict[str, int]:
        """
        형제 그룹 안에서 항목의 순서를 바꿉니다 (드래그 앤 드롭).

        형제 그룹 전체를 0부터 다시 번호 매기고, 바뀐 position을 반환합니다.
        """
        item = self.get(item_id)
        order = [sibling.id for sibling in self.siblings(item_id)]
        order.remove(item.id)
        new_index = max(0, min(new_index, len(order)))
        order.insert(new_index, item.id)

        changed: dict[str, int] = {}
        for position, sibling_id in enumerate(order):
            sibling = self._items[sibling_id]
            if sibling.position != position:
                sibling.position = position
                changed[sibling_id] = position
        self._invalidate()
        logger.info(f"[TreeStore] 순서 변경: {item_id} → {new_index}번째 ({len(changed)}개 항목 갱신)")
        return changed

    def relink(self, item_id: str, new_parent_id: Optional[str], position: int, levels: Mapping[str, int]) -> None:
        """
        검증 없이 부모 연결과 레벨을 바꿉니다.

        MoveEngine이 모든 검사를 마친 뒤에만 호출합니다.
        """
        item = self.get(item_id)
        item.parent_id = new_parent_id
        item.position = position
        for target_id, level in levels.items():
            self._items[target_id].level = level
        self._invalidate()

    # ==================== 삭제 ====================

    def remove(self, item_id: str) -> list[str]:
        """항목과 모든 자손을 삭제하고 삭제된 ID 목록을 반환합니다."""
        removed = [item_id] + [item.id for item in self.descendants(item_id)]
        for target_id in removed:
            del self._items[target_id]
            self._order.pop(target_id, None)
        self._invalidate()
        logger.info(f"[TreeStore] 항목 삭제: {item_id} (하위 포함 {len(removed)}개)")
        return removed

    # ==================== 내부 처리 ====================

    def _new_id(self) -> str:
        return uuid.uuid4().hex

    def _check_fields(self, fields: Mapping[str, Any]) -> None:
        reserved = _STRUCTURAL_FIELDS.intersection(fields)
        if reserved:
            raise TypeError(f"구조 필드는 직접 지정할 수 없습니다: {sorted(reserved)}")

    def _check_new_id(self, item_id: Optional[str]) -> None:
        if item_id is not None and item_id in self._items:
            raise DuplicateItemError(
                f"이미 존재하는 작업 항목 ID입니다: {item_id}",
                details={"item_id": item_id},
            )

    def _apply(self, item: WorkItem, changes: Mapping[str, Any]) -> WorkItem:
        """변경값 전체를 먼저 검증한 뒤 한 번에 반영합니다 (실패 시 항목은 그대로)."""
        changes = {name: value for name, value in changes.items() if value is not _UNSET}
        if not changes:
            return item
        validated = WorkItem.model_validate({**item.model_dump(), **changes})
        for field_name in changes:
            setattr(item, field_name, getattr(validated, field_name))
        return item

    def _add(self, item: WorkItem) -> None:
        self._items[item.id] = item
        self._order[item.id] = self._seq
        self._seq += 1
        self._invalidate()

    def _invalidate(self) -> None:
        self._index = None

    def _get_index(self) -> dict[IndexKey, list[str]]:
        if self._index is None:
            index: dict[IndexKey, list[str]] = {}
            for item in self._items.values():
                index.setdefault((item.project_id, item.parent_id), []).append(item.id)
            for ids in index.values():
                ids.sort(key=lambda i: (self._items[i].position, self._order[i]))
            self._index = index
        return self._index

    def _child_ids(self, index: dict[IndexKey, list[str]], item_id: str) -> list[str]:
        return index.get((self._items[item_id].project_id, item_id), [])

    def _recompute_all_levels(self) -> None:
        """parent_id 연결로 모든 항목의 레벨을 다시 계산합니다."""
        levels: dict[str, int] = {}
        max_level = self.settings.max_level

        for start_id in self._items:
            if start_id in levels:
                continue
            # 레벨을 아는 조상(또는 루트)까지 올라간 뒤 내려오며 채움
            chain: list[str] = []
            on_chain: set[str] = set()
            current_id: Optional[str] = start_id
            while current_id is not None and current_id not in levels:
                if current_id in on_chain:
                    raise CycleDetectedError(
                        f"상위 항목 연결에 순환이 있습니다: {current_id}",
                        details={"item_id": current_id, "chain": chain},
                    )
                chain.append(current_id)
                on_chain.add(current_id)
                current_id = self._items[current_id].parent_id

            base = levels[current_id] if current_id is not None else 0
            for offset, chain_id in enumerate(reversed(chain), start=1):
                level = base + offset
                if level > max_level:
                    raise DepthExceededError(
                        f"항목 레벨이 최대 {max_level}을(를) 넘습니다: {chain_id}",
                        details={"item_id": chain_id, "level": level},
                    )
                levels[chain_id] = level

        for item_id, level in levels.items():
            self._items[item_id].level = level
        self._invalidate()

    def _normalize_duplicate_positions(self) -> None:
        """position이 겹치는 형제 그룹만 0부터 다시 번호를 매깁니다."""
        for key, ids in self._get_index().items():
            positions = [self._items[i].position for i in ids]
            if len(set(positions)) == len(positions):
                continue
            logger.warning(f"[TreeStore] 형제 그룹의 position 중복 정리: parent={key[1]}")
            for position, item_id in enumerate(ids):
                self._items[item_id].position = position
        self._invalidate()
