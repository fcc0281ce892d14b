"""
작업 항목 이동(상위 항목 변경) 엔진입니다.

모든 검증(존재, 프로젝트, 순환, 깊이)을 먼저 수행하고, 통과한 경우에만
트리를 변경합니다. 실패하면 트리는 그대로 남습니다.
"""

import logging
from typing import Optional

from wbs_core.exceptions import (
    CycleDetectedError,
    DepthExceededError,
    NotFoundError,
    ProjectMismatchError,
    WBSCoreError,
)
from wbs_core.models import MoveResult, PotentialParent

from .tree_store import TreeStore

logger = logging.getLogger(__name__)


class MoveEngine:
    """TreeStore 위에서 항목 이동을 검증하고 실행합니다."""

    def __init__(self, store: TreeStore):
        self.store = store
        self.settings = store.settings

    def move(self, item_id: str, new_parent_id: Optional[str]) -> MoveResult:
        """
        항목을 새 상위 항목 아래(또는 루트)로 옮깁니다.

        Args:
            item_id: 이동할 항목 ID
            new_parent_id: 새 상위 항목 ID. None이면 루트로 이동

        Returns:
            MoveResult: 새 position과 재계산된 레벨 (이동 항목 + 모든 자손)

        Raises:
            NotFoundError: 항목 또는 새 상위 항목이 없는 경우
            ProjectMismatchError: 새 상위 항목이 다른 프로젝트에 속한 경우
            CycleDetectedError: 자기 자신이나 자손 아래로 옮기려는 경우
            DepthExceededError: 이동 후 항목 또는 자손의 레벨이 최대치를 넘는 경우
        """
        item, new_level = self._validate(item_id, new_parent_id)

        old_parent_id = item.parent_id
        level_delta = new_level - item.level
        levels = self._relevel(item_id, new_level)
        position = self.store.next_position(item.project_id, new_parent_id, exclude_id=item_id)

        self.store.relink(item_id, new_parent_id, position, levels)

        logger.info(
            f"[MoveEngine] 이동 완료: {item_id} {old_parent_id} → {new_parent_id} "
            f"(position {position}, 레벨 변화 {level_delta:+d}, {len(levels)}개 항목)"
        )
        return MoveResult(
            item_id=item_id,
            old_parent_id=old_parent_id,
            new_parent_id=new_parent_id,
            position=position,
            level_delta=level_delta,
            levels=levels,
        )

    def can_move(self, item_id: str, new_parent_id: Optional[str]) -> bool:
        """트리를 바꾸지 않고 이동 가능 여부만 확인합니다."""
        try:
            self._validate(item_id, new_parent_id)
        except WBSCoreError as e:
            logger.debug(f"[MoveEngine] 이동 불가 ({e.error_code}): {e.message}")
            return False
        return True

    def potential_parents(
        self,
        project_id: str,
        exclude_id: str,
        only_valid: bool = False,
    ) -> list[PotentialParent]:
        """
        이동 대상으로 고를 수 있는 상위 항목 목록.

        exclude_id 항목과 그 모든 자손을 제외한 프로젝트 항목을 트리 순서로 반환하며,
        각 항목에 표시 경로와 레벨을 붙입니다.

        Args:
            project_id: 프로젝트 ID
            exclude_id: 이동할 항목 ID
            only_valid: True이면 이동 시 최대 깊이를 넘게 되는 대상도 제외
        """
        excluded = self.store.descendant_ids(exclude_id)
        excluded.add(exclude_id)
        subtree_height = self.store.subtree_height(exclude_id)
        separator = self.settings.path_separator

        result: list[PotentialParent] = []
        # 전위 순회 중 루트부터의 이름 경로를 누적
        names: dict[str, str] = {}
        for item in self.store.walk(project_id):
            parent_path = names.get(item.parent_id) if item.parent_id else None
            path = f"{parent_path}{separator}{item.name}" if parent_path is not None else item.name
            names[item.id] = path

            if item.id in excluded:
                continue
            can_accept = item.level + subtree_height <= self.settings.max_level
            if only_valid and not can_accept:
                continue
            result.append(PotentialParent(
                id=item.id,
                name=item.name,
                path=path,
                level=item.level,
                can_accept=can_accept,
            ))
        return result

    # ==================== 내부 처리 ====================

    def _validate(self, item_id: str, new_parent_id: Optional[str]):
        """검증 후 (항목, 새 레벨) 반환."""
        item = self.store.get(item_id)

        if new_parent_id is None:
            new_level = 1
        else:
            parent = self.store.find(new_parent_id)
            if parent is None:
                raise NotFoundError(
                    f"대상 상위 항목을 찾을 수 없습니다: {new_parent_id}",
                    details={"item_id": item_id, "new_parent_id": new_parent_id},
                )
            if parent.project_id != item.project_id:
                raise ProjectMismatchError(
                    "다른 프로젝트의 항목 아래로 이동할 수 없습니다",
                    details={
                        "item_id": item_id,
                        "project_id": item.project_id,
                        "new_parent_id": new_parent_id,
                        "target_project_id": parent.project_id,
                    },
                )
            if new_parent_id == item_id or new_parent_id in self.store.descendant_ids(item_id):
                raise CycleDetectedError(
                    "항목을 자기 자신이나 하위 항목 아래로 이동할 수 없습니다",
                    details={"item_id": item_id, "new_parent_id": new_parent_id},
                )
            new_level = parent.level + 1

        deepest = new_level + self.store.subtree_height(item_id) - 1
        if deepest > self.settings.max_level:
            raise DepthExceededError(
                f"이동 후 레벨이 최대 {self.settings.max_level}을(를) 넘습니다",
                details={
                    "item_id": item_id,
                    "new_parent_id": new_parent_id,
                    "new_level": new_level,
                    "deepest_level": deepest,
                },
            )
        return item, new_level

    def _relevel(self, item_id: str, new_level: int) -> dict[str, int]:
        """하위 트리를 순회하며 새 레벨을 계산합니다 (트리는 아직 바꾸지 않음)."""
        levels: dict[str, int] = {}
        stack = [(item_id, new_level)]
        while stack:
            current_id, level = stack.pop()
            levels[current_id] = level
            for child in self.store.children(current_id):
                stack.append((child.id, level + 1))
        return levels
