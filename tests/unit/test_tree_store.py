"""TreeStore unit tests.

Tests insertion, field edits, subtree removal, ordered traversal,
the lazy ancestor chain, and loading from persistence records.
"""

import pytest
from datetime import date
from pydantic import ValidationError

from wbs_core.exceptions import (
    CycleDetectedError,
    DepthExceededError,
    DuplicateItemError,
    NotFoundError,
    ProjectMismatchError,
)
from wbs_core.models import WorkItem, WorkStatus
from wbs_core.services import TreeStore


def _ids(items):
    return [item.id for item in items]


# ===================================================================
# Insertion
# ===================================================================

class TestInsert:
    def test_insert_root_positions_increase(self, empty_store):
        a = empty_store.insert_root("P1", "A")
        b = empty_store.insert_root("P1", "B")
        assert (a.level, a.position) == (1, 0)
        assert (b.level, b.position) == (1, 1)
        assert a.parent_id is None

    def test_roots_are_per_project(self, empty_store):
        empty_store.insert_root("P1", "A")
        other = empty_store.insert_root("P2", "B")
        assert other.position == 0
        assert _ids(empty_store.roots("P2")) == [other.id]

    def test_insert_child_sets_level_and_project(self, store):
        child = store.insert_child("interview", "질문지 작성")
        assert child.level == 4
        assert child.project_id == "P1"
        assert child.parent_id == "interview"
        assert child.position == 0

    def test_insert_child_appends_to_sibling_group(self, store):
        child = store.insert_child("plan", "일정")
        assert child.position == 2
        assert _ids(store.children("plan")) == ["analysis", "design", child.id]

    def test_insert_child_under_level_five_fails(self, deep_store):
        with pytest.raises(DepthExceededError) as exc_info:
            deep_store.insert_child("l5", "too deep")
        assert exc_info.value.details["parent_level"] == 5
        assert len(deep_store) == 6

    def test_insert_child_missing_parent(self, store):
        with pytest.raises(NotFoundError):
            store.insert_child("nope", "x")

    def test_insert_with_extra_fields(self, empty_store):
        item = empty_store.insert_root(
            "P1", "A", status="进行中", planned_start="2024-02-01", tags="a,b", is_milestone=True
        )
        assert item.status == WorkStatus.IN_PROGRESS
        assert item.planned_start == date(2024, 2, 1)
        assert item.tags == ["a", "b"]
        assert item.is_milestone

    def test_structural_fields_rejected(self, empty_store):
        with pytest.raises(TypeError):
            empty_store.insert_root("P1", "A", level=3)

    def test_insert_child_with_existing_ancestor_id(self, store):
        with pytest.raises(DuplicateItemError) as exc_info:
            store.insert_child("interview", "dup", item_id="plan")
        assert exc_info.value.details == {"item_id": "plan"}
        assert store.get("plan").parent_id is None
        assert store.get("plan").level == 1
        assert _ids(store.descendants("interview")) == []
        assert len(store) == 7

    def test_insert_root_with_existing_id_in_other_project(self, store):
        with pytest.raises(DuplicateItemError):
            store.insert_root("P2", "foreign", item_id="plan")
        assert store.get("plan").project_id == "P1"
        assert _ids(store.walk("P1")) == [
            "plan", "analysis", "interview", "summary", "design", "dev", "backend"
        ]
        assert store.roots("P2") == []

    def test_generated_ids_are_unique(self, empty_store):
        ids = {empty_store.insert_root("P1", f"R{i}").id for i in range(20)}
        assert len(ids) == 20


# ===================================================================
# Field edits
# ===================================================================

class TestEdit:
    def test_rename_and_describe(self, store):
        store.rename("design", "상세 설계")
        store.describe("design", "화면/DB 설계")
        item = store.get("design")
        assert item.name == "상세 설계"
        assert item.description == "화면/DB 설계"

    def test_set_status_degrades_unknown(self, store):
        assert store.set_status("design", "已完成").status == WorkStatus.COMPLETED
        assert store.set_status("design", "???").status == WorkStatus.NOT_STARTED

    def test_set_dates_only_touches_given_fields(self, store):
        store.set_dates("design", planned_start="2024-02-01", planned_end=date(2024, 2, 10))
        store.set_dates("design", actual_start="2024-02-02")
        item = store.get("design")
        assert item.planned_start == date(2024, 2, 1)
        assert item.planned_end == date(2024, 2, 10)
        assert item.actual_start == date(2024, 2, 2)
        assert item.actual_end is None

    def test_set_dates_none_clears(self, store):
        store.set_dates("design", planned_start="2024-02-01")
        store.set_dates("design", planned_start=None)
        assert store.get("design").planned_start is None

    def test_update_details(self, store):
        store.update_details("design", tags="UI, DB", members=["kim"], progress_notes="진행 중", is_milestone=True)
        item = store.get("design")
        assert item.tags == ["UI", "DB"]
        assert item.members == ["kim"]
        assert item.progress_notes == "진행 중"
        assert item.is_milestone

    def test_failed_update_details_changes_nothing(self, store):
        store.update_details("plan", tags=["기존"])
        with pytest.raises(ValidationError):
            store.update_details("plan", tags=["a"], is_milestone="notabool")
        item = store.get("plan")
        assert item.tags == ["기존"]
        assert item.is_milestone is False

    @pytest.mark.parametrize(
        "call",
        [
            lambda s: s.rename("nope", "x"),
            lambda s: s.describe("nope", "x"),
            lambda s: s.set_status("nope", "COMPLETED"),
            lambda s: s.set_dates("nope", planned_start=None),
            lambda s: s.update_details("nope", tags=""),
            lambda s: s.remove("nope"),
            lambda s: s.children("nope"),
            lambda s: s.ancestors("nope"),
        ],
    )
    def test_missing_id_raises_not_found(self, store, call):
        with pytest.raises(NotFoundError):
            call(store)


# ===================================================================
# Removal
# ===================================================================

class TestRemove:
    def test_remove_deletes_subtree(self, store):
        removed = store.remove("plan")
        assert removed == ["plan", "analysis", "interview", "summary", "design"]
        assert len(store) == 2
        for item_id in removed:
            assert item_id not in store

    def test_remove_leaf_keeps_siblings(self, store):
        store.remove("interview")
        assert _ids(store.children("analysis")) == ["summary"]

    def test_remove_does_not_renumber(self, store):
        store.remove("analysis")
        assert store.get("design").position == 1


# ===================================================================
# Traversal
# ===================================================================

class TestTraversal:
    def test_children_in_position_order(self, store):
        assert _ids(store.children("analysis")) == ["interview", "summary"]
        assert store.children("interview") == []

    def test_ancestors_excludes_self(self, store):
        assert _ids(store.ancestors("interview")) == ["analysis", "plan"]
        assert list(store.ancestors("plan")) == []

    def test_ancestors_is_restartable(self, store):
        chain = store.ancestors("summary")
        assert _ids(chain) == _ids(chain)

    def test_ancestors_is_lazy(self, store):
        iterator = iter(store.ancestors("interview"))
        assert next(iterator).id == "analysis"

    def test_level_matches_ancestor_count(self, store):
        for item in store.items():
            assert item.level == 1 + len(list(store.ancestors(item.id)))

    def test_path(self, store):
        assert _ids(store.path("summary")) == ["plan", "analysis", "summary"]

    def test_descendants_preorder(self, store):
        assert _ids(store.descendants("plan")) == ["analysis", "interview", "summary", "design"]
        assert store.descendant_ids("dev") == {"backend"}

    def test_subtree_height(self, store, deep_store):
        assert store.subtree_height("plan") == 3
        assert store.subtree_height("design") == 1
        assert deep_store.subtree_height("l2") == 4

    def test_walk(self, store):
        assert _ids(store.walk("P1")) == [
            "plan", "analysis", "interview", "summary", "design", "dev", "backend"
        ]

    def test_has_children_and_siblings(self, store):
        assert store.has_children("plan")
        assert not store.has_children("design")
        assert _ids(store.siblings("design")) == ["analysis", "design"]


# ===================================================================
# Reorder
# ===================================================================

class TestReorder:
    def test_move_to_front(self, store):
        store.insert_child("plan", "일정", item_id="schedule")
        changed = store.reorder("schedule", 0)
        assert _ids(store.children("plan")) == ["schedule", "analysis", "design"]
        assert changed == {"schedule": 0, "analysis": 1, "design": 2}

    def test_index_is_clamped(self, store):
        store.reorder("analysis", 99)
        assert _ids(store.children("plan")) == ["design", "analysis"]

    def test_reorder_roots(self, store):
        store.reorder("dev", 0)
        assert _ids(store.roots("P1")) == ["dev", "plan"]


# ===================================================================
# Records
# ===================================================================

class TestFromRecords:
    def test_builds_tree_independent_of_order(self, settings, sample_records):
        store = TreeStore.from_records(sample_records, settings=settings)
        assert _ids(store.roots("P1")) == ["r1"]
        assert _ids(store.children("r1")) == ["c1", "c2"]
        assert store.get("c1").status == WorkStatus.IN_PROGRESS
        assert store.get("c2").status == WorkStatus.COMPLETED
        assert store.get("c2").planned_start == date(2024, 2, 5)
        assert store.get("c1").tags == ["설계", "리뷰"]

    def test_levels_recomputed(self, settings):
        records = [
            {"id": "a", "project_id": "P1", "name": "A", "level": 0},
            {"id": "b", "project_id": "P1", "name": "B", "parent_id": "a", "level": 4},
        ]
        store = TreeStore.from_records(records, settings=settings)
        assert store.get("a").level == 1
        assert store.get("b").level == 2

    def test_orphan_becomes_root(self, settings):
        records = [{"id": "a", "project_id": "P1", "name": "A", "parent_id": "gone"}]
        store = TreeStore.from_records(records, settings=settings)
        assert store.get("a").parent_id is None
        assert _ids(store.roots("P1")) == ["a"]

    def test_input_order_breaks_position_ties(self, settings):
        records = [
            {"id": "r", "project_id": "P1", "name": "R"},
            {"id": "x", "project_id": "P1", "name": "X", "parent_id": "r", "position": 3},
            {"id": "y", "project_id": "P1", "name": "Y", "parent_id": "r", "position": 3},
        ]
        store = TreeStore.from_records(records, settings=settings)
        assert _ids(store.children("r")) == ["x", "y"]
        # duplicated positions are renumbered so siblings stay strictly increasing
        assert [c.position for c in store.children("r")] == [0, 1]

    def test_cycle_in_records(self, settings):
        records = [
            {"id": "a", "project_id": "P1", "name": "A", "parent_id": "b"},
            {"id": "b", "project_id": "P1", "name": "B", "parent_id": "a"},
        ]
        with pytest.raises(CycleDetectedError):
            TreeStore.from_records(records, settings=settings)

    def test_too_deep_records(self, settings):
        records = [{"id": "n0", "project_id": "P1", "name": "n0"}]
        records += [
            {"id": f"n{i}", "project_id": "P1", "name": f"n{i}", "parent_id": f"n{i - 1}"}
            for i in range(1, 6)
        ]
        with pytest.raises(DepthExceededError):
            TreeStore.from_records(records, settings=settings)

    def test_cross_project_parent(self, settings):
        records = [
            {"id": "a", "project_id": "P1", "name": "A"},
            {"id": "b", "project_id": "P2", "name": "B", "parent_id": "a"},
        ]
        with pytest.raises(ProjectMismatchError):
            TreeStore.from_records(records, settings=settings)

    def test_accepts_models(self, settings):
        items = [
            WorkItem(id="a", project_id="P1", name="A"),
            WorkItem(id="b", project_id="P1", name="B", parent_id="a", level=3),
        ]
        store = TreeStore.from_records(items, settings=settings)
        assert store.get("b").level == 2

    def test_round_trip_records(self, store, settings):
        reloaded = TreeStore.from_records(store.to_records("P1"), settings=settings)
        assert _ids(reloaded.walk("P1")) == _ids(store.walk("P1"))
        assert [i.level for i in reloaded.walk("P1")] == [i.level for i in store.walk("P1")]
