"""공유 pytest fixture 모음."""

import pytest
from datetime import date

from wbs_core.config import Settings
from wbs_core.models import WorkStatus
from wbs_core.services import TreeStore, MoveEngine, ProgressCalculator, TimelineLayoutBuilder


@pytest.fixture
def settings():
    """환경 변수와 무관한 기본 설정."""
    return Settings(_env_file=None)


@pytest.fixture
def empty_store(settings):
    return TreeStore(settings=settings)


@pytest.fixture
def store(settings):
    """
    샘플 트리 (프로젝트 P1).

    plan (기획)
      analysis (요구사항 분석)
        interview (인터뷰)
        summary (정리)
      design (설계)
    dev (개발)
      backend (백엔드)
    """
    s = TreeStore(settings=settings)
    s.insert_root("P1", "기획", item_id="plan")
    s.insert_child("plan", "요구사항 분석", item_id="analysis")
    s.insert_child("analysis", "인터뷰", item_id="interview")
    s.insert_child("analysis", "정리", item_id="summary")
    s.insert_child("plan", "설계", item_id="design")
    s.insert_root("P1", "개발", item_id="dev")
    s.insert_child("dev", "백엔드", item_id="backend")
    return s


@pytest.fixture
def deep_store(settings):
    """L1 → L2 → L3 → L4 → L5 단일 경로 + 별도 루트 other."""
    s = TreeStore(settings=settings)
    s.insert_root("P1", "L1", item_id="l1")
    parent = "l1"
    for level in range(2, 6):
        s.insert_child(parent, f"L{level}", item_id=f"l{level}")
        parent = f"l{level}"
    s.insert_root("P1", "other", item_id="other")
    return s


@pytest.fixture
def engine(store):
    return MoveEngine(store)


@pytest.fixture
def calculator(store):
    return ProgressCalculator(store)


@pytest.fixture
def builder(settings):
    return TimelineLayoutBuilder(settings=settings)


@pytest.fixture
def sample_records():
    """영속 계층에서 받은 형태의 레코드 (순서 뒤섞임, 원본 컬럼명 사용)."""
    return [
        {"id": "c2", "project_id": "P1", "name": "자식2", "parent_id": "r1", "level": 2, "position": 1,
         "status": "已完成", "planned_start_time": "2024-02-05T00:00:00+00:00"},
        {"id": "r1", "project_id": "P1", "name": "루트", "parent_id": None, "level": 1, "position": 0,
         "status": WorkStatus.IN_PROGRESS},
        {"id": "c1", "project_id": "P1", "name": "자식1", "parent_id": "r1", "level": 2, "position": 0,
         "status": "进行中", "tags": "설계, 리뷰", "is_milestone": True,
         "planned_end_time": "2024-02-10"},
    ]


@pytest.fixture
def reference_day():
    return date(2024, 2, 15)
