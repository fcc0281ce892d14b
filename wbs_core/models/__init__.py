"""Data models for the WBS engine."""

from .work_item import WorkStatus, WorkItem, STATUS_PROGRESS
from .move import MoveResult, PotentialParent
from .timeline import (
    DateViewMode,
    BarGeometry,
    TimelineRow,
    MilestoneMarker,
    TimelineLayout,
)

__all__ = [
    # Work item models
    "WorkStatus",
    "WorkItem",
    "STATUS_PROGRESS",
    # Move models
    "MoveResult",
    "PotentialParent",
    # Timeline models
    "DateViewMode",
    "BarGeometry",
    "TimelineRow",
    "MilestoneMarker",
    "TimelineLayout",
]
