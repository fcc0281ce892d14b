"""WBS core: work breakdown tree, move engine, progress rollup and timeline layout."""

from .config import Settings, get_settings, setup_logging
from .exceptions import (
    WBSCoreError,
    NotFoundError,
    CycleDetectedError,
    DepthExceededError,
    InvalidStatusError,
    ProjectMismatchError,
    DuplicateItemError,
)
from .models import (
    WorkStatus,
    WorkItem,
    MoveResult,
    PotentialParent,
    DateViewMode,
    BarGeometry,
    TimelineRow,
    MilestoneMarker,
    TimelineLayout,
)
from .services import (
    TreeStore,
    MoveEngine,
    ProgressCalculator,
    ProgressBand,
    TimelineLayoutBuilder,
    build_timeline_layout,
    toggle_expand,
)

__version__ = "1.0.0"

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "WBSCoreError",
    "NotFoundError",
    "CycleDetectedError",
    "DepthExceededError",
    "InvalidStatusError",
    "ProjectMismatchError",
    "DuplicateItemError",
    "WorkStatus",
    "WorkItem",
    "MoveResult",
    "PotentialParent",
    "DateViewMode",
    "BarGeometry",
    "TimelineRow",
    "MilestoneMarker",
    "TimelineLayout",
    "TreeStore",
    "MoveEngine",
    "ProgressCalculator",
    "ProgressBand",
    "TimelineLayoutBuilder",
    "build_timeline_layout",
    "toggle_expand",
]
