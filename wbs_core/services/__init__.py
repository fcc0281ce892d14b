"""Services for the WBS engine."""

from .tree_store import TreeStore, AncestorChain
from .move_engine import MoveEngine
from .progress_calculator import (
    ProgressCalculator,
    ProgressBand,
    status_progress,
    progress_band,
    format_progress,
)
from .timeline_layout import (
    TimelineLayoutBuilder,
    build_timeline_layout,
    toggle_expand,
)

__all__ = [
    "TreeStore",
    "AncestorChain",
    "MoveEngine",
    "ProgressCalculator",
    "ProgressBand",
    "status_progress",
    "progress_band",
    "format_progress",
    "TimelineLayoutBuilder",
    "build_timeline_layout",
    "toggle_expand",
]
