"""
Runs module.

Usage:
    from runsocial.features.runs import Run, RunRepository, StatReconciler
    from runsocial.features.runs.lifecycle import RunLifecycleManager

Available components:
- Run, RunCoordinate, RunSplit, RunPhoto: SQLAlchemy models
- RunRepository: Guarded state transitions and listings
- StatReconciler: Atomic aggregate updates for completed/deleted runs

RunLifecycleManager is imported from .lifecycle directly; it depends on
the achievements feature, which in turn depends on this package.
"""
from .models import Run, RunCoordinate, RunSplit, RunPhoto
from .schemas import (
    Location,
    CoordinateInput,
    SplitInput,
    RunMetrics,
    StartRunRequest,
    AddCoordinatesRequest,
    CompleteRunRequest,
    PhotoCreate,
    RunResponse,
    RunDetailResponse,
    RunListResponse,
    CoordinateResponse,
    CoordinateListResponse,
    CoordinatesAdded,
    SplitResponse,
    PhotoResponse,
    RunSummaryResponse,
)
from .repository import RunRepository
from .stats import StatReconciler, XpChange

__all__ = [
    # Models
    "Run",
    "RunCoordinate",
    "RunSplit",
    "RunPhoto",
    # Schemas
    "Location",
    "CoordinateInput",
    "SplitInput",
    "RunMetrics",
    "StartRunRequest",
    "AddCoordinatesRequest",
    "CompleteRunRequest",
    "PhotoCreate",
    "RunResponse",
    "RunDetailResponse",
    "RunListResponse",
    "CoordinateResponse",
    "CoordinateListResponse",
    "CoordinatesAdded",
    "SplitResponse",
    "PhotoResponse",
    "RunSummaryResponse",
    # Repository
    "RunRepository",
    # Stats
    "StatReconciler",
    "XpChange",
]
