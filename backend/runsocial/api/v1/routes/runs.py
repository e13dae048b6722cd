"""
Run Routes

Endpoints for the run lifecycle, history and statistics.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from runsocial.api.deps import get_caller_id
from runsocial.db.session import get_async_db
from runsocial.features.runs.lifecycle import RunLifecycleManager
from runsocial.features.runs.schemas import (
    AddCoordinatesRequest,
    CompleteRunRequest,
    CoordinateListResponse,
    CoordinateResponse,
    CoordinatesAdded,
    PhotoCreate,
    PhotoResponse,
    RunDetailResponse,
    RunListResponse,
    RunMetrics,
    RunResponse,
    RunSummaryResponse,
    SplitResponse,
    StartRunRequest,
)
from runsocial.shared.constants import StatsPeriod

router = APIRouter()


def get_manager(db: AsyncSession = Depends(get_async_db)) -> RunLifecycleManager:
    return RunLifecycleManager(db)


@router.get("", response_model=RunListResponse)
async def list_runs(
    cursor: Optional[str] = None,
    limit: Optional[int] = None,
    completed: Optional[bool] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    caller_id: str = Depends(get_caller_id),
    manager: RunLifecycleManager = Depends(get_manager),
):
    """Caller's runs, newest first."""
    page = await manager.list_runs(caller_id, cursor, limit, completed, start_date, end_date)
    return RunListResponse(
        runs=[RunResponse.model_validate(r) for r in page.items],
        next_cursor=page.next_cursor,
    )


@router.get("/stats", response_model=RunSummaryResponse)
async def run_stats(
    period: StatsPeriod = StatsPeriod.WEEK,
    caller_id: str = Depends(get_caller_id),
    manager: RunLifecycleManager = Depends(get_manager),
):
    """Totals over completed runs in a period (week, month, year, all)."""
    return await manager.summary(caller_id, period)


@router.post("/start", response_model=RunResponse, status_code=201)
async def start_run(
    request: StartRunRequest,
    caller_id: str = Depends(get_caller_id),
    manager: RunLifecycleManager = Depends(get_manager),
):
    run = await manager.start(caller_id, request.route_id, request.location)
    return RunResponse.model_validate(run)


@router.post("/{run_id}/pause", response_model=RunResponse)
async def pause_run(
    run_id: str,
    caller_id: str = Depends(get_caller_id),
    manager: RunLifecycleManager = Depends(get_manager),
):
    return RunResponse.model_validate(await manager.pause(run_id, caller_id))


@router.post("/{run_id}/resume", response_model=RunResponse)
async def resume_run(
    run_id: str,
    caller_id: str = Depends(get_caller_id),
    manager: RunLifecycleManager = Depends(get_manager),
):
    return RunResponse.model_validate(await manager.resume(run_id, caller_id))


@router.post("/{run_id}/coordinates", response_model=CoordinatesAdded)
async def add_coordinates(
    run_id: str,
    request: AddCoordinatesRequest,
    caller_id: str = Depends(get_caller_id),
    manager: RunLifecycleManager = Depends(get_manager),
):
    """Append a batch of GPS fixes (1..1000) to an open run."""
    count = await manager.add_coordinates(run_id, caller_id, request.coordinates)
    return CoordinatesAdded(count=count)


@router.get("/{run_id}/coordinates", response_model=CoordinateListResponse)
async def list_coordinates(
    run_id: str,
    cursor: Optional[str] = None,
    limit: Optional[int] = None,
    caller_id: str = Depends(get_caller_id),
    manager: RunLifecycleManager = Depends(get_manager),
):
    page = await manager.list_coordinates(run_id, caller_id, cursor, limit)
    return CoordinateListResponse(
        coordinates=[CoordinateResponse.model_validate(c) for c in page.items],
        next_cursor=page.next_cursor,
    )


@router.post("/{run_id}/complete", response_model=RunResponse)
async def complete_run(
    run_id: str,
    request: CompleteRunRequest,
    caller_id: str = Depends(get_caller_id),
    manager: RunLifecycleManager = Depends(get_manager),
):
    """Finish a run with its metrics; updates stats and achievements."""
    metrics = RunMetrics(**request.model_dump(exclude={"splits"}))
    run = await manager.complete(run_id, caller_id, metrics, request.splits)
    return RunResponse.model_validate(run)


@router.get("/{run_id}", response_model=RunDetailResponse)
async def get_run(
    run_id: str,
    manager: RunLifecycleManager = Depends(get_manager),
):
    return RunDetailResponse.model_validate(await manager.get_run(run_id))


@router.get("/{run_id}/splits", response_model=list[SplitResponse])
async def list_splits(
    run_id: str,
    manager: RunLifecycleManager = Depends(get_manager),
):
    splits = await manager.list_splits(run_id)
    return [SplitResponse.model_validate(s) for s in splits]


@router.post("/{run_id}/photos", response_model=PhotoResponse, status_code=201)
async def add_photo(
    run_id: str,
    request: PhotoCreate,
    caller_id: str = Depends(get_caller_id),
    manager: RunLifecycleManager = Depends(get_manager),
):
    photo = await manager.add_photo(run_id, caller_id, request)
    return PhotoResponse.model_validate(photo)


@router.delete("/{run_id}")
async def delete_run(
    run_id: str,
    caller_id: str = Depends(get_caller_id),
    manager: RunLifecycleManager = Depends(get_manager),
):
    """Delete a run; a completed run's stats are subtracted first."""
    await manager.delete(run_id, caller_id)
    return {"success": True}
