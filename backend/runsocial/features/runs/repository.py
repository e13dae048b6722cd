"""
Run repositories.

Data access layer for Run and its dependents (coordinates, splits, photos).

State transitions are conditional UPDATEs: the guard ("not COMPLETED")
and the write are one statement, so two concurrent callers cannot both
pass the guard.
"""

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from runsocial.shared.constants import RunState
from runsocial.shared.exceptions import NotFoundError
from runsocial.shared.formulas import km_to_metres
from runsocial.shared.pagination import CursorPaginator, Page
from runsocial.shared.repository import BaseRepository
from .models import Run, RunCoordinate, RunSplit, RunPhoto
from .schemas import CoordinateInput, RunMetrics, SplitInput


class RunRepository(BaseRepository[Run]):
    """Repository for Run operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Run)

    async def get_owned(self, run_id: str, user_id: str, lock: bool = False) -> Run:
        """
        Get a run owned by user.

        Args:
            run_id: Run ID
            user_id: Caller, must own the run
            lock: SELECT ... FOR UPDATE (no-op on SQLite)

        Raises:
            NotFoundError: run absent or owned by someone else
        """
        query = (
            select(Run)
            .where(Run.id == run_id)
            .where(Run.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        if lock:
            query = query.with_for_update()
        result = await self.db.execute(query)
        run = result.scalar_one_or_none()
        if not run:
            raise NotFoundError(f"Run {run_id} not found")
        return run

    async def get_with_details(self, run_id: str) -> Run:
        """
        Get run with splits and photos loaded.

        Raises:
            NotFoundError: run absent
        """
        result = await self.db.execute(
            select(Run)
            .where(Run.id == run_id)
            .options(
                selectinload(Run.coordinates),
                selectinload(Run.splits),
                selectinload(Run.photos),
            )
            .execution_options(populate_existing=True)
        )
        run = result.scalar_one_or_none()
        if not run:
            raise NotFoundError(f"Run {run_id} not found")
        return run

    # -------------------------------------------------------------------------
    # Guarded transitions
    # -------------------------------------------------------------------------

    async def touch_open(self, run_id: str) -> int:
        """
        Bump updated_at of a run that is not COMPLETED.

        Holds the row lock until the caller commits, so a concurrent
        completion cannot interleave with the caller's writes.

        Returns:
            Number of rows updated (0 if the run is COMPLETED)
        """
        result = await self.db.execute(
            update(Run)
            .where(Run.id == run_id)
            .where(Run.state != RunState.COMPLETED.value)
            .values(updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def set_paused(self, run_id: str, user_id: str, paused: bool) -> int:
        """
        Pause or resume a non-completed run.

        Returns:
            Number of rows updated (0 if the run completed meanwhile)
        """
        state = RunState.PAUSED if paused else RunState.ACTIVE
        result = await self.db.execute(
            update(Run)
            .where(Run.id == run_id)
            .where(Run.user_id == user_id)
            .where(Run.state != RunState.COMPLETED.value)
            .values(is_paused=paused, state=state.value, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def mark_completed(
        self,
        run_id: str,
        user_id: str,
        metrics: RunMetrics,
        xp_earned: int,
        ended_at: Optional[datetime] = None
    ) -> int:
        """
        Write terminal metrics and move the run to COMPLETED.

        Returns:
            Number of rows updated; 0 means another caller completed it first
        """
        now = ended_at or datetime.utcnow()
        result = await self.db.execute(
            update(Run)
            .where(Run.id == run_id)
            .where(Run.user_id == user_id)
            .where(Run.state != RunState.COMPLETED.value)
            .values(
                state=RunState.COMPLETED.value,
                is_paused=False,
                ended_at=now,
                distance_m=km_to_metres(metrics.distance),
                duration=metrics.duration,
                avg_pace=metrics.avg_pace,
                max_pace=metrics.max_pace,
                min_pace=metrics.min_pace,
                calories=metrics.calories,
                elevation=metrics.elevation,
                elevation_gain=metrics.elevation_gain,
                elevation_loss=metrics.elevation_loss,
                weather=metrics.weather,
                map_snapshot_url=metrics.map_snapshot_url,
                xp_earned=xp_earned,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def add_xp_earned(self, run_id: str, amount: int) -> None:
        """Attribute extra XP (achievement rewards) to a run."""
        if amount <= 0:
            return
        await self.db.execute(
            update(Run)
            .where(Run.id == run_id)
            .values(xp_earned=Run.xp_earned + amount)
            .execution_options(synchronize_session=False)
        )

    # -------------------------------------------------------------------------
    # Dependents
    # -------------------------------------------------------------------------

    async def add_coordinates(self, run_id: str, coordinates: Sequence[CoordinateInput]) -> int:
        """
        Append coordinates in the order given.

        Returns:
            Number of coordinates stored
        """
        rows = [
            RunCoordinate(
                run_id=run_id,
                latitude=c.latitude,
                longitude=c.longitude,
                altitude=c.altitude,
                speed=c.speed,
                accuracy=c.accuracy,
                heading=c.heading,
                heart_rate=c.heart_rate,
                timestamp=c.timestamp,
            )
            for c in coordinates
        ]
        self.db.add_all(rows)
        await self.db.flush()
        return len(rows)

    async def add_splits(self, run_id: str, splits: Sequence[SplitInput]) -> None:
        """Store splits sorted by km ascending."""
        for split in sorted(splits, key=lambda s: s.km):
            self.db.add(RunSplit(
                run_id=run_id,
                km=split.km,
                time=split.time,
                pace=split.pace,
                elevation=split.elevation or 0.0,
                avg_heart_rate=split.avg_heart_rate,
            ))
        await self.db.flush()

    async def add_photo(self, run_id: str, **values) -> RunPhoto:
        photo = RunPhoto(run_id=run_id, **values)
        self.db.add(photo)
        await self.db.flush()
        await self.db.refresh(photo)
        return photo

    async def delete_with_dependents(self, run_id: str, user_id: str) -> int:
        """
        Delete a run together with its coordinates, splits and photos.

        Returns:
            Number of runs deleted; 0 means a concurrent delete won
        """
        for model in (RunCoordinate, RunSplit, RunPhoto):
            await self.db.execute(
                delete(model)
                .where(model.run_id == run_id)
                .execution_options(synchronize_session=False)
            )
        result = await self.db.execute(
            delete(Run)
            .where(Run.id == run_id)
            .where(Run.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    async def list_for_user(
        self,
        user_id: str,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
        completed: Optional[bool] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> Page[Run]:
        """
        Page through a user's runs, newest first.

        Args:
            user_id: Owner
            cursor: ID of the last run already seen
            limit: Page size
            completed: Only completed (True) or only unfinished (False) runs
            start_date, end_date: Inclusive creation time window
        """
        query = select(Run).where(Run.user_id == user_id)
        if completed is True:
            query = query.where(Run.state == RunState.COMPLETED.value)
        elif completed is False:
            query = query.where(Run.state != RunState.COMPLETED.value)
        if start_date is not None:
            query = query.where(Run.created_at >= start_date)
        if end_date is not None:
            query = query.where(Run.created_at <= end_date)

        paginator = CursorPaginator(self.db, Run, Run.created_at, descending=True)
        return await paginator.paginate(query, cursor, limit)

    async def list_coordinates(
        self,
        run_id: str,
        cursor: Optional[str] = None,
        limit: Optional[int] = None
    ) -> Page[RunCoordinate]:
        """Page through a run's coordinates, oldest fix first."""
        query = select(RunCoordinate).where(RunCoordinate.run_id == run_id)
        paginator = CursorPaginator(
            self.db, RunCoordinate, RunCoordinate.timestamp, descending=False
        )
        return await paginator.paginate(query, cursor, limit)

    async def list_splits(self, run_id: str) -> list[RunSplit]:
        """Splits ordered by km ascending."""
        result = await self.db.execute(
            select(RunSplit)
            .where(RunSplit.run_id == run_id)
            .order_by(RunSplit.km.asc(), RunSplit.id.asc())
        )
        return list(result.scalars().all())

    async def completed_since(self, user_id: str, since: Optional[datetime]) -> list[Run]:
        """Completed runs created at or after `since` (all if None), newest first."""
        query = (
            select(Run)
            .where(Run.user_id == user_id)
            .where(Run.state == RunState.COMPLETED.value)
        )
        if since is not None:
            query = query.where(Run.created_at >= since)
        result = await self.db.execute(query.order_by(Run.created_at.desc()))
        return list(result.scalars().all())
