"""
Run lifecycle.

State machine:

    start -> ACTIVE <-> PAUSED
               \\         /
                COMPLETED (terminal)

    delete is allowed in any state.

complete runs as two units of work:
1. terminal transition + splits + current run pointer + aggregates
2. achievement evaluation

Notifications are written after each unit commits, with at most one
level-up notification (final level) per completion. A failure in (2)
leaves (1) committed; the error is propagated to the caller.
"""

import calendar
import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from runsocial.features.achievements.engine import AchievementEngine
from runsocial.features.users.notification_service import NotificationEmitter
from runsocial.features.users.repository import UserRepository
from runsocial.shared.constants import (
    MAX_COORDINATES_PER_BATCH,
    NotificationType,
    RunState,
    StatsPeriod,
)
from runsocial.shared.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from runsocial.shared.formulas import metres_to_km, xp_for_distance
from runsocial.shared.pagination import Page
from runsocial.shared.validation import (
    check_finite,
    check_heading,
    check_heart_rate,
    check_latitude,
    check_longitude,
    check_non_negative,
    to_naive_utc,
)
from .models import Run, RunCoordinate, RunPhoto, RunSplit
from .repository import RunRepository
from .schemas import (
    CoordinateInput,
    Location,
    PhotoCreate,
    RunMetrics,
    RunSummaryResponse,
    SplitInput,
)
from .stats import StatReconciler, XpChange

logger = logging.getLogger(__name__)


def _validate_coordinate(coord: CoordinateInput) -> None:
    check_latitude(coord.latitude)
    check_longitude(coord.longitude)
    check_heading(coord.heading)
    check_heart_rate(coord.heart_rate)
    check_non_negative("speed", coord.speed)
    check_non_negative("accuracy", coord.accuracy)
    check_finite("altitude", coord.altitude)


def _validate_metrics(metrics: RunMetrics) -> None:
    for name in (
        "distance", "duration", "avg_pace", "max_pace", "min_pace",
        "calories", "elevation_gain", "elevation_loss",
    ):
        check_non_negative(name, getattr(metrics, name))
    check_finite("elevation", metrics.elevation)


def _validate_split(split: SplitInput) -> None:
    if split.km < 1:
        raise ValidationError(f"split km must be >= 1, got {split.km}")
    check_non_negative("split time", split.time)
    check_non_negative("split pace", split.pace)
    check_heart_rate(split.avg_heart_rate, "split avg_heart_rate")
    check_finite("split elevation", split.elevation)


def period_start(period: StatsPeriod, now: datetime) -> Optional[datetime]:
    """
    Start of a summary window ending at `now`.

    week is the last 7 days, month and year go back one calendar
    month/year (day clamped to the target month's length).
    """
    period = StatsPeriod(period)
    if period == StatsPeriod.WEEK:
        return now - timedelta(days=7)
    if period == StatsPeriod.MONTH:
        year, month = (now.year, now.month - 1) if now.month > 1 else (now.year - 1, 12)
        day = min(now.day, calendar.monthrange(year, month)[1])
        return now.replace(year=year, month=month, day=day)
    if period == StatsPeriod.YEAR:
        day = min(now.day, calendar.monthrange(now.year - 1, now.month)[1])
        return now.replace(year=now.year - 1, day=day)
    return None


def summarize(runs: Sequence[Run]) -> RunSummaryResponse:
    """Aggregate completed runs into a summary."""
    count = len(runs)
    total_m = sum(r.distance_m for r in runs)
    total_distance = metres_to_km(total_m)
    paces = [r.avg_pace for r in runs if r.avg_pace > 0]

    metres_by_day: dict[str, int] = {}
    for run in runs:
        day = run.created_at.date().isoformat()
        metres_by_day[day] = metres_by_day.get(day, 0) + run.distance_m

    return RunSummaryResponse(
        total_runs=count,
        total_distance=total_distance,
        total_duration=sum(r.duration for r in runs),
        total_calories=sum(r.calories for r in runs),
        total_elevation=sum(r.elevation_gain for r in runs),
        avg_pace=sum(r.avg_pace for r in runs) / count if count else 0.0,
        avg_distance=metres_to_km(total_m) / count if count else 0.0,
        longest_run=max((r.distance for r in runs), default=0.0),
        fastest_pace=min(paces, default=0.0),
        runs_by_day={day: metres_to_km(m) for day, m in metres_by_day.items()},
    )


class RunLifecycleManager:
    """
    Owns the run state machine.

    Usage:
        manager = RunLifecycleManager(db)
        run = await manager.start(user_id, location=Location(latitude=43.2, longitude=76.9))
        await manager.add_coordinates(run.id, user_id, coords)
        run = await manager.complete(run.id, user_id, RunMetrics(distance=5.0, duration=1800))
    """

    def __init__(self, db: AsyncSession, emitter: Optional[NotificationEmitter] = None):
        self.db = db
        self.emitter = emitter or NotificationEmitter(db)
        self.runs = RunRepository(db)
        self.users = UserRepository(db)
        self.stats = StatReconciler(db, self.emitter)
        self.achievements = AchievementEngine(db, self.emitter)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    async def start(
        self,
        user_id: str,
        route_id: Optional[str] = None,
        location: Optional[Location] = None
    ) -> Run:
        """
        Start a run in ACTIVE state.

        If a location is given it becomes the first coordinate and the
        user's last-known location. The user's current run pointer is set
        to the new run.

        Raises:
            NotFoundError: user does not exist
            ValidationError: location out of range
        """
        if location is not None:
            check_latitude(location.latitude)
            check_longitude(location.longitude)

        await self.users.require(user_id)
        now = datetime.utcnow()

        run = await self.runs.create(
            user_id=user_id,
            route_id=route_id,
            state=RunState.ACTIVE.value,
            is_paused=False,
            started_at=now,
        )

        if location is not None:
            await self.runs.add_coordinates(run.id, [
                CoordinateInput(
                    latitude=location.latitude,
                    longitude=location.longitude,
                    timestamp=now,
                )
            ])
            await self.users.set_location(user_id, location.latitude, location.longitude, now)

        await self.users.set_current_run(user_id, run.id)
        await self.db.commit()

        logger.info(f"Run {run.id} started by user {user_id}")
        return run

    async def add_coordinates(
        self,
        run_id: str,
        caller_id: str,
        coordinates: Sequence[CoordinateInput]
    ) -> int:
        """
        Append GPS fixes to an open run.

        The caller's order is kept. The last fix becomes the user's
        last-known location.

        Returns:
            Number of coordinates stored

        Raises:
            NotFoundError: run absent or not owned by caller
            InvalidStateError: run is COMPLETED
            ValidationError: empty/oversized batch or value out of range
        """
        if not 1 <= len(coordinates) <= MAX_COORDINATES_PER_BATCH:
            raise ValidationError(
                f"coordinates batch must hold 1..{MAX_COORDINATES_PER_BATCH} items, "
                f"got {len(coordinates)}"
            )
        for coord in coordinates:
            _validate_coordinate(coord)
        coordinates = [
            c.model_copy(update={"timestamp": to_naive_utc(c.timestamp)})
            for c in coordinates
        ]

        run = await self.runs.get_owned(run_id, caller_id)
        if run.is_completed:
            raise InvalidStateError(f"Run {run_id} is completed")
        if await self.runs.touch_open(run_id) == 0:
            await self.db.rollback()
            raise InvalidStateError(f"Run {run_id} is completed")

        count = await self.runs.add_coordinates(run_id, coordinates)
        last = coordinates[-1]
        await self.users.set_location(caller_id, last.latitude, last.longitude)
        await self.db.commit()

        logger.debug(f"Run {run_id}: +{count} coordinates")
        return count

    async def pause(self, run_id: str, caller_id: str) -> Run:
        """
        Pause an open run. Pausing a paused run is a no-op.

        Raises:
            NotFoundError: run absent or not owned by caller
            InvalidStateError: run is COMPLETED
        """
        return await self._set_paused(run_id, caller_id, True)

    async def resume(self, run_id: str, caller_id: str) -> Run:
        """
        Resume a paused run. Resuming an active run is a no-op.

        Raises:
            NotFoundError: run absent or not owned by caller
            InvalidStateError: run is COMPLETED
        """
        return await self._set_paused(run_id, caller_id, False)

    async def _set_paused(self, run_id: str, caller_id: str, paused: bool) -> Run:
        run = await self.runs.get_owned(run_id, caller_id)
        if run.is_completed:
            raise InvalidStateError(f"Run {run_id} is completed")

        if await self.runs.set_paused(run_id, caller_id, paused) == 0:
            await self.db.rollback()
            raise InvalidStateError(f"Run {run_id} is completed")
        await self.db.commit()

        logger.info(f"Run {run_id} {'paused' if paused else 'resumed'}")
        return await self.runs.reload(run)

    async def complete(
        self,
        run_id: str,
        caller_id: str,
        metrics: RunMetrics,
        splits: Optional[Sequence[SplitInput]] = None
    ) -> Run:
        """
        Finish a run.

        Writes terminal metrics and splits, moves the run to COMPLETED,
        clears the user's current run pointer and applies the run to the
        user's aggregates, then evaluates achievements.

        Raises:
            NotFoundError: run absent or not owned by caller
            InvalidStateError: run already COMPLETED
            ConflictError: a concurrent call completed the run first
            ValidationError: metric or split out of range
        """
        _validate_metrics(metrics)
        splits = list(splits or [])
        for split in splits:
            _validate_split(split)

        run = await self.runs.get_owned(run_id, caller_id)
        if run.is_completed:
            raise InvalidStateError(f"Run {run_id} is already completed")

        xp = xp_for_distance(metrics.distance)
        updated = await self.runs.mark_completed(run_id, caller_id, metrics, xp)
        if updated == 0:
            await self.db.rollback()
            logger.warning(f"Run {run_id}: lost completion race")
            raise ConflictError(f"Run {run_id} was completed concurrently")

        if splits:
            await self.runs.add_splits(run_id, splits)
        await self.users.clear_current_run(caller_id, run_id)

        run = await self.runs.reload(run)
        # level-up is announced once, after achievement xp is applied
        change = await self.stats.on_complete(caller_id, run, notify=False)
        await self.db.commit()

        logger.info(f"Run {run_id} completed: {run.distance}km in {run.duration}s")

        self.emitter.notify(
            caller_id,
            NotificationType.RUN_COMPLETED.value,
            {"run_id": run_id, "distance": run.distance},
        )
        await self.emitter.flush()
        # a failed flush rolls back and expires every loaded instance
        run = await self.runs.reload(run)

        try:
            result = await self.achievements.evaluate(caller_id, run.distance, run)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            self.emitter.discard()
            if change.leveled_up:
                self.stats.notify_level_up(caller_id, change)
                await self.emitter.flush()
            logger.exception(f"Run {run_id}: achievement evaluation failed")
            raise

        awarded = result.xp_change
        if change.leveled_up and not (awarded and awarded.leveled_up):
            final = awarded or change
            self.stats.notify_level_up(caller_id, XpChange(final.xp, final.level, change.previous_level))
        await self.emitter.flush()
        return await self.runs.reload(run)

    async def delete(self, run_id: str, caller_id: str) -> None:
        """
        Delete a run in any state.

        A COMPLETED run's stored metrics and xp are first removed from the
        user's aggregates. Coordinates, splits and photos are deleted with
        the run.

        Raises:
            NotFoundError: run absent or not owned by caller
            ConflictError: a concurrent call deleted the run first
        """
        run = await self.runs.get_owned(run_id, caller_id, lock=True)

        if run.is_completed:
            await self.stats.on_delete(caller_id, run)

        if await self.runs.delete_with_dependents(run_id, caller_id) == 0:
            await self.db.rollback()
            raise ConflictError(f"Run {run_id} was deleted concurrently")

        await self.users.clear_current_run(caller_id, run_id)
        await self.db.commit()
        self.db.expunge(run)

        logger.info(f"Run {run_id} deleted ({run.state})")

    async def add_photo(self, run_id: str, caller_id: str, photo: PhotoCreate) -> RunPhoto:
        """
        Attach a photo URL to a run.

        Raises:
            NotFoundError: run absent or not owned by caller
            ValidationError: location out of range
        """
        if photo.latitude is not None:
            check_latitude(photo.latitude)
        if photo.longitude is not None:
            check_longitude(photo.longitude)

        await self.runs.get_owned(run_id, caller_id)
        created = await self.runs.add_photo(
            run_id,
            image_url=photo.image_url,
            latitude=photo.latitude,
            longitude=photo.longitude,
            caption=photo.caption,
        )
        await self.db.commit()
        return created

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def get_run(self, run_id: str) -> Run:
        """
        Run with coordinates, splits and photos.

        Raises:
            NotFoundError: run absent
        """
        return await self.runs.get_with_details(run_id)

    async def list_runs(
        self,
        caller_id: str,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
        completed: Optional[bool] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> Page[Run]:
        """Caller's runs, newest first."""
        return await self.runs.list_for_user(
            caller_id,
            cursor=cursor,
            limit=limit,
            completed=completed,
            start_date=to_naive_utc(start_date) if start_date else None,
            end_date=to_naive_utc(end_date) if end_date else None,
        )

    async def list_coordinates(
        self,
        run_id: str,
        caller_id: str,
        cursor: Optional[str] = None,
        limit: Optional[int] = None
    ) -> Page[RunCoordinate]:
        """
        Run's coordinates, oldest first.

        Raises:
            NotFoundError: run absent or not owned by caller
        """
        await self.runs.get_owned(run_id, caller_id)
        return await self.runs.list_coordinates(run_id, cursor, limit)

    async def list_splits(self, run_id: str) -> list[RunSplit]:
        """
        Run's splits by km.

        Raises:
            NotFoundError: run absent
        """
        if not await self.runs.get_by_id(run_id):
            raise NotFoundError(f"Run {run_id} not found")
        return await self.runs.list_splits(run_id)

    async def summary(
        self,
        caller_id: str,
        period: StatsPeriod = StatsPeriod.WEEK,
        now: Optional[datetime] = None
    ) -> RunSummaryResponse:
        """Totals over the caller's completed runs in a period."""
        since = period_start(period, now or datetime.utcnow())
        runs = await self.runs.completed_since(caller_id, since)
        return summarize(runs)
