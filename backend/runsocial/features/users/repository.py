"""
User repositories.

Data access layer for User and Notification models.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from runsocial.shared.exceptions import ConflictError, NotFoundError, ValidationError
from runsocial.shared.pagination import CursorPaginator, Page
from runsocial.shared.repository import BaseRepository
from .models import User, Notification

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("full_name", "username", "avatar_url", "is_public", "is_location_public")
NULLABLE_PROFILE_FIELDS = ("avatar_url",)


class UserRepository(BaseRepository[User]):
    """Repository for User operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, User)

    async def require(self, user_id: str) -> User:
        """
        Get user by ID or fail.

        Raises:
            NotFoundError: user does not exist
        """
        user = await self.get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    async def set_location(
        self,
        user_id: str,
        latitude: float,
        longitude: float,
        at: Optional[datetime] = None
    ) -> None:
        """
        Store user's last-known location.

        Args:
            user_id: User's ID
            latitude: Latitude in degrees
            longitude: Longitude in degrees
            at: Time of the fix (defaults to now)
        """
        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(
                latitude=latitude,
                longitude=longitude,
                last_location_update=at or datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )

    async def set_current_run(self, user_id: str, run_id: str) -> None:
        """Point the user at their active run."""
        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(is_currently_running=True, current_run_id=run_id)
            .execution_options(synchronize_session=False)
        )

    async def clear_current_run(self, user_id: str, run_id: str) -> None:
        """
        Clear the active run pointer if it still references run_id.

        A newer run started in the meantime keeps its pointer.
        """
        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .where(User.current_run_id == run_id)
            .values(is_currently_running=False, current_run_id=None)
            .execution_options(synchronize_session=False)
        )

    async def update_profile(self, user_id: str, values: dict[str, Any]) -> User:
        """
        Apply a partial profile and privacy update.

        Only the given fields change. avatar_url may be cleared with None;
        the other fields may not.

        Args:
            user_id: User's ID
            values: Subset of PROFILE_FIELDS with new values

        Returns:
            The updated user

        Raises:
            NotFoundError: user does not exist
            ValidationError: unknown field, or None for a required field
            ConflictError: username belongs to another user
        """
        user = await self.require(user_id)

        unknown = sorted(set(values) - set(PROFILE_FIELDS))
        if unknown:
            raise ValidationError(f"Unknown profile fields: {', '.join(unknown)}")
        for name, value in values.items():
            if value is None and name not in NULLABLE_PROFILE_FIELDS:
                raise ValidationError(f"{name} cannot be null")

        username = values.get("username")
        if username is not None:
            taken = await self.db.execute(
                select(User.id)
                .where(User.username == username)
                .where(User.id != user_id)
            )
            if taken.first() is not None:
                raise ConflictError("Username already taken")

        if values:
            try:
                await self.db.execute(
                    update(User)
                    .where(User.id == user_id)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
            except IntegrityError:
                await self.db.rollback()
                raise ConflictError("Username already taken")
            logger.info(f"User {user_id} updated profile: {', '.join(sorted(values))}")

        return await self.reload(user)


class NotificationRepository(BaseRepository[Notification]):
    """Repository for Notification operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Notification)

    async def get_for_user(
        self,
        user_id: str,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
        unread_only: bool = False
    ) -> Page[Notification]:
        """
        Get a page of notifications for user.

        Args:
            user_id: User's ID
            cursor: ID of the last notification already seen
            limit: Page size
            unread_only: If True, only return unread notifications

        Returns:
            Page ordered by creation time (newest first)
        """
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.read == False)  # noqa: E712

        paginator = CursorPaginator(self.db, Notification, Notification.created_at)
        return await paginator.paginate(query, cursor, limit)

    async def unread_count(self, user_id: str) -> int:
        """Number of unread notifications for user."""
        return await self.count(user_id=user_id, read=False)

    async def mark_as_read(self, user_id: str, notification_id: str) -> None:
        """
        Mark one of the user's notifications as read.

        Raises:
            NotFoundError: notification absent or owned by someone else
        """
        result = await self.db.execute(
            update(Notification)
            .where(Notification.id == notification_id)
            .where(Notification.user_id == user_id)
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError(f"Notification {notification_id} not found")

    async def mark_all_read_for_user(self, user_id: str) -> int:
        """
        Mark all notifications as read for a user.

        Args:
            user_id: User's ID

        Returns:
            Number of notifications updated
        """
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id)
            .where(Notification.read == False)  # noqa: E712
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete_for_user(self, user_id: str, notification_id: str) -> None:
        """
        Delete one of the user's notifications.

        Raises:
            NotFoundError: notification absent or owned by someone else
        """
        result = await self.db.execute(
            delete(Notification)
            .where(Notification.id == notification_id)
            .where(Notification.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError(f"Notification {notification_id} not found")

    async def delete_all_for_user(self, user_id: str) -> int:
        """Delete every notification of a user. Returns the number deleted."""
        result = await self.db.execute(
            delete(Notification)
            .where(Notification.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
