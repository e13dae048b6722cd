"""
Notification Emitter.

Fire-and-forget notifications for run completion, level-ups and
achievement unlocks. Single point of notification creation for the engine.

Notifications are queued while a unit of work runs and written after it
commits, so a failing notification can never roll back the run, aggregate
or achievement change that triggered it.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from runsocial.shared.notification_formatter import format_notification
from .models import Notification

logger = logging.getLogger(__name__)


@dataclass
class PendingNotification:
    """Notification waiting for its triggering unit of work to commit."""
    user_id: str
    type: str
    title: str
    body: str
    data: dict = field(default_factory=dict)
    from_user_id: Optional[str] = None


class NotificationEmitter:
    """
    Queues notifications and persists them after the caller commits.

    Usage:
        emitter = NotificationEmitter(db)
        emitter.notify(user_id, "level_up", {"level": 3})
        await db.commit()
        await emitter.flush()
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self._pending: list[PendingNotification] = []

    @property
    def pending(self) -> list[PendingNotification]:
        return list(self._pending)

    def notify(
        self,
        user_id: str,
        notification_type: str,
        data: Optional[dict] = None,
        from_user_id: Optional[str] = None,
        title: Optional[str] = None,
        body: Optional[str] = None
    ) -> None:
        """
        Queue a notification.

        Args:
            user_id: Recipient
            notification_type: Type of notification
            data: Related ids (run_id, achievement_id, level)
            from_user_id: Originating user, if any
            title, body: Override the formatted text
        """
        data = data or {}
        formatted = format_notification(notification_type, data)
        if formatted:
            title = title or formatted[0]
            body = body or formatted[1]

        self._pending.append(PendingNotification(
            user_id=user_id,
            type=notification_type,
            title=title or notification_type,
            body=body or "",
            data=data,
            from_user_id=from_user_id,
        ))

    def discard(self) -> None:
        """Drop queued notifications whose triggering work was rolled back."""
        if self._pending:
            logger.debug(f"Discarding {len(self._pending)} pending notifications")
        self._pending.clear()

    async def flush(self) -> int:
        """
        Persist queued notifications in their own unit of work.

        Failures are logged and swallowed.

        Returns:
            Number of notifications written
        """
        if not self._pending:
            return 0

        batch, self._pending = self._pending, []
        try:
            for item in batch:
                self.db.add(Notification(
                    user_id=item.user_id,
                    from_user_id=item.from_user_id,
                    type=item.type,
                    title=item.title,
                    body=item.body,
                    data=item.data,
                ))
            await self.db.commit()
        except Exception as e:
            # Don't fail the main operation if notifications fail
            await self.db.rollback()
            logger.warning(f"Failed to write {len(batch)} notifications: {e}")
            return 0

        logger.debug(f"Wrote {len(batch)} notifications")
        return len(batch)
