"""
Tests for NotificationEmitter and the notification feed.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select

from runsocial.features.users.models import Notification
from runsocial.features.users.notification_service import NotificationEmitter
from runsocial.features.users.repository import NotificationRepository
from runsocial.shared.exceptions import NotFoundError
from runsocial.shared.notification_formatter import format_notification


# =============================================================================
# Test formatter
# =============================================================================

class TestFormatNotification:
    """Tests for format_notification."""

    def test_run_completed(self):
        assert format_notification("run_completed", {"distance": 5.0}) == (
            "Run Completed", "Great job! You ran 5.00 km"
        )

    def test_level_up(self):
        assert format_notification("level_up", {"level": 4}) == (
            "Level Up!", "Congratulations! You reached level 4"
        )

    def test_achievement_unlocked(self):
        title, body = format_notification("achievement_unlocked", {"achievement_name": "10K Club"})
        assert title == "Achievement Unlocked!"
        assert body == 'You earned "10K Club"'

    def test_unknown_type(self):
        assert format_notification("follow", {}) is None


# =============================================================================
# Test emitter
# =============================================================================

class TestNotificationEmitter:
    """Queue, flush and discard."""

    async def test_flush_writes_queued(self, db, make_user):
        """Queued notifications become rows after flush."""
        user = await make_user()
        emitter = NotificationEmitter(db)
        emitter.notify(user.id, "level_up", {"level": 2})
        emitter.notify(user.id, "run_completed", {"run_id": "r1", "distance": 3.2})

        assert await emitter.flush() == 2
        assert emitter.pending == []

        result = await db.execute(select(Notification).where(Notification.user_id == user.id))
        rows = result.scalars().all()
        assert sorted(n.type for n in rows) == ["level_up", "run_completed"]
        assert all(not n.read for n in rows)

    async def test_flush_empty_queue(self, db):
        emitter = NotificationEmitter(db)
        assert await emitter.flush() == 0

    async def test_explicit_text_wins(self, db):
        """Title and body overrides replace formatted text."""
        emitter = NotificationEmitter(db)
        emitter.notify("u1", "level_up", {"level": 2}, title="Hi", body="There")
        assert emitter.pending[0].title == "Hi"
        assert emitter.pending[0].body == "There"

    async def test_discard(self, db):
        """Discarded notifications are never written."""
        emitter = NotificationEmitter(db)
        emitter.notify("u1", "level_up", {"level": 2})
        emitter.discard()
        assert emitter.pending == []
        assert await emitter.flush() == 0

    async def test_failure_is_swallowed(self):
        """A failing write is logged, rolled back and not raised."""
        db = MagicMock()
        db.commit = AsyncMock(side_effect=RuntimeError("database is down"))
        db.rollback = AsyncMock()

        emitter = NotificationEmitter(db)
        emitter.notify("u1", "run_completed", {"distance": 1.0})

        assert await emitter.flush() == 0
        db.rollback.assert_awaited_once()
        assert emitter.pending == []


# =============================================================================
# Test feed
# =============================================================================

class TestNotificationFeed:
    """Tests for NotificationRepository."""

    @pytest.fixture
    async def feed(self, db, make_user, now):
        user = await make_user()
        for i in range(5):
            db.add(Notification(
                user_id=user.id,
                type="level_up",
                title="Level Up!",
                body=f"level {i + 2}",
                read=i < 2,
                created_at=now + timedelta(minutes=i),
            ))
        await db.commit()
        return user

    async def test_newest_first_with_cursor(self, db, feed):
        repo = NotificationRepository(db)
        first = await repo.get_for_user(feed.id, limit=3)
        second = await repo.get_for_user(feed.id, cursor=first.next_cursor, limit=3)

        bodies = [n.body for n in first.items + second.items]
        assert bodies == ["level 6", "level 5", "level 4", "level 3", "level 2"]
        assert second.next_cursor is None

    async def test_unread_only(self, db, feed):
        repo = NotificationRepository(db)
        page = await repo.get_for_user(feed.id, unread_only=True)
        assert len(page.items) == 3
        assert await repo.unread_count(feed.id) == 3

    async def test_mark_read(self, db, feed):
        repo = NotificationRepository(db)
        page = await repo.get_for_user(feed.id, unread_only=True)
        await repo.mark_as_read(feed.id, page.items[0].id)
        await db.commit()
        assert await repo.unread_count(feed.id) == 2

    async def test_mark_read_other_users_notification(self, db, feed, make_user):
        """Cannot mark someone else's notification."""
        other = await make_user()
        repo = NotificationRepository(db)
        page = await repo.get_for_user(feed.id)
        with pytest.raises(NotFoundError):
            await repo.mark_as_read(other.id, page.items[0].id)

    async def test_mark_all_read(self, db, feed):
        repo = NotificationRepository(db)
        assert await repo.mark_all_read_for_user(feed.id) == 3
        await db.commit()
        assert await repo.unread_count(feed.id) == 0

    async def test_delete_one(self, db, feed):
        repo = NotificationRepository(db)
        page = await repo.get_for_user(feed.id)
        await repo.delete_for_user(feed.id, page.items[0].id)
        await db.commit()

        remaining = await repo.get_for_user(feed.id)
        assert [n.body for n in remaining.items] == ["level 5", "level 4", "level 3", "level 2"]

    async def test_delete_other_users_notification(self, db, feed, make_user):
        """Someone else's notification is not found and survives."""
        other = await make_user()
        repo = NotificationRepository(db)
        page = await repo.get_for_user(feed.id)
        with pytest.raises(NotFoundError):
            await repo.delete_for_user(other.id, page.items[0].id)
        assert len((await repo.get_for_user(feed.id)).items) == 5

    async def test_delete_all_only_touches_owner(self, db, feed, make_user):
        other = await make_user()
        db.add(Notification(user_id=other.id, type="level_up", title="Level Up!", body="level 2"))
        await db.commit()

        repo = NotificationRepository(db)
        assert await repo.delete_all_for_user(feed.id) == 5
        await db.commit()

        assert (await repo.get_for_user(feed.id)).items == []
        assert await repo.unread_count(other.id) == 1
