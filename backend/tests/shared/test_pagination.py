"""
Tests for cursor pagination.

Pages are fetched against a real (in-memory) database so the range-scan
predicate is exercised end to end.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import select

from runsocial.features.runs.models import Run, RunCoordinate
from runsocial.shared.exceptions import InvalidCursorError, ValidationError
from runsocial.shared.pagination import CursorPaginator, check_limit


async def _collect(paginator, query, limit):
    """Follow next_cursor until the end of stream."""
    items, cursor, pages = [], None, 0
    while True:
        page = await paginator.paginate(query, cursor, limit)
        items.extend(page.items)
        pages += 1
        if page.next_cursor is None:
            return items, pages
        cursor = page.next_cursor


@pytest.fixture
async def user(make_user):
    return await make_user(username="pager")


@pytest.fixture
async def runs(db, user, now):
    """Seven runs, one minute apart."""
    created = []
    for i in range(7):
        run = Run(user_id=user.id, created_at=now + timedelta(minutes=i))
        db.add(run)
        created.append(run)
    await db.commit()
    return created


# =============================================================================
# Test limit bounds
# =============================================================================

class TestCheckLimit:
    """Tests for check_limit."""

    def test_default(self):
        """None means the default page size."""
        assert check_limit(None) == 20

    def test_bounds_accepted(self):
        """1 and max_page_size are valid."""
        assert check_limit(1) == 1
        assert check_limit(100) == 100

    @pytest.mark.parametrize("limit", [0, -1, 101])
    def test_out_of_range(self, limit):
        """Limits outside [1, 100] are rejected."""
        with pytest.raises(ValidationError):
            check_limit(limit)


# =============================================================================
# Test descending scan
# =============================================================================

class TestDescendingPages:
    """Creation time descending (default ordering)."""

    async def test_first_page(self, db, user, runs):
        """First page holds the newest items and a cursor."""
        paginator = CursorPaginator(db, Run, Run.created_at)
        page = await paginator.paginate(select(Run), None, 3)

        assert [r.id for r in page.items] == [r.id for r in reversed(runs)][:3]
        assert page.next_cursor == page.items[-1].id

    async def test_concatenated_pages_match_full_scan(self, db, user, runs):
        """Following cursors reproduces the full ordering, no gaps or repeats."""
        paginator = CursorPaginator(db, Run, Run.created_at)
        items, pages = await _collect(paginator, select(Run), 3)

        assert [r.id for r in items] == [r.id for r in reversed(runs)]
        assert pages == 3

    async def test_short_last_page_has_no_cursor(self, db, user, runs):
        """A page shorter than limit ends the stream."""
        paginator = CursorPaginator(db, Run, Run.created_at)
        first = await paginator.paginate(select(Run), None, 5)
        second = await paginator.paginate(select(Run), first.next_cursor, 5)

        assert len(second.items) == 2
        assert second.next_cursor is None

    async def test_exact_multiple_ends_with_empty_page(self, db, user, runs):
        """When total is a multiple of limit the final page is empty."""
        paginator = CursorPaginator(db, Run, Run.created_at)
        first = await paginator.paginate(select(Run), None, 7)
        assert first.next_cursor is not None

        second = await paginator.paginate(select(Run), first.next_cursor, 7)
        assert second.items == []
        assert second.next_cursor is None

    async def test_cursor_item_excluded(self, db, user, runs):
        """The cursor item itself is never repeated."""
        paginator = CursorPaginator(db, Run, Run.created_at)
        page = await paginator.paginate(select(Run), runs[4].id, 10)
        assert [r.id for r in page.items] == [runs[3].id, runs[2].id, runs[1].id, runs[0].id]

    async def test_ties_broken_by_id(self, db, user, now):
        """Items sharing the ordering key still page without repeats."""
        for _ in range(5):
            db.add(Run(user_id=user.id, created_at=now))
        await db.commit()

        paginator = CursorPaginator(db, Run, Run.created_at)
        items, _ = await _collect(paginator, select(Run), 2)

        ids = [r.id for r in items]
        assert len(ids) == 5
        assert ids == sorted(ids, reverse=True)

    async def test_filters_apply_to_every_page(self, db, user, runs, make_user, now):
        """Caller filters are kept across pages."""
        other = await make_user(username="other")
        db.add(Run(user_id=other.id, created_at=now + timedelta(hours=1)))
        await db.commit()

        paginator = CursorPaginator(db, Run, Run.created_at)
        items, _ = await _collect(paginator, select(Run).where(Run.user_id == user.id), 2)
        assert len(items) == 7
        assert all(r.user_id == user.id for r in items)


# =============================================================================
# Test ascending scan and cursor errors
# =============================================================================

class TestAscendingPages:
    """Timestamp ascending (coordinate listings)."""

    async def test_coordinates_oldest_first(self, db, user, runs, now):
        """Ascending scan over integer ids."""
        run = runs[0]
        for i in range(5):
            db.add(RunCoordinate(
                run_id=run.id, latitude=0.0, longitude=0.001 * i,
                timestamp=now + timedelta(seconds=i),
            ))
        await db.commit()

        paginator = CursorPaginator(db, RunCoordinate, RunCoordinate.timestamp, descending=False)
        items, pages = await _collect(paginator, select(RunCoordinate), 2)

        assert [c.longitude for c in items] == [0.001 * i for i in range(5)]
        assert pages == 3


class TestInvalidCursor:
    """Cursors that do not reference a row."""

    async def test_unknown_id(self, db, user, runs):
        """Unknown cursor is rejected, not treated as 'start over'."""
        paginator = CursorPaginator(db, Run, Run.created_at)
        with pytest.raises(InvalidCursorError):
            await paginator.paginate(select(Run), "no-such-run", 3)

    async def test_malformed_integer_cursor(self, db):
        """Integer-keyed models reject non-numeric cursors."""
        paginator = CursorPaginator(db, RunCoordinate, RunCoordinate.timestamp, descending=False)
        with pytest.raises(InvalidCursorError):
            await paginator.paginate(select(RunCoordinate), "abc", 3)

    async def test_invalid_cursor_is_validation_error(self, db, user, runs):
        """InvalidCursorError is a ValidationError (HTTP 422)."""
        paginator = CursorPaginator(db, Run, Run.created_at)
        with pytest.raises(ValidationError):
            await paginator.paginate(select(Run), "nope", 3)

    async def test_cursor_outside_filtered_query(self, db, user, runs, make_user, now):
        """A row that exists but is excluded by the query's filters is unknown."""
        other = await make_user(username="other")
        foreign = Run(user_id=other.id, created_at=now)
        db.add(foreign)
        await db.commit()

        paginator = CursorPaginator(db, Run, Run.created_at)
        with pytest.raises(InvalidCursorError):
            await paginator.paginate(select(Run).where(Run.user_id == user.id), foreign.id, 3)


# =============================================================================
# Test row pages
# =============================================================================

class TestRowPages:
    """Paging a query that selects a computed value alongside the model."""

    async def test_rows_follow_computed_order(self, db, user, runs):
        """Items are (model, value) rows; cursors are model ids."""
        value = Run.duration + 0
        paginator = CursorPaginator(db, Run, value, descending=True, rows=True)
        query = select(Run, value.label("value")).where(Run.user_id == user.id)

        items, pages = await _collect(paginator, query, 3)

        assert pages == 3
        assert [row[1] for row in items] == [0] * 7
        ids = [row[0].id for row in items]
        assert ids == sorted((r.id for r in runs), reverse=True)
