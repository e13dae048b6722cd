"""
Opaque-cursor forward pagination.

Every list operation pages through an ordered query with the same contract:

- cursor: id of the last item the caller has seen (optional)
- limit: page size, bounded to [1, settings.max_page_size]
- result: at most `limit` items strictly after the cursor, plus
  next_cursor = id of the last item when the page is exactly `limit` long

Ordering is an explicit range scan: items whose ordering key is strictly
after the cursor's key, ties broken by id in the same direction. Concurrent
inserts between page fetches may be skipped or repeated at page boundaries.

Usage:
    paginator = CursorPaginator(db, Run, Run.created_at, descending=True)
    page = await paginator.paginate(
        select(Run).where(Run.user_id == user_id), cursor, limit
    )
"""

from dataclasses import dataclass, field
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from runsocial.config import settings
from .exceptions import InvalidCursorError, ValidationError

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of results."""
    items: list[T] = field(default_factory=list)
    next_cursor: Optional[str] = None


def check_limit(limit: Optional[int]) -> int:
    """Apply the default page size and enforce bounds."""
    if limit is None:
        return settings.default_page_size
    if limit < 1 or limit > settings.max_page_size:
        raise ValidationError(
            f"limit must be between 1 and {settings.max_page_size}, got {limit}"
        )
    return limit


class CursorPaginator(Generic[T]):
    """
    Forward pagination over one model ordered by one column.

    The id column breaks ties, so the ordering is total even when
    several rows share the same ordering key. The ordering column may be
    a computed expression (e.g. an aggregate joined onto the model); pass
    rows=True when the query selects it alongside the model.
    """

    def __init__(
        self,
        db: AsyncSession,
        model: Type[T],
        order_column,
        descending: bool = True,
        rows: bool = False,
    ):
        self.db = db
        self.model = model
        self.order_column = order_column
        self.id_column = model.id
        self.descending = descending
        self.rows = rows

    def ordering(self) -> list:
        """ORDER BY clause for the scan."""
        if self.descending:
            return [self.order_column.desc(), self.id_column.desc()]
        return [self.order_column.asc(), self.id_column.asc()]

    def after(self, key: Any, item_id: Any):
        """Predicate selecting rows strictly after (key, id) in scan order."""
        if self.descending:
            return or_(
                self.order_column < key,
                and_(self.order_column == key, self.id_column < item_id),
            )
        return or_(
            self.order_column > key,
            and_(self.order_column == key, self.id_column > item_id),
        )

    def before(self, key: Any, item_id: Any):
        """Predicate selecting rows strictly before (key, id) in scan order."""
        if self.descending:
            return or_(
                self.order_column > key,
                and_(self.order_column == key, self.id_column > item_id),
            )
        return or_(
            self.order_column < key,
            and_(self.order_column == key, self.id_column < item_id),
        )

    def _coerce_cursor(self, cursor: str) -> Any:
        python_type = self.id_column.type.python_type
        if python_type is str:
            return cursor
        try:
            return python_type(cursor)
        except (TypeError, ValueError):
            raise InvalidCursorError(f"Malformed cursor: {cursor!r}")

    async def resolve_cursor(self, query: Select, cursor: str) -> tuple[Any, Any]:
        """
        Look up the ordering key of the cursor item within `query`.

        The cursor must name a row the filtered query can return, so a
        cursor taken from another user's list is rejected.

        Raises:
            InvalidCursorError: cursor does not reference a row of `query`
        """
        item_id = self._coerce_cursor(cursor)
        result = await self.db.execute(
            query.add_columns(self.order_column.label("cursor_key"))
            .where(self.id_column == item_id)
            .limit(1)
        )
        row = result.first()
        if row is None:
            raise InvalidCursorError(f"Unknown cursor: {cursor!r}")
        return row[-1], item_id

    async def paginate(
        self,
        query: Select,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Page[T]:
        """
        Fetch the page after `cursor`.

        Args:
            query: SELECT of the model with the caller's filters applied
            cursor: id of the last seen item, or None for the first page
            limit: page size

        Returns:
            Page with items and next_cursor (None at end of stream).
            Items are model instances, or result rows whose first element
            is the model instance when the paginator was built with rows=True.
        """
        limit = check_limit(limit)

        if cursor:
            key, item_id = await self.resolve_cursor(query, cursor)
            query = query.where(self.after(key, item_id))

        result = await self.db.execute(query.order_by(*self.ordering()).limit(limit))
        if self.rows:
            items = list(result.all())
        else:
            items = list(result.scalars().all())

        next_cursor = None
        if len(items) == limit:
            last = items[-1][0] if self.rows else items[-1]
            next_cursor = str(last.id)

        return Page(items=items, next_cursor=next_cursor)

    async def position_of(self, query: Select, key: Any, item_id: Any) -> int:
        """
        Zero-based position of (key, id) within the filtered scan.

        Counts rows of `query` that come strictly before it.
        """
        subquery = query.where(self.before(key, item_id)).subquery()
        result = await self.db.execute(select(func.count()).select_from(subquery))
        return result.scalar() or 0
