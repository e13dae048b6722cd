"""
Notification Routes

Endpoints for the caller's in-app notification feed.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from runsocial.api.deps import get_caller_id
from runsocial.db.session import get_async_db
from runsocial.features.users import (
    NotificationListResponse,
    NotificationRepository,
    NotificationResponse,
)

router = APIRouter()


class UnreadCountResponse(BaseModel):
    count: int


class MarkReadResponse(BaseModel):
    """Response for mark read action."""
    marked_count: int


class SuccessResponse(BaseModel):
    success: bool


@router.get("", response_model=NotificationListResponse)
async def get_notifications(
    cursor: Optional[str] = None,
    limit: Optional[int] = None,
    unread_only: bool = False,
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Get notifications for the caller, newest first.

    Args:
        cursor: ID of the last notification already seen
        limit: Page size
        unread_only: If True, return only unread notifications
    """
    repo = NotificationRepository(db)
    page = await repo.get_for_user(caller_id, cursor, limit, unread_only)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in page.items],
        unread_count=await repo.unread_count(caller_id),
        next_cursor=page.next_cursor,
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_async_db),
):
    return UnreadCountResponse(count=await NotificationRepository(db).unread_count(caller_id))


@router.post("/{notification_id}/read", response_model=MarkReadResponse)
async def mark_read(
    notification_id: str,
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_async_db),
):
    await NotificationRepository(db).mark_as_read(caller_id, notification_id)
    await db.commit()
    return MarkReadResponse(marked_count=1)


@router.post("/read-all", response_model=MarkReadResponse)
async def mark_all_read(
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_async_db),
):
    count = await NotificationRepository(db).mark_all_read_for_user(caller_id)
    await db.commit()
    return MarkReadResponse(marked_count=count)


@router.delete("/{notification_id}", response_model=SuccessResponse)
async def delete_notification(
    notification_id: str,
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_async_db),
):
    await NotificationRepository(db).delete_for_user(caller_id, notification_id)
    await db.commit()
    return SuccessResponse(success=True)


@router.delete("", response_model=SuccessResponse)
async def delete_all_notifications(
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_async_db),
):
    """Clear the caller's whole notification feed."""
    await NotificationRepository(db).delete_all_for_user(caller_id)
    await db.commit()
    return SuccessResponse(success=True)
