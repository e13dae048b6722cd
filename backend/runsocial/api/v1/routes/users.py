"""
User Routes

Endpoints for the caller's profile, location, nearby runners and achievements.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from runsocial.api.deps import get_caller_id
from runsocial.db.session import get_async_db
from runsocial.features.achievements import AchievementEngine, UserAchievementResponse
from runsocial.features.users import (
    GeoProximityIndex,
    LocationUpdate,
    NearbyUserResponse,
    NotificationEmitter,
    ProfileUpdate,
    UserRepository,
    UserResponse,
)

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_me(
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_async_db),
):
    """Caller's profile with aggregates."""
    user = await UserRepository(db).require(caller_id)
    return UserResponse.model_validate(user)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    request: ProfileUpdate,
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Update the caller's profile and privacy flags.

    Only fields present in the body change; a taken username is a 409.
    """
    values = request.model_dump(exclude_unset=True, mode="json")
    user = await UserRepository(db).update_profile(caller_id, values)
    await db.commit()
    return UserResponse.model_validate(user)


@router.post("/me/location", response_model=UserResponse)
async def update_location(
    request: LocationUpdate,
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_async_db),
):
    user = await GeoProximityIndex(db).update_location(
        caller_id, request.latitude, request.longitude
    )
    return UserResponse.model_validate(user)


@router.get("/nearby", response_model=list[NearbyUserResponse])
async def nearby_users(
    latitude: float,
    longitude: float,
    radius: float = 5.0,
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_async_db),
):
    """Public runners within `radius` km, closest first."""
    found = await GeoProximityIndex(db).nearby(
        latitude, longitude, radius, exclude_user_id=caller_id
    )
    return [
        NearbyUserResponse(
            id=n.user.id,
            username=n.user.username,
            name=n.user.full_name,
            avatar_url=n.user.avatar_url,
            latitude=n.user.latitude,
            longitude=n.user.longitude,
            is_running=n.user.is_currently_running,
            distance=n.distance_km,
            total_distance=n.user.total_distance,
            level=n.user.level,
        )
        for n in found
    ]


@router.get("/{user_id}/achievements", response_model=list[UserAchievementResponse])
async def user_achievements(
    user_id: str,
    unlocked_only: bool = False,
    db: AsyncSession = Depends(get_async_db),
):
    engine = AchievementEngine(db, NotificationEmitter(db))
    rows = await engine.list_for_user(user_id, unlocked_only)
    return [UserAchievementResponse.model_validate(r) for r in rows]
