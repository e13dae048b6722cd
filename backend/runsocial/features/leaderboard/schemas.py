"""
Leaderboard schemas.
"""

from typing import Optional

from pydantic import BaseModel


class LeaderboardEntryResponse(BaseModel):
    rank: int
    user_id: str
    username: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    value: float


class LeaderboardResponse(BaseModel):
    metric: str
    period: str
    entries: list[LeaderboardEntryResponse]
    next_cursor: Optional[str] = None


class MyRankResponse(BaseModel):
    rank: int
    total_distance: float
