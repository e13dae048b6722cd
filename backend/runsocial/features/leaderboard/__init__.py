"""
Leaderboard module.

Usage:
    from runsocial.features.leaderboard import LeaderboardService
"""
from .schemas import LeaderboardEntryResponse, LeaderboardResponse, MyRankResponse
from .service import LeaderboardService, LeaderboardEntry, UserRank

__all__ = [
    "LeaderboardService",
    "LeaderboardEntry",
    "UserRank",
    "LeaderboardEntryResponse",
    "LeaderboardResponse",
    "MyRankResponse",
]
