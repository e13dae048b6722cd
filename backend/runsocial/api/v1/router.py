"""
API Router v1

Combines all route modules.
"""

from fastapi import APIRouter

from runsocial.api.v1.routes import runs, users, leaderboard, notifications

api_router = APIRouter()

api_router.include_router(runs.router, prefix="/runs", tags=["Runs"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(leaderboard.router, prefix="/leaderboard", tags=["Leaderboard"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
