"""
HTTP tests for the v1 API.

The app runs on httpx's ASGI transport with the session dependency
pointed at the test database.
"""

import httpx
import pytest

from runsocial.db.session import get_async_db
from runsocial.main import app


@pytest.fixture
async def client(db):
    async def _override_db():
        yield db

    app.dependency_overrides[get_async_db] = _override_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def runner(make_user):
    return await make_user(username="runner")


def as_user(user):
    return {"X-User-Id": user.id}


# =============================================================================
# Runs
# =============================================================================

class TestRunEndpoints:
    """Run lifecycle over HTTP."""

    async def test_start_and_complete(self, client, runner):
        """Start, send coordinates, complete, then read the profile."""
        response = await client.post(
            "/api/v1/runs/start",
            json={"location": {"latitude": 43.2, "longitude": 76.9}},
            headers=as_user(runner),
        )
        assert response.status_code == 201
        run = response.json()
        assert run["state"] == "ACTIVE"

        response = await client.post(
            f"/api/v1/runs/{run['id']}/coordinates",
            json={"coordinates": [
                {"latitude": 43.201, "longitude": 76.9, "timestamp": "2026-10-18T07:00:05Z"},
                {"latitude": 43.202, "longitude": 76.9, "timestamp": "2026-10-18T07:00:10Z"},
            ]},
            headers=as_user(runner),
        )
        assert response.json() == {"success": True, "count": 2}

        response = await client.post(
            f"/api/v1/runs/{run['id']}/complete",
            json={"distance": 5.0, "duration": 1800, "splits": [{"km": 1, "time": 360, "pace": 6.0}]},
            headers=as_user(runner),
        )
        assert response.status_code == 200
        assert response.json()["state"] == "COMPLETED"
        assert response.json()["xp_earned"] == 50

        me = (await client.get("/api/v1/users/me", headers=as_user(runner))).json()
        assert me["total_distance"] == 5.0
        assert me["total_runs"] == 1
        assert me["xp"] == 50
        assert me["is_currently_running"] is False

        detail = (await client.get(f"/api/v1/runs/{run['id']}")).json()
        assert len(detail["coordinates"]) == 3
        assert [s["km"] for s in detail["splits"]] == [1]

    async def test_delete(self, client, runner):
        run = (await client.post("/api/v1/runs/start", json={}, headers=as_user(runner))).json()

        response = await client.delete(f"/api/v1/runs/{run['id']}", headers=as_user(runner))
        assert response.json() == {"success": True}

        response = await client.get(f"/api/v1/runs/{run['id']}")
        assert response.status_code == 404


# =============================================================================
# Error mapping
# =============================================================================

class TestErrorMapping:
    """Engine errors map to status codes with an error/detail body."""

    async def test_not_found(self, client, runner):
        response = await client.post("/api/v1/runs/missing/pause", headers=as_user(runner))
        assert response.status_code == 404
        assert response.json()["error"] == "NotFoundError"

    async def test_other_users_run_is_not_found(self, client, runner, make_user):
        run = (await client.post("/api/v1/runs/start", json={}, headers=as_user(runner))).json()
        other = await make_user(username="other")

        response = await client.post(f"/api/v1/runs/{run['id']}/pause", headers=as_user(other))
        assert response.status_code == 404

    async def test_invalid_state(self, client, runner):
        run = (await client.post("/api/v1/runs/start", json={}, headers=as_user(runner))).json()
        await client.post(f"/api/v1/runs/{run['id']}/complete", json={"distance": 1.0}, headers=as_user(runner))

        response = await client.post(
            f"/api/v1/runs/{run['id']}/complete", json={"distance": 1.0}, headers=as_user(runner)
        )
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidStateError"

    async def test_engine_validation(self, client, runner):
        response = await client.get(
            "/api/v1/users/nearby",
            params={"latitude": 43.2, "longitude": 76.9, "radius": 100},
            headers=as_user(runner),
        )
        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"

    async def test_bad_page_size(self, client, runner):
        response = await client.get("/api/v1/runs", params={"limit": 0}, headers=as_user(runner))
        assert response.status_code == 422

    async def test_missing_caller_header(self, client):
        response = await client.post("/api/v1/runs/start", json={})
        assert response.status_code == 422


# =============================================================================
# Leaderboard and achievements
# =============================================================================

class TestSocialEndpoints:

    async def test_leaderboard_and_rank(self, client, make_user):
        leader = await make_user(username="leader", total_distance=20.0)
        second = await make_user(username="second", total_distance=5.0)

        board = (await client.get(
            "/api/v1/leaderboard", params={"metric": "distance", "period": "all"}
        )).json()
        assert board["period"] == "all"
        assert [e["rank"] for e in board["entries"]][:2] == [1, 2]
        assert [e["value"] for e in board["entries"]][:2] == [20.0, 5.0]

        mine = (await client.get("/api/v1/leaderboard/my-rank", headers=as_user(second))).json()
        assert mine["rank"] == 2

    async def test_leaderboard_defaults_to_this_week(self, client, runner, make_user):
        """Lifetime totals do not count toward the weekly board."""
        await make_user(username="veteran", total_distance=500.0)
        run = (await client.post("/api/v1/runs/start", json={}, headers=as_user(runner))).json()
        await client.post(f"/api/v1/runs/{run['id']}/complete", json={"distance": 3.0}, headers=as_user(runner))

        board = (await client.get("/api/v1/leaderboard")).json()
        assert board["period"] == "week"
        top = board["entries"][0]
        assert (top["username"], top["value"]) == ("runner", 3.0)

    async def test_leaderboard_rejects_unknown_period(self, client):
        response = await client.get("/api/v1/leaderboard", params={"period": "decade"})
        assert response.status_code == 422

    async def test_achievements_after_run(self, client, runner, make_achievement):
        await make_achievement("First Steps", "TOTAL_RUNS", 1, 50)
        run = (await client.post("/api/v1/runs/start", json={}, headers=as_user(runner))).json()
        await client.post(f"/api/v1/runs/{run['id']}/complete", json={"distance": 2.0}, headers=as_user(runner))

        rows = (await client.get(
            f"/api/v1/users/{runner.id}/achievements", params={"unlocked_only": True}
        )).json()
        assert len(rows) == 1
        assert rows[0]["unlocked_at"] is not None

        unread = (await client.get("/api/v1/notifications/unread-count", headers=as_user(runner))).json()
        assert unread["count"] >= 2


# =============================================================================
# Profile and notifications
# =============================================================================

class TestProfileAndNotificationEndpoints:

    async def test_patch_profile(self, client, runner):
        response = await client.patch(
            "/api/v1/users/me",
            json={"full_name": "Road Runner", "is_location_public": True},
            headers=as_user(runner),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["full_name"] == "Road Runner"
        assert body["is_location_public"] is True
        assert body["username"] == "runner"

    async def test_patch_taken_username(self, client, runner, make_user):
        await make_user(username="taken")
        response = await client.patch(
            "/api/v1/users/me", json={"username": "taken"}, headers=as_user(runner)
        )
        assert response.status_code == 409
        assert response.json()["error"] == "ConflictError"

    async def test_patch_bad_username_shape(self, client, runner):
        """Usernames are 3-30 letters, digits or underscores."""
        response = await client.patch(
            "/api/v1/users/me", json={"username": "no spaces!"}, headers=as_user(runner)
        )
        assert response.status_code == 422

    async def test_patch_avatar_url(self, client, runner):
        response = await client.patch(
            "/api/v1/users/me",
            json={"avatar_url": "https://img.example.com/me.jpg"},
            headers=as_user(runner),
        )
        assert response.json()["avatar_url"] == "https://img.example.com/me.jpg"

    async def test_delete_notifications(self, client, runner):
        """Delete one, then clear the rest."""
        for _ in range(2):
            run = (await client.post("/api/v1/runs/start", json={}, headers=as_user(runner))).json()
            await client.post(
                f"/api/v1/runs/{run['id']}/complete", json={"distance": 1.0}, headers=as_user(runner)
            )

        feed = (await client.get("/api/v1/notifications", headers=as_user(runner))).json()
        assert len(feed["notifications"]) == 2
        first = feed["notifications"][0]["id"]

        response = await client.delete(f"/api/v1/notifications/{first}", headers=as_user(runner))
        assert response.json() == {"success": True}
        response = await client.delete(f"/api/v1/notifications/{first}", headers=as_user(runner))
        assert response.status_code == 404

        response = await client.delete("/api/v1/notifications", headers=as_user(runner))
        assert response.json() == {"success": True}
        feed = (await client.get("/api/v1/notifications", headers=as_user(runner))).json()
        assert feed["notifications"] == []
        assert feed["unread_count"] == 0
