"""Integration tests for the officer-only admin routes."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import build_test_context, enable_bnet, login, raiderio_routes
from guild_site.auth.bnet import BnetProfile
from guild_site.core.config import Settings
from guild_site.main import create_app
from guild_site.services.refresh_service import RefreshService
from guild_site.services.storage import GuildStorage
from guild_site.utils.datetime_utils import hours_ago
from guild_site.utils.errors import DataNotFoundError

OFFICER = BnetProfile(id="1", battletag="Truedream#1111", region="eu")
MEMBER = BnetProfile(id="2", battletag="Kraken#2222", region="eu")


def _character_profiles(request: httpx.Request) -> httpx.Response:
    if request.url.params.get("name") == "Truedream":
        return httpx.Response(200, json={
            "name": "Truedream",
            "mythic_plus_scores_by_season": [{"season": "season-tww-2", "scores": {"all": 2950.0}}],
            "gear": {"item_level_equipped": 672},
        })
    return httpx.Response(404, json={"error": "Not Found"})


@pytest.fixture
def context():
    settings = Settings(
        _env_file=None, environment="development", session_secret="test-secret", admin_battletags="truedream#1111"
    )
    context = build_test_context(settings, handler=raiderio_routes({"characters/profile": _character_profiles}))
    return enable_bnet(context)


@pytest.fixture
def client(context):
    with TestClient(create_app(context)) as test_client:
        yield test_client


@pytest.fixture
def officer(client: TestClient) -> TestClient:
    login(client, OFFICER)
    return client


class TestOfficerAccess:
    """Tests for the officer gate."""

    @pytest.mark.parametrize(
        "method, path",
        [
            ("post", "/api/admin/refresh-guild-members"),
            ("post", "/api/admin/update-character-scores"),
            ("post", "/api/admin/refresh-data"),
            ("post", "/api/admin/refresh-all-data"),
            ("post", "/api/characters/1/update-scores"),
            ("get", "/api/admin/logs"),
            ("delete", "/api/admin/logs/cleanup"),
        ],
    )
    def test_anonymous_and_member_refused(self, client: TestClient, method: str, path: str) -> None:
        with patch.object(RefreshService, "refresh_guild_members", new=AsyncMock()) as refresh:
            assert getattr(client, method)(path).status_code == 401

            login(client, MEMBER)
            response = getattr(client, method)(path)
            assert response.status_code == 403
            assert response.json()["detail"] == "Officer access required"

        refresh.assert_not_awaited()

    def test_admin_battletag_grants_officer(self, officer: TestClient) -> None:
        user = officer.get("/api/auth/user").json()
        assert user["battletag"] == "Truedream#1111"
        assert user["isOfficer"] is True


class TestRefreshEndpoints:
    """Tests for the manual refresh endpoints."""

    def test_refresh_guild_members(self, officer: TestClient) -> None:
        results = {"added": 2, "updated": 1, "removed": 0}
        with patch.object(RefreshService, "refresh_guild_members", new=AsyncMock(return_value=results)):
            response = officer.post("/api/admin/refresh-guild-members")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["results"] == results

        logs = officer.get("/api/admin/logs", params={"operation": "guild_members_refresh"}).json()["logs"]
        assert logs[0]["status"] == "success"
        assert logs[0]["metadata"] == results

    def test_refresh_without_guild(self, officer: TestClient) -> None:
        missing = AsyncMock(side_effect=DataNotFoundError("Guild", "Guttakrutt"))
        with patch.object(RefreshService, "update_character_scores", new=missing):
            response = officer.post("/api/admin/update-character-scores")

        assert response.status_code == 404
        assert response.json()["message"] == "Guild not found"

    def test_refresh_data_uses_query(self, officer: TestClient) -> None:
        officer.get("/api/raid-bosses", params={"raid": "Nerub-ar Palace", "difficulty": "mythic"})

        response = officer.post("/api/admin/refresh-data", params={"raid": "Nerub-ar Palace", "difficulty": "mythic"})

        assert response.status_code == 200
        assert response.json()["bossCount"] == 8
        assert response.json()["progress"]["bossesDefeated"] == 7

    def test_refresh_all_reports_each_step(self, officer: TestClient) -> None:
        broken = AsyncMock(side_effect=RuntimeError("boom"))
        with patch.object(RefreshService, "refresh_guild_info", new=AsyncMock()), \
                patch.object(RefreshService, "refresh_guild_members", new=broken), \
                patch.object(RefreshService, "refresh_raid_progress", new=AsyncMock()), \
                patch.object(RefreshService, "refresh_raid_boss_data", new=AsyncMock(return_value=[])):
            response = officer.post("/api/admin/refresh-all-data")

        body = response.json()
        assert body["success"] is False
        assert body["results"]["guild"]["status"] == "success"
        assert body["results"]["roster"] == {"status": "error", "message": "boom"}
        assert body["results"]["raidBosses"]["status"] == "success"
        assert body["results"]["totalTimeMs"] >= 0

    def test_single_character_update(self, officer: TestClient) -> None:
        roster = officer.get("/api/roster").json()["characters"]
        ids = {c["name"]: c["id"] for c in roster}

        response = officer.post(f"/api/characters/{ids['Truedream']}/update-scores")
        assert response.status_code == 200
        assert response.json()["character"]["raiderIoScore"] == pytest.approx(2950.0)
        assert response.json()["character"]["itemLevel"] == 672

        response = officer.post(f"/api/characters/{ids['Spritney']}/update-scores")
        assert response.status_code == 404
        assert response.json()["message"] == "Failed to fetch character data from Raider.IO"

        response = officer.post("/api/characters/9999/update-scores")
        assert response.status_code == 404
        assert response.json()["message"] == "Character not found"


class TestLogEndpoints:
    """Tests for the operation log viewer and cleanup."""

    def _seed(self, client: TestClient, context, count: int, age_days: int = 0) -> None:
        async def seed():
            async with context.db.session() as session:
                storage = GuildStorage(session)
                for i in range(count):
                    await storage.create_web_log(
                        operation="raid_progress_refresh",
                        status="success" if i % 2 == 0 else "error",
                        details=f"run {i}",
                        timestamp=hours_ago(age_days * 24 + i),
                    )
        client.portal.call(seed)

    def test_pagination(self, officer: TestClient, context) -> None:
        self._seed(officer, context, 5)

        body = officer.get("/api/admin/logs", params={"limit": 2, "offset": 2, "operation": "raid_progress_refresh"}).json()

        assert body["totalCount"] == 5
        assert body["currentPage"] == 2
        assert body["totalPages"] == 3
        assert [log["details"] for log in body["logs"]] == ["run 2", "run 3"]

    def test_status_filter(self, officer: TestClient, context) -> None:
        self._seed(officer, context, 5)

        body = officer.get("/api/admin/logs", params={"status": "error"}).json()

        assert body["totalCount"] == 2
        assert {log["status"] for log in body["logs"]} == {"error"}

    def test_invalid_limit(self, officer: TestClient) -> None:
        assert officer.get("/api/admin/logs", params={"limit": 0}).status_code == 422

    def test_cleanup(self, officer: TestClient, context) -> None:
        self._seed(officer, context, 2)
        self._seed(officer, context, 3, age_days=120)

        response = officer.delete("/api/admin/logs/cleanup", params={"days": 90})
        assert response.json() == {"success": True, "message": "Deleted 3 logs older than 90 days"}
        assert officer.get("/api/admin/logs", params={"operation": "raid_progress_refresh"}).json()["totalCount"] == 2

    def test_cleanup_rejects_zero_days(self, officer: TestClient) -> None:
        response = officer.delete("/api/admin/logs/cleanup", params={"days": 0})
        assert response.status_code == 400
        assert response.json()["message"] == "Days parameter must be at least 1"
