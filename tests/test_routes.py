"""Integration tests for the HTTP routes."""

from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from conftest import build_test_context, enable_bnet
from guild_site.auth.bnet import BnetProfile, BnetStrategy
from guild_site.core.config import Settings
from guild_site.main import create_app
from guild_site.services.guild_service import GuildService


@pytest.fixture
def context():
    return build_test_context(Settings(_env_file=None, environment="development", session_secret="test-secret"))


@pytest.fixture
def client(context):
    with TestClient(create_app(context)) as test_client:
        yield test_client


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestGuildEndpoints:
    """Tests for the guild data endpoints."""

    def test_guild(self, client: TestClient) -> None:
        response = client.get("/api/guild")

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Guttakrutt"
        assert body["realm"] == "Tarren Mill"
        assert body["serverRegion"] == "eu"
        assert "memberCount" in body

    def test_roster_falls_back_to_static_roster(self, client: TestClient) -> None:
        response = client.get("/api/roster")

        assert response.status_code == 200
        body = response.json()
        assert body["apiStatus"] == "Connected"
        assert len(body["characters"]) == 12
        first = body["characters"][0]
        assert first["name"] == "Truedream"
        assert first["className"] == "Warrior"
        assert first["rankName"] == "Guild Master"
        assert body["lastUpdated"].startswith("20")

        assert client.get("/api/guild").json()["memberCount"] == 12

    def test_raid_progress(self, client: TestClient) -> None:
        body = client.get("/api/raid-progress").json()

        progress = {p["name"]: p for p in body["progresses"]}
        assert progress["Nerub-ar Palace"]["bossesDefeated"] == 7
        assert progress["Liberation of Undermine"]["worldRank"] == 68
        assert body["apiStatus"] == "Connected"

    def test_raid_bosses_defaults(self, client: TestClient) -> None:
        body = client.get("/api/raid-bosses").json()

        assert body["difficulty"] == "mythic"
        assert len(body["bosses"]) == 8
        assert body["bosses"][0]["raidName"] == "Nerub-ar Palace"
        assert body["bosses"][-1]["name"] == "Queen Ansurek"
        assert body["bosses"][-1]["status"] == "in_progress"

    def test_raid_bosses_heroic(self, client: TestClient) -> None:
        body = client.get("/api/raid-bosses", params={"raid": "Liberation of Undermine", "difficulty": "heroic"}).json()

        assert body["difficulty"] == "heroic"
        assert {boss["status"] for boss in body["bosses"]} == {"defeated"}

    def test_invalid_difficulty(self, client: TestClient) -> None:
        assert client.get("/api/raid-bosses", params={"difficulty": "impossible"}).status_code == 422

    def test_failure_envelope(self, client: TestClient) -> None:
        with patch.object(GuildService, "get_roster", new=AsyncMock(side_effect=RuntimeError("db down"))):
            response = client.get("/api/roster")

        assert response.status_code == 500
        assert response.json() == {
            "message": "Failed to fetch guild roster",
            "apiStatus": "Disconnected",
            "characters": [],
        }

    def test_raid_bosses_failure_envelope(self, client: TestClient) -> None:
        with patch.object(GuildService, "get_raid_bosses", new=AsyncMock(side_effect=RuntimeError("db down"))):
            response = client.get("/api/raid-bosses")

        assert response.status_code == 500
        assert response.json()["bosses"] == []


class TestPages:
    """Tests for the rendered pages."""

    def test_home_page(self, client: TestClient) -> None:
        response = client.get("/")

        assert response.status_code == 200
        html = response.text
        assert "Guttakrutt" in html
        assert "Truedream" in html
        assert "Queen Ansurek" in html
        assert 'action="/cookie-consent"' in html
        assert "/auth-bnet-direct.php" in html

    def test_home_page_after_consent(self, client: TestClient) -> None:
        client.cookies.set("cookie-consent", "accepted")
        assert 'action="/cookie-consent"' not in client.get("/").text

    def test_home_page_in_norwegian(self, client: TestClient) -> None:
        html = client.get("/", headers={"Accept-Language": "nb-NO,nb;q=0.9"}).text
        assert "Medlemmer" in html
        assert '<html lang="no">' in html

    def test_accept_cookies(self, client: TestClient) -> None:
        response = client.post("/cookie-consent", follow_redirects=False)

        assert response.status_code == 303
        assert response.cookies.get("cookie-consent") == "accepted"

    def test_change_language(self, client: TestClient) -> None:
        response = client.get("/language/nn", follow_redirects=False)

        assert response.status_code == 303
        assert response.cookies.get("language") == "no"

    def test_change_language_unsupported(self, client: TestClient) -> None:
        assert client.get("/language/xx", follow_redirects=False).status_code == 400

    def test_production_hides_test_buttons(self) -> None:
        context = build_test_context(Settings(_env_file=None, environment="production", session_secret="prod-secret"))
        with TestClient(create_app(context)) as client:
            assert "/auth-bnet-direct.php" not in client.get("/").text


class TestAuthRoutes:
    """Tests for the Battle.net login routes."""

    @pytest.fixture
    def bnet_client(self, context):
        with TestClient(create_app(enable_bnet(context))) as test_client:
            yield test_client

    def test_login_not_configured(self, client: TestClient) -> None:
        assert client.get("/api/auth/login", follow_redirects=False).status_code == 503

    def test_user_requires_session(self, client: TestClient) -> None:
        assert client.get("/api/auth/user").status_code == 401

    def test_login_redirects_with_signed_state(self, bnet_client: TestClient) -> None:
        for path in ("/api/auth/login", "/auth-bnet-direct.php"):
            response = bnet_client.get(path, follow_redirects=False)
            assert response.status_code == 302
            location = urlparse(response.headers["location"])
            assert location.netloc == "oauth.battle.net"
            assert parse_qs(location.query)["state"] == [response.cookies.get("bnet_state")]

    def test_full_login_flow(self, bnet_client: TestClient) -> None:
        login = bnet_client.get("/api/auth/login", follow_redirects=False)
        state = parse_qs(urlparse(login.headers["location"]).query)["state"][0]

        tokens = {"access_token": "at", "refresh_token": "rt", "expires_in": 3600}
        profile = BnetProfile(id="12345", battletag="Kraken#1234", region="eu")
        with patch.object(BnetStrategy, "authenticate", new=AsyncMock(return_value=(tokens, profile, None))):
            callback = bnet_client.get(
                "/api/auth/bnet/callback", params={"code": "abc", "state": state}, follow_redirects=False
            )

        assert callback.status_code == 302
        assert callback.headers["location"] == "/"
        assert callback.cookies.get("guild_session")

        user = bnet_client.get("/api/auth/user")
        assert user.status_code == 200
        assert user.json()["battletag"] == "Kraken#1234"
        assert user.json()["battleNetId"] == "12345"
        assert user.json()["isOfficer"] is False
        assert "accessToken" not in user.json()

        bnet_client.get("/api/auth/logout", follow_redirects=False)
        assert bnet_client.get("/api/auth/user").status_code == 401

    def test_callback_rejects_forged_state(self, bnet_client: TestClient) -> None:
        bnet_client.get("/api/auth/login", follow_redirects=False)

        with patch.object(BnetStrategy, "authenticate", new=AsyncMock()) as authenticate:
            response = bnet_client.get(
                "/api/auth/bnet/callback", params={"code": "abc", "state": "forged"}, follow_redirects=False
            )

        assert response.headers["location"] == "/?login=failed"
        authenticate.assert_not_awaited()

    def test_tampered_session_cookie(self, bnet_client: TestClient) -> None:
        bnet_client.cookies.set("guild_session", "1.forged.signature")
        assert bnet_client.get("/api/auth/user").status_code == 401
