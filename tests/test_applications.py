"""Tests for recruitment applications."""

import pytest
from fastapi.testclient import TestClient

from conftest import build_test_context, enable_bnet, login
from guild_site.auth.bnet import BnetProfile
from guild_site.core.config import Settings
from guild_site.main import create_app

OFFICER = BnetProfile(id="1", battletag="Truedream#1111", region="eu")
MEMBER = BnetProfile(id="2", battletag="Kraken#2222", region="eu")

APPLICATION = {
    "characterName": "Emberfall",
    "className": "Evoker",
    "specName": "Devastation",
    "realm": "Tarren Mill",
    "itemLevel": 668,
    "experience": "Cutting edge in the last three tiers",
    "availability": "Wednesday and Sunday evenings",
    "contactInfo": "emberfall#4321",
    "whyJoin": "Looking for a Mythic progression team",
}


@pytest.fixture
def client():
    settings = Settings(
        _env_file=None, environment="development", session_secret="test-secret", admin_battletags="Truedream#1111"
    )
    with TestClient(create_app(enable_bnet(build_test_context(settings)))) as test_client:
        yield test_client


def submit(client: TestClient, **overrides) -> dict:
    response = client.post("/api/applications", json=dict(APPLICATION, **overrides))
    assert response.status_code == 201
    return response.json()["application"]


class TestSubmitApplication:
    """Tests for the public submission endpoint."""

    def test_submit(self, client: TestClient) -> None:
        response = client.post("/api/applications", json=APPLICATION)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Application submitted successfully"
        assert body["application"]["characterName"] == "Emberfall"
        assert body["application"]["status"] == "pending"
        assert body["application"]["reviewedBy"] is None

    @pytest.mark.parametrize(
        "overrides",
        [
            {"characterName": ""},
            {"realm": "   "},
            {"itemLevel": -1},
            {"contactInfo": "x" * 201},
        ],
    )
    def test_invalid_fields(self, client: TestClient, overrides: dict) -> None:
        assert client.post("/api/applications", json=dict(APPLICATION, **overrides)).status_code == 422

    def test_missing_field(self, client: TestClient) -> None:
        body = {key: value for key, value in APPLICATION.items() if key != "whyJoin"}
        assert client.post("/api/applications", json=body).status_code == 422


class TestReviewApplications:
    """Tests for the officer review endpoints."""

    def test_officer_only(self, client: TestClient) -> None:
        application = submit(client)
        paths = ["/api/applications", f"/api/applications/{application['id']}",
                 f"/api/applications/{application['id']}/comments"]

        for path in paths:
            assert client.get(path).status_code == 401
        login(client, MEMBER)
        for path in paths:
            assert client.get(path).status_code == 403
        assert client.patch(
            f"/api/applications/{application['id']}/status", json={"status": "approved"}
        ).status_code == 403

    def test_list_and_filter(self, client: TestClient) -> None:
        first = submit(client)
        second = submit(client, characterName="Stonepaw")
        login(client, OFFICER)
        client.patch(f"/api/applications/{first['id']}/status", json={"status": "rejected"})

        listed = client.get("/api/applications").json()["applications"]
        assert [a["id"] for a in listed] == [second["id"], first["id"]]

        pending = client.get("/api/applications", params={"status": "pending"}).json()["applications"]
        assert [a["characterName"] for a in pending] == ["Stonepaw"]

    def test_get_unknown(self, client: TestClient) -> None:
        login(client, OFFICER)
        response = client.get("/api/applications/404")
        assert response.status_code == 404
        assert response.json()["message"] == "Application not found"

    def test_status_change_records_reviewer(self, client: TestClient) -> None:
        application = submit(client)
        login(client, OFFICER)
        officer_id = client.get("/api/auth/user").json()["id"]

        response = client.patch(
            f"/api/applications/{application['id']}/status",
            json={"status": "approved", "reviewNotes": "Strong logs"},
        )

        assert response.status_code == 200
        updated = response.json()["application"]
        assert response.json()["message"] == "Application status updated successfully"
        assert updated["status"] == "approved"
        assert updated["reviewedBy"] == officer_id
        assert updated["reviewNotes"] == "Strong logs"
        assert updated["reviewDate"] is not None

    def test_invalid_status(self, client: TestClient) -> None:
        application = submit(client)
        login(client, OFFICER)

        response = client.patch(f"/api/applications/{application['id']}/status", json={"status": "maybe"})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid status. Must be 'pending', 'approved', or 'rejected'."
        assert client.get(f"/api/applications/{application['id']}").json()["application"]["status"] == "pending"


class TestApplicationComments:
    """Tests for officer comments."""

    def test_add_and_list(self, client: TestClient) -> None:
        application = submit(client)
        login(client, OFFICER)
        path = f"/api/applications/{application['id']}/comments"

        first = client.post(path, json={"comment": "  Great parses  "})
        client.post(path, json={"comment": "Trial next week"})

        assert first.status_code == 201
        assert first.json()["message"] == "Comment added successfully"
        assert first.json()["comment"]["comment"] == "Great parses"
        comments = client.get(path).json()["comments"]
        assert [c["comment"] for c in comments] == ["Great parses", "Trial next week"]

    @pytest.mark.parametrize("comment", ["", "   "])
    def test_empty_comment(self, client: TestClient, comment: str) -> None:
        application = submit(client)
        login(client, OFFICER)

        response = client.post(f"/api/applications/{application['id']}/comments", json={"comment": comment})

        assert response.status_code == 400
        assert response.json()["message"] == "Comment cannot be empty"

    def test_comment_on_unknown_application(self, client: TestClient) -> None:
        login(client, OFFICER)
        response = client.post("/api/applications/404/comments", json={"comment": "Hello"})
        assert response.status_code == 404
