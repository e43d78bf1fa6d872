"""Tests for participant endpoints."""

import pytest

from factories import ParticipantRowFactory

pytestmark = pytest.mark.unit


class TestParticipantEndpoints:
    async def test_create(self, client):
        response = await client.post(
            "/api/participants",
            json={"name": "  John Doe  ", "email": "john@example.com"},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "John Doe"
        assert "-JOH-" in body["verification_id"]

    async def test_blank_name_is_422(self, client):
        response = await client.post("/api/participants", json={"name": " "})
        assert response.status_code == 422
        assert response.json() == {"detail": "Name is required"}

    async def test_missing_name_is_request_validation_error(self, client):
        response = await client.post("/api/participants", json={})
        assert response.status_code == 422
        assert response.json()["detail"] == "Invalid request"

    async def test_duplicate_email_is_409(self, client, store):
        store.seed("participants", ParticipantRowFactory(email="ada@example.com"))
        response = await client.post(
            "/api/participants", json={"name": "Ada", "email": "ada@example.com"}
        )
        assert response.status_code == 409

    async def test_bulk(self, client, store):
        store.seed("participants", ParticipantRowFactory(email="taken@example.com"))
        response = await client.post(
            "/api/participants/bulk",
            json={
                "participants": [
                    {"name": "Ada"},
                    {"name": "Bob", "email": "taken@example.com"},
                ]
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert body["success_count"] == 1
        assert body["duplicate_count"] == 1

    async def test_list_get_delete(self, client, store):
        row = store.seed("participants", ParticipantRowFactory(name="Ada"))

        listed = await client.get("/api/participants")
        fetched = await client.get(f"/api/participants/{row['id']}")
        deleted = await client.delete(f"/api/participants/{row['id']}")
        missing = await client.get(f"/api/participants/{row['id']}")

        assert [p["name"] for p in listed.json()] == ["Ada"]
        assert fetched.json()["verification_id"] == row["verification_id"]
        assert deleted.status_code == 204
        assert missing.status_code == 404
