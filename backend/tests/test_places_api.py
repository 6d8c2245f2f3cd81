"""
PlaceShare Backend — Places API Tests
=======================================

What:  End-to-end HTTP tests through the FastAPI app (httpx + ASGITransport).
How:   Per-test SQLite database via the test_client fixture; images are
       written to the configured UPLOAD_ROOT temp directory.
"""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from app.config import settings
from app.repositories.entity_store import EntityStore
from app.services.file_service import file_service

COORDS = json.dumps({"lat": 40.7484405, "lng": -73.9878584})


def _form(**overrides):
    data = {
        "title": "Empire State Building",
        "description": "One of the most famous sky scrapers in the world!",
        "address": "20 W 34th St, New York, NY 10001",
        "coordinates": COORDS,
    }
    data.update(overrides)
    return data


def _image(sample_image_bytes, content_type="image/png", filename="empire.png"):
    return {"image": (filename, sample_image_bytes, content_type)}


def _uploaded_files():
    root = Path(settings.upload_root)
    return set(root.iterdir()) if root.exists() else set()


async def _post_place(client, headers, sample_image_bytes, **overrides):
    return await client.post(
        "/api/places",
        data=_form(**overrides),
        files=_image(sample_image_bytes),
        headers=headers,
    )


class TestPlaceLifecycleScenario:

    @pytest.mark.asyncio
    async def test_create_foreign_delete_owner_delete(
        self, test_client, make_user, auth_headers, sample_image_bytes
    ):
        owner = await make_user("Alice")
        other = await make_user("Bob")

        # Create
        response = await _post_place(test_client, auth_headers(owner.id), sample_image_bytes)
        assert response.status_code == 201
        place = response.json()["place"]
        assert place["creator"] == str(owner.id)
        assert place["location"] == {"lat": 40.7484405, "lng": -73.9878584}
        assert Path(place["image"]).exists()

        users = (await test_client.get("/api/users")).json()["users"]
        assert {u["id"]: u["places"] for u in users}[str(owner.id)] == [place["id"]]

        # Delete by another user
        response = await test_client.delete(f"/api/places/{place['id']}", headers=auth_headers(other.id))
        assert response.status_code == 401
        assert response.json()["error"] == "not_authorized"
        assert (await test_client.get(f"/api/places/{place['id']}")).status_code == 200

        # Delete by owner
        response = await test_client.delete(f"/api/places/{place['id']}", headers=auth_headers(owner.id))
        assert response.status_code == 200
        assert response.json() == {"message": "Deleted Place."}

        response = await test_client.get(f"/api/places/{place['id']}")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

        response = await test_client.get(f"/api/places/user/{owner.id}")
        assert response.status_code == 200
        assert response.json()["places"] == []

        users = (await test_client.get("/api/users")).json()["users"]
        assert {u["id"]: u["places"] for u in users}[str(owner.id)] == []
        assert not Path(place["image"]).exists()


class TestCreatePlaceApi:

    @pytest.mark.asyncio
    async def test_requires_token(self, test_client, sample_image_bytes):
        before = _uploaded_files()

        response = await _post_place(test_client, {}, sample_image_bytes)

        assert response.status_code == 401
        assert response.json()["error"] == "not_authenticated"
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert _uploaded_files() == before

    @pytest.mark.asyncio
    async def test_invalid_coordinates_write_no_file(
        self, test_client, make_user, auth_headers, sample_image_bytes
    ):
        owner = await make_user("Alice")
        before = _uploaded_files()

        with patch.object(file_service, "store_file", new=AsyncMock()) as mock_store:
            response = await _post_place(
                test_client, auth_headers(owner.id), sample_image_bytes, coordinates='{"lat": "x", "lng": 1}',
            )

        mock_store.assert_not_awaited()
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"]["field"] == "coordinates"
        assert _uploaded_files() == before
        assert (await test_client.get(f"/api/places/user/{owner.id}")).json()["places"] == []

    @pytest.mark.asyncio
    async def test_out_of_range_coordinate_is_validation_error(
        self, test_client, make_user, auth_headers, sample_image_bytes
    ):
        owner = await make_user("Alice")
        huge = '{"lat": 1' + "0" * 400 + ', "lng": 2}'

        response = await _post_place(test_client, auth_headers(owner.id), sample_image_bytes, coordinates=huge)

        assert response.status_code == 422
        assert response.json()["details"]["field"] == "coordinates"

    @pytest.mark.asyncio
    async def test_unknown_owner_is_not_found(self, test_client, auth_headers, sample_image_bytes):
        before = _uploaded_files()

        response = await _post_place(test_client, auth_headers(uuid4()), sample_image_bytes)

        assert response.status_code == 404
        assert _uploaded_files() == before

    @pytest.mark.asyncio
    async def test_store_failure_is_generic_server_error(
        self, test_client, make_user, auth_headers, sample_image_bytes
    ):
        owner = await make_user("Alice")
        before = _uploaded_files()

        async def broken_save(store, entity):
            raise OperationalError("INSERT INTO places", {}, Exception("db-host-10.0.0.5 password rejected"))

        with patch.object(EntityStore, "save", broken_save):
            response = await _post_place(test_client, auth_headers(owner.id), sample_image_bytes)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert body["message"] == "Something went wrong, please try again later."
        assert "details" not in body
        assert "db-host" not in response.text
        assert _uploaded_files() == before
        assert (await test_client.get(f"/api/places/user/{owner.id}")).json()["places"] == []

    @pytest.mark.asyncio
    async def test_short_description_rejected(self, test_client, make_user, auth_headers, sample_image_bytes):
        owner = await make_user("Alice")

        response = await _post_place(test_client, auth_headers(owner.id), sample_image_bytes, description="tiny")

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_unsupported_image_type(self, test_client, make_user, auth_headers):
        owner = await make_user("Alice")

        response = await test_client.post(
            "/api/places",
            data=_form(),
            files=_image(b"GIF89a", content_type="image/gif", filename="anim.gif"),
            headers=auth_headers(owner.id),
        )

        assert response.status_code == 422
        assert response.json()["details"]["field"] == "image"

    @pytest.mark.asyncio
    async def test_uploaded_image_is_served(self, test_client, make_user, auth_headers, sample_image_bytes):
        owner = await make_user("Alice")
        place = (await _post_place(test_client, auth_headers(owner.id), sample_image_bytes)).json()["place"]

        response = await test_client.get(f"/uploads/images/{Path(place['image']).name}")

        assert response.status_code == 200
        assert response.content == sample_image_bytes


class TestUpdatePlaceApi:

    @pytest.mark.asyncio
    async def test_owner_updates(self, test_client, make_user, auth_headers, sample_image_bytes):
        owner = await make_user("Alice")
        place = (await _post_place(test_client, auth_headers(owner.id), sample_image_bytes)).json()["place"]

        response = await test_client.patch(
            f"/api/places/{place['id']}",
            json={"title": "Empire", "description": "Still very tall"},
            headers=auth_headers(owner.id),
        )

        assert response.status_code == 200
        updated = response.json()["place"]
        assert (updated["title"], updated["description"]) == ("Empire", "Still very tall")
        assert updated["address"] == place["address"]

    @pytest.mark.asyncio
    async def test_non_owner_rejected(self, test_client, make_user, auth_headers, sample_image_bytes):
        owner = await make_user("Alice")
        other = await make_user("Bob")
        place = (await _post_place(test_client, auth_headers(owner.id), sample_image_bytes)).json()["place"]

        response = await test_client.patch(
            f"/api/places/{place['id']}",
            json={"title": "Mine", "description": "Taken over"},
            headers=auth_headers(other.id),
        )

        assert response.status_code == 401
        assert response.json()["message"] == "You are not allowed to edit this place."
        fetched = (await test_client.get(f"/api/places/{place['id']}")).json()["place"]
        assert fetched["title"] == "Empire State Building"

    @pytest.mark.asyncio
    async def test_invalid_body(self, test_client, make_user, auth_headers):
        owner = await make_user("Alice")

        response = await test_client.patch(
            f"/api/places/{uuid4()}",
            json={"title": "", "description": "abc"},
            headers=auth_headers(owner.id),
        )

        assert response.status_code == 422
        fields = {e["field"] for e in response.json()["details"]["errors"]}
        assert fields == {"title", "description"}


class TestReadApi:

    @pytest.mark.asyncio
    async def test_list_for_user_without_places(self, test_client, make_user):
        owner = await make_user("Alice")

        response = await test_client.get(f"/api/places/user/{owner.id}")

        assert response.status_code == 200
        assert response.json()["places"] == []
        assert "message" in response.json()

    @pytest.mark.asyncio
    async def test_malformed_place_id(self, test_client):
        response = await test_client.get("/api/places/p1")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_delete_missing_place(self, test_client, make_user, auth_headers):
        owner = await make_user("Alice")
        response = await test_client.delete(f"/api/places/{uuid4()}", headers=auth_headers(owner.id))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_image_file(self, test_client):
        response = await test_client.get("/uploads/images/does-not-exist.png")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, test_client):
        response = await test_client.get(f"/api/places/{uuid4()}", headers={"X-Request-ID": "trace-123"})

        assert response.headers["X-Request-ID"] == "trace-123"
        assert response.json()["request_id"] == "trace-123"
