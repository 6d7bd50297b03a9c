import json
import uuid

from conftest import FakeStorage, auth_headers, create_account, make_png
from school_directory.main import app
from school_directory.models import UserRole
from school_directory.services.cloudinary_service import get_storage

SCHOOL_FORM = {
    "name": "Sai International School",
    "city": "Bhubaneswar",
    "district": "Khordha",
    "type": "Private",
    "board": "CBSE",
    "facilities": ["Library", "Swimming Pool"],
}


def school_form(images=None, **overrides):
    data = {"school": json.dumps({**SCHOOL_FORM, **overrides})}
    if images is not None:
        data["images"] = json.dumps(images)
    return data


def png_file(name="gate.png", content=None):
    return ("files", (name, content or make_png(), "image/png"))


class TestAccess:
    async def test_requires_login(self, client):
        response = await client.get("/api/admin/stats")
        assert response.status_code == 401

    async def test_requires_admin_role(self, client, user_headers):
        response = await client.get("/api/admin/stats", headers=user_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "Forbidden"


class TestDashboard:
    async def test_empty_stats(self, client, admin_headers):
        response = await client.get("/api/admin/stats", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {
            "total_schools": 0,
            "total_users": 1,
            "total_ratings": 0,
            "average_rating": None,
        }

    async def test_seed_is_idempotent(self, client, admin_headers):
        for _ in range(2):
            response = await client.post("/api/admin/seed", headers=admin_headers)
            assert response.json() == {"success": True, "cities": 6, "schools": 3}

        assert (await client.get("/api/schools")).json()["total_count"] == 3
        assert len((await client.get("/api/cities")).json()) == 6


class TestSaveSchool:
    async def test_create_with_images(self, client, admin_headers, storage):
        manifest = [
            {"kind": "existing", "url": "https://cdn.example.test/legacy.jpg", "image_type": "events"},
            {"kind": "new", "file_index": 0, "title": "Main gate", "image_type": None},
        ]
        response = await client.post(
            "/api/admin/schools",
            data=school_form(manifest),
            files=[png_file()],
            headers=admin_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Sai International School"
        assert [img["display_order"] for img in body["images"]] == [0, 1]
        assert body["images"][0]["image_url"] == "https://cdn.example.test/legacy.jpg"
        assert body["images"][1]["image_type"] == "general"
        assert body["images"][1]["title"] == "Main gate"
        assert len(storage.uploads) == 1
        key, _ = storage.uploads[0]
        assert key.startswith(f"{body['id']}/")
        assert key.endswith(".png")

    async def test_manifest_reuses_one_file(self, client, admin_headers, storage):
        manifest = [
            {"kind": "new", "file_index": 0, "image_type": "infrastructure"},
            {"kind": "new", "file_index": 0, "image_type": "events"},
        ]
        response = await client.post(
            "/api/admin/schools",
            data=school_form(manifest),
            files=[png_file()],
            headers=admin_headers,
        )

        assert response.status_code == 201
        images = response.json()["images"]
        assert [img["display_order"] for img in images] == [0, 1]
        assert [img["image_type"] for img in images] == ["infrastructure", "events"]
        assert len(storage.uploads) == 2
        assert storage.uploads[0][1] == storage.uploads[1][1]

    async def test_create_without_images(self, client, admin_headers):
        response = await client.post("/api/admin/schools", data=school_form(), headers=admin_headers)
        assert response.status_code == 201
        assert response.json()["images"] == []

    async def test_missing_school_field(self, client, admin_headers):
        response = await client.post("/api/admin/schools", data={"images": "[]"}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Missing school data"

    async def test_blank_required_field(self, client, admin_headers):
        response = await client.post("/api/admin/schools", data=school_form(name="  "), headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Please fill in all required fields"

    async def test_duplicate_name(self, client, admin_headers):
        await client.post("/api/admin/schools", data=school_form(), headers=admin_headers)
        response = await client.post("/api/admin/schools", data=school_form(), headers=admin_headers)
        assert response.status_code == 400
        assert "already exists" in response.json()["detail"]

    async def test_file_that_is_not_an_image(self, client, admin_headers):
        response = await client.post(
            "/api/admin/schools",
            data=school_form([{"kind": "new", "file_index": 0}]),
            files=[png_file(content=b"not really a png")],
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert "not a valid image" in response.json()["detail"]

    async def test_manifest_references_missing_file(self, client, admin_headers):
        response = await client.post(
            "/api/admin/schools",
            data=school_form([{"kind": "new", "file_index": 2}]),
            files=[png_file()],
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Missing image file"

    async def test_too_many_images_saves_nothing(self, client, admin_headers, storage):
        manifest = [{"kind": "existing", "url": f"https://cdn.example.test/{i}.jpg"} for i in range(21)]
        response = await client.post("/api/admin/schools", data=school_form(manifest), headers=admin_headers)

        assert response.status_code == 400
        assert "Maximum 20" in response.json()["detail"]
        assert storage.uploads == []
        assert (await client.get("/api/admin/schools", headers=admin_headers)).json() == []

    async def test_upload_failure_keeps_previous_gallery(self, client, admin_headers):
        created = await client.post(
            "/api/admin/schools",
            data=school_form([{"kind": "existing", "url": "https://cdn.example.test/keep.jpg"}]),
            headers=admin_headers,
        )
        school_id = created.json()["id"]

        failing = make_png(color=(1, 2, 3))
        app.dependency_overrides[get_storage] = lambda: FakeStorage(fail_on={failing})
        response = await client.put(
            f"/api/admin/schools/{school_id}",
            data=school_form([
                {"kind": "existing", "url": "https://cdn.example.test/keep.jpg"},
                {"kind": "new", "file_index": 0},
            ], city="Puri"),
            files=[png_file(content=failing)],
            headers=admin_headers,
        )

        assert response.status_code == 502
        body = response.json()
        assert body["position"] == 1
        assert body["retryable"] is True

        detail = (await client.get(f"/api/schools/{school_id}")).json()
        assert detail["city"] == "Bhubaneswar"
        assert [img["image_url"] for img in detail["images"]] == ["https://cdn.example.test/keep.jpg"]

    async def test_update_without_manifest_keeps_gallery(self, client, admin_headers):
        created = await client.post(
            "/api/admin/schools",
            data=school_form([{"kind": "existing", "url": "https://cdn.example.test/keep.jpg"}]),
            headers=admin_headers,
        )
        school_id = created.json()["id"]

        response = await client.put(
            f"/api/admin/schools/{school_id}", data=school_form(city="Puri"), headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["city"] == "Puri"
        assert len(response.json()["images"]) == 1

    async def test_replace_images_only(self, client, admin_headers):
        created = await client.post(
            "/api/admin/schools",
            data=school_form([{"kind": "existing", "url": "https://cdn.example.test/keep.jpg"}]),
            headers=admin_headers,
        )
        school_id = created.json()["id"]

        response = await client.put(
            f"/api/admin/schools/{school_id}/images", data={"images": "[]"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json() == []
        gallery = (await client.get(f"/api/schools/{school_id}/gallery")).json()
        assert gallery["is_empty"] is True

    async def test_update_unknown_school(self, client, admin_headers):
        response = await client.put(
            f"/api/admin/schools/{uuid.uuid4()}", data=school_form(), headers=admin_headers
        )
        assert response.status_code == 404


class TestDeleteSchool:
    async def test_delete_one(self, client, admin_headers):
        created = await client.post("/api/admin/schools", data=school_form(), headers=admin_headers)
        school_id = created.json()["id"]

        response = await client.delete(f"/api/admin/schools/{school_id}", headers=admin_headers)
        assert response.status_code == 200
        assert (await client.get(f"/api/schools/{school_id}")).status_code == 404

    async def test_delete_all_needs_confirmation(self, client, admin_headers):
        await client.post("/api/admin/seed", headers=admin_headers)

        response = await client.delete("/api/admin/schools", headers=admin_headers)
        assert response.status_code == 400

        response = await client.delete("/api/admin/schools", params={"confirm": "true"}, headers=admin_headers)
        assert response.json()["deleted"] == 3
        assert (await client.get("/api/schools")).json()["total_count"] == 0


class TestUsers:
    async def test_list_and_promote(self, client, db):
        admin = await create_account("admin@example.com", role=UserRole.ADMIN)
        user = await create_account("principal@example.com")
        headers = auth_headers(admin)

        body = (await client.get("/api/admin/users", headers=headers)).json()
        assert body["total_count"] == 2
        assert body["role_counts"] == {"admin": 1, "moderator": 0, "user": 1}

        response = await client.put(
            f"/api/admin/users/{user.id}/role", json={"role": "moderator"}, headers=headers
        )
        assert response.status_code == 200
        assert response.json()["role"] == "moderator"

        body = (await client.get("/api/admin/users", params={"search": "principal"}, headers=headers)).json()
        assert [u["email"] for u in body["users"]] == ["principal@example.com"]

    async def test_admin_cannot_demote_self(self, client, db):
        admin = await create_account("admin@example.com", role=UserRole.ADMIN)

        response = await client.put(
            f"/api/admin/users/{admin.id}/role", json={"role": "user"}, headers=auth_headers(admin)
        )
        assert response.status_code == 400
