"""
Inkwell Backend - HTTP API Tests
=================================

What:  Exercises the routers, auth dependency, and exception handlers
       through an httpx AsyncClient bound to the ASGI app.

Test Strategy:
    ✅ Register → login → create → read → edit → delete over HTTP
    ✅ Protected routes answer 401 without a valid token
    ✅ Every error uses the {"error", "message", "request_id"} envelope
    ✅ Uploaded files are served back under /uploads
"""

import uuid

import pytest

DESCRIPTION = "Notes from a long walk along the coast."
PNG = b"\x89PNG\r\n\x1a\n" + b"0" * 128


async def register_and_login(client, name="Ada Writer", email="ada@example.com", password="secret123"):
    response = await client.post(
        "/api/users/register",
        json={"name": name, "email": email, "password": password, "password2": password},
    )
    assert response.status_code == 201

    response = await client.post("/api/users/login", json={"email": email, "password": password})
    assert response.status_code == 200
    body = response.json()
    return body["id"], {"Authorization": f"Bearer {body['token']}"}


async def create_post(client, headers, title="Coastline", category="Travel", filename="coast.png"):
    return await client.post(
        "/api/posts",
        data={"title": title, "category": category, "description": DESCRIPTION},
        files={"thumbnail": (filename, PNG, "image/png")},
        headers=headers,
    )


class TestUsersApi:

    @pytest.mark.asyncio
    async def test_register_message(self, test_client):
        response = await test_client.post(
            "/api/users/register",
            json={"name": "Ada", "email": "Ada@Example.com", "password": "secret123", "password2": "secret123"},
        )
        assert response.status_code == 201
        assert response.json() == {"message": "New user ada@example.com registered."}

    @pytest.mark.asyncio
    async def test_login_failure_envelope(self, test_client):
        response = await test_client.post(
            "/api/users/login",
            json={"email": "nobody@example.com", "password": "secret123"},
        )
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "unprocessable"
        assert body["message"] == "Invalid credentials."
        assert body["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_profile_is_public_and_hides_password(self, test_client):
        user_id, _ = await register_and_login(test_client)

        response = await test_client.get(f"/api/users/{user_id}")
        assert response.status_code == 200
        assert response.json()["email"] == "ada@example.com"
        assert "password" not in response.json()

    @pytest.mark.asyncio
    async def test_authors_listing(self, test_client):
        await register_and_login(test_client)
        await register_and_login(test_client, name="Bo", email="bo@example.com")

        response = await test_client.get("/api/users/authors")
        assert response.status_code == 200
        assert {a["name"] for a in response.json()} == {"Ada Writer", "Bo"}

    @pytest.mark.asyncio
    async def test_change_avatar_and_serve_it(self, test_client):
        _, headers = await register_and_login(test_client)

        response = await test_client.post(
            "/api/users/change-avatar",
            files={"avatar": ("me.png", PNG, "image/png")},
            headers=headers,
        )
        assert response.status_code == 200
        avatar = response.json()["avatar"]

        served = await test_client.get(f"/uploads/{avatar}")
        assert served.status_code == 200
        assert served.content == PNG

    @pytest.mark.asyncio
    async def test_edit_user_accepts_camel_case_fields(self, test_client):
        _, headers = await register_and_login(test_client)

        response = await test_client.post(
            "/api/users/edit-user",
            json={
                "name": "Ada L.",
                "email": "ada@example.com",
                "currentPassword": "secret123",
                "newPassword": "changed1",
                "confirmNewPassword": "changed1",
            },
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Ada L."

        login = await test_client.post(
            "/api/users/login", json={"email": "ada@example.com", "password": "changed1"}
        )
        assert login.status_code == 200


class TestPostsApi:

    @pytest.mark.asyncio
    async def test_post_lifecycle(self, test_client):
        user_id, headers = await register_and_login(test_client)

        created = await create_post(test_client, headers)
        assert created.status_code == 201
        post = created.json()
        assert post["creator"] == user_id

        profile = await test_client.get(f"/api/users/{user_id}")
        assert profile.json()["posts"] == 1

        fetched = await test_client.get(f"/api/posts/{post['id']}")
        assert fetched.json()["title"] == "Coastline"

        edited = await test_client.patch(
            f"/api/posts/{post['id']}",
            data={"title": "Cliffs", "category": "Travel", "description": DESCRIPTION},
            headers=headers,
        )
        assert edited.status_code == 200
        assert edited.json()["title"] == "Cliffs"
        assert edited.json()["thumbnail"] == post["thumbnail"]

        deleted = await test_client.delete(f"/api/posts/{post['id']}", headers=headers)
        assert deleted.status_code == 200
        assert deleted.json() == {"message": f"Post {post['id']} deleted successfully."}

        profile = await test_client.get(f"/api/users/{user_id}")
        assert profile.json()["posts"] == 0

        gone = await test_client.get(f"/uploads/{post['thumbnail']}")
        assert gone.status_code == 404

    @pytest.mark.asyncio
    async def test_listings(self, test_client):
        user_id, headers = await register_and_login(test_client)
        await create_post(test_client, headers, title="One", category="Travel")
        await create_post(test_client, headers, title="Two", category="Art")

        everything = await test_client.get("/api/posts")
        assert {p["title"] for p in everything.json()} == {"One", "Two"}

        art = await test_client.get("/api/posts/categories/Art")
        assert [p["title"] for p in art.json()] == ["Two"]

        mine = await test_client.get(f"/api/posts/users/{user_id}")
        assert len(mine.json()) == 2

    @pytest.mark.asyncio
    async def test_create_without_thumbnail(self, test_client):
        _, headers = await register_and_login(test_client)

        response = await test_client.post(
            "/api/posts",
            data={"title": "T", "category": "Art", "description": DESCRIPTION},
            headers=headers,
        )
        assert response.status_code == 422
        assert response.json()["message"] == "Fill in all the fields and choose thumbnail."

    @pytest.mark.asyncio
    async def test_non_creator_gets_403(self, test_client):
        _, owner = await register_and_login(test_client)
        _, intruder = await register_and_login(test_client, name="Bo", email="bo@example.com")
        post = (await create_post(test_client, owner)).json()

        response = await test_client.delete(f"/api/posts/{post['id']}", headers=intruder)
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"
        assert response.json()["message"] == "Post couldn't be deleted."

    @pytest.mark.asyncio
    async def test_malformed_and_missing_ids(self, test_client):
        malformed = await test_client.get("/api/posts/not-a-uuid")
        assert malformed.status_code == 400
        assert malformed.json()["message"] == "Post unavailable."

        missing = await test_client.get(f"/api/posts/{uuid.uuid4()}")
        assert missing.status_code == 404
        assert missing.json()["message"] == "Post not found."


class TestAuthAndErrors:

    @pytest.mark.asyncio
    async def test_missing_token(self, test_client):
        response = await test_client.post(
            "/api/posts",
            data={"title": "T", "category": "Art", "description": DESCRIPTION},
            files={"thumbnail": ("t.png", PNG, "image/png")},
        )
        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"
        assert response.json()["message"] == "Unauthorized. No token."
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_invalid_token(self, test_client):
        response = await test_client.delete(
            f"/api/posts/{uuid.uuid4()}",
            headers={"Authorization": "Bearer not.a.token"},
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Unauthorized. Invalid token."

    @pytest.mark.asyncio
    async def test_unknown_route(self, test_client):
        response = await test_client.get("/api/nope")
        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert body["message"] == "Not Found - /api/nope"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/api/posts", headers={"X-Request-ID": "abc12345"})
        assert response.headers["X-Request-ID"] == "abc12345"

    @pytest.mark.asyncio
    async def test_missing_upload(self, test_client):
        response = await test_client.get("/uploads/missing.png")
        assert response.status_code == 404
        assert response.json()["message"] == "File not found."

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestEditPostBodies:

    @pytest.mark.asyncio
    async def test_json_body_edit(self, test_client):
        _, headers = await register_and_login(test_client)
        post = (await create_post(test_client, headers)).json()

        response = await test_client.patch(
            f"/api/posts/{post['id']}",
            json={"title": "Harbour", "category": "Art", "description": DESCRIPTION},
            headers=headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Harbour"
        assert body["category"] == "Art"
        assert body["thumbnail"] == post["thumbnail"]

    @pytest.mark.asyncio
    async def test_json_body_with_missing_field(self, test_client):
        _, headers = await register_and_login(test_client)
        post = (await create_post(test_client, headers)).json()

        response = await test_client.patch(
            f"/api/posts/{post['id']}",
            json={"title": "Harbour", "description": DESCRIPTION},
            headers=headers,
        )
        assert response.status_code == 422
        assert response.json()["message"] == "Fill in all fields."

    @pytest.mark.asyncio
    async def test_multipart_edit_replaces_thumbnail(self, test_client):
        _, headers = await register_and_login(test_client)
        post = (await create_post(test_client, headers, filename="first.png")).json()

        response = await test_client.patch(
            f"/api/posts/{post['id']}",
            data={"title": "Harbour", "category": "Art", "description": DESCRIPTION},
            files={"thumbnail": ("second.jpg", PNG, "image/jpeg")},
            headers=headers,
        )
        assert response.status_code == 200
        thumbnail = response.json()["thumbnail"]
        assert thumbnail.startswith("second") and thumbnail.endswith(".jpg")

        assert (await test_client.get(f"/uploads/{post['thumbnail']}")).status_code == 404
        assert (await test_client.get(f"/uploads/{thumbnail}")).status_code == 200

    @pytest.mark.asyncio
    async def test_malformed_json_edit(self, test_client):
        _, headers = await register_and_login(test_client)
        post = (await create_post(test_client, headers)).json()

        for raw in ("{not json", "[1, 2, 3]"):
            response = await test_client.patch(
                f"/api/posts/{post['id']}",
                content=raw,
                headers={**headers, "Content-Type": "application/json"},
            )
            assert response.status_code == 422
            assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_long_text_fields_accepted(self, test_client):
        _, headers = await register_and_login(test_client, name="N" * 500)
        long_title = "T" * 5000
        long_category = "C" * 1000

        created = await create_post(test_client, headers, title=long_title, category=long_category)
        assert created.status_code == 201
        assert created.json()["title"] == long_title

        edited = await test_client.patch(
            f"/api/posts/{created.json()['id']}",
            json={"title": long_title + "!", "category": long_category, "description": DESCRIPTION},
            headers=headers,
        )
        assert edited.status_code == 200


class TestRequestValidation:

    @pytest.mark.asyncio
    async def test_malformed_json_envelope(self, test_client):
        response = await test_client.post(
            "/api/users/register",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["message"].startswith("Invalid request:")
        assert body["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_wrong_body_shape(self, test_client):
        response = await test_client.post("/api/users/login", json=["ada@example.com", "secret123"])
        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_malformed_request_id_replaced(self, test_client):
        response = await test_client.get("/api/posts", headers={"X-Request-ID": "bad id with spaces"})
        rid = response.headers["X-Request-ID"]
        assert rid != "bad id with spaces"
        assert len(rid) == 8
