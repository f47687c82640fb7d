from __future__ import annotations

import base64
from pathlib import Path
from typing import Any, cast

import pytest

from conftest import bearer, make_async_client, make_user
from easylist_backend.db import session_scope
from easylist_backend.repositories.users_repo import get_user_by_email
from easylist_backend.security import verify_password

JSONAPI = "application/vnd.api+json"


def _user_doc(**attributes: object) -> dict[str, object]:
    return {"data": {"type": "users", "attributes": attributes}}


@pytest.mark.anyio
async def test_register_creates_an_active_user_with_a_default_folder(db: Path):
    async with make_async_client() as client:
        r = await client.post(
            "/api/v1/users",
            json=_user_doc(name="Newbie", email="new@example.com", password="pa55word-long"),
        )
        assert r.status_code == 201
        assert r.headers["content-type"].startswith(JSONAPI)
        data = r.json()["data"]
        assert data["type"] == "users"
        assert r.headers["location"].endswith(f"/api/v1/users/{data['id']}")
        attrs = data["attributes"]
        assert attrs["name"] == "Newbie"
        assert attrs["email"] == "new@example.com"
        assert attrs["is_active"] is True
        assert attrs["version"] == 1
        assert "password" not in attrs
        assert "password_hash" not in attrs

    async with session_scope() as session:
        stored = await get_user_by_email(session, email="new@example.com")
    assert stored is not None
    assert verify_password("pa55word-long", stored.password_hash)


@pytest.mark.anyio
async def test_register_rejects_bad_input_and_duplicate_email(db: Path):
    _ = await make_user("taken@example.com")

    async with make_async_client() as client:
        r = await client.post(
            "/api/v1/users", json=_user_doc(name="", email="not-an-email", password="short")
        )
        assert r.status_code == 422
        errors = cast(list[dict[str, Any]], r.json()["errors"])
        assert {e["source"]["pointer"]: e["detail"] for e in errors} == {
            "/data/attributes/name": "must be provided",
            "/data/attributes/email": "must be a valid email address",
            "/data/attributes/password": "must be at least 8 bytes long",
        }

        r = await client.post(
            "/api/v1/users",
            json=_user_doc(name="Again", email="taken@example.com", password="pa55word-long"),
        )
        assert r.status_code == 422
        err = r.json()["errors"][0]
        assert err["source"]["pointer"] == "/data/attributes/email"
        assert err["detail"] == "a user with this email address already exists"

        r = await client.post(
            "/api/v1/users",
            json={
                "data": {
                    "type": "folders",
                    "attributes": {"name": "x", "email": "x@example.com", "password": "12345678"},
                }
            },
        )
        assert r.status_code == 422
        assert r.json()["errors"][0]["source"]["pointer"] == "/data/type"


@pytest.mark.anyio
async def test_my_shows_the_authenticated_user(db: Path):
    me = await make_user("me@example.com", name="Me")

    async with make_async_client() as client:
        r = await client.get("/api/v1/my")
        assert r.status_code == 401

        r = await client.get("/api/v1/my", headers=bearer(me.token))
        assert r.status_code == 200
        data = r.json()["data"]
        assert data["id"] == str(me.user.id)
        assert data["attributes"]["name"] == "Me"
        assert data["attributes"]["email"] == "me@example.com"


@pytest.mark.anyio
async def test_update_user_is_version_guarded(db: Path):
    me = await make_user("edit@example.com", name="Before")
    _ = await make_user("other@example.com")
    headers = bearer(me.token)
    url = f"/api/v1/users/{me.user.id}"

    async with make_async_client() as client:
        r = await client.patch(
            url, headers=headers, json=_user_doc(name="After", password="n3w-password", version=1)
        )
        assert r.status_code == 200
        attrs = r.json()["data"]["attributes"]
        assert attrs["name"] == "After"
        assert attrs["email"] == "edit@example.com"
        assert attrs["version"] == 2

        r = await client.patch(url, headers=headers, json=_user_doc(name="Stale", version=1))
        assert r.status_code == 409

        r = await client.patch(
            url, headers={**headers, "X-Expected-Version": "1"}, json=_user_doc(name="Stale")
        )
        assert r.status_code == 409

        r = await client.patch(url, headers=headers, json=_user_doc(email="other@example.com"))
        assert r.status_code == 422
        assert r.json()["errors"][0]["source"]["pointer"] == "/data/attributes/email"

        r = await client.get("/api/v1/my", headers=headers)
        assert r.json()["data"]["attributes"]["name"] == "After"
        assert r.json()["data"]["attributes"]["version"] == 2

    async with session_scope() as session:
        stored = await get_user_by_email(session, email="edit@example.com")
    assert stored is not None
    assert verify_password("n3w-password", stored.password_hash)


@pytest.mark.anyio
async def test_users_cannot_touch_other_accounts(db: Path):
    alice = await make_user("alice-account@example.com")
    bob = await make_user("bob-account@example.com")

    async with make_async_client() as client:
        r = await client.patch(
            f"/api/v1/users/{alice.user.id}",
            headers=bearer(bob.token),
            json=_user_doc(name="hijacked"),
        )
        assert r.status_code == 404

        r = await client.delete(f"/api/v1/users/{alice.user.id}", headers=bearer(bob.token))
        assert r.status_code == 404

        r = await client.get("/api/v1/my", headers=bearer(alice.token))
        assert r.status_code == 200
        assert r.json()["data"]["attributes"]["name"] == "Tester"


@pytest.mark.anyio
async def test_delete_user_removes_account_data_and_covers(db: Path):
    me = await make_user("leaving@example.com")
    headers = bearer(me.token)

    async with make_async_client() as client:
        r = await client.post(
            "/api/v1/lists",
            headers=headers,
            json={"data": {"type": "lists", "attributes": {"name": "L", "icon": "fa-l"}}},
        )
        list_id = int(r.json()["data"]["id"])
        r = await client.post(
            "/api/v1/items",
            headers=headers,
            json={
                "data": {
                    "type": "items",
                    "attributes": {
                        "list_id": list_id,
                        "name": "pic",
                        "file": base64.b64encode(b"cover").decode("ascii"),
                    },
                }
            },
        )
        cover = db / "storage" / r.json()["data"]["attributes"]["file"]
        assert cover.exists()

        r = await client.delete(f"/api/v1/users/{me.user.id}", headers=headers)
        assert r.status_code == 204

        # The token went with the account.
        r = await client.get("/api/v1/my", headers=headers)
        assert r.status_code == 401

    assert not cover.exists()
    async with session_scope() as session:
        assert await get_user_by_email(session, email="leaving@example.com") is None
