from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from conftest import bearer, make_async_client, make_user
from easylist_backend.mailer import get_mailer
from easylist_backend.main import app


def _list_doc(**attributes: object) -> dict[str, object]:
    return {"data": {"type": "lists", "attributes": attributes}}


def _item_doc(**attributes: object) -> dict[str, object]:
    return {"data": {"type": "items", "attributes": attributes}}


@dataclass
class FakeMailer:
    sent: list[tuple[str, str, dict[str, Any]]] = field(default_factory=list)

    async def send(self, recipient: str, template_name: str, data: dict[str, Any]) -> None:
        self.sent.append((recipient, template_name, data))


@pytest.mark.anyio
async def test_list_defaults_to_the_first_folder(db: Path):
    me = await make_user("lists@example.com")
    headers = bearer(me.token)

    async with make_async_client() as client:
        r = await client.post(
            "/api/v1/lists", headers=headers, json=_list_doc(name="Food", icon="fa-f")
        )
        assert r.status_code == 201
        data = r.json()["data"]
        assert data["attributes"]["folder_id"] == me.folder.id
        assert data["attributes"]["order"] == 1
        assert data["attributes"]["is_public"] is False
        assert r.headers["location"].endswith(f"/api/v1/lists/{data['id']}")

        r = await client.post(
            "/api/v1/lists", headers=headers, json=_list_doc(name="Drinks", icon="fa-d")
        )
        assert r.json()["data"]["attributes"]["order"] == 2


@pytest.mark.anyio
async def test_list_in_unknown_folder_is_rejected(db: Path):
    me = await make_user("nofolder@example.com")
    other = await make_user("otherfolder@example.com")

    async with make_async_client() as client:
        for folder_id in (987654, other.folder.id):
            r = await client.post(
                "/api/v1/lists",
                headers=bearer(me.token),
                json=_list_doc(name="x", icon="fa-x", folder_id=folder_id),
            )
            assert r.status_code == 422
            err = r.json()["errors"][0]
            assert err["source"]["pointer"] == "/data/attributes/folder_id"
            assert err["detail"] == "this folder does not exists"


@pytest.mark.anyio
async def test_public_link_toggle(db: Path):
    me = await make_user("share@example.com")
    headers = bearer(me.token)

    async with make_async_client() as client:
        r = await client.post(
            "/api/v1/lists", headers=headers, json=_list_doc(name="Trip", icon="fa-t")
        )
        list_id = r.json()["data"]["id"]

        r = await client.patch(
            f"/api/v1/lists/{list_id}", headers=headers, json=_list_doc(is_public=True, version=1)
        )
        assert r.status_code == 200
        attrs = r.json()["data"]["attributes"]
        assert attrs["is_public"] is True
        assert len(attrs["link"]) == 36
        assert attrs["version"] == 2

        r = await client.patch(
            f"/api/v1/lists/{list_id}", headers=headers, json=_list_doc(is_public=False, version=2)
        )
        attrs = r.json()["data"]["attributes"]
        assert attrs["is_public"] is False
        assert attrs.get("link") is None
        assert attrs["version"] == 3


@pytest.mark.anyio
async def test_move_list_to_another_folder(db: Path):
    me = await make_user("move@example.com")
    headers = bearer(me.token)

    async with make_async_client() as client:
        r = await client.post(
            "/api/v1/folders",
            headers=headers,
            json={"data": {"type": "folders", "attributes": {"name": "Other", "icon": "fa-o"}}},
        )
        other_id = int(r.json()["data"]["id"])

        r = await client.post(
            "/api/v1/lists", headers=headers, json=_list_doc(name="L", icon="fa-l")
        )
        list_id = r.json()["data"]["id"]

        r = await client.patch(
            f"/api/v1/lists/{list_id}", headers=headers, json=_list_doc(folder_id=other_id)
        )
        assert r.status_code == 200
        assert r.json()["data"]["attributes"]["folder_id"] == other_id

        r = await client.get(f"/api/v1/folders/{other_id}/lists", headers=headers)
        assert [x["id"] for x in r.json()["data"]] == [list_id]
        assert r.json()["links"]["first"].endswith(
            f"/api/v1/folders/{other_id}/lists?page[number]=1&page[size]=20"
        )

        r = await client.get(f"/api/v1/folders/{me.folder.id}/lists", headers=headers)
        assert r.json()["data"] == []
        assert r.json()["meta"]["total"] == 0

        r = await client.patch(
            f"/api/v1/lists/{list_id}", headers=headers, json=_list_doc(folder_id=987654)
        )
        assert r.status_code == 422

        r = await client.get("/api/v1/folders/987654/lists", headers=headers)
        assert r.status_code == 404


@pytest.mark.anyio
async def test_show_list_with_includes(db: Path):
    me = await make_user("include@example.com")
    headers = bearer(me.token)

    async with make_async_client() as client:
        r = await client.post(
            "/api/v1/lists", headers=headers, json=_list_doc(name="Inc", icon="fa-i")
        )
        list_id = int(r.json()["data"]["id"])
        for name in ("bread", "butter"):
            r = await client.post(
                "/api/v1/items", headers=headers, json=_item_doc(list_id=list_id, name=name)
            )
            assert r.status_code == 201

        r = await client.get(f"/api/v1/lists/{list_id}?include=folder,items", headers=headers)
        assert r.status_code == 200
        body = r.json()
        rel = body["data"]["relationships"]
        assert rel["folder"]["data"] == {"type": "folders", "id": str(me.folder.id)}
        assert [x["type"] for x in rel["items"]["data"]] == ["items", "items"]
        included = {(x["type"], x["attributes"]["name"]) for x in body["included"]}
        assert included == {("folders", "default"), ("items", "bread"), ("items", "butter")}

        r = await client.get(f"/api/v1/lists/{list_id}", headers=headers)
        assert "included" not in r.json()
        assert "relationships" not in r.json()["data"]

        r = await client.get(f"/api/v1/lists/{list_id}?include=owner", headers=headers)
        assert r.status_code == 422
        assert r.json()["errors"][0]["source"] == {"parameter": "include"}


@pytest.mark.anyio
async def test_deleting_a_folder_cascades_to_its_lists(db: Path):
    me = await make_user("cascade@example.com")
    headers = bearer(me.token)

    async with make_async_client() as client:
        r = await client.post(
            "/api/v1/lists", headers=headers, json=_list_doc(name="C", icon="fa-c")
        )
        list_id = r.json()["data"]["id"]

        r = await client.delete(f"/api/v1/folders/{me.folder.id}", headers=headers)
        assert r.status_code == 204

        r = await client.get(f"/api/v1/lists/{list_id}", headers=headers)
        assert r.status_code == 404


@pytest.mark.anyio
async def test_email_list_queues_a_mail(db: Path):
    me = await make_user("mailer@example.com", name="Mia")
    headers = bearer(me.token)
    fake = FakeMailer()
    app.dependency_overrides[get_mailer] = lambda: fake
    try:
        async with make_async_client() as client:
            r = await client.post(
                "/api/v1/lists", headers=headers, json=_list_doc(name="Party", icon="fa-p")
            )
            list_id = int(r.json()["data"]["id"])
            _ = await client.post(
                "/api/v1/items",
                headers=headers,
                json=_item_doc(list_id=list_id, name="chips", quantity=2, is_starred=True),
            )

            r = await client.post(
                f"/api/v1/lists/{list_id}/email",
                headers=headers,
                json={"data": {"type": "emails", "attributes": {"email": "friend@example.com"}}},
            )
            assert r.status_code == 204

            r = await client.post(
                f"/api/v1/lists/{list_id}/email",
                headers=headers,
                json={"data": {"type": "emails", "attributes": {"email": "not-an-email"}}},
            )
            assert r.status_code == 422

            r = await client.post(
                "/api/v1/lists/987654/email",
                headers=headers,
                json={"data": {"type": "emails", "attributes": {"email": "friend@example.com"}}},
            )
            assert r.status_code == 404
    finally:
        app.dependency_overrides.pop(get_mailer, None)

    assert len(fake.sent) == 1
    recipient, template_name, data = fake.sent[0]
    assert recipient == "friend@example.com"
    assert template_name == "list_email.tmpl"
    assert data["user"] == {"name": "Mia", "email": "mailer@example.com"}
    assert data["list"]["name"] == "Party"
    assert [i["name"] for i in data["items"]] == ["chips"]


@pytest.mark.anyio
async def test_list_moved_into_a_busy_folder_goes_last(db: Path):
    me = await make_user("busyfolder@example.com")
    headers = bearer(me.token)

    async with make_async_client() as client:
        r = await client.post(
            "/api/v1/folders",
            headers=headers,
            json={"data": {"type": "folders", "attributes": {"name": "Other", "icon": "fa-o"}}},
        )
        other_id = int(r.json()["data"]["id"])

        r = await client.post(
            "/api/v1/lists", headers=headers, json=_list_doc(name="stays", icon="fa-s")
        )
        assert r.json()["data"]["attributes"]["order"] == 1
        r = await client.post(
            "/api/v1/lists",
            headers=headers,
            json=_list_doc(name="there", icon="fa-t", folder_id=other_id),
        )
        assert r.json()["data"]["attributes"]["order"] == 1
        r = await client.post(
            "/api/v1/lists", headers=headers, json=_list_doc(name="moves", icon="fa-m")
        )
        moving_id = r.json()["data"]["id"]
        assert r.json()["data"]["attributes"]["order"] == 2

        r = await client.patch(
            f"/api/v1/lists/{moving_id}", headers=headers, json=_list_doc(folder_id=other_id)
        )
        assert r.status_code == 200
        assert r.json()["data"]["attributes"]["order"] == 2

        r = await client.get(f"/api/v1/folders/{other_id}/lists?sort=order", headers=headers)
        rows = [(x["attributes"]["name"], x["attributes"]["order"]) for x in r.json()["data"]]
        assert rows == [("there", 1), ("moves", 2)]
