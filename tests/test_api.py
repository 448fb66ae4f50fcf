"""Сценарии HTTP API: упоминания, доступ, история версий, уведомления."""
import uuid

from conftest import mention


async def create_document(client, headers, author, **payload):
    payload.setdefault("title", "Meeting notes")
    payload.setdefault("content", "<p>Agenda</p>")
    response = await client.post("/documents/", json=payload, headers=headers(author))
    assert response.status_code == 201, response.text
    return response.json()


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_requires_authentication(client):
    response = await client.post("/documents/", json={"title": "x"})
    assert response.status_code == 401
    assert response.json()["kind"] == "unauthenticated"

    response = await client.get(
        f"/documents/{uuid.uuid4()}", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401


async def test_create_with_mention_shares_and_notifies(client, headers, users):
    alice, bob = users["alice"], users["bob"]

    document = await create_document(
        client, headers, alice, content=f"<p>Ping {mention(bob, 'Bob')}</p>"
    )

    assert document["author_id"] == str(alice.uuid)
    assert document["current_version"] == 1
    assert document["shared_with"] == [{"user_id": str(bob.uuid), "permission": "view"}]

    response = await client.get("/notifications/", headers=headers(bob))
    notifications = response.json()
    assert len(notifications) == 1
    assert notifications[0]["document_id"] == document["uuid"]
    assert notifications[0]["document_title"] == "Meeting notes"
    assert notifications[0]["mentioned_by"] == str(alice.uuid)
    assert notifications[0]["mentioned_by_name"] == "Alice"
    assert notifications[0]["read"] is False

    assert (await client.get("/notifications/", headers=headers(alice))).json() == []


async def test_remention_produces_second_notification(client, headers, users):
    alice, bob = users["alice"], users["bob"]
    document = await create_document(client, headers, alice, content=mention(bob))
    url = f"/documents/{document['uuid']}"

    response = await client.put(url, json={"content": "<p>removed</p>"}, headers=headers(alice))
    assert response.status_code == 200
    response = await client.put(url, json={"content": mention(bob)}, headers=headers(alice))
    assert response.status_code == 200

    assert [s["user_id"] for s in response.json()["shared_with"]] == [str(bob.uuid)]
    notifications = (await client.get("/notifications/", headers=headers(bob))).json()
    assert len(notifications) == 2


async def test_unchanged_mention_is_not_reprocessed(client, headers, users):
    alice, bob = users["alice"], users["bob"]
    document = await create_document(client, headers, alice, content=mention(bob))

    await client.put(
        f"/documents/{document['uuid']}",
        json={"content": mention(bob) + "<p>more</p>"},
        headers=headers(alice)
    )

    notifications = (await client.get("/notifications/", headers=headers(bob))).json()
    assert len(notifications) == 1


async def test_mark_notification_read(client, headers, users):
    alice, bob = users["alice"], users["bob"]
    await create_document(client, headers, alice, content=mention(bob))
    notification = (await client.get("/notifications/", headers=headers(bob))).json()[0]

    response = await client.put(f"/notifications/{notification['uuid']}/read", headers=headers(alice))
    assert response.status_code == 404
    assert response.json()["kind"] == "not_found"

    response = await client.put(f"/notifications/{notification['uuid']}/read", headers=headers(bob))
    assert response.status_code == 200
    assert (await client.get("/notifications/", headers=headers(bob))).json()[0]["read"] is True


async def test_visibility_updates_are_classified(client, headers, users):
    alice = users["alice"]
    document = await create_document(client, headers, alice)
    url = f"/documents/{document['uuid']}"

    await client.put(url, json={"visibility": "public"}, headers=headers(alice))
    await client.put(url, json={"visibility": "private"}, headers=headers(alice))

    response = await client.get(f"{url}/versions", headers=headers(alice))
    versions = response.json()["versions"]
    assert [v["version_number"] for v in versions] == [3, 2, 1]
    assert [v["change_type"] for v in versions] == [
        "visibility_changed", "visibility_changed", "created"
    ]


async def test_share_and_unshare(client, headers, users):
    alice, bob, carol = users["alice"], users["bob"], users["carol"]
    document = await create_document(client, headers, alice)
    url = f"/documents/{document['uuid']}"

    response = await client.post(
        f"{url}/share", json={"user_id": str(bob.uuid), "permission": "owner"}, headers=headers(alice)
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "invalid_argument"

    response = await client.post(
        f"{url}/share", json={"user_id": str(alice.uuid), "permission": "view"}, headers=headers(alice)
    )
    assert response.status_code == 400

    response = await client.post(
        f"{url}/share", json={"user_id": str(uuid.uuid4()), "permission": "view"}, headers=headers(alice)
    )
    assert response.status_code == 404

    response = await client.post(
        f"{url}/share", json={"user_id": str(carol.uuid), "permission": "view"}, headers=headers(bob)
    )
    assert response.status_code == 403
    assert response.json() == {
        "kind": "forbidden",
        "message": "Only the document author can share the document"
    }

    response = await client.post(
        f"{url}/share", json={"user_id": str(bob.uuid), "permission": "edit"}, headers=headers(alice)
    )
    assert response.status_code == 200
    assert response.json() == {"message": "Document shared successfully"}

    response = await client.put(url, json={"title": "Edited by Bob"}, headers=headers(bob))
    assert response.status_code == 200
    assert response.json()["title"] == "Edited by Bob"

    response = await client.delete(f"{url}/share/{bob.uuid}", headers=headers(alice))
    assert response.status_code == 200
    response = await client.delete(f"{url}/share/{bob.uuid}", headers=headers(alice))
    assert response.status_code == 404

    response = await client.get(url, headers=headers(bob))
    assert response.status_code == 403


async def test_invalid_body_is_invalid_argument(client, headers, users):
    response = await client.post(
        "/documents/", json={"title": "   ", "content": ""}, headers=headers(users["alice"])
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "invalid_argument"


async def test_compare_and_restore(client, headers, users):
    alice = users["alice"]
    document = await create_document(client, headers, alice, content="<p>one two</p>")
    url = f"/documents/{document['uuid']}"
    await client.put(
        url, json={"title": "Renamed", "content": "<p>one two three four</p>"}, headers=headers(alice)
    )

    forward = (await client.get(f"{url}/compare/1/2", headers=headers(alice))).json()
    backward = (await client.get(f"{url}/compare/2/1", headers=headers(alice))).json()

    assert forward["word_count_diff"] == 2
    assert backward["word_count_diff"] == -2
    assert backward["character_count_diff"] == -forward["character_count_diff"]
    assert forward["title"] == {"old": "Meeting notes", "new": "Renamed", "changed": True}
    assert forward["visibility"]["changed"] is False
    assert forward["version1"]["version_number"] == 1

    response = await client.post(f"{url}/restore/1", headers=headers(alice))
    assert response.status_code == 200
    body = response.json()
    assert body["restored_version"]["version_number"] == 3
    assert body["restored_version"]["change_summary"] == "Restored to version 1"
    assert body["document"]["title"] == "Meeting notes"
    assert body["document"]["current_version"] == 3

    diff = (await client.get(f"{url}/compare/1/3", headers=headers(alice))).json()
    assert not diff["title"]["changed"]
    assert not diff["content"]["changed"]
    assert not diff["visibility"]["changed"]

    response = await client.get(f"{url}/compare/1/99", headers=headers(alice))
    assert response.status_code == 404

    response = await client.get(f"{url}/versions/2", headers=headers(alice))
    assert response.json()["title"] == "Renamed"


async def test_public_document_route(client, headers, users):
    alice = users["alice"]
    document = await create_document(client, headers, alice)
    url = f"/documents/public/{document['uuid']}"

    assert (await client.get(url)).status_code == 404

    await client.put(
        f"/documents/{document['uuid']}", json={"visibility": "public"}, headers=headers(alice)
    )
    response = await client.get(url)
    assert response.status_code == 200
    assert response.json()["visibility"] == "public"


async def test_user_search_excludes_caller(client, headers, users):
    response = await client.get("/users/search", params={"q": "example.com"}, headers=headers(users["alice"]))

    names = [user["name"] for user in response.json()["users"]]
    assert names == ["Bob", "Carol"]

    response = await client.get("/users/search", params={"q": " "}, headers=headers(users["alice"]))
    assert response.status_code == 400


async def test_delete_document(client, headers, users):
    alice, bob = users["alice"], users["bob"]
    document = await create_document(client, headers, alice)
    url = f"/documents/{document['uuid']}"

    assert (await client.delete(url, headers=headers(bob))).status_code == 403
    assert (await client.delete(url, headers=headers(alice))).status_code == 204
    assert (await client.get(url, headers=headers(alice))).status_code == 404
