import uuid

import pytest

pytestmark = pytest.mark.anyio


async def _friend_ids(client) -> set[str]:
    r = await client.get("/friends")
    assert r.status_code == 200, r.text
    return {f["id"] for f in r.json()}


async def _notifications(client) -> dict:
    r = await client.get("/notifications")
    assert r.status_code == 200, r.text
    return r.json()


async def test_request_then_accept_flow(client, authed_user, act_as, realtime):
    a = await authed_user(client, display_name="A")
    b = await authed_user(client, display_name="B")

    act_as(client, a)
    r = await client.post("/friends/requests", json={"user_id": b["id"]})
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "requested"

    # B sees one pending request and one unread friend_request notification.
    act_as(client, b)
    feed = await _notifications(client)
    assert [fr["from_user"]["id"] for fr in feed["friend_requests"]] == [a["id"]]
    assert len(feed["notifications"]) == 1
    note = feed["notifications"][0]
    assert note["type"] == "friend_request"
    assert note["read"] is False
    assert note["from_user"]["display_name"] == "A"
    assert "password_hash" not in note["from_user"]

    r = await client.post("/friends/requests/accept", json={"user_id": a["id"]})
    assert r.status_code == 200, r.text

    assert await _friend_ids(client) == {a["id"]}
    feed = await _notifications(client)
    assert len(feed["notifications"]) == 1
    assert feed["friend_requests"] == []

    act_as(client, a)
    assert await _friend_ids(client) == {b["id"]}
    feed = await _notifications(client)
    assert [(n["type"], n["read"], n["from_user"]["id"]) for n in feed["notifications"]] == [
        ("friend_accepted", False, b["id"])
    ]
    assert feed["unread_count"] == 1


async def test_request_to_missing_user_is_404(client, authed_user):
    await authed_user(client)
    r = await client.post("/friends/requests", json={"user_id": str(uuid.uuid4())})
    assert r.status_code == 404


async def test_request_to_self_is_rejected(client, authed_user):
    a = await authed_user(client)
    r = await client.post("/friends/requests", json={"user_id": a["id"]})
    assert r.status_code == 400


async def test_duplicate_request_is_rejected(client, authed_user, act_as):
    a = await authed_user(client)
    b = await authed_user(client)

    act_as(client, a)
    r = await client.post("/friends/requests", json={"user_id": b["id"]})
    assert r.status_code == 200
    r = await client.post("/friends/requests", json={"user_id": b["id"]})
    assert r.status_code == 409
    assert r.json()["detail"] == "Friend request already sent"

    # Still a single pending request and a single notification on B's side.
    act_as(client, b)
    feed = await _notifications(client)
    assert len(feed["friend_requests"]) == 1
    assert len(feed["notifications"]) == 1


async def test_request_to_existing_friend_is_rejected(client, authed_user, act_as, make_friends):
    a = await authed_user(client)
    b = await authed_user(client)
    await make_friends(client, a, b)

    act_as(client, a)
    r = await client.post("/friends/requests", json={"user_id": b["id"]})
    assert r.status_code == 409
    assert r.json()["detail"] == "User is already a friend"


async def test_reciprocal_request_auto_accepts(client, authed_user, act_as, realtime):
    a = await authed_user(client, display_name="A")
    b = await authed_user(client, display_name="B")
    realtime.online.add(a["id"])

    act_as(client, a)
    r = await client.post("/friends/requests", json={"user_id": b["id"]})
    assert r.json()["status"] == "requested"

    act_as(client, b)
    r = await client.post("/friends/requests", json={"user_id": a["id"]})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == "accepted"
    assert body["user"]["id"] == a["id"]

    assert await _friend_ids(client) == {a["id"]}
    feed_b = await _notifications(client)
    assert feed_b["friend_requests"] == []

    act_as(client, a)
    assert await _friend_ids(client) == {b["id"]}
    feed_a = await _notifications(client)
    assert feed_a["friend_requests"] == []

    accepted = [
        n
        for n in feed_a["notifications"] + feed_b["notifications"]
        if n["type"] == "friend_accepted"
    ]
    assert len(accepted) == 1
    assert accepted[0]["from_user"]["id"] == b["id"]

    await realtime.drain()
    pushed = realtime.events_for(a["id"], "friendRequestAccepted")
    assert len(pushed) == 1
    assert pushed[0]["user"]["id"] == b["id"]


async def test_decline_removes_request_silently_and_allows_rerequest(client, authed_user, act_as):
    a = await authed_user(client)
    b = await authed_user(client)

    act_as(client, a)
    await client.post("/friends/requests", json={"user_id": b["id"]})

    act_as(client, b)
    r = await client.post("/friends/requests/decline", json={"user_id": a["id"]})
    assert r.status_code == 200
    assert (await _notifications(client))["friend_requests"] == []
    assert await _friend_ids(client) == set()

    # Already resolved
    r = await client.post("/friends/requests/decline", json={"user_id": a["id"]})
    assert r.status_code == 404
    r = await client.post("/friends/requests/accept", json={"user_id": a["id"]})
    assert r.status_code == 404

    # A got no notification for the decline.
    act_as(client, a)
    assert (await _notifications(client))["notifications"] == []

    # No cooldown after a decline.
    r = await client.post("/friends/requests", json={"user_id": b["id"]})
    assert r.status_code == 200
    assert r.json()["status"] == "requested"


async def test_accept_without_request_is_404(client, authed_user, act_as):
    a = await authed_user(client)
    b = await authed_user(client)
    act_as(client, b)
    r = await client.post("/friends/requests/accept", json={"user_id": a["id"]})
    assert r.status_code == 404
    assert r.json()["detail"] == "Friend request not found"


async def test_remove_friend_is_symmetric(client, authed_user, act_as, make_friends):
    a = await authed_user(client)
    b = await authed_user(client)
    await make_friends(client, a, b)

    act_as(client, b)
    r = await client.post("/friends/remove", json={"user_id": a["id"]})
    assert r.status_code == 200
    assert r.json() == {"ok": True, "removed": True}
    assert await _friend_ids(client) == set()

    act_as(client, a)
    assert await _friend_ids(client) == set()

    r = await client.post("/friends/remove", json={"user_id": b["id"]})
    assert r.status_code == 409
    assert r.json()["detail"] == "User is not in your friends list"


async def test_pending_requests_listing(client, authed_user, act_as):
    a = await authed_user(client)
    b = await authed_user(client)
    c = await authed_user(client)

    for sender in (a, b):
        act_as(client, sender)
        r = await client.post("/friends/requests", json={"user_id": c["id"]})
        assert r.status_code == 200

    act_as(client, c)
    r = await client.get("/friends/requests")
    assert r.status_code == 200
    assert [p["from_user"]["id"] for p in r.json()] == [a["id"], b["id"]]


async def test_search_users_is_case_insensitive_and_excludes_caller(client, authed_user, act_as, unique_str):
    tag = unique_str("srch")
    me = await authed_user(client, email=f"{tag}_me@example.com")
    other = await authed_user(client, email=f"{tag}_other@example.com")
    await authed_user(client, email=f"{unique_str('nomatch')}@example.com")

    # authed_user logged in as the last user; switch back to `me`.
    act_as(client, me)

    r = await client.get("/users/search", params={"email": tag.upper()})
    assert r.status_code == 200, r.text
    results = r.json()
    assert [u["id"] for u in results] == [other["id"]]
    assert "password_hash" not in results[0]

    r = await client.get("/users/search", params={"email": "   "})
    assert r.status_code == 400


async def test_friend_endpoints_require_auth(client):
    r = await client.post("/friends/requests", json={"user_id": str(uuid.uuid4())})
    assert r.status_code == 401
