import pytest

pytestmark = pytest.mark.anyio


async def _sidebar(client) -> list[dict]:
    r = await client.get("/chats/sidebar")
    assert r.status_code == 200, r.text
    return r.json()


async def _send(client, to: dict, text: str):
    r = await client.post(f"/messages/{to['id']}", json={"text": text})
    assert r.status_code == 201, r.text
    return r.json()


async def test_pin_limit_and_unpin_then_repin(client, authed_user, act_as, make_friends):
    a = await authed_user(client)
    b = await authed_user(client)
    c = await authed_user(client)
    d = await authed_user(client)
    for friend in (b, c, d):
        await make_friends(client, a, friend)

    act_as(client, a)
    for friend in (b, c):
        r = await client.post("/chats/pin", json={"user_id": friend["id"]})
        assert r.status_code == 200, r.text

    r = await client.post("/chats/pin", json={"user_id": d["id"]})
    assert r.status_code == 409
    assert r.json()["detail"] == "You can only pin up to 2 chats"

    r = await client.post("/chats/unpin", json={"user_id": b["id"]})
    assert r.status_code == 200

    r = await client.post("/chats/pin", json={"user_id": d["id"]})
    assert r.status_code == 200, r.text

    pinned = {e["id"] for e in await _sidebar(client) if e["is_pinned"]}
    assert pinned == {c["id"], d["id"]}


async def test_pin_requires_friendship(client, authed_user, act_as):
    a = await authed_user(client)
    stranger = await authed_user(client)

    act_as(client, a)
    r = await client.post("/chats/pin", json={"user_id": stranger["id"]})
    assert r.status_code == 409
    assert r.json()["detail"] == "User is not in your friends list"


async def test_pin_twice_is_rejected(client, authed_user, act_as, make_friends):
    a = await authed_user(client)
    b = await authed_user(client)
    await make_friends(client, a, b)

    act_as(client, a)
    assert (await client.post("/chats/pin", json={"user_id": b["id"]})).status_code == 200
    r = await client.post("/chats/pin", json={"user_id": b["id"]})
    assert r.status_code == 409
    assert r.json()["detail"] == "Chat is already pinned"


async def test_unpin_is_idempotent(client, authed_user, act_as, make_friends):
    a = await authed_user(client)
    b = await authed_user(client)
    await make_friends(client, a, b)

    act_as(client, a)
    r = await client.post("/chats/unpin", json={"user_id": b["id"]})
    assert r.status_code == 200
    assert r.json() == {"ok": True}


async def test_removing_friend_drops_pins_on_both_sides(client, authed_user, act_as, make_friends):
    a = await authed_user(client)
    b = await authed_user(client)
    await make_friends(client, a, b)

    act_as(client, a)
    await client.post("/chats/pin", json={"user_id": b["id"]})
    act_as(client, b)
    await client.post("/chats/pin", json={"user_id": a["id"]})

    r = await client.post("/friends/remove", json={"user_id": a["id"]})
    assert r.status_code == 200

    # Becoming friends again does not bring the old pins back.
    await make_friends(client, a, b)
    act_as(client, a)
    assert [e["is_pinned"] for e in await _sidebar(client)] == [False]
    act_as(client, b)
    assert [e["is_pinned"] for e in await _sidebar(client)] == [False]


async def test_sidebar_orders_pinned_first_then_recency(client, authed_user, act_as, make_friends):
    me = await authed_user(client)
    quiet = await authed_user(client, display_name="quiet")
    old = await authed_user(client, display_name="old")
    recent = await authed_user(client, display_name="recent")
    pinned_old = await authed_user(client, display_name="pinned_old")
    for friend in (quiet, old, recent, pinned_old):
        await make_friends(client, me, friend)

    act_as(client, me)
    await _send(client, pinned_old, "hi pinned")
    await _send(client, old, "hi old")
    await _send(client, recent, "hi recent")
    r = await client.post("/chats/pin", json={"user_id": pinned_old["id"]})
    assert r.status_code == 200

    entries = await _sidebar(client)
    assert [e["id"] for e in entries] == [pinned_old["id"], recent["id"], old["id"], quiet["id"]]
    assert [e["is_pinned"] for e in entries] == [True, False, False, False]
    assert entries[-1]["last_interaction_at"] is None
    assert "password_hash" not in entries[0]

    # A reply from `old` moves it ahead of `recent`, but not ahead of the pin.
    act_as(client, old)
    await _send(client, me, "reply")
    act_as(client, me)
    entries = await _sidebar(client)
    assert [e["id"] for e in entries] == [pinned_old["id"], old["id"], recent["id"], quiet["id"]]


async def test_sidebar_is_empty_without_friends(client, authed_user):
    await authed_user(client)
    assert await _sidebar(client) == []
