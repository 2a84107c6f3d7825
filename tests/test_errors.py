import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from chat_api.api.routes import friends as friends_routes
from chat_api.main import app

pytestmark = pytest.mark.anyio


async def test_storage_fault_returns_opaque_500(client, authed_user, monkeypatch):
    await authed_user(client)

    async def broken_list_friends(db, user_id):
        raise OperationalError("SELECT secret_table", {}, Exception("disk I/O error at /var/lib/pg"))

    monkeypatch.setattr(friends_routes, "list_friends", broken_list_friends)

    r = await client.get("/friends")
    assert r.status_code == 500
    assert r.json() == {"detail": "Internal server error"}
    assert "secret_table" not in r.text
    assert "/var/lib/pg" not in r.text


async def test_unexpected_exception_returns_opaque_500(client, authed_user, monkeypatch):
    user = await authed_user(client)

    async def exploding_list_friends(db, user_id):
        raise RuntimeError("boom at /srv/chat_api/services/friends.py")

    monkeypatch.setattr(friends_routes, "list_friends", exploding_list_friends)

    # Unhandled exceptions are re-raised by the server middleware after the response is sent.
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as raw:
        raw.cookies.set("access_token", user["token"])
        r = await raw.get("/friends")

    assert r.status_code == 500
    assert r.json() == {"detail": "Internal server error"}
    assert "Traceback" not in r.text
    assert "/srv/chat_api" not in r.text
