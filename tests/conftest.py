import os
import uuid

import pytest
from httpx import ASGITransport, AsyncClient

# IMPORTANT:
# Set env vars BEFORE importing chat_api.settings/chat_api.main (pydantic settings load at import time)
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_chat_api.db")
os.environ.setdefault("JWT_SECRET", "dev-test-secret")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:5173")

from chat_api.main import app as fastapi_app  # noqa: E402
from chat_api.api.deps import get_attachment_store, get_realtime  # noqa: E402
from chat_api.db.base_class import Base  # noqa: E402
import chat_api.db.base  # noqa: F401,E402  (register models)
from chat_api.db.session import engine, AsyncSessionLocal  # noqa: E402
from chat_api.services.attachments import UploadedAttachment  # noqa: E402
from chat_api.core.errors import UploadFailed  # noqa: E402

PASSWORD = "SuperSecret123"


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="session")
async def db_schema(anyio_backend):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(db_schema):
    async with AsyncSessionLocal() as session:
        yield session


class RecordingNotifier:
    """Realtime stand-in: users in ``online`` are reachable, pushes are recorded."""

    def __init__(self):
        self.online: set[str] = set()
        self.events: list[tuple[str, str, dict]] = []
        self.fail = False
        self._tasks = set()

    def track(self, task):
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self):
        for task in list(self._tasks):
            await task

    def is_reachable(self, user_id) -> bool:
        return str(user_id) in self.online

    async def push(self, user_id, event, payload):
        if self.fail:
            raise RuntimeError("socket gone")
        self.events.append((str(user_id), event, payload))

    def events_for(self, user_id: str, event: str | None = None) -> list[dict]:
        return [p for (uid, ev, p) in self.events if uid == user_id and (event is None or ev == event)]


class FakeAttachmentStore:
    def __init__(self):
        self.uploads = []
        self.fail = False

    async def upload(self, attachment):
        if self.fail:
            raise UploadFailed()
        self.uploads.append(attachment)
        return UploadedAttachment(
            url=f"https://files.example.com/{attachment.name}",
            type=attachment.type,
            name=attachment.name,
            size=attachment.size,
        )


@pytest.fixture
def realtime():
    return RecordingNotifier()


@pytest.fixture
def attachment_store():
    return FakeAttachmentStore()


@pytest.fixture
async def client(db_schema, realtime, attachment_store):
    fastapi_app.dependency_overrides[get_realtime] = lambda: realtime
    fastapi_app.dependency_overrides[get_attachment_store] = lambda: attachment_store

    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    fastapi_app.dependency_overrides.pop(get_realtime, None)
    fastapi_app.dependency_overrides.pop(get_attachment_store, None)


# --- Small helpers for the friend/chat tests ---

def _unique(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


@pytest.fixture
def unique_str():
    return _unique


@pytest.fixture
def user_factory(unique_str):
    async def _create(
        client: AsyncClient,
        *,
        email: str | None = None,
        username: str | None = None,
        display_name: str | None = None,
        password: str = PASSWORD,
    ):
        email = email or f"{unique_str('user')}@example.com"
        username = username or unique_str("user")
        display_name = display_name or username
        r = await client.post(
            "/auth/register",
            json={
                "email": email,
                "username": username,
                "display_name": display_name,
                "password": password,
            },
        )
        assert r.status_code in (200, 201), r.text
        data = r.json()
        assert "id" in data
        return {
            "id": data["id"],
            "email": email,
            "username": username,
            "display_name": display_name,
            "password": password,
        }

    return _create


@pytest.fixture
def login_helper():
    async def _login(client: AsyncClient, *, email: str, password: str):
        client.cookies.clear()
        r = await client.post("/auth/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        token = client.cookies.get("access_token")
        assert token, "Login did not set access_token cookie"
        return token

    return _login


@pytest.fixture
def authed_user(user_factory, login_helper):
    async def _create(client: AsyncClient, **kwargs):
        user = await user_factory(client, **kwargs)
        token = await login_helper(client, email=user["email"], password=user["password"])
        user["token"] = token
        return user

    return _create


@pytest.fixture
def set_auth_cookie():
    def _set(client: AsyncClient, token: str | None):
        client.cookies.clear()
        if token:
            client.cookies.set("access_token", token)

    return _set


@pytest.fixture
def act_as(set_auth_cookie):
    """Switch the shared client to the given user's session."""

    def _act(client: AsyncClient, user: dict):
        set_auth_cookie(client, user["token"])

    return _act


@pytest.fixture
def make_friends(act_as):
    async def _befriend(client: AsyncClient, a: dict, b: dict):
        act_as(client, a)
        r = await client.post("/friends/requests", json={"user_id": b["id"]})
        assert r.status_code == 200, r.text
        act_as(client, b)
        r = await client.post("/friends/requests/accept", json={"user_id": a["id"]})
        assert r.status_code == 200, r.text

    return _befriend
