"""Shared fixtures. Sets HMAC_SECRET before the app module is imported."""

import json
import os

import pytest
from starlette.testclient import TestClient

os.environ.setdefault("HMAC_SECRET", "test-secret-for-unit-tests")

from app import create_app
from conversations import ConversationDirectory
from errors import StorageUnavailable
from tokens import IdentityTokenService

SECRET = "test-secret-for-unit-tests"


# ---------------------------------------------------------------------------
# In-memory key-value store
# ---------------------------------------------------------------------------


class FakeStore:
    """Dict-backed stand-in for RedisBackend: values go through JSON like they do in Redis."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.fail = False
        self.puts: list[str] = []

    def _check(self) -> None:
        if self.fail:
            raise StorageUnavailable()

    async def get(self, key: str):
        self._check()
        raw = self.data.get(key)
        return None if raw is None else json.loads(raw)

    async def put(self, key: str, value) -> None:
        self._check()
        self.puts.append(key)
        self.data[key] = json.dumps(value)

    async def list_keys(self, prefix: str) -> list[str]:
        self._check()
        return sorted((k for k in self.data if k.startswith(prefix)), key=lambda k: k.encode("utf-8"))


class FakeClock:
    """Hands out the scripted timestamps in order, then repeats the last one."""

    def __init__(self, *timestamps: int) -> None:
        self.timestamps = list(timestamps) or [1_700_000_000_000]
        self.calls = 0

    def __call__(self) -> int:
        index = min(self.calls, len(self.timestamps) - 1)
        self.calls += 1
        return self.timestamps[index]


class TickingClock:
    """Advances one millisecond per read so API tests get a strict order."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now


@pytest.fixture()
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture()
def tokens() -> IdentityTokenService:
    return IdentityTokenService(SECRET)


@pytest.fixture()
def directory(store: FakeStore) -> ConversationDirectory:
    return ConversationDirectory(store)


@pytest.fixture()
def client(store: FakeStore) -> TestClient:
    app = create_app(store=store, secret=SECRET, claim_seats=False, clock=TickingClock())
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def seat_client(store: FakeStore) -> TestClient:
    app = create_app(store=store, secret=SECRET, claim_seats=True, clock=TickingClock())
    return TestClient(app, raise_server_exceptions=False)
