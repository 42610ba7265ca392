# backend/tests/conftest.py
import copy
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import AsyncClient
from httpx._transports.asgi import ASGITransport

# Make repo root importable so "backend" package resolves
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


# ─────────────────────────────
# Minimal Motor-like fake DB
# ─────────────────────────────
class _UpdateResult:
    def __init__(self, matched_count, modified_count, upserted_id=None):
        self.matched_count = matched_count
        self.modified_count = modified_count
        self.upserted_id = upserted_id


def _match(doc, filt):
    return all(doc.get(k) == v for k, v in (filt or {}).items())


class FakeCollection:
    def __init__(self):
        # store by _id
        self._store = {}

    async def find_one(self, filt=None):
        filt = filt or {}
        for d in self._store.values():
            if _match(d, filt):
                return copy.deepcopy(d)
        return None

    async def update_one(self, filt, update, upsert=False):
        # only handles {"$set": {...}}
        for _id, d in self._store.items():
            if _match(d, filt):
                d.update(copy.deepcopy(update.get("$set", {})))
                return _UpdateResult(1, 1)
        if not upsert:
            return _UpdateResult(0, 0)
        doc = dict(filt)
        doc.update(copy.deepcopy(update.get("$set", {})))
        self._store[doc["_id"]] = doc
        return _UpdateResult(0, 0, upserted_id=doc["_id"])

    def raw(self, _id):
        """Peek at a stored document without going through the store."""
        return self._store.get(_id)

    def put_raw(self, _id, value):
        self._store[_id] = {"_id": _id, "value": value}


class FakeDB:
    def __init__(self):
        self.terminal = FakeCollection()


# ─────────────────────────────
# Pytest fixtures
# ─────────────────────────────


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_db():
    return FakeDB()


@pytest.fixture
def store(fake_db):
    from backend.app.store import PortfolioStore

    return PortfolioStore(fake_db)


@pytest.fixture
def app_fixture(store):
    """
    Route every request of the FastAPI app to a store backed by the fake DB.
    """
    from backend.app.main import app, get_store

    app.dependency_overrides[get_store] = lambda: store
    yield app
    app.dependency_overrides.pop(get_store, None)


class RoutedAPI:
    """Dashboard HTTP calls served by the ASGI app, with a log of what was sent."""

    def __init__(self, client, base_url):
        self.client = client
        self.base_url = base_url
        self.calls = []

    def request(self, method, url, *, json=None, params=None, timeout=None):
        path = url.replace(self.base_url, "")
        self.calls.append((method, path, json))
        return self.client.request(method, path, json=json, params=params)

    def writes_to(self, method, path):
        return [body for m, p, body in self.calls if (m, p) == (method, path)]


@pytest.fixture
def routed_api(app_fixture, monkeypatch):
    """Send every ``httpx.request`` the dashboard makes straight into the app."""
    import httpx
    from fastapi.testclient import TestClient

    import frontend.app as ui

    api = RoutedAPI(TestClient(app_fixture), ui.API_URL)
    monkeypatch.setattr(httpx, "request", api.request)
    return api


@pytest_asyncio.fixture
async def seeded_store(store):
    """Store holding the two default example positions, already persisted."""
    await store.load_positions()
    return store


@pytest.fixture
async def async_client(app_fixture, anyio_backend):
    transport = ASGITransport(app=app_fixture)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
