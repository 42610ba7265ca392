# backend/smoke/test_api_smoke.py
import copy

import pytest
from fastapi.testclient import TestClient


# ---- Minimal in-memory fake DB compatible with the store ----
class _UpdateResult:
    def __init__(self, matched_count, modified_count):
        self.matched_count, self.modified_count = matched_count, modified_count


class FakeCollection:
    def __init__(self):
        self._store = {}

    async def find_one(self, filt=None):
        doc = self._store.get((filt or {}).get("_id"))
        return copy.deepcopy(doc)

    async def update_one(self, filt, update, upsert=False):
        _id = filt["_id"]
        if _id not in self._store and not upsert:
            return _UpdateResult(0, 0)
        self._store.setdefault(_id, {"_id": _id}).update(copy.deepcopy(update["$set"]))
        return _UpdateResult(1, 1)


class FakeDB:
    def __init__(self):
        self.terminal = FakeCollection()


def test_price_moves_change_pnl_in_opposite_directions():
    import backend.app.main as appmod
    from backend.app.store import PortfolioStore

    store = PortfolioStore(FakeDB())
    appmod.app.dependency_overrides[appmod.get_store] = lambda: store
    try:
        client = TestClient(appmod.app)

        r = client.put("/market", json={"price": 2000.0, "pipValue": 1.0})
        assert r.status_code == 200, r.text
        client.delete("/positions")

        r1 = client.post("/positions", json={"side": "long", "entryPrice": 2000.0, "lotSize": 1.0})
        r2 = client.post("/positions", json={"side": "short", "entryPrice": 2000.0, "lotSize": 1.0})
        assert r1.status_code == 200 and r2.status_code == 200

        client.post("/market/price/increment", json={"step": 5.0})
        rows = {p["side"]: p for p in client.get("/positions").json()}
        assert rows["long"]["floatingPnl"] == pytest.approx(5.0)
        assert rows["short"]["floatingPnl"] == pytest.approx(-5.0)

        s = client.get("/positions/summary").json()
        assert s["totalPnl"] == pytest.approx(0.0)
        assert s["averageEntryPrice"] == pytest.approx(2000.0)
    finally:
        appmod.app.dependency_overrides.pop(appmod.get_store, None)
