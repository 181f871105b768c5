from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from paygate.api.tabs import TabRegistry, get_tabs
from paygate.main import app
from paygate.store.session_repo import InMemorySessionRepository


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def _registry(**kw):
    return TabRegistry(repo_factory=lambda scope: InMemorySessionRepository(), gateway=MagicMock(), **kw)


def test_find_never_creates():
    reg = _registry()
    assert reg.find("tab-1") is None
    assert len(reg) == 0
    c = reg.get("tab-1")
    assert reg.find("tab-1") is c
    assert len(reg) == 1


def test_least_recently_used_tab_is_dropped_at_capacity():
    reg = _registry(max_tabs=2, idle_sec=0)
    a = reg.get("a")
    reg.get("b")
    reg.find("a")  # a is now the most recent
    reg.get("c")
    assert len(reg) == 2
    assert reg.find("b") is None
    assert reg.find("a") is a


def test_idle_tabs_are_dropped():
    clock = FakeClock()
    reg = _registry(max_tabs=0, idle_sec=60, clock=clock)
    reg.get("old")
    clock.now += 30
    reg.get("recent")
    clock.now += 45
    assert reg.find("old") is None
    assert reg.find("recent") is not None


def test_refused_actions_do_not_register_tabs():
    reg = _registry()
    app.dependency_overrides[get_tabs] = lambda: reg
    try:
        for _ in range(20):
            # fresh client each time: no tab cookie
            r = TestClient(app).post("/gateway/username", json={"username": "alice"})
            assert r.status_code == 409
        for path in ("/gateway/pin", "/gateway/retry", "/gateway/close", "/gateway/view"):
            method = TestClient(app).get if path.endswith("view") else TestClient(app).post
            assert method(path).status_code in (409, 422)
        assert len(reg) == 0
    finally:
        app.dependency_overrides = {}


def test_cookieless_page_loads_stay_bounded():
    reg = _registry(max_tabs=5)
    app.dependency_overrides[get_tabs] = lambda: reg
    try:
        for _ in range(50):
            r = TestClient(app).get("/gateway", params={"transactionId": "T1"})
            assert r.status_code == 200
        assert len(reg) == 5
    finally:
        app.dependency_overrides = {}
