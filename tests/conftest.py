import json
import os
import threading

# Must be set before core.logger configures handlers
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import pytest

from core.models import Slot
from core.storage import SetStore
from services import http


class FakeClient:
    """Stands in for MutationClient; records calls and can hold or fail them per item."""

    def __init__(self):
        self.calls = []
        self.failures = {}
        self.gates = {}
        self.remote = {Slot.CART: set(), Slot.WISHLIST: set()}
        self.fetch_gate = None
        self._lock = threading.Lock()

    def hold(self, item_id):
        gate = threading.Event()
        self.gates[item_id] = gate
        return gate

    def hold_fetch(self):
        self.fetch_gate = threading.Event()
        return self.fetch_gate

    def _call(self, op, slot, item_id, **kwargs):
        with self._lock:
            self.calls.append((op, Slot(slot), item_id, kwargs))
        gate = self.gates.get(item_id)
        if gate is not None:
            gate.wait(5)
        exc = self.failures.get(item_id)
        if exc is not None:
            raise exc
        return {}

    def add_item(self, slot, item_id, credential, quantity=1):
        return self._call("add", slot, item_id, quantity=quantity)

    def remove_item(self, slot, item_id, credential):
        return self._call("remove", slot, item_id)

    def fetch_items(self, slot, credential):
        if self.fetch_gate is not None:
            self.fetch_gate.wait(5)
        return set(self.remote[Slot(slot)])


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload
        self.content = b"" if payload is None else json.dumps(payload).encode()

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


@pytest.fixture
def store(tmp_path):
    return SetStore(str(tmp_path / "state.sqlite3"))


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def fake_http(monkeypatch):
    """Route services.http.SESSION.request to a queue of canned responses."""

    class Recorder:
        def __init__(self):
            self.requests = []
            self.responses = []

        def respond(self, status_code=200, payload=None):
            self.responses.append(FakeResponse(status_code, payload))

        def fail_with(self, exc):
            self.responses.append(exc)

        def __call__(self, method, url, headers=None, json=None, timeout=None):
            self.requests.append(
                {"method": method, "url": url, "headers": headers, "json": json}
            )
            nxt = self.responses.pop(0)
            if isinstance(nxt, Exception):
                raise nxt
            return nxt

    recorder = Recorder()
    monkeypatch.setattr(http.SESSION, "request", recorder)
    return recorder
