import threading
import time

import pytest
import requests

from startdash.api import BackendClient
from startdash.errors import AuthorizationError, BackendError, BackendUnavailable
from startdash.reorder import ReorderEngine
from startdash.store import DatasetStore


class CannedResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.body = body

    def json(self):
        if self.body is None:
            raise ValueError("no JSON body")
        return self.body


class OverlapCountingHttp:
    """Records how many requests were in flight on the session at once."""

    def __init__(self, response=None):
        self.response = response or CannedResponse(200, {"ok": True})
        self.active = 0
        self.max_active = 0
        self.calls = []
        self._count_lock = threading.Lock()

    def request(self, method, url, json=None, params=None, timeout=None):
        with self._count_lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.calls.append((method, url))
        time.sleep(0.005)
        with self._count_lock:
            self.active -= 1
        return self.response


def test_requests_from_several_threads_never_overlap():
    http = OverlapCountingHttp()
    backend = BackendClient("http://dash/api", http=http)
    threads = [threading.Thread(target=backend.save_order, args=({"c": [str(i)]},)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(http.calls) == 8
    assert http.max_active == 1


def test_reorder_worker_and_caller_share_session_one_at_a_time(make_dataset):
    http = OverlapCountingHttp(CannedResponse(200, make_dataset({"x": ["A", "B", "C"]}).to_dict()))
    backend = BackendClient("http://dash/api", http=http)
    store = DatasetStore(make_dataset({"x": ["A", "B", "C"]}))
    engine = ReorderEngine(store, backend)
    try:
        pending = [engine.move("A", "C"), engine.move("C", "B")]
        for _ in range(5):
            backend.fetch_dataset(full=True)
        assert all(f.result(timeout=5) for f in pending)
    finally:
        engine.shutdown()
    assert len(http.calls) == 7
    assert http.max_active == 1


@pytest.mark.parametrize("status,body,exc,message", [
    (401, {"error": "Login required."}, AuthorizationError, "Login required."),
    (404, {"error": "Bookmark not found."}, BackendError, "Bookmark not found."),
    (500, None, BackendError, "Unknown error"),
])
def test_status_codes_map_to_errors(status, body, exc, message):
    backend = BackendClient("http://dash/api", http=OverlapCountingHttp(CannedResponse(status, body)))
    with pytest.raises(exc) as err:
        backend.delete_bookmark("b")
    assert err.value.message == message
    assert err.value.status == status


def test_transport_failure_is_backend_unavailable():
    class DownHttp:
        def request(self, *a, **kw):
            raise requests.ConnectionError("refused")

    with pytest.raises(BackendUnavailable):
        BackendClient("http://dash/api", http=DownHttp()).fetch_dataset()
