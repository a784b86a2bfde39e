from concurrent.futures import Future

import pytest

from startdash.api import BackendClient
from startdash.dashboard import Dashboard
from startdash.models import Bookmark, Category, Dataset
from startdash.server import app as flask_app
from startdash.storage import editing_rows, new_bookmark_row, new_category_row

BASE_URL = "http://testserver/api"
PASSWORD = "secret"


class FlaskResponse:
    def __init__(self, resp):
        self._resp = resp
        self.status_code = resp.status_code

    def json(self):
        data = self._resp.get_json(silent=True)
        if data is None:
            raise ValueError("no JSON body")
        return data


class FlaskHttp:
    """requests.Session stand-in that sends everything through the Flask test client."""

    def __init__(self, client, prefix="http://testserver"):
        self.client = client
        self.prefix = prefix
        self.calls = []

    def request(self, method, url, json=None, params=None, timeout=None):
        path = url[len(self.prefix):] if url.startswith(self.prefix) else url
        self.calls.append((method, path))
        return FlaskResponse(self.client.open(path, method=method, json=json, query_string=params))

    def close(self):
        pass


class InlineExecutor:
    def submit(self, fn, *args, **kwargs):
        fut = Future()
        try:
            fut.set_result(fn(*args, **kwargs))
        except Exception as exc:
            fut.set_exception(exc)
        return fut

    def shutdown(self, wait=True):
        pass


@pytest.fixture
def data_file(tmp_path):
    return str(tmp_path / "bookmarks.csv")


@pytest.fixture
def seed(data_file):
    """Work: A, B (private), C, D / Secret (private category): G / Fun: E, F"""
    ids = {}
    with editing_rows(data_file) as rows:
        for name, private in (("Work", False), ("Secret", True), ("Fun", False)):
            row = new_category_row(rows, name, private=private)
            rows.append(row)
            ids[name] = row["id"]
        for title, cat, private in (("A", "Work", False), ("B", "Work", True), ("C", "Work", False),
                                    ("D", "Work", False), ("G", "Secret", False),
                                    ("E", "Fun", False), ("F", "Fun", False)):
            row = new_bookmark_row(rows, ids[cat], title, f"https://{title.lower()}.example.com",
                                   private=private)
            rows.append(row)
            ids[title] = row["id"]
    return ids


@pytest.fixture
def app(data_file, seed):
    flask_app.config.update(TESTING=True, DATA_FILE=data_file, ADMIN_PASS=PASSWORD)
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def http(client):
    return FlaskHttp(client)


@pytest.fixture
def backend(http):
    return BackendClient(BASE_URL, http=http)


@pytest.fixture
def dashboard(backend):
    dash = Dashboard(backend, executor=InlineExecutor())
    yield dash
    dash.close()


@pytest.fixture
def make_dataset():
    """Build a Dataset from {category_id: [bookmark_id, ...]} with dense ranks."""

    def build(layout, version=1):
        categories = tuple(Category(id=cid, name=cid.title(), order=i) for i, cid in enumerate(layout))
        bookmarks = tuple(
            Bookmark(id=bid, category_id=cid, title=bid, url=f"https://{bid}.example.com", order=i)
            for cid, ids in layout.items()
            for i, bid in enumerate(ids)
        )
        return Dataset(version=version, categories=categories, bookmarks=bookmarks, updated_at="t0")

    return build
