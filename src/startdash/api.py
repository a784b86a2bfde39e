from __future__ import annotations

import logging
import threading

import requests

from .errors import GENERIC_ERROR, AuthorizationError, BackendError, BackendUnavailable
from .models import Dataset

logger = logging.getLogger(__name__)


def _error_message(resp) -> str:
    try:
        body = resp.json()
    except ValueError:
        return GENERIC_ERROR
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return GENERIC_ERROR


class BackendClient:
    """Thin client for the dashboard's JSON API.

    ``http`` is the session every request goes through; it carries the login
    cookie, so the capability of this client is whatever that session was
    granted by the backend. Requests are serialized on a lock: the reorder
    worker and the caller share one session, and the cookie jar and
    connection pool are not safe to use from two threads at once.
    Anything with a ``requests.Session``-style
    ``request(method, url, json=..., timeout=...)`` works.
    """

    def __init__(self, base_url: str, http=None, timeout: float | None = None):
        self.base_url = base_url.rstrip("/")
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout
        self._lock = threading.Lock()

    def _request(self, method: str, path: str, payload=None, params=None):
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            with self._lock:
                resp = self.http.request(method, url, json=payload, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise BackendUnavailable(f"Network error: {exc}") from exc
        if resp.status_code == 401:
            raise AuthorizationError(_error_message(resp), 401)
        if not 200 <= resp.status_code < 300:
            raise BackendError(_error_message(resp), resp.status_code)
        return resp

    def _json(self, resp) -> dict:
        try:
            body = resp.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    # ---- reads ----
    def fetch_dataset(self, full: bool = False) -> Dataset:
        params = {"visibility": "all"} if full else None
        resp = self._request("GET", "/bookmarks", params=params)
        try:
            return Dataset.from_dict(resp.json())
        except ValueError as exc:
            raise BackendError(f"Malformed dataset: {exc}", resp.status_code) from exc

    # ---- ordering ----
    def save_order(self, bookmarks_order: dict[str, list[str]]) -> None:
        self._request("POST", "/sort", {"bookmarksOrder": bookmarks_order})

    # ---- categories ----
    def create_category(self, name: str, visibility: str | None = None) -> dict:
        payload = {"name": name}
        if visibility:
            payload["visibility"] = visibility
        return self._json(self._request("POST", "/categories", payload))

    def update_category(self, category_id: str, **fields) -> dict:
        return self._json(self._request("PUT", f"/categories/{category_id}", fields))

    def delete_category(self, category_id: str) -> None:
        self._request("DELETE", f"/categories/{category_id}")

    # ---- bookmarks ----
    def create_bookmark(self, payload: dict) -> dict:
        return self._json(self._request("POST", "/bookmarks", payload))

    def update_bookmark(self, bookmark_id: str, payload: dict) -> dict:
        return self._json(self._request("PUT", f"/bookmarks/{bookmark_id}", payload))

    def delete_bookmark(self, bookmark_id: str) -> None:
        self._request("DELETE", f"/bookmarks/{bookmark_id}")

    # ---- session ----
    def login(self, password: str) -> None:
        self._request("POST", "/login", {"password": password})

    def logout(self) -> None:
        self._request("POST", "/logout")

    def close(self) -> None:
        close = getattr(self.http, "close", None)
        if close is not None:
            close()
