from __future__ import annotations

import logging

from .api import BackendClient
from .errors import AuthorizationError, ValidationError
from .models import PRIVATE, PUBLIC
from .reorder import ReorderEngine
from .store import DatasetStore
from .visibility import Session, VisibilityResolver

logger = logging.getLogger(__name__)


def _required(value, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{label} required.")
    return value


class Dashboard:
    """Client-side core: store, capability and drag ordering, wired together.

    Create/edit/delete go straight to the backend and are followed by a full
    reload with the current capability. Only drag ordering is optimistic.
    """

    def __init__(self, client: BackendClient, executor=None):
        self.store = DatasetStore()
        self.session = Session(client)
        self.resolver = VisibilityResolver(self.session, self.store)
        self.reorder = ReorderEngine(self.store, client, executor=executor)

    @classmethod
    def connect(cls, base_url: str, timeout: float | None = None, executor=None) -> Dashboard:
        return cls(BackendClient(base_url, timeout=timeout), executor=executor)

    @property
    def client(self) -> BackendClient:
        return self.session.client

    # ---- lifecycle ----
    def start(self) -> bool:
        return self.resolver.start()

    def login(self, password: str) -> bool:
        return self.resolver.login(password)

    def logout(self) -> bool:
        return self.resolver.logout()

    def close(self):
        self.reorder.shutdown()
        self.session.close()

    # ---- views ----
    def groups(self):
        """[(category, [bookmarks...]), ...] in display order."""
        by_cat = self.store.bookmarks_by_category()
        return [(c, by_cat.get(c.id, [])) for c in self.store.categories_sorted()]

    # ---- drag ----
    def move_bookmark(self, source_id: str, dest_id: str | None):
        return self.reorder.move(source_id, dest_id)

    # ---- mutations ----
    def _mutate(self, call, *args, **kwargs):
        try:
            result = call(*args, **kwargs)
        except AuthorizationError:
            logger.info("Session expired during %s", getattr(call, "__name__", call))
            self.resolver.logout()
            raise
        self.resolver.reload()
        return result

    def add_category(self, name: str, private: bool = False):
        name = _required(name, "Category name")
        return self._mutate(self.client.create_category, name, PRIVATE if private else PUBLIC)

    def edit_category(self, category_id: str, name: str, private: bool | None = None):
        fields = {"name": _required(name, "Category name")}
        if private is not None:
            fields["visibility"] = PRIVATE if private else PUBLIC
        return self._mutate(self.client.update_category, category_id, **fields)

    def delete_category(self, category_id: str):
        return self._mutate(self.client.delete_category, category_id)

    def add_bookmark(self, category_id: str, title: str, url: str,
                     description: str = "", icon_url: str = "", private: bool = False):
        payload = {
            "categoryId": category_id,
            "title": _required(title, "Title"),
            "url": _required(url, "URL"),
            "description": description or "",
            "iconUrl": icon_url or "",
            "isPrivate": bool(private),
        }
        return self._mutate(self.client.create_bookmark, payload)

    def edit_bookmark(self, bookmark_id: str, title: str, url: str, description: str = "",
                      icon_url: str = "", private: bool = False, category_id: str | None = None):
        payload = {
            "title": _required(title, "Title"),
            "url": _required(url, "URL"),
            "description": description or "",
            "iconUrl": icon_url or "",
            "isPrivate": bool(private),
        }
        if category_id:
            payload["categoryId"] = category_id
        return self._mutate(self.client.update_bookmark, bookmark_id, payload)

    def delete_bookmark(self, bookmark_id: str):
        return self._mutate(self.client.delete_bookmark, bookmark_id)
