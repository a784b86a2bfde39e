from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable

from .models import Bookmark, Category, Dataset

logger = logging.getLogger(__name__)

Observer = Callable[[Dataset], None]


def group_bookmarks(bookmarks) -> dict[str, list[Bookmark]]:
    """categoryId -> bookmarks sorted by rank (stable on input position)."""
    groups: dict[str, list[Bookmark]] = {}
    for b in bookmarks:
        groups.setdefault(b.category_id, []).append(b)
    for items in groups.values():
        items.sort(key=lambda b: b.order)
    return groups


def public_projection(dataset: Dataset) -> Dataset:
    """What an anonymous caller may see of ``dataset``, densely re-ranked."""
    categories = [c for c in sorted(dataset.categories, key=lambda c: c.order) if not c.is_private]
    visible = {c.id for c in categories}
    groups = group_bookmarks(b for b in dataset.bookmarks
                             if not b.is_private and b.category_id in visible)
    bookmarks = [
        b if b.order == i else replace(b, order=i)
        for items in groups.values()
        for i, b in enumerate(items)
    ]
    return replace(
        dataset,
        categories=tuple(c if c.order == i else replace(c, order=i) for i, c in enumerate(categories)),
        bookmarks=tuple(bookmarks),
    )


class DatasetStore:
    """Holds the current dataset snapshot and the views derived from it.

    No validation happens here; the backend is trusted to hand out datasets
    that satisfy the ranking and reference rules.
    """

    def __init__(self, dataset: Dataset | None = None):
        self._dataset = dataset
        self._observers: list[Observer] = []

    @property
    def dataset(self) -> Dataset | None:
        return self._dataset

    def set_dataset(self, dataset: Dataset) -> None:
        self._dataset = dataset
        for fn in list(self._observers):
            try:
                fn(dataset)
            except Exception:
                logger.warning("Dataset observer %r failed", fn, exc_info=True)

    def subscribe(self, fn: Observer) -> Callable[[], None]:
        self._observers.append(fn)

        def unsubscribe():
            if fn in self._observers:
                self._observers.remove(fn)

        return unsubscribe

    def categories_sorted(self) -> list[Category]:
        if self._dataset is None:
            return []
        return sorted(self._dataset.categories, key=lambda c: c.order)

    def bookmarks_by_category(self) -> dict[str, list[Bookmark]]:
        """Every known category maps to a list, empty when it has no bookmarks."""
        if self._dataset is None:
            return {}
        groups = {c.id: [] for c in self._dataset.categories}
        groups.update(group_bookmarks(self._dataset.bookmarks))
        return groups

    def find_bookmark(self, bookmark_id: str) -> Bookmark | None:
        if self._dataset is None:
            return None
        return next((b for b in self._dataset.bookmarks if b.id == bookmark_id), None)

    def category(self, category_id: str) -> Category | None:
        if self._dataset is None:
            return None
        return next((c for c in self._dataset.categories if c.id == category_id), None)
