from __future__ import annotations

import enum
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from itertools import chain

from .api import BackendClient
from .errors import BackendError
from .models import Bookmark, Dataset
from .store import DatasetStore, group_bookmarks

logger = logging.getLogger(__name__)


class DragState(enum.Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    DROPPED = "dropped"


@dataclass(frozen=True)
class MovePlan:
    dataset: Dataset
    # categoryId -> bookmark ids in their new order, for every category the move touched
    bookmarks_order: dict[str, list[str]]


def rerank(items: list[Bookmark]) -> list[Bookmark]:
    return [b if b.order == i else replace(b, order=i) for i, b in enumerate(items)]


def plan_move(dataset: Dataset, source_id: str, dest_id: str | None) -> MovePlan | None:
    """Work out where a dragged bookmark lands.

    Dropped on another card of its own category, the bookmark takes that
    card's slot and the cards in between shift by one. Dropped on a card of
    another category, it leaves its old category and is inserted right
    before that card. Every affected category is re-ranked 0..k-1.

    Returns None when the drop changes nothing (no target, dropped on
    itself, or an id the dataset does not know).
    """
    if not dest_id or source_id == dest_id:
        return None
    by_id = {b.id: b for b in dataset.bookmarks}
    source = by_id.get(source_id)
    dest = by_id.get(dest_id)
    if source is None or dest is None:
        return None

    groups = group_bookmarks(dataset.bookmarks)
    from_list = groups[source.category_id]
    to_list = groups[dest.category_id]
    s_idx = next(i for i, b in enumerate(from_list) if b.id == source_id)
    d_idx = next(i for i, b in enumerate(to_list) if b.id == dest_id)

    if source.category_id == dest.category_id:
        moved = from_list.pop(s_idx)
        from_list.insert(d_idx, moved)
        groups[source.category_id] = rerank(from_list)
        touched = [source.category_id]
    else:
        from_list.pop(s_idx)
        groups[source.category_id] = rerank(from_list)
        to_list.insert(d_idx, replace(source, category_id=dest.category_id))
        groups[dest.category_id] = rerank(to_list)
        touched = [source.category_id, dest.category_id]

    bookmarks = tuple(chain.from_iterable(groups.values()))
    order = {cid: [b.id for b in groups[cid]] for cid in touched}
    return MovePlan(replace(dataset, bookmarks=bookmarks), order)


class ReorderEngine:
    """Turns drag gestures into optimistic store updates plus a sort request.

    The store is patched before the request leaves. A failed request is only
    logged: there is no rollback and no retry, the next full reload brings
    back whatever the backend holds.
    """

    def __init__(self, store: DatasetStore, client: BackendClient, executor=None):
        self.store = store
        self.client = client
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="startdash-sort")
        self.state = DragState.IDLE
        self.source_id: str | None = None

    def begin_drag(self, bookmark_id: str):
        self.state = DragState.DRAGGING
        self.source_id = bookmark_id

    def cancel(self):
        self.state = DragState.IDLE
        self.source_id = None

    def drop(self, dest_id: str | None) -> Future | None:
        """Finish the gesture. Returns the pending persistence, or None for a no-op."""
        if self.state is not DragState.DRAGGING:
            logger.debug("Drop without an active drag ignored")
            return None
        self.state = DragState.DROPPED
        source_id = self.source_id
        try:
            dataset = self.store.dataset
            plan = plan_move(dataset, source_id, dest_id) if dataset is not None else None
        finally:
            self.cancel()
        if plan is None:
            return None
        self.store.set_dataset(plan.dataset)
        return self.executor.submit(self._persist, plan.bookmarks_order)

    def move(self, source_id: str, dest_id: str | None) -> Future | None:
        self.begin_drag(source_id)
        return self.drop(dest_id)

    def _persist(self, bookmarks_order: dict[str, list[str]]) -> bool:
        try:
            self.client.save_order(bookmarks_order)
        except BackendError as exc:
            logger.warning("Saving bookmark order failed, keeping local order: %s", exc)
            return False
        except Exception:
            # the future is usually never collected
            logger.warning("Saving bookmark order crashed, keeping local order", exc_info=True)
            return False
        return True

    def shutdown(self, wait: bool = True):
        if self._owns_executor:
            self.executor.shutdown(wait=wait)
