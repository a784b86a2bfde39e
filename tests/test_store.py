from dataclasses import replace

import pytest

from startdash.models import Bookmark, Category, Dataset
from startdash.store import DatasetStore, public_projection


def test_empty_store_has_no_views():
    store = DatasetStore()
    assert store.dataset is None
    assert store.categories_sorted() == []
    assert store.bookmarks_by_category() == {}
    assert store.find_bookmark("x") is None


def test_categories_sorted_by_rank_and_stable_on_ties():
    ds = Dataset(version=1, categories=(
        Category("c2", "Two", 1),
        Category("c0", "Zero", 0),
        Category("c1a", "One A", 1),
    ))
    store = DatasetStore(ds)
    assert [c.id for c in store.categories_sorted()] == ["c0", "c2", "c1a"]


def test_bookmarks_grouped_and_sorted(make_dataset):
    ds = make_dataset({"work": ["a", "b", "c"], "fun": ["d"], "empty": []})
    # shuffle collection order; ranks stay authoritative
    ds = Dataset(version=1, categories=ds.categories, bookmarks=tuple(reversed(ds.bookmarks)))
    groups = DatasetStore(ds).bookmarks_by_category()
    assert [b.id for b in groups["work"]] == ["a", "b", "c"]
    assert [b.id for b in groups["fun"]] == ["d"]
    assert groups["empty"] == []


def test_set_dataset_notifies_observers(make_dataset):
    store = DatasetStore()
    seen = []
    unsubscribe = store.subscribe(seen.append)
    first = make_dataset({"work": ["a"]})
    store.set_dataset(first)
    unsubscribe()
    store.set_dataset(make_dataset({"work": []}))
    assert seen == [first]


def test_failing_observer_does_not_block_others(make_dataset):
    store = DatasetStore()
    seen = []

    def broken(_):
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(seen.append)
    store.set_dataset(make_dataset({"work": ["a"]}))
    assert len(seen) == 1


def test_lookups(make_dataset):
    store = DatasetStore(make_dataset({"work": ["a", "b"]}))
    assert store.find_bookmark("b").order == 1
    assert store.category("work").name == "Work"
    assert store.category("nope") is None


def test_dataset_round_trips_wire_names():
    data = {
        "version": 3,
        "categories": [{"id": "c", "name": "C", "order": 0, "visibility": "private"}],
        "bookmarks": [{"id": "b", "categoryId": "c", "title": "T", "url": "https://t",
                       "isPrivate": True, "order": 0, "createdAt": "x", "updatedAt": "y"}],
        "updatedAt": "z",
    }
    ds = Dataset.from_dict(data)
    assert ds.categories[0].is_private
    assert ds.bookmarks[0].category_id == "c"
    assert ds.bookmarks[0].is_private
    assert ds.to_dict()["bookmarks"][0]["categoryId"] == "c"


def test_missing_optional_fields_default():
    b = Bookmark.from_dict({"id": "b", "categoryId": "c", "title": "T", "url": "u", "order": 2})
    assert (b.description, b.icon_url, b.is_private) == ("", "", False)
    assert Category.from_dict({"id": "c", "name": "C", "order": 0}).visibility == "public"


def test_malformed_bookmark_rejected():
    with pytest.raises(ValueError):
        Bookmark.from_dict({"id": "b", "title": "no category"})


def test_public_projection_drops_private_and_reranks(make_dataset):
    ds = make_dataset({"work": ["a", "hidden", "b"], "secret": ["s"], "fun": ["f"]})
    ds = replace(
        ds,
        categories=tuple(replace(c, visibility="private") if c.id == "secret" else c for c in ds.categories),
        bookmarks=tuple(replace(b, is_private=True) if b.id == "hidden" else b for b in ds.bookmarks),
    )
    public = public_projection(ds)
    assert [(c.id, c.order) for c in public.categories] == [("work", 0), ("fun", 1)]
    assert [(b.id, b.category_id, b.order) for b in public.bookmarks] == [
        ("a", "work", 0), ("b", "work", 1), ("f", "fun", 0)]
    assert public.version == ds.version


def test_public_projection_of_public_data_is_unchanged(make_dataset):
    ds = make_dataset({"work": ["a", "b"], "fun": ["f"]})
    assert public_projection(ds) == ds


@pytest.mark.parametrize("raw,expected", [
    (True, True), (False, False), (None, False), ("false", False), ("False", False),
    ("0", False), ("", False), ("true", True), ("1", True), (1, True), (0, False),
])
def test_is_private_parsed_explicitly(raw, expected):
    b = Bookmark.from_dict({"id": "b", "categoryId": "c", "title": "T", "url": "u", "isPrivate": raw})
    assert b.is_private is expected


def test_unparseable_is_private_rejected():
    with pytest.raises(ValueError):
        Bookmark.from_dict({"id": "b", "categoryId": "c", "title": "T", "url": "u", "isPrivate": "maybe"})
