# CSV-backed storage for the dashboard service. No DB: one file, read and
# written whole.
#
# CSV schema:
# rowtype,id,category_id,order,name,url,description,icon_url,private,created_at,updated_at
#   rowtype "meta"     -> dataset-level updated_at
#   rowtype "category" -> name, order, private
#   rowtype "bookmark" -> category_id, order, name (title), url, description, icon_url, private

import csv
import os
import re
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from urllib.parse import urlparse

FIELDS = ["rowtype", "id", "category_id", "order", "name", "url", "description",
          "icon_url", "private", "created_at", "updated_at"]
DATASET_VERSION = 1

_rows_lock = threading.RLock()


# ----------------------------
# File helpers
# ----------------------------
def now_iso():
    return datetime.now(timezone.utc).isoformat(timespec="seconds")

def ensure_csv(path):
    """Create file with header and meta row if missing."""
    if not os.path.exists(path):
        save_rows([dict(rowtype="meta", id="meta", updated_at=now_iso())], path)

def load_rows(path):
    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    for r in rows:
        for k in FIELDS:
            if r.get(k) is None:
                r[k] = ""
    return rows

def save_rows(rows, path):
    tmp = f"{path}.tmp"
    with open(tmp, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=FIELDS)
        w.writeheader()
        for r in rows:
            w.writerow({k: r.get(k, "") for k in FIELDS})
    os.replace(tmp, path)

def read_rows(path):
    with _rows_lock:
        ensure_csv(path)
        return load_rows(path)

@contextmanager
def editing_rows(path):
    """Load rows, let the caller change them, save on clean exit.

    An exception inside the block leaves the file untouched.
    """
    with _rows_lock:
        ensure_csv(path)
        rows = load_rows(path)
        yield rows
        touch_meta(rows)
        save_rows(rows, path)

def touch_meta(rows):
    meta = next((r for r in rows if r.get("rowtype") == "meta"), None)
    if meta is None:
        meta = dict(rowtype="meta", id="meta")
        rows.insert(0, meta)
    meta["updated_at"] = now_iso()


# ----------------------------
# Row helpers
# ----------------------------
def new_id():
    return uuid.uuid4().hex

def as_int(v, default=0):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default

def next_order(rows, predicate):
    orders = [as_int(r.get("order")) for r in rows if predicate(r)]
    return (max(orders) + 1) if orders else 0

def next_category_order(rows):
    return next_order(rows, lambda r: r.get("rowtype") == "category")

def next_bookmark_order(rows, cid):
    return next_order(rows, lambda r: r.get("rowtype") == "bookmark" and r.get("category_id") == cid)

def find_row(rows, rid, rowtype=None):
    for r in rows:
        if r.get("id") == rid and (rowtype is None or r.get("rowtype") == rowtype):
            return r
    return None

def densify(rows, predicate):
    """Renumber matching rows 0..k-1 by current order; ties keep file position."""
    items = sorted((r for r in rows if predicate(r)), key=lambda r: as_int(r.get("order")))
    for i, r in enumerate(items):
        r["order"] = str(i)

def densify_bookmarks(rows, cid):
    densify(rows, lambda r: r.get("rowtype") == "bookmark" and r.get("category_id") == cid)

def densify_categories(rows):
    densify(rows, lambda r: r.get("rowtype") == "category")

def category_ids(rows):
    return [r["id"] for r in rows if r.get("rowtype") == "category"]

def new_category_row(rows, name, private=False):
    ts = now_iso()
    return dict(rowtype="category", id=new_id(), order=str(next_category_order(rows)),
                name=name, private="1" if private else "", created_at=ts, updated_at=ts)

def new_bookmark_row(rows, cid, title, url, description="", icon_url="", private=False):
    ts = now_iso()
    return dict(rowtype="bookmark", id=new_id(), category_id=cid,
                order=str(next_bookmark_order(rows, cid)), name=title, url=url,
                description=description, icon_url=icon_url, private="1" if private else "",
                created_at=ts, updated_at=ts)


# ----------------------------
# URL helpers
# ----------------------------
def normalize_url(u: str) -> str:
    if not u: return ""
    u = u.strip()
    if not u: return ""
    if not re.match(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://", u):
        u = "https://" + u
    return u

def favicon_url(url):
    try:
        host = urlparse(url).netloc or ""
        host = host.split("@")[-1]
    except ValueError:
        host = ""
    if not host:
        return ""
    return f"https://icons.duckduckgo.com/ip3/{host}.ico"


# ----------------------------
# Dataset builder
# ----------------------------
def category_dict(r):
    return {
        "id": r["id"],
        "name": r.get("name", ""),
        "order": as_int(r.get("order")),
        "visibility": "private" if r.get("private") else "public",
    }

def bookmark_dict(r):
    return {
        "id": r["id"],
        "categoryId": r.get("category_id", ""),
        "title": r.get("name", ""),
        "url": r.get("url", ""),
        "description": r.get("description", ""),
        "iconUrl": r.get("icon_url", ""),
        "isPrivate": bool(r.get("private")),
        "order": as_int(r.get("order")),
        "createdAt": r.get("created_at", ""),
        "updatedAt": r.get("updated_at", ""),
    }

def _rerank(items):
    items.sort(key=lambda d: d["order"])
    for i, d in enumerate(items):
        d["order"] = i

def build_dataset(rows, full=False):
    """Dataset JSON for a caller; the public projection hides private rows.

    Hiding rows would leave holes in the ranks, so the public projection is
    re-ranked densely (categories, and bookmarks per category).
    """
    cats = [category_dict(r) for r in rows if r.get("rowtype") == "category"]
    marks = [bookmark_dict(r) for r in rows if r.get("rowtype") == "bookmark"]
    if not full:
        cats = [c for c in cats if c["visibility"] != "private"]
        visible = {c["id"] for c in cats}
        marks = [b for b in marks if not b["isPrivate"] and b["categoryId"] in visible]
        _rerank(cats)
        groups = {}
        for b in marks:
            groups.setdefault(b["categoryId"], []).append(b)
        for items in groups.values():
            _rerank(items)
    meta = next((r for r in rows if r.get("rowtype") == "meta"), {})
    return {
        "version": DATASET_VERSION,
        "categories": cats,
        "bookmarks": marks,
        "updatedAt": meta.get("updated_at", ""),
    }
