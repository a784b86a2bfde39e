# server.py — Flask backend for the bookmark dashboard
# Includes:
# - Categories of bookmark cards, each with a dense rank
# - Public vs. full dataset projections (private categories & bookmarks)
# - Drag & drop order persistence (/api/sort)
# - JSON add/edit/delete for categories and bookmarks
# - Read-only server-rendered card page
#
# Auth: simple session login (password from env, default "password")
# Storage: bookmarks.csv (no DB), see storage.py

import os
import secrets
from functools import wraps

from flask import Flask, current_app, jsonify, render_template_string, request, session

from .models import Dataset, parse_flag
from .storage import (
    build_dataset, category_ids, densify_bookmarks, densify_categories, editing_rows,
    favicon_url, find_row, new_bookmark_row, new_category_row, next_bookmark_order,
    normalize_url, now_iso, read_rows,
)
from .store import DatasetStore

app = Flask(__name__)
app.secret_key = os.environ.get("FLASK_SECRET", "dev-change-me")
app.config.update(
    DATA_FILE=os.environ.get("STARTDASH_DATA", "bookmarks.csv"),
    ADMIN_PASS=os.environ.get("ADMIN_PASS", "password"),
)

VISIBILITIES = ("public", "private")


class ApiError(Exception):
    def __init__(self, message, status=400):
        super().__init__(message)
        self.message = message
        self.status = status


@app.errorhandler(ApiError)
def handle_api_error(err):
    return jsonify({"error": err.message}), err.status


def data_file():
    return current_app.config["DATA_FILE"]

def logged_in():
    return bool(session.get("logged_in"))


# ----------------------------
# Auth
# ----------------------------
def login_required(fn):
    @wraps(fn)
    def wrapper(*a, **kw):
        if not logged_in():
            return jsonify({"error": "Login required."}), 401
        return fn(*a, **kw)
    return wrapper


# ----------------------------
# Request helpers
# ----------------------------
def json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}

def required_text(data, key, label):
    value = data.get(key)
    value = value.strip() if isinstance(value, str) else ""
    if not value:
        raise ApiError(f"{label} required.")
    return value

def optional_text(data, key, default=""):
    value = data.get(key, default)
    return value.strip() if isinstance(value, str) else default

def parse_private(data):
    try:
        return parse_flag(data.get("isPrivate"))
    except ValueError:
        raise ApiError(f"Invalid isPrivate: {data.get('isPrivate')!r}") from None

def parse_visibility(data, default="public"):
    visibility = data.get("visibility") or default
    if visibility not in VISIBILITIES:
        raise ApiError(f"Invalid visibility: {visibility}")
    return visibility


# ----------------------------
# Templates
# ----------------------------
@app.template_filter("favicon")
def favicon_filter(url):
    return favicon_url(url)

INDEX = r"""
<!doctype html>
<html>
<head>
<meta charset="utf-8">
<title>Start Dashboard</title>
<style>
  body{font-family:system-ui,sans-serif;margin:0;padding:1.5rem;background:#f8fafc;color:#111827}
  h2{font-size:1rem;margin:1.5rem 0 .5rem}
  .grid{display:grid;grid-template-columns:repeat(auto-fill,minmax(220px,1fr));gap:.75rem}
  .card{display:flex;gap:.6rem;align-items:center;padding:.6rem .8rem;border:1px solid #e5e7eb;border-radius:.5rem;background:#fff;text-decoration:none;color:inherit}
  .card img{width:20px;height:20px}
  .muted{color:#6b7280;font-size:.85rem}
  .lock{font-size:.75rem;color:#b45309}
</style>
</head>
<body>
<header>
  <strong>Start Dashboard</strong>
  <span class="muted">{{ total }} bookmark(s){% if admin %} · admin{% endif %}</span>
</header>
{% for cat, marks in groups %}
<section id="cat-{{ cat.id }}">
  <h2>{{ cat.name }}{% if cat.is_private %} <span class="lock">private</span>{% endif %}</h2>
  <div class="grid">
  {% for b in marks %}
    <a class="card" href="{{ b.url }}" target="_blank" rel="noopener noreferrer" title="{{ b.description }}">
      <img src="{{ b.icon_url or (b.url|favicon) }}" alt="">
      <span>{{ b.title }}{% if b.is_private %} <span class="lock">private</span>{% endif %}</span>
    </a>
  {% else %}
    <p class="muted">No bookmarks yet.</p>
  {% endfor %}
  </div>
</section>
{% else %}
<p class="muted">No categories yet.</p>
{% endfor %}
</body>
</html>
"""


# ----------------------------
# Routes
# ----------------------------
@app.route("/", methods=["GET"])
def index():
    rows = read_rows(data_file())
    store = DatasetStore(Dataset.from_dict(build_dataset(rows, full=logged_in())))
    by_cat = store.bookmarks_by_category()
    groups = [(c, by_cat.get(c.id, [])) for c in store.categories_sorted()]
    total = sum(len(marks) for _, marks in groups)
    return render_template_string(INDEX, groups=groups, total=total, admin=logged_in())

@app.route("/api/bookmarks", methods=["GET"])
def get_bookmarks():
    full = request.args.get("visibility") == "all"
    if full and not logged_in():
        return jsonify({"error": "Login required."}), 401
    rows = read_rows(data_file())
    return jsonify(build_dataset(rows, full=full))

@app.route("/api/login", methods=["POST"])
def login():
    password = json_body().get("password")
    if not isinstance(password, str) or not password.strip():
        return jsonify({"error": "Password required."}), 400
    if secrets.compare_digest(password.encode(), str(current_app.config["ADMIN_PASS"]).encode()):
        session["logged_in"] = True
        app.logger.info("Admin login")
        return jsonify({"ok": True})
    app.logger.warning("Rejected login attempt from %s", request.remote_addr)
    return jsonify({"error": "Invalid password."}), 401

@app.route("/api/logout", methods=["POST"])
def logout():
    session.clear()
    return jsonify({"ok": True})

# ---- Drag & drop order ----
@app.route("/api/sort", methods=["POST"])
@login_required
def sort_bookmarks():
    order = json_body().get("bookmarksOrder")
    if not isinstance(order, dict):
        raise ApiError("bookmarksOrder must be an object.")
    with editing_rows(data_file()) as rows:
        known = set(category_ids(rows))
        for cid, ids in order.items():
            if cid not in known or not isinstance(ids, list):
                app.logger.debug("Sort: skipping category %r", cid)
                continue
            for i, bid in enumerate(ids):
                row = find_row(rows, bid, "bookmark")
                if row is None:
                    continue
                row["category_id"] = cid
                row["order"] = str(i)
        # categories left out of the payload keep their ranks; re-densify them all
        # so a partial payload cannot leave gaps behind
        for cid in known:
            densify_bookmarks(rows, cid)
    return jsonify({"ok": True})

# ---- Categories ----
@app.route("/api/categories", methods=["POST"])
@login_required
def add_category():
    data = json_body()
    name = required_text(data, "name", "Category name")
    visibility = parse_visibility(data)
    with editing_rows(data_file()) as rows:
        row = new_category_row(rows, name, private=visibility == "private")
        rows.append(row)
    app.logger.info("Category added: %s", name)
    return jsonify({"ok": True, "id": row["id"]}), 201

@app.route("/api/categories/<cid>", methods=["PUT"])
@login_required
def edit_category(cid):
    data = json_body()
    with editing_rows(data_file()) as rows:
        row = find_row(rows, cid, "category")
        if row is None:
            raise ApiError("Category not found.", 404)
        if "name" in data:
            row["name"] = required_text(data, "name", "Category name")
        if "visibility" in data:
            row["private"] = "1" if parse_visibility(data) == "private" else ""
        row["updated_at"] = now_iso()
    return jsonify({"ok": True, "id": cid})

@app.route("/api/categories/<cid>", methods=["DELETE"])
@login_required
def delete_category(cid):
    with editing_rows(data_file()) as rows:
        if find_row(rows, cid, "category") is None:
            raise ApiError("Category not found.", 404)
        rows[:] = [
            r for r in rows
            if not (r.get("rowtype") == "category" and r.get("id") == cid)
            and not (r.get("rowtype") == "bookmark" and r.get("category_id") == cid)
        ]
        densify_categories(rows)
    app.logger.info("Category deleted: %s", cid)
    return jsonify({"ok": True})

# ---- Bookmarks ----
@app.route("/api/bookmarks", methods=["POST"])
@login_required
def add_bookmark():
    data = json_body()
    cid = data.get("categoryId") or ""
    title = required_text(data, "title", "Title")
    url = normalize_url(required_text(data, "url", "URL"))
    with editing_rows(data_file()) as rows:
        if find_row(rows, cid, "category") is None:
            raise ApiError("Category not found.")
        row = new_bookmark_row(rows, cid, title, url,
                               description=optional_text(data, "description"),
                               icon_url=optional_text(data, "iconUrl"),
                               private=parse_private(data))
        rows.append(row)
    return jsonify({"ok": True, "id": row["id"]}), 201

@app.route("/api/bookmarks/<bid>", methods=["PUT"])
@login_required
def edit_bookmark(bid):
    data = json_body()
    with editing_rows(data_file()) as rows:
        row = find_row(rows, bid, "bookmark")
        if row is None:
            raise ApiError("Bookmark not found.", 404)
        if "title" in data:
            row["name"] = required_text(data, "title", "Title")
        if "url" in data:
            row["url"] = normalize_url(required_text(data, "url", "URL"))
        if "description" in data:
            row["description"] = optional_text(data, "description")
        if "iconUrl" in data:
            row["icon_url"] = optional_text(data, "iconUrl")
        if "isPrivate" in data:
            row["private"] = "1" if parse_private(data) else ""
        new_cid = data.get("categoryId")
        if new_cid and new_cid != row.get("category_id"):
            if find_row(rows, new_cid, "category") is None:
                raise ApiError("Category not found.")
            old_cid = row["category_id"]
            row["order"] = str(next_bookmark_order(rows, new_cid))
            row["category_id"] = new_cid
            densify_bookmarks(rows, old_cid)
        row["updated_at"] = now_iso()
    return jsonify({"ok": True, "id": bid})

@app.route("/api/bookmarks/<bid>", methods=["DELETE"])
@login_required
def delete_bookmark(bid):
    with editing_rows(data_file()) as rows:
        row = find_row(rows, bid, "bookmark")
        if row is None:
            raise ApiError("Bookmark not found.", 404)
        rows.remove(row)
        densify_bookmarks(rows, row.get("category_id"))
    return jsonify({"ok": True})
