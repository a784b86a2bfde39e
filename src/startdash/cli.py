"""Command line helpers: run the service, manage the CSV, inspect a live dashboard."""

import argparse
import logging
import os
import sys

from .errors import StartdashError
from .storage import (
    densify_bookmarks, densify_categories, editing_rows, find_row, new_bookmark_row,
    new_category_row, normalize_url, read_rows,
)

DEFAULT_URL = "http://127.0.0.1:5000/api"


def seed_rows(rows):
    """Sample content for an empty file."""
    news = new_category_row(rows, "News")
    rows.append(news)
    dev = new_category_row(rows, "Dev Tools")
    rows.append(dev)
    rows.append(new_bookmark_row(rows, news["id"], "Hacker News", "https://news.ycombinator.com"))
    rows.append(new_bookmark_row(rows, dev["id"], "GitHub", "https://github.com"))
    rows.append(new_bookmark_row(rows, dev["id"], "Admin console", "https://example.com/admin", private=True))


def build_parser():
    parser = argparse.ArgumentParser(prog="startdash", description="Bookmark dashboard service and tools")
    parser.add_argument("--data", default=os.environ.get("STARTDASH_DATA", "bookmarks.csv"),
                        help="CSV data file (env STARTDASH_DATA)")
    sub = parser.add_subparsers(dest="cmd")

    srv = sub.add_parser("serve", help="Run the web service")
    srv.add_argument("--host", default="127.0.0.1")
    srv.add_argument("--port", type=int, default=5000)
    srv.add_argument("--debug", action="store_true")

    sub.add_parser("list", help="List categories and bookmarks in the data file")

    addc = sub.add_parser("add-category", help="Add a category")
    addc.add_argument("--name", required=True)
    addc.add_argument("--private", action="store_true")

    addb = sub.add_parser("add-bookmark", help="Add a bookmark to a category")
    addb.add_argument("--category", required=True, help="Category ID")
    addb.add_argument("--url", required=True)
    addb.add_argument("--title", default="")
    addb.add_argument("--description", default="")
    addb.add_argument("--icon", default="")
    addb.add_argument("--private", action="store_true")

    deli = sub.add_parser("delete-item", help="Delete a bookmark, or a category with its bookmarks")
    deli.add_argument("--id", required=True)

    show = sub.add_parser("show", help="Load a running dashboard and print its groups")
    show.add_argument("--url", default=os.environ.get("STARTDASH_URL", DEFAULT_URL))
    show.add_argument("--password", default=None, help="Log in first to include private items")
    return parser


def cmd_serve(args):
    from .server import app

    with editing_rows(args.data) as rows:
        if not any(r.get("rowtype") == "category" for r in rows):
            seed_rows(rows)
    app.config["DATA_FILE"] = args.data
    app.run(debug=args.debug, host=args.host, port=args.port)
    return 0


def cmd_list(args):
    rows = read_rows(args.data)
    cats = sorted((r for r in rows if r.get("rowtype") == "category"), key=lambda r: int(r.get("order") or 0))
    for c in cats:
        flag = " [private]" if c.get("private") else ""
        print(f"{c['id']}\t{c.get('name','')}{flag}")
        marks = [r for r in rows if r.get("rowtype") == "bookmark" and r.get("category_id") == c["id"]]
        for b in sorted(marks, key=lambda r: int(r.get("order") or 0)):
            flag = " [private]" if b.get("private") else ""
            print(f"  {b['id']}\t{b.get('order')}\t{b.get('name','')}\t{b.get('url','')}{flag}")
    return 0


def cmd_add_category(args):
    name = args.name.strip()
    if not name:
        print("Category name required", file=sys.stderr); return 1
    with editing_rows(args.data) as rows:
        row = new_category_row(rows, name, private=args.private)
        rows.append(row)
    print(f"category={row['id']}")
    return 0


def cmd_add_bookmark(args):
    url = normalize_url(args.url)
    if not url:
        print("URL required", file=sys.stderr); return 1
    with editing_rows(args.data) as rows:
        if find_row(rows, args.category, "category") is None:
            raise StartdashError("Category not found")
        title = args.title.strip() or url
        row = new_bookmark_row(rows, args.category, title, url, description=args.description,
                               icon_url=args.icon, private=args.private)
        rows.append(row)
    print(f"bookmark={row['id']}")
    return 0


def cmd_delete_item(args):
    with editing_rows(args.data) as rows:
        row = find_row(rows, args.id)
        if row is None or row.get("rowtype") not in ("category", "bookmark"):
            raise StartdashError("Item not found")
        if row["rowtype"] == "category":
            rows[:] = [r for r in rows if r.get("id") != args.id and r.get("category_id") != args.id]
            densify_categories(rows)
        else:
            rows[:] = [r for r in rows if r.get("id") != args.id]
            densify_bookmarks(rows, row.get("category_id"))
    return 0


def cmd_show(args):
    from .dashboard import Dashboard

    dash = Dashboard.connect(args.url)
    try:
        if args.password:
            dash.login(args.password)
        elif not dash.start():
            print("Could not load dashboard", file=sys.stderr); return 1
        print(f"capability={dash.session.capability.value}")
        for cat, marks in dash.groups():
            flag = " [private]" if cat.is_private else ""
            print(f"{cat.name}{flag}")
            for b in marks:
                flag = " [private]" if b.is_private else ""
                print(f"  {b.order}\t{b.title}\t{b.url}{flag}")
    finally:
        dash.close()
    return 0


COMMANDS = {
    "serve": cmd_serve,
    "list": cmd_list,
    "add-category": cmd_add_category,
    "add-bookmark": cmd_add_bookmark,
    "delete-item": cmd_delete_item,
    "show": cmd_show,
}


def main(argv=None):
    logging.basicConfig(
        level=os.environ.get("STARTDASH_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = COMMANDS.get(args.cmd)
    if handler is None:
        parser.print_help()
        return 0
    try:
        return handler(args)
    except StartdashError as exc:
        print(str(exc), file=sys.stderr)
        return 1
