from __future__ import annotations

from dataclasses import dataclass, field

PUBLIC = "public"
PRIVATE = "private"

TRUE_STRINGS = ("true", "1", "yes", "on")
FALSE_STRINGS = ("false", "0", "no", "off", "")


def parse_flag(value) -> bool:
    """JSON booleans as-is; "true"/"false"-style strings and 0/1 parsed explicitly."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        v = value.strip().lower()
        if v in TRUE_STRINGS:
            return True
        if v in FALSE_STRINGS:
            return False
    raise ValueError(f"Not a boolean: {value!r}")


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    order: int
    visibility: str = PUBLIC

    @property
    def is_private(self) -> bool:
        return self.visibility == PRIVATE

    @classmethod
    def from_dict(cls, data: dict) -> Category:
        try:
            return cls(
                id=str(data["id"]),
                name=str(data.get("name", "")),
                order=int(data.get("order", 0)),
                visibility=data.get("visibility") or PUBLIC,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid category: {data}") from exc

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "order": self.order,
            "visibility": self.visibility,
        }


@dataclass(frozen=True)
class Bookmark:
    id: str
    category_id: str
    title: str
    url: str
    order: int
    description: str = ""
    icon_url: str = ""
    is_private: bool = False
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> Bookmark:
        try:
            return cls(
                id=str(data["id"]),
                category_id=str(data["categoryId"]),
                title=str(data.get("title", "")),
                url=str(data.get("url", "")),
                order=int(data.get("order", 0)),
                description=data.get("description") or "",
                icon_url=data.get("iconUrl") or "",
                is_private=parse_flag(data.get("isPrivate")),
                created_at=data.get("createdAt") or "",
                updated_at=data.get("updatedAt") or "",
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid bookmark: {data}") from exc

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "categoryId": self.category_id,
            "title": self.title,
            "url": self.url,
            "description": self.description,
            "iconUrl": self.icon_url,
            "isPrivate": self.is_private,
            "order": self.order,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass(frozen=True)
class Dataset:
    """One whole snapshot as served by ``GET /api/bookmarks``.

    The position of an entity inside ``categories``/``bookmarks`` carries no
    meaning; each entity's ``order`` is the rank.
    """

    version: int
    categories: tuple[Category, ...] = field(default_factory=tuple)
    bookmarks: tuple[Bookmark, ...] = field(default_factory=tuple)
    updated_at: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> Dataset:
        if not isinstance(data, dict):
            raise ValueError(f"Invalid dataset: {data!r}")
        try:
            version = int(data.get("version", 0))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid dataset version: {data.get('version')!r}") from exc
        return cls(
            version=version,
            categories=tuple(Category.from_dict(c) for c in data.get("categories") or []),
            bookmarks=tuple(Bookmark.from_dict(b) for b in data.get("bookmarks") or []),
            updated_at=data.get("updatedAt") or "",
        )

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "categories": [c.to_dict() for c in self.categories],
            "bookmarks": [b.to_dict() for b in self.bookmarks],
            "updatedAt": self.updated_at,
        }
