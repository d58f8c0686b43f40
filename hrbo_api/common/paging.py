# hrbo_api/common/paging.py
from __future__ import annotations

from dataclasses import dataclass, field
from math import ceil

from flask import request
from sqlalchemy import asc, desc, or_

DEFAULT_PAGE = 1
DEFAULT_SIZE = 15
MAX_SIZE = 100

def page_limit(args=None, default_size=DEFAULT_SIZE, max_size=MAX_SIZE):
    """
    ?page & ?per_page  (?size / ?limit accepted as aliases)
    Clamped to [1, max_size]; junk falls back to defaults.
    """
    args = request.args if args is None else args
    try:
        page = max(int(args.get("page", DEFAULT_PAGE)), 1)
    except (TypeError, ValueError):
        page = DEFAULT_PAGE
    raw = args.get("per_page") or args.get("size") or args.get("limit")
    try:
        size = int(raw) if raw not in (None, "") else default_size
        size = max(1, min(size, max_size))
    except (TypeError, ValueError):
        size = default_size
    return page, size

def parse_sort(raw: str | None) -> list[tuple[str, bool]]:
    """
    ?sort=name,-created_at  => [("name", True), ("created_at", False)]
    """
    items = []
    for part in [p.strip() for p in (raw or "").split(",") if p.strip()]:
        if part.startswith("-"):
            items.append((part[1:], False))
        else:
            items.append((part, True))
    return items

def apply_sort(query, sort: list[tuple[str, bool]], allowed: dict[str, object], default):
    """
    allowed: {"name": Model.name, "created_at": Model.created_at, ...}
    Unknown keys ignored; `default` column used when nothing applies.
    """
    used = False
    for key, asc_order in sort:
        col = allowed.get(key)
        if col is not None:
            query = query.order_by(asc(col) if asc_order else desc(col))
            used = True
    if not used:
        query = query.order_by(asc(default))
    return query

def text_q(args=None):
    args = request.args if args is None else args
    q = (args.get("q") or args.get("search") or "").strip()
    return q or None


def ilike_any(s: str, *columns):
    """Case-insensitive substring match on any column; % and _ in `s` match literally."""
    pattern = "%" + s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "%"
    return or_(*(c.ilike(pattern, escape="\\") for c in columns))


@dataclass
class Page:
    items: list = field(default_factory=list)
    page: int = DEFAULT_PAGE
    per_page: int = DEFAULT_SIZE
    total: int = 0

    @property
    def pages(self) -> int:
        return ceil(self.total / self.per_page) if self.per_page else 0

    def meta(self) -> dict:
        return {"page": self.page, "per_page": self.per_page, "total": self.total, "pages": self.pages}

def paginate(query, page: int, per_page: int) -> Page:
    total = query.order_by(None).count()
    items = query.offset((page - 1) * per_page).limit(per_page).all()
    return Page(items=items, page=page, per_page=per_page, total=total)
