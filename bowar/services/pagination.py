from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from ..core.constants import MAX_PAGE_SIZE
from ..db.schemas import PageMeta


@dataclass(slots=True)
class Page:
    items: list[Any]
    meta: PageMeta


def paginate(db: Session, query: Select, *, page: int, limit: int) -> Page:
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    total = db.scalar(select(func.count()).select_from(query.order_by(None).subquery())) or 0
    items = list(db.scalars(query.limit(limit).offset((page - 1) * limit)).unique())
    meta = PageMeta(
        total=total,
        per_page=limit,
        current_page=page,
        last_page=max(math.ceil(total / limit), 1),
        first_page=1,
    )
    return Page(items=items, meta=meta)
