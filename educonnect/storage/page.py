from __future__ import annotations

import math
import typing as t

import sqlalchemy as sqla

from . import Session

T = t.TypeVar("T")


class Page(t.NamedTuple, t.Generic[T]):
    items: tuple[T, ...]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def paginate(
    stmt: sqla.Select[t.Any], *, page: int, limit: int, factory: t.Callable[..., T], session: Session
) -> Page[T]:
    """Run `stmt` for one page of rows; `page` is 1-based."""
    total = session.execute(sqla.select(sqla.func.count()).select_from(stmt.order_by(None).subquery())).scalar_one()
    rows = session.execute(stmt.limit(limit).offset((page - 1) * limit)).mappings().all()
    return Page(items=tuple(factory(**row) for row in rows), page=page, limit=limit, total=total)
