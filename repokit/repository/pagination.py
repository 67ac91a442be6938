"""
Pagination: native (count + LIMIT/OFFSET on a statement) and in-memory collections.
Pages are 1-based; offset = page * per_page - per_page.
"""

import math
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.engine import ScalarResult
from sqlalchemy.sql import Select
from sqlmodel.ext.asyncio.session import AsyncSession

from repokit.config import CriteriaConfig, criteria_config
from repokit.criteria.params import CriteriaParams


class Page(BaseModel):
    items: List[Any]
    total: int
    per_page: int
    current_page: int = 1

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page)) if self.per_page else 1

    @property
    def offset(self) -> int:
        return page_offset(self.current_page, self.per_page)

    @property
    def from_index(self) -> Optional[int]:
        """1-based position of the first item on this page, None when the page is empty."""
        return self.offset + 1 if self.items else None

    @property
    def to_index(self) -> Optional[int]:
        return self.offset + len(self.items) if self.items else None

    @property
    def has_more_pages(self) -> bool:
        return self.current_page < self.last_page


def page_offset(page: int, per_page: int) -> int:
    return (page * per_page) - per_page


def resolve_page_size(per_page: Optional[int] = None, config: CriteriaConfig = criteria_config) -> int:
    """A positive explicit page size wins over the configured default."""
    try:
        size = int(per_page) if per_page else 0
    except (TypeError, ValueError):
        size = 0
    return size if size >= 1 else config.pagination_limit


def resolve_page(
    page: Optional[int] = None,
    params: Optional[CriteriaParams] = None,
    config: CriteriaConfig = criteria_config,
) -> int:
    """Explicit page, else the request's page parameter, else 1. Non-numeric or < 1 becomes 1."""
    raw: Any = page
    if not raw and params is not None and params.has(config.params.page):
        raw = params.get(config.params.page)
    try:
        value = int(raw) if raw else 1
    except (TypeError, ValueError):
        return 1
    return value if value >= 1 else 1


def paginate_collection(
    items: Sequence[Any],
    params: Optional[CriteriaParams] = None,
    per_page: Optional[int] = None,
    page: Optional[int] = None,
    config: CriteriaConfig = criteria_config,
) -> Page:
    """Slice an already-loaded collection; total is the size before slicing."""
    data = list(items)
    per_page = resolve_page_size(per_page, config)
    current = resolve_page(page, params, config)
    offset = page_offset(current, per_page)
    return Page(items=data[offset:offset + per_page], total=len(data), per_page=per_page, current_page=current)


async def fetch_all(session: AsyncSession, statement: Select, projected: bool = False) -> List[Any]:
    """Entities for entity statements, dict rows for projected ones.

    Expects a plain sqlalchemy Select; session.exec() already unwraps
    sqlmodel's single-entity SelectOfScalar into a ScalarResult.
    """
    result = await session.exec(statement)
    if isinstance(result, ScalarResult):
        return list(result.all())
    if projected:
        return [dict(row) for row in result.mappings().all()]
    return list(result.scalars().all())


async def count_rows(session: AsyncSession, statement: Select) -> int:
    subquery = statement.order_by(None).subquery()
    result = await session.exec(select(func.count()).select_from(subquery))
    return result.scalar_one()


async def paginate(
    session: AsyncSession,
    statement: Select,
    per_page: Optional[int] = None,
    page: int = 1,
    projected: bool = False,
    config: CriteriaConfig = criteria_config,
) -> Page:
    """Run statement for one page; projected statements yield dict rows instead of entities."""
    per_page = resolve_page_size(per_page, config)
    page = resolve_page(page, config=config)
    total = await count_rows(session, statement)
    items = await fetch_all(session, statement.limit(per_page).offset(page_offset(page, per_page)), projected)
    return Page(items=items, total=total, per_page=per_page, current_page=page)
