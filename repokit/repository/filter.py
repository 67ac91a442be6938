"""
Filter objects: per-entity list views built from request parameters.

Unlike the search criteria, sorting here is strict: ``sort_by`` must be a
literal column of the entity's table, otherwise no ordering is applied.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from sqlalchemy import inspect
from sqlalchemy.sql import Select
from sqlmodel.ext.asyncio.session import AsyncSession

from repokit.config import CriteriaConfig, criteria_config
from repokit.criteria.params import CriteriaParams
from repokit.criteria.scope import ensure_select
from repokit.criteria.sorting import apply_sort, resolve_strict_sort
from repokit.exceptions.handler import ConfigurationError
from .pagination import Page, fetch_all, paginate, resolve_page


class AbstractFilter(ABC):
    """Subclasses implement filter() by narrowing ``self.query``; it must return self.

        class BookFilter(AbstractFilter):
            def filter(self):
                if self.params.has("author_id"):
                    self.query = self.query.where(Book.author_id == int(self.params.get("author_id")))
                return self.sort()
    """

    def __init__(self, query: Select, params: CriteriaParams, config: CriteriaConfig = criteria_config):
        self.query = ensure_select(query)
        self.params = params
        self.config = config
        self.model = self._entity(query)

    @staticmethod
    def _entity(query: Select):
        for description in query.column_descriptions:
            entity = description.get("entity")
            if entity is not None:
                return entity
        raise ConfigurationError("Filter query must select an entity")

    def column(self, name: str):
        return inspect(self.model).columns.get(name)

    @abstractmethod
    def filter(self) -> "AbstractFilter":
        """Execute all filters."""

    def sort(self) -> "AbstractFilter":
        """Order by ``sort_by``/``sort_dir`` when sort_by names a column of the table."""
        names = self.config.params
        directive = resolve_strict_sort(self.model, self.params.get(names.sort_by), self.params.get(names.sort_dir))
        self.query, _ = apply_sort(self.query, self.model, directive)
        return self

    async def get(self, session: AsyncSession) -> List[Any]:
        return await fetch_all(session, self.query)

    async def paginate(self, session: AsyncSession, page_size: Optional[int] = None) -> Page:
        """Paginate the filtered query; page size falls back to the configured default."""
        page = resolve_page(params=self.params, config=self.config)
        return await paginate(session, self.query, per_page=page_size, page=page, config=self.config)
