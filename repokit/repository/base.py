"""
Repository abstract base class and generic implementation.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Mapping, Optional, Sequence, Type, TypeVar, Union
from sqlalchemy import func, inspect, select
from sqlalchemy.exc import NoInspectionAvailable, SQLAlchemyError
from sqlalchemy.sql import Select
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from repokit.config import CriteriaConfig, criteria_config
from repokit.criteria.grammar import parse_names
from repokit.criteria.params import CriteriaParams
from repokit.criteria.projection import apply_eager_load, apply_projection
from repokit.criteria.scope import apply_criteria
from repokit.criteria.sorting import SortDirection
from repokit.exceptions.handler import ConfigurationError, NotFoundError, WriteFailureError
from repokit.logging.logger import get_logger
from .bulk import BulkOperations
from .pagination import Page, fetch_all, paginate, paginate_collection, resolve_page

T = TypeVar("T", bound=SQLModel)

Condition = Optional[Mapping[str, Any]]
Order = Optional[Mapping[str, str]]
Relations = Union[str, Sequence[str], None]

logger = get_logger("repository")


class IRepository(ABC, Generic[T]):
    """Repository interface; defines standard data access API."""

    @abstractmethod
    async def get_by_id(self, id: Any) -> Optional[T]:
        """Get entity by ID."""
        pass

    @abstractmethod
    async def get_all(self, limit: int = 100, offset: int = 0) -> List[T]:
        """Get all entities (paginated)."""
        pass

    @abstractmethod
    async def create(self, entity: Union[T, Mapping[str, Any]]) -> T:
        """Create entity."""
        pass

    @abstractmethod
    async def update(self, target: Any, data: Mapping[str, Any]) -> Any:
        """Update entity."""
        pass

    @abstractmethod
    async def delete(self, target: Any) -> bool:
        """Delete entity."""
        pass


class BaseRepository(BulkOperations[T], IRepository[T]):
    """Generic repository over a SQLModel table; subclasses pass their model and add custom queries.

    Statements are plain ``sqlalchemy.select`` so that projected queries
    (``columns=[...]``) come back as dict rows and entity queries as models.
    Methods taking ``columns`` return dicts when columns are given.
    """

    # Used whenever a caller passes no explicit order
    default_order: Dict[str, str] = {"column": "id", "order": "asc"}

    # Filter class used by filter(); see repokit.repository.filter.AbstractFilter
    filter_class = None

    def __init__(self, session: AsyncSession, model: Type[T], config: CriteriaConfig = criteria_config):
        """Initialize repository with session and model."""
        self.session = session
        self.model = model
        self.config = config
        self.get_model()

    # --- Model metadata ---

    def get_model(self) -> Type[T]:
        """Return the model class, checking it is a mapped SQLModel table."""
        try:
            inspect(self.model)
        except NoInspectionAvailable:
            raise ConfigurationError(f"Class {self.model!r} must be a SQLModel table model (table=True)") from None
        return self.model

    def get_key_name(self) -> str:
        return inspect(self.model).primary_key[0].key

    def get_table_name(self) -> str:
        return inspect(self.model).local_table.name

    def class_name(self, raw: bool = False) -> str:
        """``Book`` or, with raw, the dotted path ``apps.library.models.Book``."""
        if raw:
            return f"{self.model.__module__}.{self.model.__qualname__}"
        return self.model.__name__

    def _key(self):
        return getattr(self.model, self.get_key_name())

    # --- Statement building ---

    def query(self) -> Select:
        """A fresh SELECT for this model; extend it when no repository method fits."""
        return select(self.model)

    def _columns(self, columns: Optional[Sequence[str]]) -> Select:
        statement = self.query()
        if columns:
            statement, _, skipped = apply_projection(statement, self.model, columns)
            if skipped:
                raise ConfigurationError(
                    f"Unknown columns for {self.class_name()}: {', '.join(str(s.value) for s in skipped)}"
                )
        return statement

    def _where(self, statement: Select, condition: Condition) -> Select:
        for key, value in (condition or {}).items():
            column = inspect(self.model).columns.get(key)
            if column is None:
                raise ConfigurationError(f"{self.class_name()} has no column '{key}'")
            if isinstance(value, (list, tuple, set)):
                statement = statement.where(column.in_(list(value)))
            else:
                statement = statement.where(column == value)
        return statement

    def _order(self, statement: Select, order: Order) -> Select:
        """Apply {"column": ..., "order": ...}; unknown columns fall back to default_order."""
        order = dict(order or self.default_order)
        column = inspect(self.model).columns.get(order.get("column") or self.default_order["column"])
        if column is None:
            column = inspect(self.model).columns.get(self.default_order["column"])
        if column is None:
            return statement
        direction = SortDirection.parse(order.get("order"))
        return statement.order_by(column.desc() if direction is SortDirection.DESC else column.asc())

    def _with(self, statement: Select, relations: Relations) -> Select:
        paths = parse_names(relations) if relations else []
        statement, _, skipped = apply_eager_load(statement, self.model, paths)
        if skipped:
            raise ConfigurationError(
                f"Unknown relations for {self.class_name()}: {', '.join(str(s.value) for s in skipped)}"
            )
        return statement

    def where(self, condition: Condition) -> Select:
        """SELECT filtered by column equality (lists become IN)."""
        return self._where(self.query(), condition)

    def with_(self, relations: Relations) -> Select:
        """SELECT that eager-loads relations (``"author;reviews"`` or a list)."""
        return self._with(self.query(), relations)

    async def _all(self, statement: Select, columns: Optional[Sequence[str]] = None) -> List[Any]:
        return await fetch_all(self.session, statement, projected=bool(columns))

    async def _first(self, statement: Select, columns: Optional[Sequence[str]] = None) -> Any:
        rows = await self._all(statement.limit(1), columns)
        return rows[0] if rows else None

    async def _paginate(self, statement: Select, columns: Optional[Sequence[str]], page: int, per_page: Optional[int]) -> Page:
        return await paginate(
            self.session, statement, per_page=per_page, page=page, projected=bool(columns), config=self.config
        )

    # --- Reads ---

    async def get_by_id(self, id: Any) -> Optional[T]:
        """Get entity by ID."""
        return await self._first(self.query().where(self._key() == id))

    async def get_all(self, limit: int = 100, offset: int = 0) -> List[T]:
        """Get all entities (paginated by limit/offset)."""
        statement = self._order(self.query(), None).limit(limit).offset(offset)
        return await self._all(statement)

    async def all(self, columns: Optional[Sequence[str]] = None, order: Order = None) -> List[Any]:
        return await self._all(self._order(self._columns(columns), order), columns)

    async def exists(self, condition: Condition) -> bool:
        statement = self._where(select(self._key()), condition).limit(1)
        result = await self.session.exec(statement)
        return result.first() is not None

    async def distinct(self, condition: Condition, order: Order = None, columns: Optional[Sequence[str]] = None) -> List[Any]:
        statement = self._order(self._where(self._columns(columns), condition), order).distinct()
        return await self._all(statement, columns)

    async def count(self, condition: Condition = None) -> int:
        """Count entities matching condition."""
        statement = self._where(select(func.count(self._key())), condition)
        result = await self.session.exec(statement)
        return result.scalar_one()

    async def find_one(self, id: Any, columns: Optional[Sequence[str]] = None, fail: bool = True) -> Any:
        """Find by primary key; raises NotFoundError when missing unless fail is False."""
        if not fail:
            return await self.find_one_without_fail(id, columns)
        found = await self.find_one_without_fail(id, columns)
        if found is None:
            raise NotFoundError(self.class_name(), id)
        return found

    async def find_one_without_fail(self, id: Any, columns: Optional[Sequence[str]] = None) -> Any:
        return await self._first(self._columns(columns).where(self._key() == id), columns)

    async def find_many(self, condition: Condition, columns: Optional[Sequence[str]] = None) -> List[Any]:
        return await self._all(self._where(self._columns(columns), condition), columns)

    async def find_one_with(
        self, id: Any, relations: Relations = None, columns: Optional[Sequence[str]] = None, fail: bool = True
    ) -> Any:
        statement = self._with(self._columns(columns), None if columns else relations)
        found = await self._first(statement.where(self._key() == id), columns)
        if found is None and fail:
            raise NotFoundError(self.class_name(), id)
        return found

    async def find_many_with(
        self, ids: Sequence[Any], relations: Relations = None, columns: Optional[Sequence[str]] = None, order: Order = None
    ) -> List[Any]:
        statement = self._with(self._columns(columns), None if columns else relations)
        statement = self._order(statement.where(self._key().in_(list(ids))), order)
        return await self._all(statement, columns)

    async def query_one(self, condition: Condition, columns: Optional[Sequence[str]] = None, fail: bool = True) -> Any:
        """First row matching condition; raises NotFoundError when missing unless fail is False."""
        found = await self._first(self._where(self._columns(columns), condition), columns)
        if found is None and fail:
            raise NotFoundError(self.class_name(), dict(condition or {}))
        return found

    async def find_one_by_slug(
        self, slug: str, column: str = "slug", columns: Optional[Sequence[str]] = None, fail: bool = True
    ) -> Any:
        return await self.query_one({column: slug}, columns, fail)

    async def find_one_by_slug_with(
        self, slug: str, relations: Relations, column: str = "slug", columns: Optional[Sequence[str]] = None
    ) -> Any:
        rows = await self.query_with({column: slug}, relations, columns)
        return rows[0] if rows else None

    async def query_with(
        self, condition: Condition, relations: Relations, columns: Optional[Sequence[str]] = None, order: Order = None
    ) -> List[Any]:
        statement = self._with(self._columns(columns), None if columns else relations)
        return await self._all(self._order(self._where(statement, condition), order), columns)

    async def query_all_with(
        self, relations: Relations, columns: Optional[Sequence[str]] = None, order: Order = None
    ) -> List[Any]:
        return await self.query_with(None, relations, columns, order)

    # --- Native pagination ---

    async def get_paginated(
        self, condition: Condition, order: Order = None, columns: Optional[Sequence[str]] = None,
        page: int = 1, per_page: Optional[int] = None
    ) -> Page:
        statement = self._order(self._where(self._columns(columns), condition), order)
        return await self._paginate(statement, columns, page, per_page)

    async def get_all_paginated(
        self, order: Order = None, columns: Optional[Sequence[str]] = None, page: int = 1, per_page: Optional[int] = None
    ) -> Page:
        return await self.get_paginated(None, order, columns, page, per_page)

    async def get_paginated_with(
        self, condition: Condition, relations: Relations, order: Order = None, columns: Optional[Sequence[str]] = None,
        page: int = 1, per_page: Optional[int] = None
    ) -> Page:
        statement = self._with(self._columns(columns), None if columns else relations)
        statement = self._order(self._where(statement, condition), order)
        return await self._paginate(statement, columns, page, per_page)

    async def get_all_paginated_with(
        self, relations: Relations, order: Order = None, columns: Optional[Sequence[str]] = None,
        page: int = 1, per_page: Optional[int] = None
    ) -> Page:
        return await self.get_paginated_with(None, relations, order, columns, page, per_page)

    async def query_with_pagination(
        self, condition: Condition, relations: Relations, columns: Optional[Sequence[str]] = None,
        order: Order = None, page: int = 1, per_page: Optional[int] = None
    ) -> Page:
        return await self.get_paginated_with(condition, relations, order, columns, page, per_page)

    async def query_all_with_pagination(
        self, relations: Relations, columns: Optional[Sequence[str]] = None, order: Order = None,
        page: int = 1, per_page: Optional[int] = None
    ) -> Page:
        return await self.get_paginated_with(None, relations, order, columns, page, per_page)

    def paginate_collection(
        self, items: Sequence[Any], params: Optional[CriteriaParams] = None,
        per_page: Optional[int] = None, page: Optional[int] = None
    ) -> Page:
        """Paginate an already-loaded collection (1-based, total = len(items))."""
        return paginate_collection(items, params=params, per_page=per_page, page=page, config=self.config)

    async def drop_down_list(
        self, condition: Condition = None, key: str = "id", value: str = "name", order: Order = None
    ) -> Dict[Any, Any]:
        """``{key: value}`` pairs, e.g. for an HTML select."""
        rows = await self.distinct(condition, order or {"column": value, "order": "asc"}, [key, value])
        return {row[key]: row[value] for row in rows}

    # --- Criteria ---

    def search_statement(self, params: CriteriaParams, strict: Optional[bool] = None):
        """Apply request criteria (search, orderBy, filter, with) to a fresh SELECT."""
        result = apply_criteria(self.query(), self.model, params, self.config, strict)
        if not any(applied.startswith("orderBy:") for applied in result.applied):
            result.statement = self._order(result.statement, None)
        return result

    async def search(self, params: CriteriaParams, strict: Optional[bool] = None) -> List[Any]:
        result = self.search_statement(params, strict)
        return await fetch_all(self.session, result.statement, result.projected)

    async def search_paginated(
        self, params: CriteriaParams, per_page: Optional[int] = None, strict: Optional[bool] = None
    ) -> Page:
        """Search plus native pagination; the page number comes from the request."""
        result = self.search_statement(params, strict)
        page = resolve_page(params=params, config=self.config)
        return await paginate(
            self.session, result.statement, per_page=per_page, page=page, projected=result.projected, config=self.config
        )

    def get_filter(self):
        """Filter class for this repository; set ``filter_class`` on the subclass."""
        if self.filter_class is None:
            raise ConfigurationError(f"{type(self).__name__} does not define a filter_class")
        return self.filter_class

    async def filter(self, params: CriteriaParams, per_page: Optional[int] = None) -> Page:
        """Run the repository's filter object over a fresh SELECT and paginate it."""
        query_filter = self.get_filter()(self.query(), params, self.config).filter()
        return await query_filter.paginate(self.session, per_page)

    # --- Writes ---

    async def create(self, entity: Union[T, Mapping[str, Any]]) -> T:
        """Create entity from a model instance or a dict of attributes; flushes to assign the key."""
        if not isinstance(entity, self.model):
            entity = self.model(**dict(entity))
        self.session.add(entity)
        await self._flush("Unable to create.")
        logger.info(f"Created {self.class_name()} {getattr(entity, self.get_key_name(), None)}")
        return entity

    async def update(self, target: Any, data: Mapping[str, Any]) -> Any:
        """Update by key, by instance, or (list of keys) in bulk.

        Returns the updated instance, or the affected row count for bulk updates.
        """
        if isinstance(target, (list, tuple, set)):
            return await self.update_many(list(target), data)
        entity = target if isinstance(target, self.model) else await self.find_one(target)
        columns = inspect(self.model).columns
        for key, value in data.items():
            if columns.get(key) is None:
                raise WriteFailureError(f"Unable to update: {self.class_name()} has no column '{key}'")
            setattr(entity, key, value)
        self.session.add(entity)
        await self._flush("Unable to update.")
        logger.info(f"Updated {self.class_name()} {getattr(entity, self.get_key_name(), None)}")
        return entity

    async def delete(self, target: Any) -> bool:
        """Delete by key or instance; a missing key raises NotFoundError."""
        entity = target if isinstance(target, self.model) else await self.find_one(target)
        await self.session.delete(entity)
        await self._flush("Unable to delete.")
        logger.info(f"Deleted {self.class_name()} {getattr(entity, self.get_key_name(), None)}")
        return True

    async def _flush(self, message: str) -> None:
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"{message} {self.class_name()}: {e}")
            raise WriteFailureError(message) from e
