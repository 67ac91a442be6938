from typing import Any, Dict, List, Optional, Sequence
from sqlalchemy import inspect
from repokit.criteria.grammar import RELATION_SEPARATOR, parse_names
from repokit.criteria.params import CriteriaParams
from repokit.exceptions.handler import BusinessException
from repokit.logging.logger import get_logger
from repokit.repository.pagination import Page
from repokit.repository.unit_of_work import UnitOfWork
from .repository import AuthorRepository, BookRepository

logger = get_logger("library_service")


def to_payload(item: Any, relations: Sequence[str] = ()) -> Any:
    """Dump an entity plus the requested relations that are already loaded.

    Projected rows (dicts) pass through unchanged. Relations never trigger a
    load here; an unloaded relation is simply left out.
    """
    if item is None or isinstance(item, dict):
        return item
    data = item.model_dump()
    state = inspect(item)
    nested: Dict[str, List[str]] = {}
    for path in relations:
        head, _, rest = path.partition(RELATION_SEPARATOR)
        nested.setdefault(head, [])
        if rest:
            nested[head].append(rest)
    for name, rest in nested.items():
        if name not in state.mapper.relationships or name in state.unloaded:
            continue
        related = getattr(item, name)
        if isinstance(related, list):
            data[name] = [to_payload(child, rest) for child in related]
        else:
            data[name] = to_payload(related, rest)
    return data


class LibraryService:
    """Library use cases over the book and author repositories."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.books = uow.get_repository(BookRepository)
        self.authors = uow.get_repository(AuthorRepository)

    def _relations(self, params: CriteriaParams) -> List[str]:
        return parse_names(params.get_list(self.uow.config.params.with_))

    def _page_payload(self, page: Page, relations: Sequence[str] = ()) -> List[Any]:
        return [to_payload(item, relations) for item in page.items]

    # --- Reads ---

    async def search_books(self, params: CriteriaParams) -> tuple[Page, List[Any]]:
        """Search/sort/project/eager-load books from request parameters."""
        page = await self.books.search_paginated(params)
        return page, self._page_payload(page, self._relations(params))

    async def filter_books(self, params: CriteriaParams, per_page: Optional[int] = None) -> tuple[Page, List[Any]]:
        page = await self.books.filter(params, per_page)
        return page, self._page_payload(page)

    async def search_authors(self, params: CriteriaParams) -> tuple[Page, List[Any]]:
        page = await self.authors.search_paginated(params)
        return page, self._page_payload(page, self._relations(params))

    async def get_book(self, book_id: int, relations: Optional[str] = None) -> Dict[str, Any]:
        paths = parse_names(relations)
        book = await self.books.find_one_with(book_id, paths)
        return to_payload(book, paths)

    async def get_book_by_slug(self, slug: str) -> Dict[str, Any]:
        book = await self.books.find_one_by_slug(slug)
        return to_payload(book)

    async def book_reviews(self, book_id: int, params: CriteriaParams, per_page: Optional[int] = None) -> tuple[Page, List[Any]]:
        """Reviews of one book, paginated in memory from the loaded relation."""
        book = await self.books.find_one_with(book_id, "reviews")
        reviews = sorted(book.reviews, key=lambda review: review.id)
        page = self.books.paginate_collection(reviews, params=params, per_page=per_page)
        return page, self._page_payload(page)

    async def author_options(self) -> Dict[Any, Any]:
        return await self.authors.drop_down_list()

    # --- Writes ---

    async def _commit(self, operation, *args):
        try:
            result = await operation(*args)
            await self.uow.commit()
            return result
        except BusinessException:
            await self.uow.rollback()
            raise

    async def create_book(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if data.get("author_id") is not None and not await self.authors.exists({"id": data["author_id"]}):
            raise BusinessException(f"Author {data['author_id']} does not exist", status_code=400, code=400)
        book = await self._commit(self.books.create, data)
        logger.info(f"Book {book.slug} created")
        return to_payload(book)

    async def update_book(self, book_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        book = await self._commit(self.books.update, book_id, data)
        return to_payload(book)

    async def delete_book(self, book_id: int) -> bool:
        return await self._commit(self.books.delete, book_id)

    async def bulk_create_books(self, rows: List[Dict[str, Any]]) -> int:
        return await self._commit(self.books.create_many, rows)

    async def bulk_update_books(self, ids: List[int], data: Dict[str, Any]) -> int:
        return await self._commit(self.books.update, ids, data)

    async def bulk_delete_books(self, ids: List[int]) -> int:
        return await self._commit(self.books.delete_many, ids)
