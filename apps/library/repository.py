"""Library module repository implementations."""

from typing import Optional
from repokit.config import criteria_config
from repokit.repository.base import BaseRepository
from .filters import BookFilter
from .models import Author, Book, Review


class AuthorRepository(BaseRepository[Author]):
    """Author repository."""

    default_order = {"column": "name", "order": "asc"}

    def __init__(self, session, config=criteria_config):
        super().__init__(session, Author, config)

    async def get_by_name(self, name: str) -> Optional[Author]:
        """Find author by exact name."""
        return await self.query_one({"name": name}, fail=False)


class BookRepository(BaseRepository[Book]):
    """Book repository; list views go through BookFilter."""

    filter_class = BookFilter

    def __init__(self, session, config=criteria_config):
        super().__init__(session, Book, config)

    async def list_by_author(self, author_id: int) -> list[Book]:
        """Books of one author with the author loaded, oldest publication first."""
        return await self.query_with(
            {"author_id": author_id},
            "author",
            order={"column": "published_year", "order": "asc"},
        )


class ReviewRepository(BaseRepository[Review]):
    """Review repository."""

    def __init__(self, session, config=criteria_config):
        super().__init__(session, Review, config)
