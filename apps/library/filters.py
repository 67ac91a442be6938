from repokit.repository.filter import AbstractFilter
from .models import Book


class BookFilter(AbstractFilter):
    """Book list view: ?author_id=&year_from=&year_to=&sort_by=&sort_dir="""

    def _int_param(self, key: str):
        value = self.params.get(key)
        try:
            return int(value) if value not in (None, "") else None
        except (TypeError, ValueError):
            return None

    def filter(self) -> "BookFilter":
        author_id = self._int_param("author_id")
        if author_id is not None:
            self.query = self.query.where(Book.author_id == author_id)

        year_from = self._int_param("year_from")
        if year_from is not None:
            self.query = self.query.where(Book.published_year >= year_from)

        year_to = self._int_param("year_to")
        if year_to is not None:
            self.query = self.query.where(Book.published_year <= year_to)

        return self.sort()
