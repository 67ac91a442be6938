"""Capability an entity implements to take part in request-driven search."""

from typing import ClassVar, Protocol, Sequence, Tuple, runtime_checkable


@runtime_checkable
class Searchable(Protocol):
    """Entities declare their searchable fields as ``field`` or ``field:operator`` tokens.

    Relation-qualified fields use dots: ``author.name`` searches the related
    author's name column.
    """

    @classmethod
    def get_fields_searchable(cls) -> Sequence[str]:
        ...


class SearchableMixin:
    """Implements Searchable from a ``__searchable__`` class attribute.

        class Book(SearchableMixin, SQLModel, table=True):
            __searchable__ = ("title:like", "isbn", "author.name")
    """

    __searchable__: ClassVar[Tuple[str, ...]] = ()

    @classmethod
    def get_fields_searchable(cls) -> Sequence[str]:
        return tuple(cls.__searchable__)
