from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List
from datetime import datetime, timezone
from repokit.criteria.searchable import SearchableMixin

class Author(SearchableMixin, SQLModel, table=True):
    """Book author; searchable by name (partial), country and bio."""
    __tablename__ = "authors"
    __searchable__ = ("name:like", "country", "bio:like")

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, max_length=255)
    country: Optional[str] = Field(default=None, max_length=100)
    bio: Optional[str] = Field(default=None)

    books: List["Book"] = Relationship(back_populates="author")

class Book(SearchableMixin, SQLModel, table=True):
    """Book; searchable on its own columns and through its author and reviews."""
    __tablename__ = "books"
    __searchable__ = ("title:like", "slug", "isbn", "author.name", "reviews.reviewer", "published_year")

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True, max_length=255)
    slug: str = Field(unique=True, index=True, max_length=255)
    isbn: Optional[str] = Field(default=None, max_length=20)
    summary: Optional[str] = Field(default=None)
    published_year: Optional[int] = Field(default=None, index=True)
    author_id: Optional[int] = Field(default=None, foreign_key="authors.id", index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    author: Optional[Author] = Relationship(back_populates="books")
    reviews: List["Review"] = Relationship(back_populates="book")

class Review(SQLModel, table=True):
    """Reader review; not searchable through request criteria."""
    __tablename__ = "reviews"

    id: Optional[int] = Field(default=None, primary_key=True)
    book_id: int = Field(foreign_key="books.id", index=True)
    reviewer: str = Field(max_length=100)
    rating: int = Field(default=3, ge=1, le=5)
    body: Optional[str] = Field(default=None)

    book: Optional[Book] = Relationship(back_populates="reviews")
