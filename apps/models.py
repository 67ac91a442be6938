"""
Model registration: import every table model here so SQLModel.metadata knows about it
before create_all() runs (startup with DB_AUTO_CREATE, tests).
"""
from apps.library.models import Author, Book, Review

__all__ = ["Author", "Book", "Review"]
