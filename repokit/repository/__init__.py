"""
Repository pattern: data access abstraction, decouples service layer from database session.
"""

from .base import BaseRepository, IRepository
from .bulk import BulkOperations
from .filter import AbstractFilter
from .pagination import Page, paginate, paginate_collection
from .unit_of_work import UnitOfWork

__all__ = [
    "AbstractFilter",
    "BaseRepository",
    "BulkOperations",
    "IRepository",
    "Page",
    "UnitOfWork",
    "paginate",
    "paginate_collection",
]
