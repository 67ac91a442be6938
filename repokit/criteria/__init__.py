"""
Criteria: request parameters (search, searchFields, filter, orderBy, sortedBy, with)
parsed into directives and applied to a SQLAlchemy Select.
"""

from .fields import parse_declared_fields, resolve_search_fields
from .params import CriteriaParams, RequestParams
from .predicates import apply_search, build_search_predicate
from .projection import apply_eager_load, apply_projection
from .scope import apply_criteria
from .search import parse_search_value
from .searchable import Searchable, SearchableMixin
from .sorting import apply_sort, resolve_sort, resolve_strict_sort
from .types import (
    CriteriaResult,
    SearchableField,
    SearchValue,
    Skipped,
    SortDirection,
    SortDirective,
    SortJoin,
)

__all__ = [
    "CriteriaParams",
    "CriteriaResult",
    "RequestParams",
    "Searchable",
    "SearchableField",
    "SearchableMixin",
    "SearchValue",
    "Skipped",
    "SortDirection",
    "SortDirective",
    "SortJoin",
    "apply_criteria",
    "apply_eager_load",
    "apply_projection",
    "apply_search",
    "apply_sort",
    "build_search_predicate",
    "parse_declared_fields",
    "parse_search_value",
    "resolve_search_fields",
    "resolve_sort",
    "resolve_strict_sort",
]
