"""Apply every request-driven criteria directive to a statement.

Order: search, orderBy/sortedBy, filter (projection), with (eager loading).
Directives that cannot be applied are collected on the result; they are
logged and skipped, or raised as QueryExecutionError in strict mode.
"""

from typing import Any, Optional, Type

from sqlalchemy.sql import Select

from repokit.config import CriteriaConfig, criteria_config
from repokit.exceptions.handler import ConfigurationError, QueryExecutionError
from repokit.logging.logger import get_logger
from .fields import parse_declared_fields, resolve_search_fields
from .grammar import parse_names
from .params import CriteriaParams
from .predicates import apply_search
from .projection import apply_eager_load, apply_projection
from .search import parse_search_value
from .searchable import Searchable
from .sorting import apply_sort, resolve_sort
from .types import CriteriaResult, Skipped

logger = get_logger("criteria")


def ensure_select(statement: Any) -> Select:
    if not isinstance(statement, Select):
        raise ConfigurationError(
            f"Criteria need a SQLAlchemy Select statement, got {type(statement).__name__}"
        )
    return statement


def ensure_searchable(model: Type[Any]) -> Type[Any]:
    if not isinstance(model, Searchable):
        raise ConfigurationError(
            f"{getattr(model, '__name__', model)} must implement Searchable "
            f"(declare __searchable__ via SearchableMixin) before it can be searched"
        )
    return model


def apply_criteria(
    statement: Select,
    model: Type[Any],
    params: CriteriaParams,
    config: CriteriaConfig = criteria_config,
    strict: Optional[bool] = None,
) -> CriteriaResult:
    ensure_select(statement)
    ensure_searchable(model)
    strict = config.strict if strict is None else strict
    names = config.params
    result = CriteriaResult(statement)

    search = params.get(names.search)
    declared = parse_declared_fields(model.get_fields_searchable())
    if search and declared:
        fields = resolve_search_fields(declared, params.get_list(names.search_fields), config.accepted_conditions)
        value = parse_search_value(str(search), known_fields={item.name for item in declared})
        result.skipped.extend(value.skipped)
        result.statement, applied, skipped = apply_search(result.statement, model, fields, value)
        result.applied.extend(f"search:{name}" for name in applied)
        result.skipped.extend(skipped)

    directive = resolve_sort(params.get(names.order_by), params.get(names.sorted_by))
    if directive is not None:
        result.statement, skipped = apply_sort(result.statement, model, directive)
        if skipped is None:
            result.applied.append(f"orderBy:{directive.column}")
        else:
            result.skipped.append(skipped)

    columns = parse_names(params.get_list(names.filter))
    if columns:
        result.statement, applied, skipped = apply_projection(result.statement, model, columns)
        result.projected = bool(applied)
        result.applied.extend(f"filter:{name}" for name in applied)
        result.skipped.extend(skipped)

    relations = parse_names(params.get_list(names.with_))
    if relations and result.projected:
        result.skipped.extend(Skipped("with", path, "eager loading needs whole entities, not projected columns") for path in relations)
    elif relations:
        result.statement, applied, skipped = apply_eager_load(result.statement, model, relations)
        result.applied.extend(f"with:{path}" for path in applied)
        result.skipped.extend(skipped)

    return _report(result, model, strict)


def _report(result: CriteriaResult, model: Type[Any], strict: bool) -> CriteriaResult:
    if not result.skipped:
        return result
    if strict:
        raise QueryExecutionError(
            f"Criteria could not be applied to {model.__name__}: " + "; ".join(str(item) for item in result.skipped),
            detail=[{"directive": s.directive, "value": s.value, "reason": s.reason} for s in result.skipped],
        )
    for item in result.skipped:
        logger.warning(f"Criteria skipped | {model.__name__} | {item}")
    return result
