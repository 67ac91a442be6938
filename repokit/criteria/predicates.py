"""Build the grouped search predicate from resolved fields and a parsed search value."""

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Tuple, Type

from sqlalchemy import inspect, or_
from sqlalchemy.sql import Select
from sqlalchemy.sql.elements import ColumnElement

from repokit.logging.logger import get_logger
from .grammar import RELATION_SEPARATOR, split_relation
from .types import SearchValue, Skipped

logger = get_logger("criteria")

# Maps search conditions to SQLAlchemy column methods.
# For example, `searchFields=name:like` calls `Column.like('%value%')`.
OPERATOR_MAP = {
    "=": "__eq__",
    "!=": "__ne__",
    "<>": "__ne__",
    ">": "__gt__",
    ">=": "__ge__",
    "<": "__lt__",
    "<=": "__le__",
    "like": "like",
    "ilike": "ilike",
    "not like": "not_like",
}

# Conditions whose value is wrapped in wildcards
WILDCARD_OPERATORS = {"like", "ilike", "not like"}

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


class UnknownField(LookupError):
    pass


class InvalidValue(ValueError):
    """The search value cannot be converted to the column's type."""


def _column(model: Type[Any], name: str):
    column = inspect(model).columns.get(name)
    if column is None:
        raise UnknownField(f"{model.__name__} has no column '{name}'")
    return column


def coerce(column, value: Any) -> Any:
    """Convert a request string to the column's Python type (``"1937"`` -> 1937 for an Integer)."""
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value
    if isinstance(value, python_type):
        return value
    try:
        if python_type is bool:
            lowered = str(value).strip().lower()
            if lowered not in TRUE_VALUES | FALSE_VALUES:
                raise ValueError(value)
            return lowered in TRUE_VALUES
        if python_type in (datetime, date, time):
            return python_type.fromisoformat(str(value).strip())
        return python_type(value)
    except (TypeError, ValueError, ArithmeticError):
        raise InvalidValue(f"'{value}' is not a valid {python_type.__name__} for {column.key}") from None


def compare(column, operator: str, value: Any) -> ColumnElement:
    method = OPERATOR_MAP.get(operator)
    if method is None:
        raise UnknownField(f"unsupported condition '{operator}'")
    if operator in WILDCARD_OPERATORS:
        value = f"%{value}%"
    else:
        value = coerce(column, value)
    return getattr(column, method)(value)


def field_predicate(model: Type[Any], field: str, operator: str, value: Any) -> ColumnElement:
    """Predicate for one searchable field.

    Flat fields compare against the model's table column. ``relation.column``
    becomes EXISTS against the related table (``has`` for many-to-one, ``any``
    for collections); deeper paths nest one EXISTS per hop.
    """
    relation, column_name = split_relation(field)
    if relation is None:
        return compare(_column(model, column_name), operator, value)

    hops = []
    current = model
    for hop in relation.split(RELATION_SEPARATOR):
        prop = inspect(current).relationships.get(hop)
        if prop is None:
            raise UnknownField(f"{current.__name__} has no relation '{hop}'")
        hops.append(getattr(current, hop))
        current = prop.mapper.class_

    criterion = compare(_column(current, column_name), operator, value)
    for attribute in reversed(hops):
        criterion = attribute.any(criterion) if attribute.property.uselist else attribute.has(criterion)
    return criterion


def build_search_predicate(
    model: Type[Any],
    fields: Dict[str, str],
    value: SearchValue,
) -> Tuple[Optional[ColumnElement], List[str], List[Skipped]]:
    """OR together one predicate per field that has a value.

    Returns (predicate or None, applied field names, skipped fields).
    """
    predicates = []
    applied: List[str] = []
    skipped: List[Skipped] = []
    for field, operator in fields.items():
        field_value = value.value_for(field)
        if field_value is None:
            continue
        condition = operator.strip().lower()
        try:
            predicates.append(field_predicate(model, field, condition, field_value))
        except UnknownField as exc:
            skipped.append(Skipped("searchFields", field, str(exc)))
            continue
        except InvalidValue as exc:
            # Free text is tried against every field; only a value aimed at this field is an error
            if field in value.pairs:
                skipped.append(Skipped("search", f"{field}:{field_value}", str(exc)))
            else:
                logger.debug(f"Search field not applicable | {exc}")
            continue
        applied.append(field)

    if not predicates:
        return None, applied, skipped
    return or_(*predicates), applied, skipped


def apply_search(
    statement: Select,
    model: Type[Any],
    fields: Dict[str, str],
    value: SearchValue,
) -> Tuple[Select, List[str], List[Skipped]]:
    """Attach the search group to statement; it is ANDed with existing conditions."""
    predicate, applied, skipped = build_search_predicate(model, fields, value)
    for item in skipped:
        logger.debug(f"Search field skipped | {item}")
    if predicate is None:
        return statement, applied, skipped
    return statement.where(predicate), applied, skipped
