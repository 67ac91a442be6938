"""Column projection (``filter``) and eager loading (``with``)."""

from typing import Any, List, Sequence, Tuple, Type

from sqlalchemy import inspect
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import Select

from .grammar import RELATION_SEPARATOR
from .types import Skipped


def apply_projection(statement: Select, model: Type[Any], columns: Sequence[str]) -> Tuple[Select, List[str], List[Skipped]]:
    """Select exactly the given model columns, in the given order.

    Replaces the column list rather than extending it, so applying the same
    projection twice selects the same columns as applying it once.
    """
    mapper_columns = inspect(model).columns
    selected = []
    applied: List[str] = []
    skipped: List[Skipped] = []
    for name in columns:
        if name in applied:
            continue
        column = mapper_columns.get(name)
        if column is None:
            skipped.append(Skipped("filter", name, f"{model.__name__} has no column '{name}'"))
            continue
        selected.append(column)
        applied.append(name)
    if not selected:
        return statement, applied, skipped
    return statement.with_only_columns(*selected, maintain_column_froms=True), applied, skipped


def eager_load_option(model: Type[Any], path: str):
    """``reviews`` or ``author.books`` -> a chained selectinload option."""
    option = None
    current = model
    for hop in path.split(RELATION_SEPARATOR):
        prop = inspect(current).relationships.get(hop)
        if prop is None:
            raise LookupError(f"{current.__name__} has no relation '{hop}'")
        attribute = getattr(current, hop)
        option = selectinload(attribute) if option is None else option.selectinload(attribute)
        current = prop.mapper.class_
    return option


def apply_eager_load(statement: Select, model: Type[Any], relations: Sequence[str]) -> Tuple[Select, List[str], List[Skipped]]:
    options = []
    applied: List[str] = []
    skipped: List[Skipped] = []
    for path in relations:
        if path in applied:
            continue
        try:
            options.append(eager_load_option(model, path))
        except LookupError as exc:
            skipped.append(Skipped("with", path, str(exc)))
            continue
        applied.append(path)
    if options:
        statement = statement.options(*options)
    return statement, applied, skipped
