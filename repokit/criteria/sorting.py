"""Resolve and apply ``orderBy``/``sortedBy`` and ``sort_by``/``sort_dir`` directives."""

from typing import Any, Optional, Tuple, Type

from sqlalchemy import Table, column, inspect, table
from sqlalchemy.sql import Select

from .grammar import RELATION_SEPARATOR, parse_sort_target
from .types import SortDirection, SortDirective, SortJoin, Skipped


def singular(name: str) -> str:
    """``products`` -> ``product``; only a single trailing 's' is removed."""
    return name[:-1] if name.endswith("s") else name


def resolve_sort(raw_column: Optional[str], raw_direction: Optional[str] = None) -> Optional[SortDirective]:
    """``title`` orders directly; ``products|description`` and
    ``products:custom_id|description`` order by a column of a left-joined table.

    The join key on the current table defaults to ``<singular table>_id``.
    Returns None when no column is given.
    """
    if not raw_column or not raw_column.strip():
        return None
    direction = SortDirection.parse(raw_direction)
    sort_table, join_key, sort_column = parse_sort_target(raw_column)
    if not sort_column:
        return None
    if sort_table is None:
        return SortDirective(sort_column, direction)
    join = SortJoin(sort_table, join_key or f"{singular(sort_table)}_id", explicit_key=join_key is not None)
    return SortDirective(sort_column, direction, join)


def resolve_strict_sort(model: Type[Any], sort_by: Optional[str], sort_dir: Optional[str] = None) -> Optional[SortDirective]:
    """Accept only a literal column of the model's table; anything else means no sort."""
    if not sort_by:
        return None
    if sort_by not in inspect(model).local_table.columns.keys():
        return None
    return SortDirective(sort_by, SortDirection.parse(sort_dir))

def _ordering(expression, direction: SortDirection):
    return expression.desc() if direction is SortDirection.DESC else expression.asc()


def _sort_expression(model: Type[Any], name: str, joined=None):
    """Resolve a sort column against the model's table or the joined table.

    Returns None when the column does not exist. A joined table with no model
    in the metadata cannot be checked, so its columns render as plain
    identifiers.
    """
    base = inspect(model).local_table
    sources = {base.name: base}
    if joined is not None:
        sources[joined.name] = joined
    owner = None
    column_name = name
    if RELATION_SEPARATOR in name:
        owner, _, column_name = name.rpartition(RELATION_SEPARATOR)
        source = sources.get(owner)
    else:
        source = joined if joined is not None else base
    if source is None:
        return None
    existing = source.c.get(column_name)
    if existing is not None:
        return existing
    if isinstance(source, Table):
        return None
    return table(owner, column(column_name)).c[column_name] if owner else column(column_name)


def apply_sort(statement: Select, model: Type[Any], directive: Optional[SortDirective]) -> Tuple[Select, Optional[Skipped]]:
    """Apply a resolved directive; returns the statement and a Skipped entry if it could not be applied."""
    if directive is None:
        return statement, None

    base = inspect(model).local_table
    if directive.join is None:
        expression = _sort_expression(model, directive.column)
        if expression is None:
            return statement, Skipped("orderBy", directive.column, f"{base.name} has no column '{directive.column}'")
        return statement.order_by(_ordering(expression, directive.direction)), None

    target = f"{directive.join.table}|{directive.column}"
    local_key = base.c.get(directive.join.local_key)
    if local_key is None:
        return statement, Skipped("orderBy", target, f"{base.name} has no join column '{directive.join.local_key}'")
    if directive.join.table == base.name:
        return statement, Skipped("orderBy", directive.join.table, "cannot join a table onto itself")

    joined = model.metadata.tables.get(directive.join.table)
    if joined is None:
        if directive.join.explicit_key:
            return statement, Skipped("orderBy", target, f"no mapped table '{directive.join.table}'")
        joined = table(directive.join.table, column("id"))
    expression = _sort_expression(model, directive.column, joined)
    if expression is None:
        return statement, Skipped("orderBy", target, f"{joined.name} has no column '{directive.column}'")
    # select(Model) keeps only the base entity in the column list, so the
    # joined table's columns never collide with the model's
    statement = statement.outerjoin(joined, local_key == joined.c.id)
    return statement.order_by(_ordering(expression, directive.direction)), None
