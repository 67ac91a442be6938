"""Reconcile an entity's searchable fields with the subset a request asks for."""

from typing import Dict, Iterable, List, Sequence, Union

from repokit.exceptions.handler import ConfigurationError
from .grammar import PAIR_SEPARATOR, parse_item, parse_list
from .types import SearchableField

DEFAULT_OPERATOR = "="


def parse_declared_fields(declared: Iterable[Union[str, SearchableField]]) -> List[SearchableField]:
    """Turn ``("title:like", "author.name")`` into SearchableField entries, keeping order."""
    fields: List[SearchableField] = []
    seen = set()
    for entry in declared:
        if isinstance(entry, SearchableField):
            declared_field = entry
        else:
            parts = parse_item(entry)
            name = parts[0]
            operator = parts[1].lower() if len(parts) > 1 and parts[1] else DEFAULT_OPERATOR
            declared_field = SearchableField(name, operator)
        if not declared_field.name or declared_field.name in seen:
            continue
        seen.add(declared_field.name)
        fields.append(declared_field)
    return fields


def resolve_search_fields(
    declared: Iterable[Union[str, SearchableField]],
    requested: Union[str, Sequence[str], None],
    accepted_conditions: Iterable[str],
) -> Dict[str, str]:
    """Map field -> operator for the fields a search should run against.

    With nothing requested every declared field is used with its declared
    operator. Otherwise only requested fields survive, in declaration order;
    ``field:op`` overrides the operator when op is an accepted condition and is
    otherwise treated as a request for ``field`` alone.
    """
    fields = parse_declared_fields(declared)
    items = parse_list(requested)
    if not items:
        return {declared_field.name: declared_field.operator for declared_field in fields}

    accepted = {condition.lower() for condition in accepted_conditions}
    wanted: List[str] = []
    overrides: Dict[str, str] = {}
    for item in items:
        name = item[0]
        if len(item) == 2 and item[1].lower() in accepted:
            overrides[name] = item[1].lower()
        if name not in wanted:
            wanted.append(name)

    resolved = {
        declared_field.name: overrides.get(declared_field.name, declared_field.operator)
        for declared_field in fields
        if declared_field.name in wanted
    }
    if not resolved:
        raise ConfigurationError(
            "The following fields are not accepted => %s" % ",".join(PAIR_SEPARATOR.join(i) for i in items),
            detail={"requested": [PAIR_SEPARATOR.join(i) for i in items]},
        )
    return resolved
