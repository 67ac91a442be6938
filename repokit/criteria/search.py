"""Parse the ``search`` request parameter."""

from typing import Collection, Optional

from .grammar import LIST_SEPARATOR, PAIR_SEPARATOR, has_delimiter, split, unescape
from .types import SearchValue, Skipped


def parse_search_value(raw: Optional[str], known_fields: Optional[Collection[str]] = None) -> SearchValue:
    """Split a search string into per-field values and/or a free-text value.

    ``"tolkien"``              -> scalar "tolkien"
    ``"title:hobbit;year:1937"`` -> pairs {"title": "hobbit", "year": "1937"}
    ``"title:hobbit;oops"``      -> pairs {"title": "hobbit"}, "oops" skipped

    When known_fields is given, an item only counts as a pair if its head is
    one of those fields; ``"9:00am"`` therefore stays free text instead of
    becoming a search on a field called ``9``. If no item yields a pair, the
    first item is the free-text value.
    """
    result = SearchValue()
    if raw is None or raw == "":
        return result

    if not (has_delimiter(raw, PAIR_SEPARATOR) or has_delimiter(raw, LIST_SEPARATOR)):
        result.scalar = unescape(raw)
        return result

    items = [item for item in split(raw, LIST_SEPARATOR) if item != ""]
    for item in items:
        parts = split(item, PAIR_SEPARATOR)
        head = unescape(parts[0])
        known = known_fields is None or head in known_fields
        if len(parts) == 2 and known:
            result.pairs[head] = unescape(parts[1])
        elif len(parts) == 1:
            result.skipped.append(Skipped("search", unescape(item), "segment is not a field:value pair"))
        elif not known:
            result.skipped.append(Skipped("search", unescape(item), f"'{head}' is not a searchable field"))
        else:
            result.skipped.append(Skipped("search", unescape(item), "segment has more than one ':'"))

    if not result.pairs and items:
        # Nothing field-specific: the first segment, colons included, is plain text
        result.scalar = unescape(items[0])
        result.skipped = result.skipped[1:]
    return result
