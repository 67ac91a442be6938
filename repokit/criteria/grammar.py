"""
Token grammar shared by every criteria request parameter.

    list   := item (';' item)*
    item   := part (':' part)*
    sort   := [target '|'] column
    target := table [':' join_key]

A backslash escapes the next character, so ``9\\:00am`` is a single part that
contains a literal colon. Splitting keeps escapes intact so that a part can be
split again on a nested delimiter; ``unescape`` is applied once, on the final
parts handed back to callers.
"""

from typing import Iterable, List, Optional, Sequence, Tuple, Union

LIST_SEPARATOR = ";"
PAIR_SEPARATOR = ":"
JOIN_SEPARATOR = "|"
RELATION_SEPARATOR = "."
ESCAPE = "\\"

Item = Tuple[str, ...]


def split(raw: str, delimiter: str) -> List[str]:
    """Split on unescaped occurrences of delimiter, leaving escape sequences in place."""
    parts: List[str] = []
    current: List[str] = []
    escaped = False
    for char in raw:
        if escaped:
            current.append(char)
            escaped = False
        elif char == ESCAPE:
            current.append(char)
            escaped = True
        elif char == delimiter:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return parts


def has_delimiter(raw: str, delimiter: str) -> bool:
    """True when raw contains an unescaped delimiter."""
    return len(split(raw, delimiter)) > 1


def unescape(raw: str) -> str:
    out: List[str] = []
    escaped = False
    for char in raw:
        if escaped:
            out.append(char)
            escaped = False
        elif char == ESCAPE:
            escaped = True
        else:
            out.append(char)
    if escaped:
        # Trailing backslash has nothing to escape; keep it literally
        out.append(ESCAPE)
    return "".join(out)


def parse_item(raw: str) -> Item:
    """``name:like`` -> ("name", "like"); parts are stripped and unescaped."""
    return tuple(unescape(part).strip() for part in split(raw, PAIR_SEPARATOR))


def parse_list(raw: Union[str, Sequence[str], None]) -> List[Item]:
    """Parse a ``;``-separated string (or a list of item strings) into items.

    Empty items are dropped, so ``"a;;b;"`` yields two items.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        chunks: Iterable[str] = split(raw, LIST_SEPARATOR)
    else:
        chunks = (chunk for value in raw for chunk in split(str(value), LIST_SEPARATOR))
    items = []
    for chunk in chunks:
        if not chunk.strip():
            continue
        items.append(parse_item(chunk))
    return items


def parse_names(raw: Union[str, Sequence[str], None]) -> List[str]:
    """Parse a ``;``-separated list of plain names (projection, eager-load)."""
    names = []
    for item in parse_list(raw):
        name = PAIR_SEPARATOR.join(item)
        if name and name not in names:
            names.append(name)
    return names


def parse_sort_target(raw: str) -> Tuple[Optional[str], Optional[str], str]:
    """``products:custom_id|description`` -> ("products", "custom_id", "description").

    Without a ``|`` the whole value is the column: (None, None, column).
    """
    segments = split(raw, JOIN_SEPARATOR)
    if len(segments) == 1:
        return None, None, unescape(raw).strip()
    target, column = segments[0], JOIN_SEPARATOR.join(segments[1:])
    table_parts = split(target, PAIR_SEPARATOR)
    table = unescape(table_parts[0]).strip()
    join_key = unescape(table_parts[1]).strip() if len(table_parts) > 1 else None
    return table, join_key or None, unescape(column).strip()


def split_relation(field: str) -> Tuple[Optional[str], str]:
    """``author.publisher.name`` -> ("author.publisher", "name"); flat names have no relation."""
    if RELATION_SEPARATOR not in field:
        return None, field
    relation, _, column = field.rpartition(RELATION_SEPARATOR)
    return relation, column
