"""Value types produced by the criteria parsers and consumed by the appliers."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "SortDirection":
        """Case-insensitive; anything other than asc/desc falls back to ascending."""
        if isinstance(raw, str):
            try:
                return cls(raw.strip().lower())
            except ValueError:
                pass
        return cls.ASC


@dataclass(frozen=True)
class SearchableField:
    name: str
    operator: str = "="


@dataclass(frozen=True)
class Skipped:
    """A directive that was not applied, and why."""
    directive: str
    value: Any
    reason: str

    def __str__(self) -> str:
        return f"{self.directive}={self.value!r}: {self.reason}"


@dataclass
class SearchValue:
    """Parsed ``search`` parameter: per-field pairs and/or one free-text value."""
    pairs: Dict[str, str] = field(default_factory=dict)
    scalar: Optional[str] = None
    skipped: List[Skipped] = field(default_factory=list)

    @property
    def is_compound(self) -> bool:
        return bool(self.pairs)

    def value_for(self, field_name: str) -> Optional[str]:
        if field_name in self.pairs:
            return self.pairs[field_name]
        return self.scalar


@dataclass(frozen=True)
class SortJoin:
    table: str
    local_key: str
    # True when the request named the join key (``table:key|column``)
    explicit_key: bool = field(default=False, compare=False)


@dataclass(frozen=True)
class SortDirective:
    column: str
    direction: SortDirection = SortDirection.ASC
    join: Optional[SortJoin] = None


@dataclass
class CriteriaResult:
    """Outcome of applying request criteria to a statement."""
    statement: Any
    projected: bool = False
    applied: List[str] = field(default_factory=list)
    skipped: List[Skipped] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.skipped
