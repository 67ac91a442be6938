"""Request parameter access for the criteria layer."""

from typing import Any, List, Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class CriteriaParams(Protocol):
    def has(self, key: str) -> bool:
        ...

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def get_list(self, key: str) -> List[Any]:
        ...


class RequestParams:
    """Key/value accessor over request query parameters.

    Wraps Starlette ``QueryParams`` (repeated keys become lists via
    ``get_list``) or any plain mapping.
    """

    def __init__(self, source: Optional[Mapping[str, Any]] = None):
        self._source = source if source is not None else {}

    @classmethod
    def from_request(cls, request) -> "RequestParams":
        return cls(request.query_params)

    def has(self, key: str) -> bool:
        return key in self._source

    def get(self, key: str, default: Any = None) -> Any:
        value = self._source.get(key, default)
        return default if value is None else value

    def get_list(self, key: str) -> List[Any]:
        """All values for key: repeated query params, a list value, or a single value."""
        getlist = getattr(self._source, "getlist", None)
        if getlist is not None:
            return list(getlist(key))
        value = self._source.get(key)
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return list(value)
        return [value]

    def __repr__(self) -> str:
        return f"RequestParams({dict(self._source)!r})"
