"""Query string parameters exposed to components as ``search_params``.

Parsed once from the request URL and never mutated.  Keys keep their
order of first appearance; repeated keys keep every value.
"""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qsl, urlencode


class QueryParams(Mapping[str, str]):
    """Read-only view of a query string.

    Indexing returns the first value for a key; ``get_list`` returns all
    of them::

        params = QueryParams("?tag=a&tag=b&page=2")
        params["tag"]            # "a"
        params.get_list("tag")   # ["a", "b"]
        params.raw               # "tag=a&tag=b&page=2"
    """

    __slots__ = ("_pairs", "_raw")

    def __init__(self, query_string: str = "") -> None:
        self._raw = query_string.removeprefix("?")
        self._pairs: tuple[tuple[str, str], ...] = tuple(parse_qsl(self._raw, keep_blank_values=True))

    def __getitem__(self, key: str) -> str:
        for name, value in self._pairs:
            if name == key:
                return value
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name for name, _ in self._pairs))

    def __len__(self) -> int:
        return len({name for name, _ in self._pairs})

    def __repr__(self) -> str:
        return f"QueryParams({self._raw!r})"

    @property
    def raw(self) -> str:
        return self._raw

    def get_list(self, key: str) -> list[str]:
        return [value for name, value in self._pairs if name == key]

    def to_query_string(self) -> str:
        """Re-encode the parameters, e.g. to carry them through a redirect."""
        return urlencode(self._pairs)
