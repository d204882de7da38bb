from typing import Any, Iterator, MutableMapping

from .utils import now_ms


class Head(MutableMapping[str, Any]):
    """
    Insertion-ordered note metadata, e.g.
    - "title": "Covariant derivative"
    - "description": "Notes from chapter 3"
    - "created": 1700000000000
    Keys map 1:1 to element names in the serialized <head>. Setting a key is
    an upsert; key order is the order of first insertion.
    """

    def __init__(self, initial: dict | None = None):
        self._d = dict(initial or {})

    @classmethod
    def create(cls, title: str) -> "Head":
        now = now_ms()
        return cls({"title": title, "created": now, "modified": now})

    # MutableMapping interface
    def __getitem__(self, k: str) -> Any:
        return self._d[k]

    def __setitem__(self, k: str, v: Any) -> None:
        self._d[k] = v

    def __delitem__(self, k: str) -> None:
        del self._d[k]

    def __iter__(self) -> Iterator[str]:
        return iter(self._d)

    def __len__(self) -> int:
        return len(self._d)

    def __repr__(self) -> str:
        return f"Head({self._d!r})"

    # Convenience
    def get_str(self, key: str, default: str | None = None) -> str | None:
        v = self._d.get(key, default)
        return v if isinstance(v, str) else default

    @property
    def title(self) -> str | None:
        return self.get_str("title")
