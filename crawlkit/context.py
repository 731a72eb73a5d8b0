import threading
from collections.abc import Iterator
from typing import Any


class Context:
    """Key/value store shared by a request and the response it produces.

    Hooks use it to carry values from request construction to response
    handling. The same instance is referenced by both sides.
    """

    def __init__(self, initial: dict[str, Any] | None = None):
        self._lock = threading.Lock()
        self._data: dict[str, Any] = dict(initial or {})

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def get(self, key: str) -> str:
        """Return the value as a string, or an empty string if missing."""
        with self._lock:
            value = self._data.get(key)
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    def get_any(self, key: str) -> Any:
        with self._lock:
            return self._data.get(key)

    def delete(self, key: str) -> Any:
        with self._lock:
            return self._data.pop(key, None)

    def items(self) -> list[tuple[str, Any]]:
        with self._lock:
            return list(self._data.items())

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter([key for key, _ in self.items()])

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __repr__(self) -> str:
        return f"<Context {self.items()!r}>"
