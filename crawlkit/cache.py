import threading
from dataclasses import dataclass, field
from typing import Protocol

from .models import Response


@dataclass(frozen=True)
class CachedResponse:
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @classmethod
    def from_response(cls, response: Response) -> "CachedResponse":
        return cls(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=bytes(response.body),
        )


class Cache(Protocol):
    """Storage for responses, addressed by request fingerprint."""

    async def get(self, key: str) -> CachedResponse | None: ...

    async def set(self, key: str, response: CachedResponse) -> None: ...

    async def clear(self) -> None: ...


class MemoryCache:
    def __init__(self):
        self._lock = threading.Lock()
        self._entries: dict[str, CachedResponse] = {}

    async def get(self, key: str) -> CachedResponse | None:
        with self._lock:
            return self._entries.get(key)

    async def set(self, key: str, response: CachedResponse) -> None:
        with self._lock:
            self._entries[key] = response

    async def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
