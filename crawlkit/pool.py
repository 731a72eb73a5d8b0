import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from .models import Request

if TYPE_CHECKING:
    from .configs import CrawlerConfig


@dataclass
class PoolLimits:
    """Connection limits shared by the direct and the per-proxy transports."""

    max_connections: int = 100
    max_keepalive: int = 20
    keepalive_expiry: float = 30.0

    @classmethod
    def from_config(cls, config: "CrawlerConfig") -> "PoolLimits":
        return cls(
            max_connections=config.MAX_CONNECTIONS,
            max_keepalive=config.MAX_KEEPALIVE,
            keepalive_expiry=config.KEEPALIVE_EXPIRY,
        )

    def to_httpx_limits(self) -> httpx.Limits:
        return httpx.Limits(
            max_connections=self.max_connections,
            max_keepalive_connections=self.max_keepalive,
            keepalive_expiry=self.keepalive_expiry,
        )


class RequestPool:
    """LIFO free list of :class:`Request` objects.

    ``acquire`` hands out a recycled request (or a new one when the list is
    empty). ``release`` resets the request and takes ownership back: the
    caller must not touch it afterwards. Reuse after release is not detected.
    """

    def __init__(self, max_size: int = 1024):
        self._lock = threading.Lock()
        self._free: list[Request] = []
        self._max_size = max_size

    def acquire(self) -> Request:
        with self._lock:
            if self._free:
                return self._free.pop()
        return Request()

    def release(self, request: Request) -> None:
        request.reset()
        with self._lock:
            if len(self._free) < self._max_size:
                self._free.append(request)

    def __len__(self) -> int:
        with self._lock:
            return len(self._free)
