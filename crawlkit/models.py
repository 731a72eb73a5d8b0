import json
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from .context import Context
from .hashing import fingerprint
from .types import BodyKind, FormField

if TYPE_CHECKING:
    from .crawler import Crawler


class AtomicCounter:
    """Integer counter whose increments are safe across threads."""

    def __init__(self, start: int = 0):
        self._lock = threading.Lock()
        self._value = start

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        return self._value

    def reset(self) -> None:
        with self._lock:
            self._value = 0


@dataclass(eq=False)
class Request:
    url: str = ""
    method: str = ""
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: bytearray = field(default_factory=bytearray)
    ctx: Context | None = None
    id: int = 0
    proxy_url: str = ""
    timeout: float | None = None
    # (name, value or file path) pairs the body was built from
    form_fields: list[FormField] = field(default_factory=list)
    body_kind: BodyKind = BodyKind.RAW
    boundary: str = ""
    crawler: "Crawler | None" = field(default=None, repr=False)
    _aborted: bool = field(default=False, init=False, repr=False)
    _retry_counter: AtomicCounter = field(default_factory=AtomicCounter, init=False, repr=False)

    def abort(self) -> None:
        """Stop the dispatch: no network call and no after-response hooks."""
        self._aborted = True

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def retries(self) -> int:
        return self._retry_counter.value

    def increment_retries(self) -> int:
        return self._retry_counter.increment()

    def set_content_type(self, content_type: str) -> None:
        self.headers["Content-Type"] = content_type

    def set_headers(self, headers: dict[str, str]) -> None:
        for key, value in headers.items():
            self.headers[key] = value

    def hash(self) -> str:
        return fingerprint(self)

    def reset(self) -> None:
        """Zero every field in place, keeping the body buffer's allocation."""
        self.url = ""
        self.method = ""
        self.headers.clear()
        del self.body[:]
        self.ctx = None
        self.id = 0
        self.proxy_url = ""
        self.timeout = None
        self.form_fields.clear()
        self.body_kind = BodyKind.RAW
        self.boundary = ""
        self.crawler = None
        self._aborted = False
        self._retry_counter.reset()


@dataclass(eq=False)
class Response:
    status_code: int
    headers: httpx.Headers
    body: bytes
    request: Request
    ctx: Context | None
    latency_ms: int = 0
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        return json.loads(self.body)

    def text(self) -> str:
        return self.body.decode("utf-8")
