import enum
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Request, Response

NextFn = Callable[["Request"], Awaitable["Response"]]
Middleware = Callable[["Request", NextFn], Awaitable["Response"]]

HandleRequest = Callable[["Request"], Awaitable[None] | None]
HandleResponse = Callable[["Response"], Awaitable[None] | None]

RetryCondition = Callable[["Response"], bool]

# (name, value) in append order, duplicate names allowed
FormField = tuple[str, str]


class BodyKind(str, enum.Enum):
    RAW = "raw"
    FORM = "form"
    MULTIPART = "multipart"
