"""Request-execution core for a programmable crawler."""

from .cache import Cache, CachedResponse, MemoryCache
from .configs import CrawlkitConfig
from .context import Context
from .crawler import Crawler
from .exceptions import (
    ConfigurationError,
    CrawlkitError,
    DispatchCancelledError,
    HookError,
    HookRegistrationError,
    InvalidBoundaryError,
    InvalidProxyError,
    InvalidURLError,
    ProxyDialError,
    ProxyErrorCode,
    SerializationError,
    TransportError,
    UnknownProtocolError,
)
from .ext_logging import init_logging
from .hashing import canonicalize, fingerprint
from .middleware import (
    default_retry_condition,
    headers_middleware,
    logging_middleware,
    retry_middleware,
    timeout_middleware,
)
from .models import AtomicCounter, Request, Response
from .multipart import MultipartForm, random_boundary
from .pool import PoolLimits, RequestPool
from .proxy import ProxyConfig, ProxyDialer, ProxyProtocol, choose_proxy, parse_proxy
from .types import (
    BodyKind,
    FormField,
    HandleRequest,
    HandleResponse,
    Middleware,
    NextFn,
    RetryCondition,
)

__all__ = [
    "Crawler",
    "CrawlkitConfig",
    "init_logging",
    "Context",
    "Request",
    "Response",
    "AtomicCounter",
    "RequestPool",
    "PoolLimits",
    "MultipartForm",
    "random_boundary",
    "ProxyConfig",
    "ProxyDialer",
    "ProxyProtocol",
    "choose_proxy",
    "parse_proxy",
    "canonicalize",
    "fingerprint",
    "Cache",
    "CachedResponse",
    "MemoryCache",
    "Middleware",
    "NextFn",
    "HandleRequest",
    "HandleResponse",
    "RetryCondition",
    "BodyKind",
    "FormField",
    "default_retry_condition",
    "retry_middleware",
    "timeout_middleware",
    "logging_middleware",
    "headers_middleware",
    "CrawlkitError",
    "ConfigurationError",
    "InvalidURLError",
    "InvalidProxyError",
    "UnknownProtocolError",
    "ProxyDialError",
    "ProxyErrorCode",
    "InvalidBoundaryError",
    "HookRegistrationError",
    "TransportError",
    "DispatchCancelledError",
    "SerializationError",
    "HookError",
]
