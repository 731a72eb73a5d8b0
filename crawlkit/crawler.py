import asyncio
import contextlib
import logging
import threading
import time
from collections.abc import Awaitable, Iterable, Mapping, Sequence
from typing import Any
from urllib.parse import urlencode

import httpx

from .cache import Cache, CachedResponse, MemoryCache
from .configs import CrawlkitConfig
from .context import Context
from .exceptions import (
    DispatchCancelledError,
    InvalidURLError,
    ProxyDialError,
    ProxyErrorCode,
    TransportError,
)
from .ext_logging import request_id_var
from .hooks import HookPipeline, run_after, run_before
from .middleware import logging_middleware, retry_middleware
from .models import AtomicCounter, Request, Response
from .multipart import MultipartForm
from .pool import PoolLimits, RequestPool
from .proxy import ProxyDialer, choose_proxy, parse_proxy
from .types import (
    BodyKind,
    FormField,
    HandleRequest,
    HandleResponse,
    Middleware,
    RetryCondition,
)

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
SUPPORTED_SCHEMES = ("http", "https")

FormFields = Mapping[str, str] | Iterable[FormField]


def field_pairs(fields: FormFields | None) -> list[FormField]:
    if not fields:
        return []
    if isinstance(fields, Mapping):
        return list(fields.items())
    return list(fields)


def check_target_url(url: str) -> None:
    """
    Reject URLs that can never be sent, before any network attempt.

    Raises:
        InvalidURLError: the URL does not parse, is relative, has no host or
            uses a scheme other than http or https
    """
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise InvalidURLError(f"invalid url {url!r}: {e}") from e

    if parsed.scheme not in SUPPORTED_SCHEMES:
        raise InvalidURLError(f"only http and https urls are supported, got {url!r}")
    if not parsed.host:
        raise InvalidURLError(f"url has no host: {url!r}")


class Crawler:
    """Dispatches requests through hooks, proxies, retries and the cache.

    Each verb builds a pooled :class:`Request`, runs the before-request hooks,
    sends it (retrying per ``retry_count``/``retry_condition``) and runs the
    after-response hooks on the result. Callers observe results through hooks;
    the verbs return ``None`` and raise on configuration, serialization,
    hook or terminal transport failures.

    Requests and responses handed to hooks are recycled once the dispatch
    finishes, so hooks must not keep references to them.
    """

    def __init__(
        self,
        *,
        user_agent: str = "crawlkit",
        cookies: dict[str, str] | None = None,
        concurrency: int | None = None,
        retry_count: int = 0,
        retry_condition: RetryCondition | None = None,
        proxy_url: str = "",
        proxy_pool: Sequence[str] | None = None,
        timeout: float = 30.0,
        dial_timeout: float | None = None,
        cache: Cache | None = None,
        cache_enabled: bool = False,
        flush_cache: bool = False,
        middlewares: list[Middleware] | None = None,
        pool_limits: PoolLimits | None = None,
        request_pool_size: int = 1024,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.user_agent = user_agent
        self._cookies = dict(cookies or {})
        self._concurrency = concurrency
        self._retry_count = retry_count
        self._proxy_url = proxy_url
        self._proxy_pool = tuple(proxy_pool or ())
        self._timeout = timeout

        if cache is None and cache_enabled:
            cache = MemoryCache()
        self._cache = cache
        self._flush_cache = flush_cache

        self._pool_limits = pool_limits or PoolLimits()
        self._dialer = ProxyDialer(self._pool_limits, dial_timeout)
        self._transport = transport
        self._clients: dict[str, httpx.AsyncClient] = {}
        self._clients_lock = threading.Lock()

        self._middlewares: list[Middleware] = [
            *(middlewares or []),
            retry_middleware(retry_count, retry_condition, logger),
            logging_middleware(logger),
        ]
        self._hooks = HookPipeline()
        self._request_pool = RequestPool(request_pool_size)
        self._request_counter = AtomicCounter()
        self._response_counter = AtomicCounter()

        self._limiter = (
            asyncio.Semaphore(concurrency) if concurrency else contextlib.nullcontext()
        )
        self._cancelled = asyncio.Event()

    @classmethod
    def from_config(cls, config: CrawlkitConfig | None = None, **overrides: Any) -> "Crawler":
        config = config or CrawlkitConfig()
        options: dict[str, Any] = {
            "user_agent": config.USER_AGENT,
            "cookies": config.COOKIES,
            "concurrency": config.CONCURRENCY,
            "retry_count": config.RETRY_COUNT,
            "proxy_url": config.PROXY_URL,
            "proxy_pool": config.PROXY_POOL,
            "timeout": config.TIMEOUT,
            "dial_timeout": config.DIAL_TIMEOUT,
            "cache_enabled": config.CACHE_ENABLED,
            "flush_cache": config.FLUSH_CACHE,
            "pool_limits": PoolLimits.from_config(config),
            "request_pool_size": config.REQUEST_POOL_SIZE,
        }
        options.update(overrides)
        return cls(**options)

    # ------------------------------------------------------------------
    # configuration
    # ------------------------------------------------------------------

    @property
    def retry_count(self) -> int:
        return self._retry_count

    @property
    def concurrency(self) -> int | None:
        return self._concurrency

    @property
    def proxy_pool(self) -> tuple[str, ...]:
        return self._proxy_pool

    @property
    def request_count(self) -> int:
        return self._request_counter.value

    @property
    def response_count(self) -> int:
        return self._response_counter.value

    @property
    def cache(self) -> Cache | None:
        return self._cache

    def before_request(self, hook: HandleRequest) -> HandleRequest:
        return self._hooks.add_before(hook)

    def after_response(self, hook: HandleResponse) -> HandleResponse:
        return self._hooks.add_after(hook)

    def freeze_hooks(self) -> None:
        self._hooks.freeze()

    def choose_proxy(self) -> str:
        return choose_proxy(self._proxy_pool, self._proxy_url)

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Abort in-flight sends and refuse new attempts."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    async def clear_cache(self) -> None:
        if self._cache is not None:
            await self._cache.clear()

    async def close(self) -> None:
        with self._clients_lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            await client.aclose()
        if self._flush_cache:
            await self.clear_cache()

    async def __aenter__(self) -> "Crawler":
        return self

    async def __aexit__(self, *_args: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # verbs
    # ------------------------------------------------------------------

    async def get(self, url: str, ctx: Context | None = None) -> None:
        await self.request("GET", url, ctx=ctx)

    async def post(
        self,
        url: str,
        form_fields: FormFields | None = None,
        ctx: Context | None = None,
    ) -> None:
        fields = sorted(field_pairs(form_fields))
        await self.request(
            "POST",
            url,
            body=urlencode(fields).encode("utf-8"),
            headers={"Content-Type": FORM_CONTENT_TYPE},
            ctx=ctx,
            form_fields=fields,
        )

    async def post_multipart(
        self,
        url: str,
        form: MultipartForm,
        ctx: Context | None = None,
    ) -> None:
        request = self._build_request(
            "POST",
            url,
            form.body(),
            {"Content-Type": form.content_type()},
            ctx,
            form.fields,
        )
        request.body_kind = BodyKind.MULTIPART
        request.boundary = form.boundary
        await self._dispatch(request)

    async def request(
        self,
        method: str,
        url: str,
        body: bytes | None = None,
        headers: dict[str, str] | None = None,
        ctx: Context | None = None,
        form_fields: FormFields | None = None,
    ) -> None:
        await self._dispatch(self._build_request(method, url, body, headers, ctx, form_fields))

    async def _dispatch(self, request: Request) -> None:
        token = request_id_var.set(request.id)
        try:
            async with self._limiter:
                await self._process(request)
        finally:
            request_id_var.reset(token)
            self._request_pool.release(request)

    async def gather(self, *dispatches: Awaitable[None]) -> list[BaseException | None]:
        """Run sibling dispatches, returning each one's error or ``None``.

        A failing dispatch never cancels the others.
        """
        results = await asyncio.gather(*dispatches, return_exceptions=True)
        outcomes: list[BaseException | None] = []
        for result in results:
            if isinstance(result, BaseException):
                logger.warning(f"dispatch failed: {result!r}")
                outcomes.append(result)
            else:
                outcomes.append(None)
        return outcomes

    # ------------------------------------------------------------------
    # dispatch
    # ------------------------------------------------------------------

    def _build_request(
        self,
        method: str,
        url: str,
        body: bytes | None,
        headers: dict[str, str] | None,
        ctx: Context | None,
        form_fields: FormFields | None,
    ) -> Request:
        request = self._request_pool.acquire()
        request.id = self._request_counter.increment()
        request.method = method.upper()
        request.url = url
        request.ctx = ctx if ctx is not None else Context()
        request.crawler = self
        request.proxy_url = self.choose_proxy()
        request.timeout = self._timeout

        request.headers["User-Agent"] = self.user_agent
        if self._cookies:
            request.headers["Cookie"] = "; ".join(f"{k}={v}" for k, v in self._cookies.items())
        if headers:
            request.set_headers(headers)
        if "Accept" not in request.headers:
            request.headers["Accept"] = "*/*"

        if body:
            request.body += body
        if form_fields:
            request.form_fields.extend(field_pairs(form_fields))
            request.body_kind = BodyKind.FORM
        return request

    async def _process(self, request: Request) -> None:
        before, after = self._hooks.snapshot()

        await run_before(before, request)
        if request.aborted:
            logger.debug(f"request {request.id} aborted before dispatch")
            return

        check_target_url(request.url)

        cache_key = None
        if self._cache is not None:
            cache_key = request.hash()
            cached = await self._cache.get(cache_key)
            if cached is not None:
                logger.debug(f"request {request.id} served from cache {cache_key}")
                response = Response(
                    status_code=cached.status_code,
                    headers=httpx.Headers(cached.headers),
                    body=cached.body,
                    request=request,
                    ctx=request.ctx,
                    from_cache=True,
                )
                await run_after(after, response)
                return

        # proxy configuration errors surface before any network attempt
        self._client_for(request.proxy_url)

        response = await self._execute(request)

        if cache_key is not None and response.ok:
            await self._cache.set(cache_key, CachedResponse.from_response(response))

        await run_after(after, response)

    async def _execute(self, request: Request) -> Response:
        return await self._execute_with_middleware(request, 0)

    async def _execute_with_middleware(self, request: Request, index: int) -> Response:
        if index >= len(self._middlewares):
            return await self._do_request(request)

        middleware = self._middlewares[index]

        async def next_fn(req: Request) -> Response:
            return await self._execute_with_middleware(req, index + 1)

        return await middleware(request, next_fn)

    def _client_for(self, proxy_url: str) -> httpx.AsyncClient:
        config = parse_proxy(proxy_url) if proxy_url else None
        key = config.to_httpx_proxy() if config else ""

        with self._clients_lock:
            client = self._clients.get(key)
            if client is None:
                if self._transport is not None:
                    transport = self._transport
                elif config is not None:
                    transport = self._dialer.dial(config)
                else:
                    transport = httpx.AsyncHTTPTransport(
                        limits=self._pool_limits.to_httpx_limits(),
                    )
                client = httpx.AsyncClient(
                    transport=transport,
                    timeout=self._dialer.timeout(self._timeout),
                )
                self._clients[key] = client
        return client

    async def _do_request(self, request: Request) -> Response:
        if self._cancelled.is_set():
            raise DispatchCancelledError(f"request {request.id} cancelled before sending")

        client = self._client_for(request.proxy_url)
        start_time = time.time()

        send = asyncio.ensure_future(
            client.request(
                method=request.method,
                url=request.url,
                headers=request.headers,
                content=bytes(request.body),
                timeout=self._dialer.timeout(request.timeout),
            )
        )
        cancel = asyncio.ensure_future(self._cancelled.wait())
        try:
            done, _ = await asyncio.wait({send, cancel}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel.cancel()
            if not send.done():
                send.cancel()

        if send not in done:
            raise DispatchCancelledError(f"request {request.id} cancelled while in flight")

        try:
            http_response = send.result()
        except (httpx.UnsupportedProtocol, httpx.InvalidURL) as e:
            raise InvalidURLError(f"{type(e).__name__}: {e}") from e
        except httpx.ProxyError as e:
            raise ProxyDialError(ProxyErrorCode.DIAL_FAILED, request.proxy_url, str(e)) from e
        except httpx.TransportError as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)
        self._response_counter.increment()

        return Response(
            status_code=http_response.status_code,
            headers=httpx.Headers(http_response.headers),
            body=http_response.content,
            request=request,
            ctx=request.ctx,
            latency_ms=latency_ms,
        )
