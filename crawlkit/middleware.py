import logging

from .exceptions import DispatchCancelledError, TransportError
from .models import Request, Response
from .types import Middleware, NextFn, RetryCondition

RETRY_STATUS_CODES = (502, 503, 504)


def default_retry_condition(response: Response) -> bool:
    return response.status_code in RETRY_STATUS_CODES


def retry_middleware(
    retry_count: int = 3,
    condition: RetryCondition | None = None,
    logger: logging.Logger | None = None,
) -> Middleware:
    should_retry = condition or default_retry_condition
    log = logger or logging.getLogger(__name__)

    async def middleware(request: Request, next: NextFn) -> Response:
        while True:
            try:
                response = await next(request)
            except DispatchCancelledError:
                raise
            except TransportError as e:
                if request.retries >= retry_count:
                    raise
                attempt = request.increment_retries()
                log.warning(f"retry {attempt}/{retry_count} {request.method} {request.url}: {e}")
                continue

            if request.retries >= retry_count or not should_retry(response):
                return response
            attempt = request.increment_retries()
            log.info(
                f"retry {attempt}/{retry_count} {request.method} {request.url}: "
                f"status {response.status_code}"
            )

    return middleware


def timeout_middleware(timeout: float) -> Middleware:
    async def middleware(request: Request, next: NextFn) -> Response:
        request.timeout = timeout
        return await next(request)

    return middleware


def logging_middleware(logger: logging.Logger | None = None) -> Middleware:
    log = logger or logging.getLogger(__name__)

    async def middleware(request: Request, next: NextFn) -> Response:
        log.info(f"-> {request.method} {request.url} (proxy={request.proxy_url or 'direct'})")
        response = await next(request)
        log.info(f"<- {response.status_code} ({response.latency_ms}ms)")
        return response

    return middleware


def headers_middleware(**headers: str) -> Middleware:
    async def middleware(request: Request, next: NextFn) -> Response:
        request.set_headers(headers)
        return await next(request)

    return middleware
