from pydantic import Field, NonNegativeInt, PositiveFloat, PositiveInt
from pydantic_settings import BaseSettings


class CrawlerConfig(BaseSettings):
    """
    Construction-time options for the crawler
    """

    USER_AGENT: str = Field(
        description="User-Agent header sent with every request",
        default="crawlkit",
    )

    COOKIES: dict[str, str] = Field(
        description="Cookies sent with every request, as a JSON object",
        default_factory=dict,
    )

    CONCURRENCY: PositiveInt | None = Field(
        description="Maximum number of dispatches in flight at once, unbounded when unset",
        default=None,
    )

    RETRY_COUNT: NonNegativeInt = Field(
        description="Maximum number of additional attempts per request",
        default=0,
    )

    PROXY_URL: str = Field(
        description="Single proxy used when no proxy pool is configured, e.g. socks5://127.0.0.1:1080",
        default="",
    )

    PROXY_POOL: list[str] = Field(
        description="Proxy addresses to pick from at random for each request, as a JSON list",
        default_factory=list,
    )

    TIMEOUT: PositiveFloat = Field(
        description="Request timeout in seconds",
        default=30.0,
    )

    DIAL_TIMEOUT: PositiveFloat | None = Field(
        description="Connect timeout in seconds, including proxy tunnel setup",
        default=None,
    )

    CACHE_ENABLED: bool = Field(
        description="Look responses up in the cache before dispatching",
        default=False,
    )

    FLUSH_CACHE: bool = Field(
        description="Clear the cache when the crawler is closed",
        default=False,
    )

    MAX_CONNECTIONS: PositiveInt = Field(
        description="Maximum number of open connections per transport",
        default=100,
    )

    MAX_KEEPALIVE: PositiveInt = Field(
        description="Maximum number of idle keep-alive connections per transport",
        default=20,
    )

    KEEPALIVE_EXPIRY: PositiveFloat = Field(
        description="Idle keep-alive connection expiry in seconds",
        default=30.0,
    )

    REQUEST_POOL_SIZE: PositiveInt = Field(
        description="Maximum number of idle request objects kept for reuse",
        default=1024,
    )
