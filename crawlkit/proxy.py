import enum
import logging
import random
import secrets
from collections.abc import Sequence
from dataclasses import dataclass
from urllib.parse import quote, unquote, urlparse

import httpx

from .exceptions import (
    InvalidProxyError,
    ProxyDialError,
    ProxyErrorCode,
    UnknownProtocolError,
)
from .pool import PoolLimits

logger = logging.getLogger(__name__)


class ProxyProtocol(str, enum.Enum):
    HTTP = "http"
    HTTPS = "https"
    SOCKS5 = "socks5"


@dataclass(frozen=True)
class ProxyConfig:
    """A validated proxy address with its credentials split out."""

    protocol: ProxyProtocol
    host: str
    port: int
    auth: tuple[str, str] | None = None

    @classmethod
    def parse(cls, proxy_url: str) -> "ProxyConfig":
        """
        Validate a proxy address.

        Raises:
            InvalidProxyError: the address has no "//" protocol separator
            UnknownProtocolError: the scheme is not http, https or socks5
            ProxyDialError: host or port is empty
        """
        if "//" not in proxy_url:
            raise InvalidProxyError(f"the proxy address should contain the protocol: {proxy_url!r}")

        parsed = urlparse(proxy_url)
        try:
            protocol = ProxyProtocol(parsed.scheme.lower())
        except ValueError:
            raise UnknownProtocolError(
                f"only support http, https and socks5 protocol, got {parsed.scheme!r}"
            ) from None

        try:
            port = parsed.port
        except ValueError:
            port = None
        if not parsed.hostname or not port:
            raise ProxyDialError(
                ProxyErrorCode.EMPTY_ADDRESS,
                proxy_url,
                "ip and port cannot be empty",
            )

        auth = None
        if parsed.username:
            auth = (unquote(parsed.username), unquote(parsed.password or ""))
        return cls(protocol=protocol, host=parsed.hostname, port=port, auth=auth)

    @property
    def address(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{host}:{self.port}"

    @property
    def url(self) -> str:
        """Proxy address without credentials."""
        return f"{self.protocol.value}://{self.address}"

    def to_httpx_proxy(self) -> str:
        if not self.auth:
            return self.url
        user, password = (quote(part, safe="") for part in self.auth)
        return f"{self.protocol.value}://{user}:{password}@{self.address}"


def choose_proxy(
    pool: Sequence[str],
    proxy_url: str = "",
    rng: random.Random | None = None,
) -> str:
    """Pick a proxy for one dispatch.

    The pool wins over the single proxy URL; with neither configured the
    result is an empty string, meaning a direct connection.
    """
    if pool:
        return rng.choice(pool) if rng is not None else secrets.choice(pool)
    return proxy_url or ""


def parse_proxy(proxy_url: str) -> ProxyConfig:
    return ProxyConfig.parse(proxy_url)


class ProxyDialer:
    """Builds httpx transports that route connections through a proxy.

    http and https proxies are dialed with an HTTP CONNECT tunnel, socks5
    proxies with a SOCKS5 handshake.
    """

    def __init__(
        self,
        pool_limits: PoolLimits | None = None,
        dial_timeout: float | None = None,
    ):
        self._pool_limits = pool_limits or PoolLimits()
        self._dial_timeout = dial_timeout

    def timeout(self, total: float | None) -> httpx.Timeout:
        """Request timeout whose connect phase (proxy tunnel included) uses the dial timeout."""
        connect = self._dial_timeout if self._dial_timeout is not None else total
        return httpx.Timeout(total, connect=connect)

    def dial(self, config: ProxyConfig) -> httpx.AsyncHTTPTransport:
        logger.debug(f"dialing {config.protocol.value} proxy {config.url}")
        return httpx.AsyncHTTPTransport(
            proxy=httpx.Proxy(config.to_httpx_proxy()),
            limits=self._pool_limits.to_httpx_limits(),
        )
