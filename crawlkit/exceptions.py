import enum


class CrawlkitError(Exception):
    detail: str = "Crawler error."

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.__class__.detail
        super().__init__(self.detail)


# =============================================================================
# Configuration errors (never retried)
# =============================================================================
class ConfigurationError(CrawlkitError):
    detail = "Invalid crawler configuration."


class InvalidURLError(ConfigurationError):
    detail = "Only absolute http and https urls can be requested."


class InvalidProxyError(ConfigurationError):
    detail = "The proxy address should contain the protocol."


class UnknownProtocolError(ConfigurationError):
    detail = "Only http, https and socks5 proxies are supported."


class ProxyErrorCode(str, enum.Enum):
    UNKNOWN_PROTOCOL = "unknown_protocol"
    EMPTY_ADDRESS = "empty_address"
    DIAL_FAILED = "dial_failed"


class ProxyDialError(ConfigurationError):
    detail = "Cannot connect through the proxy."

    def __init__(self, code: ProxyErrorCode, address: str, reason: str | None = None):
        self.code = code
        self.address = address
        self.reason = reason or self.__class__.detail
        super().__init__(f"{self.reason} [{address}]")


class InvalidBoundaryError(ConfigurationError):
    detail = "Invalid multipart boundary."


class HookRegistrationError(ConfigurationError):
    detail = "Hooks are frozen, no more hooks can be registered."


# =============================================================================
# Transport errors (retried per policy)
# =============================================================================
class TransportError(CrawlkitError):
    detail = "Transport failure."


class DispatchCancelledError(TransportError):
    detail = "Dispatch cancelled."


# =============================================================================
# Other dispatch errors
# =============================================================================
class SerializationError(CrawlkitError):
    detail = "Request cannot be canonicalized."


class HookError(CrawlkitError):
    detail = "A hook raised an exception."
