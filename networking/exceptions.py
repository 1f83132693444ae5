"""Custom exceptions for proxy and networking utilities."""

from .models import ErrorKind


class ProxyError(Exception):
    """Base class for proxy-related errors."""

    kind: ErrorKind = ErrorKind.CONNECT_FAILED


class ProxyConfigurationError(ProxyError):
    """Raised when proxy configuration is invalid or incomplete."""

    kind = ErrorKind.INVALID_CONFIG


class ProxyUnavailableError(ProxyError):
    """Raised when the reachability probe cannot get through the proxy."""

    kind = ErrorKind.PROBE_UNREACHABLE


class ConnectFailedError(ProxyError):
    """Raised when the proxy or target refuses or cannot complete the tunnel."""

    kind = ErrorKind.CONNECT_FAILED


class ConnectTimeoutError(ProxyError):
    """Raised when connection establishment exceeds its deadline."""

    kind = ErrorKind.TIMEOUT
