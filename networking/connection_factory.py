from __future__ import annotations

import socket
import time
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

import socks

from helpers.unified_logger import get_core_logger

from .exceptions import (
    ConnectFailedError,
    ConnectTimeoutError,
    ProxyConfigurationError,
    ProxyError,
)
from .models import ProxyConfig, ProxyCredentials, ProxyType, RoutingState

DEFAULT_CONNECT_TIMEOUT = 10.0

LocalBind = Tuple[str, int]

logger = get_core_logger("connection_factory")

_clock = time.monotonic


class Route(str, Enum):
    """Transport variants the factory can produce."""

    DIRECT = "direct"
    SOCKS5 = "socks5"
    HTTP_CONNECT = "http_connect"


_ROUTES_BY_TYPE: Dict[ProxyType, Route] = {
    ProxyType.SOCKS5: Route.SOCKS5,
    # HTTPS proxies are reached with a plain CONNECT, same as HTTP.
    ProxyType.HTTP: Route.HTTP_CONNECT,
    ProxyType.HTTPS: Route.HTTP_CONNECT,
}

_SOCKS_TYPES: Dict[Route, int] = {
    Route.SOCKS5: socks.SOCKS5,
    Route.HTTP_CONNECT: socks.HTTP,
}


def route_for(config: Optional[ProxyConfig]) -> Route:
    if config is None:
        return Route.DIRECT
    try:
        return _ROUTES_BY_TYPE[config.proxy_type]
    except KeyError:
        raise ProxyConfigurationError(f"Unsupported proxy type: {config.proxy_type!r}") from None


class ConnectionFactory:
    """
    Produces connected TCP sockets, tunneled through the routing snapshot's proxy.

    The factory only reads the ``RoutingState`` it was built with; session
    transitions publish a new snapshot rather than mutating this one, so
    factories may be used concurrently.

    Usage:
        factory = ConnectionFactory(session.routing())
        sock = factory.create("mc.example.net", 25565)
    """

    def __init__(
        self,
        routing: Optional[RoutingState] = None,
        *,
        timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ) -> None:
        self._routing = routing or RoutingState.direct()
        self._timeout = timeout
        self._dispatch: Dict[Route, Callable[..., socket.socket]] = {
            Route.DIRECT: self._open_direct,
            Route.SOCKS5: self._open_tunnel,
            Route.HTTP_CONNECT: self._open_tunnel,
        }

    @property
    def routing(self) -> RoutingState:
        return self._routing

    @property
    def route(self) -> Route:
        return route_for(self._routing.config)

    def create(
        self,
        target_host: str,
        target_port: int,
        local_bind: Optional[LocalBind] = None,
        *,
        timeout: Optional[float] = None,
    ) -> socket.socket:
        """
        Open a handshake-complete connection to ``(target_host, target_port)``.

        Args:
            target_host: Final destination host, resolved by the proxy when tunneled.
            target_port: Final destination port.
            local_bind: Optional ``(host, port)`` bound before the remote handshake.
            timeout: Deadline for establishment; defaults to the factory timeout.

        PySocks applies ``timeout`` to each socket operation, so the TCP connect
        and the SOCKS5/CONNECT handshake may each use up to the full deadline.
        A connection that is only complete after the overall deadline has
        passed is closed and reported as a timeout.

        Raises:
            ProxyConfigurationError: Target is malformed (no I/O attempted).
            ConnectFailedError: Proxy/target unreachable or tunnel rejected.
            ConnectTimeoutError: Establishment exceeded the deadline.
        """
        _validate_target(target_host, target_port)
        deadline = self._timeout if timeout is None else timeout
        route = self.route
        destination = f"{target_host}:{target_port}"

        logger.debug(f"Opening {route.value} connection to {destination}")
        started = _clock()
        try:
            connection = self._dispatch[route](route, target_host, target_port, local_bind, deadline)
        except (socks.ProxyError, OSError) as exc:
            raise _classify(exc, route, destination, deadline) from exc

        elapsed = _clock() - started
        if elapsed > deadline:
            connection.close()
            raise ConnectTimeoutError(
                f"{route.value} connection to {destination} took {elapsed:.1f}s, over the {deadline:g}s deadline"
            )
        return connection

    def try_create(
        self,
        target_host: str,
        target_port: int,
        local_bind: Optional[LocalBind] = None,
        *,
        timeout: Optional[float] = None,
    ) -> Tuple[Optional[socket.socket], Optional[ProxyError]]:
        """Result-style variant of :meth:`create`."""
        try:
            return self.create(target_host, target_port, local_bind, timeout=timeout), None
        except ProxyError as exc:
            return None, exc

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------

    def _open_direct(
        self,
        route: Route,
        target_host: str,
        target_port: int,
        local_bind: Optional[LocalBind],
        timeout: float,
    ) -> socket.socket:
        return socket.create_connection(
            (target_host, target_port),
            timeout=timeout,
            source_address=local_bind,
        )

    def _open_tunnel(
        self,
        route: Route,
        target_host: str,
        target_port: int,
        local_bind: Optional[LocalBind],
        timeout: float,
    ) -> socket.socket:
        config = self._routing.config
        credentials = self._resolve_credentials()
        # PySocks binds source_address before connecting to the proxy and runs
        # the SOCKS5/CONNECT negotiation as part of connect().
        return socks.create_connection(
            (target_host, target_port),
            timeout=timeout,
            source_address=local_bind,
            proxy_type=_SOCKS_TYPES[route],
            proxy_addr=config.host,
            proxy_port=config.port,
            proxy_rdns=True,
            proxy_username=credentials.username if credentials else None,
            proxy_password=credentials.password if credentials else None,
        )

    def _resolve_credentials(self) -> Optional[ProxyCredentials]:
        provider = self._routing.credential_provider
        if provider is not None:
            credentials = provider.get_credentials()
            if credentials is not None:
                return credentials
        return self._routing.config.credentials


def _validate_target(host: str, port: int) -> None:
    if not isinstance(host, str) or not host.strip():
        raise ProxyConfigurationError("Target host must be a non-empty string")
    if isinstance(port, bool) or not isinstance(port, int) or not 1 <= port <= 65535:
        raise ProxyConfigurationError(f"Target port {port!r} is outside [1, 65535]")


def _is_timeout(exc: BaseException) -> bool:
    if isinstance(exc, socket.timeout):
        return True
    # PySocks wraps the underlying socket error on its ProxyError types.
    return isinstance(getattr(exc, "socket_err", None), socket.timeout)


def _classify(exc: BaseException, route: Route, destination: str, timeout: float) -> ProxyError:
    if _is_timeout(exc):
        return ConnectTimeoutError(
            f"{route.value} connection to {destination} timed out after {timeout:g}s"
        )
    return ConnectFailedError(f"{route.value} connection to {destination} failed: {exc}")
