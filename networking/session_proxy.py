from __future__ import annotations

import threading
from typing import Optional, Tuple, Type

from helpers.unified_logger import get_core_logger

from .connection_factory import DEFAULT_CONNECT_TIMEOUT, ConnectionFactory
from .credentials import StaticCredentialProvider
from .exceptions import ConnectTimeoutError, ProxyError, ProxyUnavailableError
from .models import (
    ErrorKind,
    ProxyConfig,
    RoutingState,
    SessionResult,
    SessionState,
)

DEFAULT_PROBE_TARGET: Tuple[str, int] = ("8.8.8.8", 53)
DEFAULT_PROBE_TIMEOUT = 5.0

logger = get_core_logger("session_manager")


class SessionManager:
    """
    Owner of the single active proxy session and its published routing state.

    Usage:
        manager = SessionManager()
        result = manager.connect(ProxyConfig("proxy.example.com", 1080))
        factory = manager.connection_factory()
        ...
        manager.disconnect()

    Session state is derived from the published ``RoutingState``, which is
    swapped as a whole under one lock. Connection factories built from
    :meth:`routing` see either the previous session or the new one in full.
    """

    def __init__(
        self,
        *,
        probe_target: Tuple[str, int] = DEFAULT_PROBE_TARGET,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        factory_cls: Type[ConnectionFactory] = ConnectionFactory,
    ) -> None:
        self._lock = threading.RLock()
        self._probe_target = probe_target
        self._probe_timeout = probe_timeout
        self._factory_cls = factory_cls
        self._routing = RoutingState.direct()

    def connect(self, config: ProxyConfig) -> SessionResult:
        """
        Validate, probe and activate ``config``.

        A failed probe leaves the current state untouched; connecting while a
        session is active replaces it only once the new proxy has been probed.
        """
        problems = config.validate()
        if problems:
            message = f"Invalid proxy configuration: {'; '.join(problems)}"
            logger.error(message)
            return SessionResult.failure(ErrorKind.INVALID_CONFIG, message)

        label = config.masked_label()
        logger.info(f"Probing proxy {label} via {self._probe_target[0]}:{self._probe_target[1]}")

        failure = self._probe(config)
        if failure is not None:
            message = f"Proxy {label} is unreachable: {failure}"
            logger.warning(message)
            return SessionResult.failure(failure.kind, message)

        routing = _routing_for(config)
        with self._lock:
            previous = self._routing.config
            self._routing = routing
        status = SessionState(config).describe()

        if previous is not None and previous != config:
            logger.info(f"Switched proxy session from {previous.masked_label()} to {label}")
        logger.info(f"Proxy session active: {label}")
        return SessionResult.success(status)

    def disconnect(self) -> None:
        """Drop the active session; a no-op when already disconnected."""
        with self._lock:
            previous = self._routing.config
            self._routing = RoutingState.direct()

        if previous is not None:
            logger.info(f"Proxy session closed: {previous.masked_label()}")

    def is_connected(self) -> bool:
        return not self._routing.is_direct

    def status(self) -> str:
        return self.state().describe()

    def state(self) -> SessionState:
        return SessionState(self._routing.config)

    def routing(self) -> RoutingState:
        return self._routing

    def snapshot(self) -> Tuple[SessionState, RoutingState]:
        """Return the session state and the routing it was published with."""
        routing = self._routing
        return SessionState(routing.config), routing

    def describe(self, *, mask_password: bool = True) -> Optional[str]:
        config = self._routing.config
        if config is None:
            return None
        return config.url_with_auth(mask_password=mask_password)

    def connection_factory(self, *, timeout: float = DEFAULT_CONNECT_TIMEOUT) -> ConnectionFactory:
        """Return a factory bound to the routing snapshot published right now."""
        return self._factory_cls(self.routing(), timeout=timeout)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _probe(self, config: ProxyConfig) -> Optional[ProxyError]:
        factory = self._factory_cls(_routing_for(config), timeout=self._probe_timeout)
        host, port = self._probe_target
        try:
            probe_socket = factory.create(host, port)
        except ConnectTimeoutError as exc:
            return exc
        except ProxyError as exc:
            return ProxyUnavailableError(str(exc))
        probe_socket.close()
        return None


def _routing_for(config: ProxyConfig) -> RoutingState:
    provider = StaticCredentialProvider(config.credentials) if config.credentials else None
    return RoutingState(config=config, credential_provider=provider)


_default_manager: Optional[SessionManager] = None
_default_lock = threading.Lock()


def get_session_manager() -> SessionManager:
    """Return the process-wide session manager."""
    global _default_manager
    with _default_lock:
        if _default_manager is None:
            _default_manager = SessionManager()
        return _default_manager
