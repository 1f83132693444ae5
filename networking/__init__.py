"""
Networking helpers for proxy session management.

This package centralises proxy modelling, reachability probing, session
enablement and proxy-aware connection creation so callers can route TCP
traffic through a SOCKS5 or HTTP CONNECT proxy.
"""

from .config import ProxySettings, load_proxy_config_from_env, load_proxy_config_from_yaml
from .connection_factory import ConnectionFactory, Route
from .credentials import CredentialProvider, StaticCredentialProvider
from .exceptions import (
    ConnectFailedError,
    ConnectTimeoutError,
    ProxyConfigurationError,
    ProxyError,
    ProxyUnavailableError,
)
from .models import (
    ErrorKind,
    OutcomeStatus,
    ProxyConfig,
    ProxyCredentials,
    ProxyType,
    RoutingState,
    ServerConnectionOutcome,
    SessionResult,
    SessionState,
)
from .session_proxy import SessionManager, get_session_manager

__all__ = [
    "ConnectFailedError",
    "ConnectTimeoutError",
    "ConnectionFactory",
    "CredentialProvider",
    "ErrorKind",
    "OutcomeStatus",
    "ProxyConfig",
    "ProxyConfigurationError",
    "ProxyCredentials",
    "ProxyError",
    "ProxySettings",
    "ProxyType",
    "ProxyUnavailableError",
    "Route",
    "RoutingState",
    "ServerConnectionOutcome",
    "SessionManager",
    "SessionResult",
    "SessionState",
    "StaticCredentialProvider",
    "get_session_manager",
    "load_proxy_config_from_env",
    "load_proxy_config_from_yaml",
]
