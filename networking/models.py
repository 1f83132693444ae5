from __future__ import annotations

import socket
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple
from urllib.parse import unquote, urlparse

if TYPE_CHECKING:  # pragma: no cover
    from .credentials import CredentialProvider

_DEFAULT_PORTS = {
    "http": 80,
    "https": 443,
    "socks5": 1080,
    "socks5h": 1080,
}


class ProxyType(str, Enum):
    """Supported forwarding proxy flavours."""

    SOCKS5 = "socks5"
    HTTP = "http"
    HTTPS = "https"

    @classmethod
    def parse(cls, value: "ProxyType | str") -> "ProxyType":
        if isinstance(value, ProxyType):
            return value
        normalized = str(value).strip().lower()
        if normalized == "socks5h":
            normalized = "socks5"
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(
                f"Unsupported proxy type: {value!r}. Only SOCKS5, HTTP, HTTPS are supported"
            ) from None


class ErrorKind(str, Enum):
    """Failure categories surfaced by session and connection operations."""

    INVALID_CONFIG = "invalid_config"
    PROBE_UNREACHABLE = "probe_unreachable"
    CONNECT_FAILED = "connect_failed"
    TIMEOUT = "timeout"


@dataclass(frozen=True, slots=True)
class ProxyCredentials:
    username: str
    password: str = field(repr=False)

    def __repr__(self) -> str:
        return f"ProxyCredentials(username={self.username!r}, password='***')"


@dataclass(frozen=True, slots=True)
class ProxyConfig:
    """
    Immutable description of a proxy endpoint with optional credentials.

    Construction never raises: an unknown ``proxy_type`` string is kept as-is
    and, like a bad host or port, reported by :meth:`validate`. A malformed
    config can therefore be handed to ``SessionManager.connect`` and rejected
    there before any I/O.

    Attributes:
        host: Proxy hostname or IP address.
        port: Proxy TCP port, valid range [1, 65535].
        proxy_type: SOCKS5, HTTP or HTTPS.
        credentials: Optional username/password pair.
    """

    host: str
    port: int
    proxy_type: ProxyType = ProxyType.SOCKS5
    credentials: Optional[ProxyCredentials] = None

    def __post_init__(self) -> None:
        if not isinstance(self.proxy_type, ProxyType):
            try:
                object.__setattr__(self, "proxy_type", ProxyType.parse(self.proxy_type))
            except ValueError:
                # Left unparsed; validate() reports it.
                pass

    @classmethod
    def from_url(cls, url: str) -> "ProxyConfig":
        """
        Parse ``scheme://[user[:password]@]host[:port]``.

        The scheme defaults to http and the port to the scheme's usual value.
        """
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.netloc:
            # Default to http when scheme omitted.
            parsed = urlparse(f"http://{url}")

        proxy_type = ProxyType.parse(parsed.scheme)
        try:
            port = parsed.port
        except ValueError:
            # Out-of-range ports are reported by validate(), not here.
            port = int(parsed.netloc.rsplit(":", 1)[1])
        if port is None:
            port = _DEFAULT_PORTS[parsed.scheme.lower()]

        credentials = None
        if parsed.username:
            credentials = ProxyCredentials(
                username=unquote(parsed.username),
                password=unquote(parsed.password or ""),
            )

        return cls(
            host=parsed.hostname or "",
            port=port,
            proxy_type=proxy_type,
            credentials=credentials,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.host}:{self.port}"

    def validate(self) -> List[str]:
        """Return a list of problems; empty when the config is usable."""
        problems: List[str] = []
        if not isinstance(self.host, str) or not self.host.strip():
            problems.append("proxy host must be a non-empty string")
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            problems.append(f"proxy port must be an integer, got {self.port!r}")
        elif not 1 <= self.port <= 65535:
            problems.append(f"proxy port {self.port} is outside [1, 65535]")
        if not isinstance(self.proxy_type, ProxyType):
            problems.append(f"unsupported proxy type {self.proxy_type!r}")
        return problems

    def url_with_auth(self, *, mask_password: bool = False) -> str:
        """
        Build a proxy URL with credentials embedded.

        Args:
            mask_password: Replace the password with "***" for logging.
        """
        netloc = self.endpoint
        if self.credentials and self.credentials.username:
            password = self.credentials.password
            if mask_password and password:
                password = "***"
            auth_segment = (
                self.credentials.username if not password else f"{self.credentials.username}:{password}"
            )
            netloc = f"{auth_segment}@{netloc}"
        scheme = self.proxy_type.value if isinstance(self.proxy_type, ProxyType) else str(self.proxy_type)
        return f"{scheme}://{netloc}"

    def masked_label(self) -> str:
        return self.url_with_auth(mask_password=True)


@dataclass(frozen=True, slots=True)
class SessionState:
    """Either Disconnected (``config is None``) or Connected(config)."""

    config: Optional[ProxyConfig] = None

    @property
    def connected(self) -> bool:
        return self.config is not None

    def describe(self) -> str:
        if self.config is None:
            return "Disconnected"
        return f"Connected to {self.config.host}:{self.config.port}"


@dataclass(frozen=True, slots=True)
class RoutingState:
    """
    Snapshot of the published routing configuration.

    Replaced as a whole on every session transition; readers hold a single
    reference and therefore never observe a partially applied update.
    """

    config: Optional[ProxyConfig] = None
    credential_provider: Optional["CredentialProvider"] = None

    @classmethod
    def direct(cls) -> "RoutingState":
        return cls()

    @property
    def is_direct(self) -> bool:
        return self.config is None


@dataclass(slots=True)
class SessionResult:
    """Outcome of a session transition request."""

    ok: bool
    message: str
    error: Optional[ErrorKind] = None

    @classmethod
    def success(cls, message: str) -> "SessionResult":
        return cls(ok=True, message=message)

    @classmethod
    def failure(cls, error: ErrorKind, message: str) -> "SessionResult":
        return cls(ok=False, message=message, error=error)

    def __bool__(self) -> bool:
        return self.ok


class OutcomeStatus(str, Enum):
    CONNECTED = "connected"
    REFUSED = "refused"
    FAILED = "failed"


@dataclass(slots=True)
class ServerConnectionOutcome:
    """
    Result of a gated target connection attempt.

    ``connection`` is only populated when the caller did not supply a protocol
    handler; ownership of the socket then passes to the caller.
    """

    status: OutcomeStatus
    target: Tuple[str, int]
    message: str
    session_status: str
    error: Optional[ErrorKind] = None
    connection: Optional[socket.socket] = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.CONNECTED
