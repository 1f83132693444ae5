"""
Proxy-gated client - opens target connections through the active proxy session.
"""

import socket
from typing import Callable, Optional, Type

from helpers.unified_logger import get_client_logger
from networking import (
    ConnectionFactory,
    OutcomeStatus,
    ProxyError,
    ServerConnectionOutcome,
    SessionManager,
    SessionState,
    get_session_manager,
)
from networking.connection_factory import DEFAULT_CONNECT_TIMEOUT

# Downstream protocol logic; receives ownership of the connected socket.
ProtocolHandler = Callable[[socket.socket], None]

REFUSAL_MESSAGE = "Proxy not connected. Connect to the proxy first."


class ProxiedClient:
    """Requests target connections, gated on the session manager's state."""

    def __init__(
        self,
        session: Optional[SessionManager] = None,
        *,
        protocol_handler: Optional[ProtocolHandler] = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        factory_cls: Type[ConnectionFactory] = ConnectionFactory,
    ):
        self.session = session if session is not None else get_session_manager()
        self.protocol_handler = protocol_handler
        self.connect_timeout = connect_timeout
        self.factory_cls = factory_cls
        self.logger = get_client_logger("proxied_client")

    def connect_to_server(self, addr: str, port: int, require_proxy: bool) -> ServerConnectionOutcome:
        """
        Connect to ``addr:port`` using the current routing state.

        With ``require_proxy`` and no active session the attempt is refused
        without touching the network. Connection failures are reported in the
        returned outcome and never raised.
        """
        target = (addr, port)
        # Gate, factory and status all come from this one snapshot.
        routing = self.session.routing()
        session_status = SessionState(routing.config).describe()

        if require_proxy and routing.is_direct:
            self.logger.warning(f"Refusing connection to {addr}:{port}: {REFUSAL_MESSAGE}")
            return ServerConnectionOutcome(
                status=OutcomeStatus.REFUSED,
                target=target,
                message=REFUSAL_MESSAGE,
                session_status=session_status,
            )

        factory = self.factory_cls(routing, timeout=self.connect_timeout)

        try:
            connection = factory.create(addr, port)
        except ProxyError as e:
            message = f"Failed to connect: {e}"
            self.logger.error(message)
            return ServerConnectionOutcome(
                status=OutcomeStatus.FAILED,
                target=target,
                message=message,
                session_status=session_status,
                error=e.kind,
            )

        self.logger.info(f"Connected to server: {addr}:{port}")
        self.logger.info(f"Proxy status: {session_status}")

        outcome = ServerConnectionOutcome(
            status=OutcomeStatus.CONNECTED,
            target=target,
            message=f"Connected to server: {addr}:{port}",
            session_status=session_status,
        )

        if self.protocol_handler is None:
            outcome.connection = connection
        else:
            self.protocol_handler(connection)

        return outcome
