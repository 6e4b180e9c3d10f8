"""Per-connection SOCKS5 session.

A session owns one accepted client socket and drives it through the protocol:

    CONNECTING -> HANDSHAKING -> AWAITING_REQUEST -> EXECUTING -> RELAYING -> CLOSED

Any step may end in FAILED, which is always followed by CLOSED. The client
socket is closed when ``run`` returns, whatever the outcome. No state is shared
between sessions.
"""

from __future__ import annotations

import socket
from enum import Enum
from typing import TYPE_CHECKING

from socks5_relay.core.exceptions import IOFailure, ProxyError, UnrecognizedAddrType, UnsupportedCommand
from socks5_relay.core.lib.codec import AddrSpec, Reply, ReplyCode
from socks5_relay.core.lib.executor import CommandExecutor, send_reply
from socks5_relay.core.lib.negotiator import negotiate
from socks5_relay.core.lib.request import read_request

if TYPE_CHECKING:
    from socks5_relay.core.lib.proxy_server import ServerConfig


class SessionState(Enum):
    CONNECTING = "connecting"
    HANDSHAKING = "handshaking"
    AWAITING_REQUEST = "awaiting request"
    EXECUTING = "executing"
    RELAYING = "relaying"
    FAILED = "failed"
    CLOSED = "closed"


class Session:
    """State for a single client connection.

    Attributes:
        conn: Client socket
        reader: Buffered reader over ``conn``; all protocol reads go through it
        remote_addr: Client address, for logging
        authenticated: True once the no-auth method has been committed
        state: Current protocol step
        replied: True once the single reply has been written
    """

    def __init__(
        self,
        conn: socket.socket,
        remote_addr: tuple | None,
        config: ServerConfig,
        executor: CommandExecutor | None = None,
    ) -> None:
        self.conn = conn
        self.reader = conn.makefile("rb")
        self.config = config
        self.executor = executor or CommandExecutor(config)
        self.remote_addr = AddrSpec.from_sockaddr(remote_addr) if remote_addr else None
        self.logger = config.logger.bind(remote=str(self.remote_addr))
        self.authenticated = False
        self.replied = False
        self.state = SessionState.CONNECTING
        self.failed_stage: SessionState | None = None

    def send_reply(self, reply: Reply) -> None:
        """Write the session's reply. A session replies at most once."""
        if self.replied:
            msg = "Reply already sent for this session"
            raise RuntimeError(msg)
        self.replied = True
        send_reply(self.conn, reply)

    def start_relaying(self) -> None:
        self.state = SessionState.RELAYING

    def _fail(self, error: Exception) -> None:
        self.failed_stage = self.state
        self.state = SessionState.FAILED
        if isinstance(error, ProxyError):
            self.logger.warning(f"socks: {self.failed_stage.value} failed for {self.remote_addr}: {error}")
        else:
            self.logger.exception(f"socks: unexpected error while {self.failed_stage.value} for {self.remote_addr}")

    def _reject(self, code: ReplyCode) -> None:
        try:
            self.send_reply(Reply(code))
        except IOFailure as e:
            self.logger.warning(f"socks: could not send {code.name} reply to {self.remote_addr}: {e}")

    def _serve(self) -> None:
        self.state = SessionState.HANDSHAKING
        negotiate(self.reader, self.conn, require_no_auth=self.config.require_no_auth)
        self.authenticated = True

        self.state = SessionState.AWAITING_REQUEST
        try:
            request = read_request(self.reader, remote_addr=self.remote_addr)
        except UnrecognizedAddrType:
            self._reject(ReplyCode.ADDRESS_TYPE_NOT_SUPPORTED)
            raise
        except UnsupportedCommand:
            self._reject(ReplyCode.COMMAND_NOT_SUPPORTED)
            raise

        self.state = SessionState.EXECUTING
        self.executor.execute(request, self)

    def close(self) -> None:
        self.reader.close()
        self.conn.close()
        self.state = SessionState.CLOSED

    def run(self) -> None:
        """Serve the connection to completion. Never raises."""
        self.logger.debug(f"socks: connection from {self.remote_addr}")
        try:
            self._serve()
        except Exception as e:
            self._fail(e)
        finally:
            self.close()
