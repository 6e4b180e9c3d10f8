"""Command execution for decoded SOCKS5 requests.

CONNECT dials the destination, answers with the upstream socket's local
address and hands both streams to the relay. BIND and UDP ASSOCIATE are
rejected with ``COMMAND_NOT_SUPPORTED``. A dial failure is classified into the
reply code the client sees.
"""

from __future__ import annotations

import errno
import socket
from typing import TYPE_CHECKING

from socks5_relay.core.exceptions import DialFailure, IOFailure, UnsupportedCommand
from socks5_relay.core.lib.codec import AddrSpec, Command, Reply, ReplyCode, encode_reply
from socks5_relay.core.lib.relay import Relay
from socks5_relay.core.utils.utils import format_bytes

if TYPE_CHECKING:
    from socks5_relay.core.lib.proxy_server import ServerConfig
    from socks5_relay.core.lib.request import Request
    from socks5_relay.core.lib.session import Session

HOST_UNREACHABLE_ERRNOS = frozenset({errno.EHOSTUNREACH, errno.EHOSTDOWN, errno.ETIMEDOUT})


def send_reply(conn: socket.socket, reply: Reply) -> None:
    """Write a reply frame to the client."""
    try:
        conn.sendall(encode_reply(reply))
    except OSError as e:
        msg = f"Failed to send reply: {e}"
        raise IOFailure(msg) from e


def classify_dial_error(error: OSError) -> ReplyCode:
    """Map an error raised while connecting upstream to a reply code."""
    if isinstance(error, ConnectionRefusedError):
        return ReplyCode.CONNECTION_REFUSED
    if isinstance(error, socket.gaierror | TimeoutError):
        return ReplyCode.HOST_UNREACHABLE
    if error.errno == errno.ENETUNREACH:
        return ReplyCode.NETWORK_UNREACHABLE
    if error.errno in HOST_UNREACHABLE_ERRNOS:
        return ReplyCode.HOST_UNREACHABLE
    return ReplyCode.GENERAL_FAILURE


class CommandExecutor:
    """Carry out a request on behalf of a session."""

    def __init__(self, config: ServerConfig) -> None:
        self.config = config

    def dial(self, destination: AddrSpec) -> socket.socket:
        """Open the upstream TCP connection.

        Domain names go through the system resolver; every resolved address
        is tried in turn.

        Raises:
            DialFailure: If no connection could be made
        """
        source = (self.config.bind_ip, 0) if self.config.bind_ip else None
        try:
            upstream = socket.create_connection(
                (destination.host, destination.port),
                timeout=self.config.dial_timeout,
                source_address=source,
            )
        except OSError as e:
            raise DialFailure(classify_dial_error(e), destination, str(e)) from e
        # The dial timeout must not carry over into relaying
        upstream.settimeout(None)
        return upstream

    def execute(self, request: Request, session: Session) -> None:
        """Execute ``request`` and send its one reply through ``session``."""
        if request.command is Command.CONNECT:
            self.handle_connect(request, session)
            return
        session.send_reply(Reply(ReplyCode.COMMAND_NOT_SUPPORTED))
        raise UnsupportedCommand(request.command)

    def handle_connect(self, request: Request, session: Session) -> None:
        """Handle CONNECT command."""
        log = session.logger
        log.info(f"CONNECT {request.dest_addr}")
        try:
            upstream = self.dial(request.dest_addr)
        except DialFailure as e:
            session.send_reply(Reply(e.reply_code))
            raise

        with upstream:
            bound = AddrSpec.from_sockaddr(upstream.getsockname())
            session.send_reply(Reply(ReplyCode.SUCCEEDED, bound))
            session.start_relaying()
            result = Relay(session.reader, session.conn, upstream, log).run()

        log.info(
            f"Closed relay to {request.dest_addr}: "
            f"{format_bytes(result.sent)} sent, {format_bytes(result.received)} received"
        )
