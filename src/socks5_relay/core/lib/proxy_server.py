"""Threaded SOCKS5 server.

This module ties accepted connections to sessions:
- ``ServerConfig`` holds the immutable settings every session shares
- ``SocksProxy`` is a threading TCP server, one thread per connection
- ``SocksHandler`` runs a ``Session`` for each accepted socket
- ``serve_connection`` serves a socket accepted elsewhere

Example:
    config = ServerConfig(bind_ip="192.168.1.100")
    run_server("127.0.0.1", 1080, config)
"""

import contextlib
import socket
import socketserver
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from .session import Session


@dataclass(frozen=True)
class ServerConfig:
    """Settings shared by all sessions of a server.

    Attributes:
        bind_ip: Local source address for upstream connections, None lets the OS pick
        dial_timeout: Seconds to wait for an upstream connect, None waits indefinitely
        require_no_auth: Reject clients that do not offer the no-auth method
        logger: Loguru logger sessions write to
    """

    bind_ip: str | None = None
    dial_timeout: float | None = None
    require_no_auth: bool = False
    logger: Any = field(default=logger, repr=False, compare=False)


def serve_connection(conn: socket.socket, remote_addr: tuple | None, config: ServerConfig) -> None:
    """Serve a single accepted connection and close it."""
    Session(conn, remote_addr, config).run()


class SocksHandler(socketserver.BaseRequestHandler):
    """Handle incoming SOCKS5 connections."""

    server: "SocksProxy"

    def handle(self) -> None:
        serve_connection(self.request, self.client_address, self.server.config)


class SocksProxy(socketserver.ThreadingMixIn, socketserver.TCPServer):
    """SOCKS proxy server implementation."""

    allow_reuse_address = True
    daemon_threads = True
    request_queue_size = 100

    def __init__(
        self,
        server_address: tuple[str, int],
        config: ServerConfig | None = None,
        handler_class: type[socketserver.BaseRequestHandler] = SocksHandler,
    ) -> None:
        self.config = config or ServerConfig()
        if ":" in server_address[0]:
            self.address_family = socket.AF_INET6
        super().__init__(server_address, handler_class)


def run_server(host: str, port: int, config: ServerConfig | None = None) -> None:
    """Listen on ``host:port`` and serve until interrupted.

    Args:
        host: Host address to bind to
        port: Port number to listen on
        config: Session settings
    """
    server: SocksProxy | None = None
    try:
        server = SocksProxy((host, port), config)
        logger.info(f"Listening on {host}:{server.server_address[1]}")
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Server stopping")
    finally:
        if server:
            with contextlib.suppress(Exception):
                server.server_close()
                logger.info("Server closed")
