"""Method negotiation (handshake) for SOCKS5 connections.

The server only speaks "no authentication required". By default it commits to
that method for every client, whatever the client offered. With
``require_no_auth`` set, a client that did not offer it is answered with
``NO_ACCEPTABLE`` and the handshake fails.
"""

import socket
from typing import BinaryIO

from socks5_relay.core.exceptions import IOFailure, NoAcceptableMethods
from socks5_relay.core.lib.codec import Method, decode_greeting, encode_method_selection


def _write(conn: socket.socket, data: bytes) -> None:
    try:
        conn.sendall(data)
    except OSError as e:
        msg = f"Write failed: {e}"
        raise IOFailure(msg) from e


def negotiate(reader: BinaryIO, conn: socket.socket, *, require_no_auth: bool = False) -> Method:
    """Read the client greeting and answer with the selected method.

    Args:
        reader: Buffered stream positioned at the start of the greeting
        conn: Client socket the selection is written to
        require_no_auth: Reject clients that did not offer ``NO_AUTH``

    Returns:
        Method: The committed method, always ``Method.NO_AUTH``

    Raises:
        NoAcceptableMethods: If ``require_no_auth`` is set and not satisfied
    """
    methods = decode_greeting(reader)

    if require_no_auth and Method.NO_AUTH not in methods:
        _write(conn, encode_method_selection(Method.NO_ACCEPTABLE))
        msg = f"Client offered no acceptable method: {list(methods)}"
        raise NoAcceptableMethods(msg)

    _write(conn, encode_method_selection(Method.NO_AUTH))
    return Method.NO_AUTH
