"""Custom exceptions for the SOCKS5 server.

Every failure a session can run into is a ``ProxyError``. The session uses the
concrete class to decide whether the client still gets a reply:

- ``ProtocolVersionMismatch``, ``MalformedFrame``, ``IOFailure`` and
  ``NoAcceptableMethods`` close the connection without a reply.
- ``UnrecognizedAddrType`` and ``UnsupportedCommand`` are answered with
  reply code 0x08 and 0x07 respectively.
- ``DialFailure`` carries the reply code the client is told.

Example:
    try:
        request = read_request(reader)
    except UnrecognizedAddrType as e:
        logger.warning(f"Rejecting request: {e}")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from socks5_relay.core.lib.codec import AddrSpec, ReplyCode


class ProxyError(Exception):
    """Base exception for proxy errors."""


class ProtocolVersionMismatch(ProxyError):
    """Raised when a frame carries a version byte other than 5."""

    def __init__(self, version: int) -> None:
        super().__init__(f"Unsupported SOCKS version: {version}")
        self.version = version


UnsupportedVersion = ProtocolVersionMismatch


class MalformedFrame(ProxyError):
    """Raised on a short read or an undecodable field."""


class IOFailure(ProxyError):
    """Raised when the transport fails while reading or writing a frame."""


class NoAcceptableMethods(ProxyError):
    """Raised when the client offered no method the server accepts."""


class UnrecognizedAddrType(ProxyError):
    """Raised when a request names an address type other than 1, 3 or 4."""

    def __init__(self, addr_type: int) -> None:
        super().__init__(f"Unrecognized address type: {addr_type}")
        self.addr_type = addr_type


class UnsupportedCommand(ProxyError):
    """Raised for any command this server does not carry out."""

    def __init__(self, command: int) -> None:
        super().__init__(f"Unsupported command: {command}")
        self.command = command


class DialFailure(ProxyError):
    """Raised when the upstream connection for CONNECT cannot be opened."""

    def __init__(self, reply_code: ReplyCode, destination: AddrSpec, reason: str) -> None:
        super().__init__(f"Connect to {destination} failed: {reason}")
        self.reply_code = reply_code
        self.destination = destination
