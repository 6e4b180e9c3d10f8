"""Request decoding for the post-handshake stream."""

from dataclasses import dataclass
from typing import BinaryIO

from socks5_relay.core.lib.codec import AddrSpec, Command, decode_addr_spec, decode_request_header


@dataclass(frozen=True)
class Request:
    """A decoded client request.

    Attributes:
        command: Requested command
        dest_addr: Destination the command targets
        remote_addr: Address of the client that sent it, for logging only
    """

    command: Command
    dest_addr: AddrSpec
    remote_addr: AddrSpec | None = None


def read_request(reader: BinaryIO, remote_addr: AddrSpec | None = None) -> Request:
    """Decode a request from ``reader``.

    Raises:
        UnsupportedCommand: The command byte is not 1, 2 or 3
        UnrecognizedAddrType: The address type byte is not 1, 3 or 4
        ProtocolVersionMismatch: The version byte is not 5
        MalformedFrame: The stream ended inside the frame
        IOFailure: The transport failed
    """
    header = decode_request_header(reader)
    dest_addr = decode_addr_spec(reader)
    return Request(command=header.command, dest_addr=dest_addr, remote_addr=remote_addr)
