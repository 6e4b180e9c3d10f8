"""Socket helpers shared by the tests."""

import socket
import struct

TIMEOUT = 5.0
GREETING = b"\x05\x01\x00"


def recv_exact(sock: socket.socket, size: int) -> bytes:
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            msg = f"EOF after {len(data)} of {size} bytes"
            raise ConnectionError(msg)
        data += chunk
    return data


def recv_until_eof(sock: socket.socket) -> bytes:
    data = b""
    while chunk := sock.recv(4096):
        data += chunk
    return data


def connect_request(host: str, port: int, command: int = 1) -> bytes:
    """CONNECT-style request for an IPv4 literal or a domain name."""
    try:
        addr = b"\x01" + socket.inet_aton(host)
    except OSError:
        name = host.encode()
        addr = b"\x03" + bytes([len(name)]) + name
    return bytes([5, command, 0]) + addr + struct.pack("!H", port)


def free_port() -> int:
    """A loopback port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]
