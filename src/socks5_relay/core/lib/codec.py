"""SOCKS5 wire format according to RFC 1928.

This module encodes and decodes the fixed binary frames of the protocol:
- Version/method greeting
- Request header
- Address specifications (IPv4, domain name, IPv6)
- Replies

Decoders read from a binary stream (a socket ``makefile("rb")`` in the server,
``io.BytesIO`` in tests) and consume exactly the number of bytes the framing
announces. Encoders are pure and return ``bytes``.

Example:
    spec = AddrSpec(port=443, fqdn="example.com")
    frame = encode_reply(Reply(ReplyCode.SUCCEEDED, spec))
"""

import ipaddress
import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import BinaryIO, Final

from socks5_relay.core.exceptions import (
    IOFailure,
    MalformedFrame,
    ProtocolVersionMismatch,
    UnrecognizedAddrType,
    UnsupportedCommand,
)

SOCKS_VERSION: Final = 5
MAX_PORT: Final = 0xFFFF
MAX_FQDN_LENGTH: Final = 0xFF

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


class Method(IntEnum):
    """Authentication method identifiers."""

    NO_AUTH = 0x00
    GSSAPI = 0x01
    USERNAME_PASSWORD = 0x02
    NO_ACCEPTABLE = 0xFF


class Command(IntEnum):
    """Request commands."""

    CONNECT = 0x01
    BIND = 0x02
    UDP_ASSOCIATE = 0x03


class AddrType(IntEnum):
    """Address type (ATYP) field values."""

    IPV4 = 0x01
    DOMAIN = 0x03
    IPV6 = 0x04


class ReplyCode(IntEnum):
    """Reply (REP) field values."""

    SUCCEEDED = 0x00
    GENERAL_FAILURE = 0x01
    CONNECTION_NOT_ALLOWED = 0x02
    NETWORK_UNREACHABLE = 0x03
    HOST_UNREACHABLE = 0x04
    CONNECTION_REFUSED = 0x05
    TTL_EXPIRED = 0x06
    COMMAND_NOT_SUPPORTED = 0x07
    ADDRESS_TYPE_NOT_SUPPORTED = 0x08


@dataclass(frozen=True)
class AddrSpec:
    """Destination or bound address.

    Exactly one of ``ip`` and ``fqdn`` is set. An empty ``fqdn`` is a valid
    zero-length domain name.

    Attributes:
        port: Port number, 0-65535
        ip: IPv4 or IPv6 address literal
        fqdn: Domain name, not resolved
    """

    port: int
    ip: IPAddress | None = None
    fqdn: str | None = None

    def __post_init__(self) -> None:
        if (self.ip is None) == (self.fqdn is None):
            msg = "AddrSpec needs exactly one of ip or fqdn"
            raise ValueError(msg)
        if not 0 <= self.port <= MAX_PORT:
            msg = f"Port out of range: {self.port}"
            raise ValueError(msg)

    @classmethod
    def from_host(cls, host: str, port: int) -> "AddrSpec":
        """Build an AddrSpec from a host string, using a literal when it parses as one."""
        try:
            return cls(port=port, ip=ipaddress.ip_address(host))
        except ValueError:
            return cls(port=port, fqdn=host)

    @classmethod
    def from_sockaddr(cls, sockaddr: tuple) -> "AddrSpec":
        """Build an AddrSpec from a ``getsockname()``/``getpeername()`` tuple."""
        host, port = sockaddr[0], sockaddr[1]
        # Scoped IPv6 addresses come back as "fe80::1%eth0"
        return cls(port=port, ip=ipaddress.ip_address(host.split("%", 1)[0]))

    @property
    def addr_type(self) -> AddrType:
        if self.fqdn is not None:
            return AddrType.DOMAIN
        if self.ip.version == 4:
            return AddrType.IPV4
        return AddrType.IPV6

    @property
    def host(self) -> str:
        """Host part suitable for ``socket.create_connection``."""
        return self.fqdn if self.fqdn is not None else str(self.ip)

    def __str__(self) -> str:
        if self.addr_type is AddrType.IPV6:
            return f"[{self.ip}]:{self.port}"
        return f"{self.host}:{self.port}"


ZERO_ADDR: Final = AddrSpec(port=0, ip=ipaddress.IPv4Address(0))


@dataclass(frozen=True)
class Reply:
    """Server reply to a request."""

    code: ReplyCode
    bind_addr: AddrSpec = field(default=ZERO_ADDR)


@dataclass(frozen=True)
class RequestHeader:
    """Decoded fixed part of a request, before the address."""

    version: int
    command: Command


def read_exact(reader: BinaryIO, size: int) -> bytes:
    """Read exactly ``size`` bytes.

    Raises:
        MalformedFrame: If the stream ends first
        IOFailure: If the underlying transport fails
    """
    if size == 0:
        return b""
    try:
        data = reader.read(size)
    except OSError as e:
        msg = f"Read failed: {e}"
        raise IOFailure(msg) from e
    if data is None or len(data) != size:
        got = 0 if data is None else len(data)
        msg = f"Short read: expected {size} bytes, got {got}"
        raise MalformedFrame(msg)
    return data


def _read_byte(reader: BinaryIO) -> int:
    return read_exact(reader, 1)[0]


def _check_version(version: int) -> None:
    if version != SOCKS_VERSION:
        raise ProtocolVersionMismatch(version)


def decode_greeting(reader: BinaryIO) -> bytes:
    """Decode the version/method greeting and return the offered method ids."""
    _check_version(_read_byte(reader))
    nmethods = _read_byte(reader)
    return read_exact(reader, nmethods)


def decode_request_header(reader: BinaryIO) -> RequestHeader:
    """Decode VER, CMD and RSV of a request.

    The address type byte is left on the stream for ``decode_addr_spec``.
    """
    version, command, _reserved = read_exact(reader, 3)
    _check_version(version)
    try:
        cmd = Command(command)
    except ValueError:
        raise UnsupportedCommand(command) from None
    return RequestHeader(version=version, command=cmd)


def decode_addr_spec(reader: BinaryIO) -> AddrSpec:
    """Decode ATYP, the address body and the port."""
    raw_type = _read_byte(reader)
    try:
        addr_type = AddrType(raw_type)
    except ValueError:
        raise UnrecognizedAddrType(raw_type) from None

    if addr_type is AddrType.IPV4:
        spec_kwargs = {"ip": ipaddress.IPv4Address(read_exact(reader, 4))}
    elif addr_type is AddrType.IPV6:
        spec_kwargs = {"ip": ipaddress.IPv6Address(read_exact(reader, 16))}
    else:
        name = read_exact(reader, _read_byte(reader))
        try:
            spec_kwargs = {"fqdn": name.decode("utf-8")}
        except UnicodeDecodeError as e:
            msg = f"Undecodable domain name: {name!r}"
            raise MalformedFrame(msg) from e

    (port,) = struct.unpack("!H", read_exact(reader, 2))
    return AddrSpec(port=port, **spec_kwargs)


def encode_addr_spec(spec: AddrSpec) -> bytes:
    """Encode ATYP, the address body and the port."""
    if spec.fqdn is not None:
        name = spec.fqdn.encode("utf-8")
        if len(name) > MAX_FQDN_LENGTH:
            msg = f"Domain name too long: {len(name)} bytes"
            raise ValueError(msg)
        body = bytes([len(name)]) + name
    else:
        body = spec.ip.packed
    return bytes([spec.addr_type]) + body + struct.pack("!H", spec.port)


def encode_method_selection(method: Method) -> bytes:
    return bytes([SOCKS_VERSION, method])


def encode_reply(reply: Reply) -> bytes:
    """Encode a reply frame."""
    return struct.pack("!BBB", SOCKS_VERSION, reply.code, 0) + encode_addr_spec(reply.bind_addr)
