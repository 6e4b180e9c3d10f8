import errno
import socket
from ipaddress import IPv4Address

import pytest
from loguru import logger

from socks5_relay.core.exceptions import DialFailure, IOFailure, UnsupportedCommand
from socks5_relay.core.lib.codec import AddrSpec, Command, Reply, ReplyCode
from socks5_relay.core.lib.executor import CommandExecutor, classify_dial_error, send_reply
from socks5_relay.core.lib.proxy_server import ServerConfig
from socks5_relay.core.lib.request import Request
from support import TIMEOUT, free_port


class FakeSession:
    def __init__(self):
        self.replies = []
        self.logger = logger

    def send_reply(self, reply):
        self.replies.append(reply)


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused"), ReplyCode.CONNECTION_REFUSED),
        (socket.gaierror(socket.EAI_NONAME, "Name or service not known"), ReplyCode.HOST_UNREACHABLE),
        (TimeoutError("timed out"), ReplyCode.HOST_UNREACHABLE),
        (OSError(errno.EHOSTUNREACH, "No route to host"), ReplyCode.HOST_UNREACHABLE),
        (OSError(errno.ENETUNREACH, "Network is unreachable"), ReplyCode.NETWORK_UNREACHABLE),
        (OSError(errno.EADDRNOTAVAIL, "Cannot assign requested address"), ReplyCode.GENERAL_FAILURE),
        (OSError("something else"), ReplyCode.GENERAL_FAILURE),
    ],
)
def test_classify_dial_error(error, code):
    assert classify_dial_error(error) is code


def test_dial_refused():
    port = free_port()
    executor = CommandExecutor(ServerConfig(dial_timeout=TIMEOUT))
    with pytest.raises(DialFailure) as excinfo:
        executor.dial(AddrSpec(port=port, ip=IPv4Address("127.0.0.1")))
    assert excinfo.value.reply_code is ReplyCode.CONNECTION_REFUSED


def test_dial_clears_timeout(echo_address):
    executor = CommandExecutor(ServerConfig(dial_timeout=TIMEOUT))
    with executor.dial(AddrSpec.from_host(*echo_address)) as upstream:
        assert upstream.gettimeout() is None
        assert upstream.getpeername() == echo_address


def test_dial_uses_bind_ip(echo_address):
    executor = CommandExecutor(ServerConfig(bind_ip="127.0.0.1"))
    with executor.dial(AddrSpec.from_host(*echo_address)) as upstream:
        assert upstream.getsockname()[0] == "127.0.0.1"


@pytest.mark.parametrize("command", [Command.BIND, Command.UDP_ASSOCIATE])
def test_execute_rejects_unsupported_commands(command):
    session = FakeSession()
    request = Request(command=command, dest_addr=AddrSpec(port=0, ip=IPv4Address(0)))
    with pytest.raises(UnsupportedCommand):
        CommandExecutor(ServerConfig()).execute(request, session)
    assert session.replies == [Reply(ReplyCode.COMMAND_NOT_SUPPORTED)]


def test_connect_failure_sends_classified_reply():
    session = FakeSession()
    request = Request(command=Command.CONNECT, dest_addr=AddrSpec(port=free_port(), ip=IPv4Address("127.0.0.1")))
    with pytest.raises(DialFailure):
        CommandExecutor(ServerConfig(dial_timeout=TIMEOUT)).execute(request, session)
    assert session.replies == [Reply(ReplyCode.CONNECTION_REFUSED)]


def test_send_reply_write_failure():
    left, right = socket.socketpair()
    right.close()
    left.shutdown(socket.SHUT_WR)
    with left, pytest.raises(IOFailure):
        send_reply(left, Reply(ReplyCode.GENERAL_FAILURE))
