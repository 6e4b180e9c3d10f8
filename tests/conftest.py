import socket
import socketserver
import threading

import pytest

from socks5_relay.core.lib import ServerConfig, SocksProxy
from support import TIMEOUT


class EchoHandler(socketserver.BaseRequestHandler):
    def handle(self):
        while data := self.request.recv(4096):
            self.request.sendall(data)


class EchoServer(socketserver.ThreadingMixIn, socketserver.TCPServer):
    allow_reuse_address = True
    daemon_threads = True


def _serve_in_background(server):
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return thread


@pytest.fixture
def echo_address():
    server = EchoServer(("127.0.0.1", 0), EchoHandler)
    thread = _serve_in_background(server)
    yield server.server_address
    server.shutdown()
    server.server_close()
    thread.join(TIMEOUT)


@pytest.fixture
def config():
    return ServerConfig(dial_timeout=TIMEOUT)


@pytest.fixture
def proxy_address(config):
    server = SocksProxy(("127.0.0.1", 0), config)
    thread = _serve_in_background(server)
    yield server.server_address
    server.shutdown()
    server.server_close()
    thread.join(TIMEOUT)


@pytest.fixture
def client(proxy_address):
    sock = socket.create_connection(proxy_address, timeout=TIMEOUT)
    yield sock
    sock.close()
