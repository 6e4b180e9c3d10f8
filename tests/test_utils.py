import sys

import pytest
from loguru import logger

from socks5_relay.core.network import interface_address, list_interfaces
from socks5_relay.core.utils import configure_logging, format_bytes


@pytest.mark.parametrize(
    ("count", "text"),
    [(0, "0.0 B"), (512, "512.0 B"), (1536, "1.5 KB"), (5 * 1024**2, "5.0 MB"), (3 * 1024**4, "3.0 TB")],
)
def test_format_bytes(count, text):
    assert format_bytes(count) == text


def test_configure_logging_writes_file(tmp_path):
    log_file = tmp_path / "logs" / "proxy.log"
    try:
        configure_logging(debug=True, log_file=log_file)
        logger.bind(remote="127.0.0.1:4000").debug("session opened")
        logger.complete()
    finally:
        logger.remove()
        logger.add(sys.stderr)
    assert "session opened" in log_file.read_text()


def test_list_interfaces():
    for iface in list_interfaces():
        assert iface.name
        assert iface.ip.count(".") == 3


def test_interface_address_unknown():
    assert interface_address("no-such-interface0") is None
