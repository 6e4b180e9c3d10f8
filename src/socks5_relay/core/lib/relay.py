"""Bi-directional data forwarding between a client and its upstream.

Each direction runs in its own worker thread. When either direction sees
end-of-stream or an error, both sockets are shut down so the other direction's
blocking read returns and its thread ends. ``Relay.run`` returns only after
both directions have finished.

Example:
    result = Relay(reader, client, upstream).run()
    logger.info(f"Relayed {format_bytes(result.sent)} up, {format_bytes(result.received)} down")
"""

import contextlib
import socket
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from io import BufferedReader
from typing import Final

from loguru import logger as default_logger

BUFFER_SIZE: Final = 32 * 1024


@dataclass(frozen=True)
class RelayResult:
    """Bytes moved in each direction.

    Attributes:
        sent: Bytes copied from the client to the upstream
        received: Bytes copied from the upstream to the client
    """

    sent: int
    received: int


class Relay:
    """Copy bytes between a client and an upstream socket until one side closes."""

    def __init__(
        self,
        client_reader: BufferedReader,
        client: socket.socket,
        upstream: socket.socket,
        logger=default_logger,
    ) -> None:
        """Initialize the relay.

        Args:
            client_reader: Buffered reader over ``client``. Bytes the client sent
                right after its request may already sit in its buffer.
            client: Client socket
            upstream: Upstream socket
            logger: Logger used for per-direction diagnostics
        """
        self.client_reader = client_reader
        self.client = client
        self.upstream = upstream
        self.logger = logger

    def _close_both(self) -> None:
        for sock in (self.client, self.upstream):
            with contextlib.suppress(OSError):
                sock.shutdown(socket.SHUT_RDWR)

    def _pump(self, read: Callable[[int], bytes], dst: socket.socket, direction: str) -> int:
        total = 0
        try:
            while data := read(BUFFER_SIZE):
                dst.sendall(data)
                total += len(data)
        except (OSError, ValueError) as e:
            # ValueError: the reader was closed underneath us
            self.logger.debug(f"Relay {direction} stopped: {e}")
        finally:
            self._close_both()
        return total

    def run(self) -> RelayResult:
        """Relay in both directions and wait for both to finish."""
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="relay") as pool:
            upstream_bound = pool.submit(self._pump, self.client_reader.read1, self.upstream, "client->upstream")
            client_bound = pool.submit(self._pump, self.upstream.recv, self.client, "upstream->client")
            sent = upstream_bound.result()
            received = client_bound.result()
        return RelayResult(sent=sent, received=received)
