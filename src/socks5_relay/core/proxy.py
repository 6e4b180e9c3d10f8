"""Main entry point for the SOCKS5 server.

Exposes only what the command line needs from ``core.lib``.

Example:
    from socks5_relay.core.proxy import ServerConfig, run_server

    run_server("127.0.0.1", 1080, ServerConfig(dial_timeout=10))
"""

from .lib import ServerConfig, run_server

__all__ = ["run_server", "ServerConfig"]
