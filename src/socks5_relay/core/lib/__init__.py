"""Core proxy library components."""

from .codec import AddrSpec, AddrType, Command, Method, Reply, ReplyCode
from .executor import CommandExecutor
from .proxy_server import ServerConfig, SocksHandler, SocksProxy, run_server, serve_connection
from .relay import Relay, RelayResult
from .request import Request, read_request
from .session import Session, SessionState

__all__ = [
    "AddrSpec",
    "AddrType",
    "Command",
    "CommandExecutor",
    "Method",
    "Relay",
    "RelayResult",
    "Reply",
    "ReplyCode",
    "Request",
    "read_request",
    "run_server",
    "serve_connection",
    "ServerConfig",
    "Session",
    "SessionState",
    "SocksHandler",
    "SocksProxy",
]
