"""Core SOCKS5 server implementation.

This package contains the protocol and networking pieces of the server:
- Wire codec for SOCKS5 frames
- Handshake negotiation and request decoding
- CONNECT execution and bi-directional relaying
- Per-connection sessions and the threaded server
- Exception handling

The command line in ``socks5_relay.cmd`` only builds configuration and
starts the server defined here.
"""
