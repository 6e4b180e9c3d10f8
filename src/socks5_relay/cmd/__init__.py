"""Command line interface modules.

This package provides the ``socks5-relay`` command for:
- Starting the SOCKS5 server
- Choosing the listening and outbound addresses
- Listing local network interfaces
- Configuring logging
"""
