"""Command-line interface for the SOCKS5 server.

The CLI is built using Typer and provides:
- ``serve``: start the server and run it until interrupted
- ``interfaces``: list local interfaces usable with ``--interface``

Example:
    # Run from command line:
    $ socks5-relay serve --host 0.0.0.0 --port 1080 --interface wlan0
"""

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from socks5_relay import __version__
from socks5_relay.core.network import interface_address, list_interfaces
from socks5_relay.core.proxy import ServerConfig, run_server
from socks5_relay.core.utils.log_config import LOG_DIR, configure_logging

console = Console()
app = typer.Typer(help="SOCKS5 proxy server relaying CONNECT requests")


@app.callback(invoke_without_command=True)
def version_callback():
    """Show version information."""
    console.print(f"[cyan]SOCKS5 Relay v{__version__}[/cyan]")


@app.command(name="serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Address to listen on"),
    port: int = typer.Option(1080, "--port", "-p", help="Port to listen on"),
    bind_ip: str | None = typer.Option(None, "--bind-ip", help="Source address for upstream connections"),
    interface: str | None = typer.Option(
        None, "--interface", "-i", help="Bind upstream connections to this interface's address"
    ),
    dial_timeout: float | None = typer.Option(None, "--dial-timeout", help="Upstream connect timeout in seconds"),
    require_no_auth: bool = typer.Option(
        default=False, help="Reject clients that do not offer the no-auth method"
    ),
    log_file: bool = typer.Option(default=False, help=f"Also log to {LOG_DIR / 'proxy.log'}"),
    debug: bool = typer.Option(
        default=False,
        help="Enable debug logging",
    ),
):
    """Start the SOCKS5 server."""
    configure_logging(debug=debug, log_file=LOG_DIR / "proxy.log" if log_file else None)

    if interface:
        bind_ip = interface_address(interface)
        if not bind_ip:
            logger.error(f"Interface {interface} not found or down")
            console.print(f"[red]Interface {interface} has no usable IPv4 address")
            raise typer.Exit(1)

    config = ServerConfig(bind_ip=bind_ip, dial_timeout=dial_timeout, require_no_auth=require_no_auth)
    logger.info(f"Starting SOCKS5 server on {host}:{port}")
    if bind_ip:
        logger.info(f"Upstream connections bound to {bind_ip}")

    try:
        run_server(host, port, config)
    except OSError as e:
        logger.exception("Error starting server")
        console.print(f"[red]Error: {e}")
        raise typer.Exit(1) from e


@app.command(name="interfaces")
def interfaces():
    """List local IPv4 interfaces."""
    table = Table(title="Network Interfaces")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Address", style="green")
    table.add_column("Status")
    for iface in list_interfaces():
        table.add_row(iface.name, iface.ip, "up" if iface.is_up else "[red]down")
    console.print(table)


if __name__ == "__main__":
    app()
