"""Local network interface lookup.

Used by the command line to turn an interface name into the source address
upstream connections are bound to.

Example:
    ip = interface_address("wlan0")
    config = ServerConfig(bind_ip=ip)
"""

import socket
from dataclasses import dataclass

import psutil


@dataclass
class NetworkInterface:
    """Network interface representation with its key properties.

    Attributes:
        name: Interface name (e.g., 'en0', 'eth0')
        ip: IPv4 address assigned to the interface
        is_up: Boolean indicating if the interface is up and running
    """

    name: str
    ip: str
    is_up: bool


def list_interfaces() -> list[NetworkInterface]:
    """Return every interface that has an IPv4 address."""
    stats = psutil.net_if_stats()
    interfaces = []
    for name, addrs in psutil.net_if_addrs().items():
        ipv4 = next((addr.address for addr in addrs if addr.family == socket.AF_INET), None)
        if not ipv4:
            continue
        iface_stats = stats.get(name)
        interfaces.append(NetworkInterface(name=name, ip=ipv4, is_up=bool(iface_stats and iface_stats.isup)))
    return interfaces


def interface_address(name: str) -> str | None:
    """IPv4 address of the interface called ``name``, if it exists and is up."""
    for iface in list_interfaces():
        if iface.name == name and iface.is_up:
            return iface.ip
    return None
