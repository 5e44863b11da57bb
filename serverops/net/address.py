"""Network address lookup for the startup banner."""

import ipaddress
import socket

UNKNOWN_ADDRESS = "Unable to determine IP address"

# Any routable address works; connecting a UDP socket sends no packets.
_PROBE_TARGET = ("10.254.254.254", 1)


def _is_external(address: str) -> bool:
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    return ip.version == 4 and not (ip.is_loopback or ip.is_link_local)


def _hostname_addresses() -> list[str]:
    """IPv4 addresses the host name resolves to, in resolver order."""
    try:
        infos = socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET)
    except OSError:
        return []
    return [str(sockaddr[0]) for *_, sockaddr in infos]


def _probe_address() -> str | None:
    """Address of the interface used for outbound traffic."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as probe:
            probe.connect(_PROBE_TARGET)
            return str(probe.getsockname()[0])
    except OSError:
        return None


def get_network_address() -> str:
    """
    Find the first non-internal IPv4 address of this host.

    Returns:
        str: Dotted IPv4 address, or "Unable to determine IP address"
    """
    for address in _hostname_addresses():
        if _is_external(address):
            return address

    address = _probe_address()
    if address is not None and _is_external(address):
        return address

    return UNKNOWN_ADDRESS
