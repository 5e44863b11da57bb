"""Outbound HTTP and network helpers."""

from .address import UNKNOWN_ADDRESS, get_network_address
from .request import ServerOpsRequest, normalize_error

__all__ = [
    "ServerOpsRequest",
    "UNKNOWN_ADDRESS",
    "get_network_address",
    "normalize_error",
]
