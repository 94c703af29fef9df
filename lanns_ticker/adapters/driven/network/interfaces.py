"""Network-interface enumeration backed by psutil."""

import socket

import psutil

from lanns_ticker.ports.network import AddressRecord

__all__ = ["list_interfaces"]

_FAMILY_NAMES = {
    socket.AF_INET: "IPv4",
    socket.AF_INET6: "IPv6",
}


def _family_name(family: int) -> str:
    if family in _FAMILY_NAMES:
        return _FAMILY_NAMES[family]
    return getattr(family, "name", str(family))


def list_interfaces() -> dict[str, list[AddressRecord]]:
    """Return interface name -> addresses, freshly queried from the OS.

    Returns:
        Mapping in the order psutil enumerates interfaces.
    """
    return {
        name: [
            AddressRecord(address=snic.address, family=_family_name(snic.family), netmask=snic.netmask)
            for snic in addresses
        ]
        for name, addresses in psutil.net_if_addrs().items()
    }
