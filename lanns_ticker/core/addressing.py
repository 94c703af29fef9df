"""Private LAN address resolution."""

import ipaddress
import logging
from collections.abc import Iterable, Mapping, Sequence

from lanns_ticker.ports.network import AddressRecord

__all__ = ["is_private_address", "interface_allowed", "resolve_private_ip"]

logger = logging.getLogger(__name__)

PRIVATE_NETWORKS = (
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
)


def is_private_address(address: str) -> bool:
    """Check whether an address is an IPv4 address in an RFC 1918 range.

    Args:
        address: Textual address.

    Returns:
        True for 10/8, 172.16/12 and 192.168/16 addresses, False otherwise
        (including IPv6 and unparsable input).
    """
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    if not isinstance(ip, ipaddress.IPv4Address):
        return False
    return any(ip in network for network in PRIVATE_NETWORKS)


def interface_allowed(name: str, prefixes: Sequence[str]) -> bool:
    """Check an interface name against the filter prefixes (empty = all).

    Prefixes are taken as given; HeartbeatConfig.interface_prefixes already
    trims them and drops empty entries.
    """
    return not prefixes or any(name.startswith(p) for p in prefixes)


def resolve_private_ip(
    interfaces: Mapping[str, Sequence[AddressRecord]],
    prefixes: Iterable[str] = (),
) -> str | None:
    """Pick the first private address among the allowed interfaces.

    Args:
        interfaces: Interface name -> addresses, in enumeration order.
        prefixes: Interface-name prefixes to consider; empty means all.

    Returns:
        The first private address found, or None.
    """
    prefixes = tuple(prefixes)
    for name, addresses in interfaces.items():
        if not interface_allowed(name, prefixes):
            continue
        for record in addresses:
            if is_private_address(record.address):
                return record.address

    logger.debug(f"No private address found (interfaces={list(interfaces)}, filter={list(prefixes)})")
    return None
