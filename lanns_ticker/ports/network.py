"""Network-interface enumeration port (DTO and callable contract)."""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

__all__ = ["AddressRecord", "InterfacesFn"]


@dataclass(frozen=True)
class AddressRecord:
    """One address bound to a network interface.

    Attributes:
        address: Textual address (e.g. "192.168.1.42").
        family: "IPv4", "IPv6" or the platform's family name.
        netmask: Netmask when the platform reports one.
    """

    address: str
    family: str
    netmask: str | None = None


# Interface name -> addresses, in enumeration order.
InterfacesFn = Callable[[], Mapping[str, Sequence[AddressRecord]]]
