"""Address set model for resolved A/AAAA records."""

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from src.utils.ip_utils import is_valid_ipv4, is_valid_ipv6


@dataclass
class AddressSet:
    """Resolved addresses for a domain, split by record kind.

    Attributes:
        a: IPv4 address literals (A records), in resolution order.
        aaaa: IPv6 address literals (AAAA records), in resolution order.

    Serialized shape is {"A": [...], "AAAA": [...]}.
    """

    a: List[str] = field(default_factory=list)
    aaaa: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        """Check if the set carries no addresses of either kind.

        Returns:
            bool: True if both sequences are empty.
        """
        return not self.a and not self.aaaa

    def all_addresses(self) -> list[str]:
        """Return every address literal, A entries first."""
        return [*self.a, *self.aaaa]

    def to_json(self) -> dict:
        """Serialize to JSON-compatible dict.

        Returns:
            dict: {"A": [...], "AAAA": [...]}
        """
        return {"A": list(self.a), "AAAA": list(self.aaaa)}

    @classmethod
    def from_json(cls, data: Optional[dict[str, Any]]) -> Optional["AddressSet"]:
        """Build an AddressSet from its serialized form.

        Missing keys are treated as empty sequences. A missing or empty set
        deserializes to None ("addresses not pinned").

        Args:
            data: Dict keyed by record kind, or None.

        Returns:
            Optional[AddressSet]: Parsed set, or None if absent/empty.

        Raises:
            ValueError: If data is not a mapping of lists.
        """
        if not data:
            return None
        if not isinstance(data, dict):
            raise ValueError(f"Address set must be a mapping, got {type(data).__name__}")

        a = data.get("A") or []
        aaaa = data.get("AAAA") or []
        if not isinstance(a, list) or not isinstance(aaaa, list):
            raise ValueError("Address set entries must be lists")

        addresses = cls(a=[str(ip) for ip in a], aaaa=[str(ip) for ip in aaaa])
        return None if addresses.is_empty() else addresses

    @classmethod
    def from_addresses(cls, addresses: Iterable[str]) -> "AddressSet":
        """Split a flat list of address literals by family.

        Args:
            addresses: IPv4 and/or IPv6 literals.

        Returns:
            AddressSet: Addresses grouped into A and AAAA, order preserved.

        Raises:
            ValueError: If a literal is neither IPv4 nor IPv6.

        Examples:
            >>> AddressSet.from_addresses(["1.2.3.4", "::1"])
            AddressSet(a=['1.2.3.4'], aaaa=['::1'])
        """
        result = cls()
        for ip in addresses:
            if is_valid_ipv4(ip):
                result.a.append(ip)
            elif is_valid_ipv6(ip):
                result.aaaa.append(ip)
            else:
                raise ValueError(f"Invalid IP address: {ip}")
        return result
