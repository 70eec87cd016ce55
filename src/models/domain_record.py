"""Domain classification records for the cache and durable tiers."""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from src.models.address_set import AddressSet


def _check_addresses(ips: AddressSet | None) -> None:
    if ips is not None and ips.is_empty():
        raise ValueError("ips must be None or contain at least one address")


@dataclass
class DomainRecord:
    """Authoritative, long-lived classification of a domain.

    Attributes:
        domain: Domain name without trailing dot (primary key).
        status: 0 when allowed, otherwise the blocking reason code.
        created_at: When the record was first created (UTC).
        updated_at: When the record was last written (UTC).
        ips: Pinned addresses, or None if only the classification is known.

    Invariants:
        - ips is None or non-empty.
    """

    domain: str
    status: int
    created_at: datetime
    updated_at: datetime
    ips: AddressSet | None = None

    def __post_init__(self) -> None:
        _check_addresses(self.ips)

    @classmethod
    def new(cls, domain: str, status: int) -> "DomainRecord":
        """Create a record for a freshly classified domain.

        Addresses are never pinned on creation.

        Args:
            domain: Domain name.
            status: Classification status.

        Returns:
            DomainRecord: Record with created_at == updated_at == now (UTC).
        """
        now = datetime.now(timezone.utc)
        return cls(domain=domain, status=status, created_at=now, updated_at=now)

    def is_blocked(self) -> bool:
        """Check if the record classifies the domain as blocked.

        Returns:
            bool: True if status is non-zero.
        """
        return self.status != 0

    def to_json(self) -> dict:
        """Serialize to JSON-compatible dict.

        Returns:
            dict: JSON-serializable representation.
        """
        return {
            "domain": self.domain,
            "status": self.status,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "ips": self.ips.to_json() if self.ips else None,
        }


@dataclass
class CachedDomain:
    """Short-lived projection of a DomainRecord held in the cache.

    Attributes:
        status: 0 when allowed, otherwise the blocking reason code.
        ips: Cached addresses, or None if only the classification is cached.
    """

    status: int
    ips: AddressSet | None = None

    def __post_init__(self) -> None:
        _check_addresses(self.ips)

    def is_blocked(self) -> bool:
        return self.status != 0

    def to_json(self) -> dict:
        return {
            "status": self.status,
            "ips": self.ips.to_json() if self.ips else None,
        }

    def dumps(self) -> str:
        """Encode as a compact JSON string for storage."""
        return json.dumps(self.to_json(), separators=(",", ":"))

    @classmethod
    def loads(cls, raw: str | bytes) -> "CachedDomain":
        """Decode a cache value written by dumps().

        Args:
            raw: JSON text, as str or raw UTF-8 bytes.

        Returns:
            CachedDomain: Decoded entry. An empty stored address set decodes
            to ips=None.

        Raises:
            ValueError: If the payload is not valid UTF-8 or not a valid
                cache entry.
        """
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8")
        data: Any = json.loads(raw)
        if not isinstance(data, dict) or "status" not in data:
            raise ValueError(f"Malformed cache entry: {raw!r}")
        try:
            status = int(data["status"])
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid status in cache entry: {data['status']!r}") from e
        return cls(status=status, ips=AddressSet.from_json(data.get("ips")))
