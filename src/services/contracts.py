"""Capabilities consumed by the decision engine.

The engine depends only on these protocols; RedisCache, DatabaseService and
UpstreamResolver are the production implementations.
"""

from typing import Optional, Protocol

from src.models.address_set import AddressSet
from src.models.domain_record import CachedDomain, DomainRecord


class StoreError(Exception):
    """Cache or database access failed (transport, driver or decoding error)."""


class ResolutionError(Exception):
    """Every configured upstream failed to resolve the domain."""


class CacheStore(Protocol):
    """Volatile store of short-lived classification results."""

    def get(self, domain: str) -> Optional[CachedDomain]:
        """Return the cached entry, or None on miss. Raises StoreError."""
        ...

    def set(self, domain: str, entry: CachedDomain, ttl: int) -> None:
        """Store an entry for ttl seconds. Raises StoreError."""
        ...


class DurableStore(Protocol):
    """Authoritative store of long-lived classification records."""

    def get(self, domain: str) -> Optional[DomainRecord]:
        """Return the stored record, or None on miss. Raises StoreError."""
        ...

    def save(self, record: DomainRecord) -> None:
        """Insert or overwrite the record. Raises StoreError."""
        ...


class Resolver(Protocol):
    """Live address resolution plus the sinkhole heuristic."""

    def lookup(self, domain: str) -> AddressSet:
        """Resolve A/AAAA addresses. Raises ResolutionError."""
        ...

    def is_blocked_domain(self, addresses: AddressSet) -> bool:
        """Check resolved addresses against known sinkhole addresses."""
        ...
