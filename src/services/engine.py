"""Tiered classification engine: cache -> database -> live upstream.

Implements the per-query state machine. Each tier is consulted only when the
previous one could not decide, and results are written back to the tiers
that were consulted so repeated queries are answered from the cache.
"""

import logging
import time
from typing import Optional

from src.models.address_set import AddressSet
from src.models.classification import Classification, Source, Verdict
from src.models.domain_record import CachedDomain, DomainRecord
from src.services.contracts import (
    CacheStore,
    DurableStore,
    ResolutionError,
    Resolver,
    StoreError,
)
from src.services.logger import log_classification
from src.utils.domain_utils import normalize_domain


logger = logging.getLogger(__name__)

DEFAULT_SINKHOLE = AddressSet(a=["0.0.0.0"], aaaa=["::"])


class DecisionEngine:
    """Classifies query names as allowed or blocked.

    The engine owns no mutable state shared across queries; concurrent calls
    to classify() are independent. Store consistency under concurrent writers
    is left to the stores (last write wins).

    Attributes:
        cache: Volatile cache store.
        database: Durable record store.
        resolver: Upstream resolver with sinkhole detection.
        blocked_status: Non-zero status written for freshly detected blocks.
        sinkhole: Addresses answered for blocked domains.
        cache_ttl: TTL in seconds for cache write-backs.
    """

    def __init__(
        self,
        cache: CacheStore,
        database: DurableStore,
        resolver: Resolver,
        blocked_status: int = 1,
        sinkhole: Optional[AddressSet] = None,
        cache_ttl: int = 3600,
    ):
        """Initialize the engine.

        Raises:
            ValueError: If blocked_status is 0, the sinkhole set is empty or
                cache_ttl is not positive.
        """
        if blocked_status == 0:
            raise ValueError("blocked_status must be non-zero")
        if sinkhole is None:
            sinkhole = DEFAULT_SINKHOLE
        if sinkhole.is_empty():
            raise ValueError("sinkhole must contain at least one address")
        if cache_ttl <= 0:
            raise ValueError("cache_ttl must be positive")

        self.cache = cache
        self.database = database
        self.resolver = resolver
        self.blocked_status = blocked_status
        self.sinkhole = sinkhole
        self.cache_ttl = cache_ttl

    def classify(self, domain: str) -> Classification:
        """Classify a query name.

        Args:
            domain: Query name; a single trailing root dot is stripped.

        Returns:
            Classification: Verdict, answer addresses and deciding tier.
        """
        start = time.time()
        domain = normalize_domain(domain)

        result = self._from_cache(domain)
        if result is None:
            result = self._from_database(domain)
        if result is None:
            result = self._from_upstream(domain)

        log_classification(
            domain=domain,
            verdict=result.verdict.value,
            source=result.source.value,
            duration_ms=int((time.time() - start) * 1000),
        )
        return result

    # Tier 1

    def _from_cache(self, domain: str) -> Optional[Classification]:
        try:
            cached = self.cache.get(domain)
        except StoreError as e:
            logger.warning(f"Cache lookup failed for {domain}, treating as miss: {e}")
            return None

        if cached is None:
            logger.debug(f"Cache miss for {domain}")
            return None

        if cached.is_blocked():
            logger.debug(f"Cache hit for {domain}: blocked (status {cached.status})")
            return self._blocked(Source.CACHE)

        if cached.ips is not None:
            logger.debug(f"Cache hit for {domain}: allowed with cached addresses")
            return Classification(Verdict.ALLOWED, Source.CACHE, cached.ips)

        # Classification known, addresses not pinned: resolve for this answer only.
        logger.debug(f"Cache hit for {domain}: allowed, resolving addresses")
        return self._resolve_allowed(domain, Source.CACHE)

    # Tier 2

    def _from_database(self, domain: str) -> Optional[Classification]:
        try:
            record = self.database.get(domain)
        except StoreError as e:
            logger.warning(f"Database lookup failed for {domain}, treating as miss: {e}")
            return None

        if record is None:
            logger.debug(f"Database miss for {domain}")
            return None

        if record.is_blocked():
            logger.debug(f"Database hit for {domain}: blocked (status {record.status})")
            self._write_cache(domain, CachedDomain(status=record.status))
            return self._blocked(Source.DATABASE)

        if record.ips is not None:
            logger.debug(f"Database hit for {domain}: allowed with stored addresses")
            self._write_cache(domain, CachedDomain(status=0, ips=record.ips))
            return Classification(Verdict.ALLOWED, Source.DATABASE, record.ips)

        logger.debug(f"Database hit for {domain}: allowed, resolving addresses")
        result = self._resolve_allowed(domain, Source.DATABASE)
        if not result.is_failure():
            # Only the classification is cached; fresh addresses stay unpinned.
            self._write_cache(domain, CachedDomain(status=0))
        return result

    # Tier 3

    def _from_upstream(self, domain: str) -> Classification:
        try:
            addresses = self.resolver.lookup(domain)
        except ResolutionError as e:
            logger.error(f"Resolution failed for {domain}: {e}")
            return Classification(Verdict.RESOLUTION_FAILED, Source.UPSTREAM)

        if self.resolver.is_blocked_domain(addresses):
            logger.info(f"Domain {domain} identified as blocked")
            status = self.blocked_status
        else:
            status = 0

        self._write_database(DomainRecord.new(domain, status))
        self._write_cache(domain, CachedDomain(status=status))

        if status != 0:
            return self._blocked(Source.UPSTREAM)
        return Classification(Verdict.ALLOWED, Source.UPSTREAM, addresses)

    def _resolve_allowed(self, domain: str, source: Source) -> Classification:
        try:
            addresses = self.resolver.lookup(domain)
        except ResolutionError as e:
            logger.error(f"Resolution failed for {domain}: {e}")
            return Classification(Verdict.RESOLUTION_FAILED, source)
        return Classification(Verdict.ALLOWED, source, addresses)

    def _blocked(self, source: Source) -> Classification:
        return Classification(
            Verdict.BLOCKED,
            source,
            AddressSet(a=list(self.sinkhole.a), aaaa=list(self.sinkhole.aaaa)),
        )

    # Write-backs never affect the verdict; failures are logged and reported.

    def _write_cache(self, domain: str, entry: CachedDomain) -> bool:
        try:
            self.cache.set(domain, entry, self.cache_ttl)
        except StoreError as e:
            logger.warning(f"Cache write-back failed for {domain}: {e}")
            return False
        return True

    def _write_database(self, record: DomainRecord) -> bool:
        try:
            self.database.save(record)
        except StoreError as e:
            logger.warning(f"Database write-back failed for {record.domain}: {e}")
            return False
        return True
