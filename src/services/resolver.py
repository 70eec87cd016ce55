"""Upstream resolver service with sinkhole-based block detection."""

import logging
import time
from typing import Iterable, Optional

import dns.exception
import dns.resolver

from src.models.address_set import AddressSet
from src.services.contracts import ResolutionError


logger = logging.getLogger(__name__)

# OpenDNS answers blocked names with its block-page addresses.
DEFAULT_UPSTREAMS = [("208.67.222.222", 53), ("208.67.220.220", 53)]
DEFAULT_SINKHOLE_DETECTION_IPS = [
    "146.112.61.106",
    "146.112.61.104",
    "::ffff:146.112.61.104",
    "::ffff:9270:3d6a",
]


def categorize_failure(exception: BaseException) -> str:
    """Categorize an upstream failure for logging.

    Args:
        exception: The exception raised while querying one upstream.

    Returns:
        str: One of: timeout, nxdomain, no_answer, no_nameservers,
             unknown_error.
    """
    if isinstance(exception, dns.exception.Timeout):
        return "timeout"
    elif isinstance(exception, dns.resolver.NXDOMAIN):
        return "nxdomain"
    elif isinstance(exception, dns.resolver.NoAnswer):
        return "no_answer"
    elif isinstance(exception, dns.resolver.NoNameservers):
        return "no_nameservers"
    else:
        return "unknown_error"


class UpstreamResolver:
    """Resolves domains through a filtering upstream and detects its blocks.

    Upstreams are tried in priority order and the first successful answer
    wins. A domain counts as blocked when any resolved address is one of the
    sinkhole addresses the upstream substitutes for blocked names.

    Example:
        >>> resolver = UpstreamResolver()
        >>> addresses = resolver.lookup("example.com")
        >>> resolver.is_blocked_domain(addresses)
        False
    """

    def __init__(
        self,
        upstreams: Optional[list[tuple[str, int]]] = None,
        sinkhole_detection_ips: Optional[Iterable[str]] = None,
        attempt_timeout: float = 3.0,
        lifetime: float = 5.0,
    ):
        """Initialize the resolver.

        Args:
            upstreams: Ordered (address, port) nameservers.
            sinkhole_detection_ips: Address literals that mark a block.
            attempt_timeout: Seconds allowed for a single query attempt.
            lifetime: Seconds allowed for one upstream's whole lookup.

        Raises:
            ValueError: If no upstreams are given or timeouts are invalid.
        """
        self.upstreams = list(upstreams) if upstreams is not None else list(DEFAULT_UPSTREAMS)
        if not self.upstreams:
            raise ValueError("upstreams must contain at least one nameserver")
        if attempt_timeout <= 0 or lifetime <= 0:
            raise ValueError("timeouts must be positive")
        if lifetime < attempt_timeout:
            raise ValueError("lifetime must be >= attempt_timeout")

        if sinkhole_detection_ips is None:
            sinkhole_detection_ips = DEFAULT_SINKHOLE_DETECTION_IPS
        self.sinkhole_detection_ips = frozenset(sinkhole_detection_ips)
        self.attempt_timeout = attempt_timeout
        self.lifetime = lifetime

    def _build_resolver(self, address: str, port: int) -> dns.resolver.Resolver:
        resolver = dns.resolver.Resolver(configure=False)
        resolver.nameservers = [address]
        resolver.port = port
        resolver.timeout = self.attempt_timeout
        resolver.lifetime = self.lifetime
        return resolver

    def _query_upstream(self, address: str, port: int, domain: str) -> AddressSet:
        """Resolve A and AAAA records against a single upstream.

        A record kind with no answer is skipped; any other error aborts this
        upstream.

        Returns:
            AddressSet: Addresses found (possibly empty).

        Raises:
            dns.exception.DNSException: On timeout, NXDOMAIN or server failure.
        """
        resolver = self._build_resolver(address, port)
        deadline = time.monotonic() + self.lifetime
        result = AddressSet()

        for rdtype, target in (("A", result.a), ("AAAA", result.aaaa)):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise dns.exception.Timeout(timeout=self.lifetime)
            resolver.lifetime = remaining

            try:
                answers = resolver.resolve(domain, rdtype)
            except dns.resolver.NoAnswer:
                continue
            target.extend(str(rdata) for rdata in answers)

        return result

    def lookup(self, domain: str) -> AddressSet:
        """Resolve a domain, trying each upstream in order.

        Args:
            domain: Domain name to resolve.

        Returns:
            AddressSet: Non-empty set of A and/or AAAA addresses.

        Raises:
            ResolutionError: If every upstream failed or returned nothing.
        """
        for address, port in self.upstreams:
            try:
                result = self._query_upstream(address, port, domain)
            except (dns.exception.DNSException, OSError) as e:
                logger.warning(
                    f"Upstream {address}:{port} failed for {domain}",
                    extra={
                        "domain": domain,
                        "upstream": f"{address}:{port}",
                        "failure_type": categorize_failure(e),
                        "error": str(e),
                    },
                )
                continue

            if result.is_empty():
                logger.warning(
                    f"Upstream {address}:{port} returned no addresses for {domain}",
                    extra={
                        "domain": domain,
                        "upstream": f"{address}:{port}",
                        "failure_type": "no_answer",
                    },
                )
                continue

            return result

        raise ResolutionError(
            f"Failed to resolve {domain} using {len(self.upstreams)} upstream(s)"
        )

    def is_blocked_domain(self, addresses: AddressSet) -> bool:
        """Check whether any resolved address is a known sinkhole address.

        Pure membership test on the address literals; no network access.

        Args:
            addresses: Resolved addresses.

        Returns:
            bool: True if any address exactly matches a sinkhole address.
        """
        return any(
            ip in self.sinkhole_detection_ips for ip in addresses.all_addresses()
        )
