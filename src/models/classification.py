"""Classification result models."""

from dataclasses import dataclass, field
from enum import Enum

from src.models.address_set import AddressSet


class Verdict(Enum):
    """Outcome of classifying one query."""

    ALLOWED = "ALLOWED"  # Answer with real addresses
    BLOCKED = "BLOCKED"  # Answer with the sinkhole address set
    RESOLUTION_FAILED = "RESOLUTION_FAILED"  # Every upstream failed


class Source(Enum):
    """Tier that decided the verdict."""

    CACHE = "cache"
    DATABASE = "database"
    UPSTREAM = "upstream"


@dataclass
class Classification:
    """Result of DecisionEngine.classify().

    Attributes:
        verdict: Allowed, blocked or resolution failure.
        addresses: Addresses to answer with (empty on resolution failure).
        source: Tier that produced the classification.
    """

    verdict: Verdict
    source: Source
    addresses: AddressSet = field(default_factory=AddressSet)

    def is_blocked(self) -> bool:
        return self.verdict == Verdict.BLOCKED

    def is_failure(self) -> bool:
        return self.verdict == Verdict.RESOLUTION_FAILED
