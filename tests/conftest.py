"""pytest fixtures for testing."""

import pytest
from unittest.mock import Mock

from src.models.address_set import AddressSet
from src.services.contracts import ResolutionError


SINKHOLE = AddressSet(a=["0.0.0.0"], aaaa=["::"])
BLOCKED_STATUS = 2


class InMemoryCache:
    """CacheStore double backed by a dict; records every call."""

    def __init__(self):
        self.entries = {}
        self.get_calls = []
        self.set_calls = []

    def get(self, domain):
        self.get_calls.append(domain)
        return self.entries.get(domain)

    def set(self, domain, entry, ttl):
        self.set_calls.append((domain, entry, ttl))
        self.entries[domain] = entry


class InMemoryDatabase:
    """DurableStore double backed by a dict; records every call."""

    def __init__(self):
        self.records = {}
        self.get_calls = []
        self.saved = []

    def get(self, domain):
        self.get_calls.append(domain)
        return self.records.get(domain)

    def save(self, record):
        self.saved.append(record)
        self.records[record.domain] = record


@pytest.fixture
def cache():
    """Empty in-memory cache store."""
    return InMemoryCache()


@pytest.fixture
def database():
    """Empty in-memory durable store."""
    return InMemoryDatabase()


@pytest.fixture
def resolver():
    """Mock resolver that resolves to 9.9.9.9 and never detects a block."""
    mock = Mock()
    mock.lookup.return_value = AddressSet(a=["9.9.9.9"])
    mock.is_blocked_domain.return_value = False
    return mock


@pytest.fixture
def failing_resolver():
    """Mock resolver whose lookups always fail."""
    mock = Mock()
    mock.lookup.side_effect = ResolutionError("all upstreams failed")
    mock.is_blocked_domain.return_value = False
    return mock


@pytest.fixture
def engine(cache, database, resolver):
    """DecisionEngine wired to in-memory stores and the mock resolver."""
    from src.services.engine import DecisionEngine

    return DecisionEngine(
        cache=cache,
        database=database,
        resolver=resolver,
        blocked_status=BLOCKED_STATUS,
        sinkhole=SINKHOLE,
        cache_ttl=600,
    )
