"""Redis cache service for short-lived classification results."""

import logging
from typing import Optional

import redis

from src.models.domain_record import CachedDomain
from src.services.contracts import StoreError
from src.utils.retry import exponential_backoff_retry


logger = logging.getLogger(__name__)


def parse_redis_addr(addr: str) -> tuple[str, int]:
    """Split a REDIS_ADDR value ("host" or "host:port") into host and port.

    Examples:
        >>> parse_redis_addr("localhost:6379")
        ('localhost', 6379)
        >>> parse_redis_addr("cache")
        ('cache', 6379)
    """
    host, sep, port = addr.rpartition(":")
    if not sep:
        return addr, 6379
    if not host:
        raise ValueError(f"Invalid Redis address: {addr}")
    return host, int(port)


class RedisCache:
    """Cache store backed by Redis string keys with per-entry TTL.

    Values are JSON-encoded CachedDomain entries written with SETEX. Raw
    bytes are read back and decoded by CachedDomain.loads, so a value that
    is not UTF-8 JSON surfaces as StoreError like any other bad entry.
    """

    def __init__(self, client: redis.Redis, key_prefix: str = ""):
        """Initialize cache service.

        Args:
            client: Connected Redis client.
            key_prefix: Prefix prepended to every domain key.
        """
        self.client = client
        self.key_prefix = key_prefix

    @classmethod
    def connect(
        cls,
        addr: str,
        password: str | None = None,
        db: int = 0,
        key_prefix: str = "",
        socket_timeout: float = 1.0,
    ) -> "RedisCache":
        """Create a client for addr and verify the connection.

        Args:
            addr: "host:port" of the Redis server.
            password: Optional Redis password.
            db: Database index.
            key_prefix: Prefix prepended to every domain key.
            socket_timeout: Connect and command timeout in seconds.

        Returns:
            RedisCache: Ready cache service.

        Raises:
            redis.RedisError: If the server is still unreachable after retries.
        """
        host, port = parse_redis_addr(addr)
        client = redis.Redis(
            host=host,
            port=port,
            password=password or None,
            db=db,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        cache = cls(client, key_prefix=key_prefix)
        cache.ping()
        logger.info(f"Connected to Redis at {host}:{port} (db {db})")
        return cache

    @exponential_backoff_retry(retry_on=(redis.ConnectionError, redis.TimeoutError))
    def ping(self) -> None:
        """Readiness check.

        Raises:
            redis.RedisError: If the server does not answer PING.
        """
        self.client.ping()

    def _key(self, domain: str) -> str:
        return f"{self.key_prefix}{domain}"

    def get(self, domain: str) -> Optional[CachedDomain]:
        """Fetch the cached classification for a domain.

        Args:
            domain: Domain name without trailing dot.

        Returns:
            Optional[CachedDomain]: Cached entry, or None on miss.

        Raises:
            StoreError: On Redis errors or an undecodable value.
        """
        try:
            raw = self.client.get(self._key(domain))
        except redis.RedisError as e:
            raise StoreError(f"Redis GET failed for {domain}: {e}") from e
        except UnicodeDecodeError as e:
            # Only reachable on clients created with decode_responses=True.
            raise StoreError(f"Invalid cache entry for {domain}: {e}") from e

        if raw is None:
            return None

        try:
            return CachedDomain.loads(raw)
        except ValueError as e:
            raise StoreError(f"Invalid cache entry for {domain}: {e}") from e

    def set(self, domain: str, entry: CachedDomain, ttl: int) -> None:
        """Store a classification for ttl seconds.

        Args:
            domain: Domain name without trailing dot.
            entry: Entry to cache.
            ttl: Expiry in seconds.

        Raises:
            StoreError: On Redis errors.
        """
        try:
            self.client.setex(self._key(domain), ttl, entry.dumps())
        except redis.RedisError as e:
            raise StoreError(f"Redis SETEX failed for {domain}: {e}") from e
