"""Configuration module for the DNS classifier.

Loads and validates environment variables.
"""

import os
import re
from dataclasses import dataclass
from typing import List

from src.models.address_set import AddressSet
from src.services.resolver import DEFAULT_SINKHOLE_DETECTION_IPS
from src.utils.ip_utils import is_valid_ipv4, is_valid_ipv6, parse_nameserver


DEFAULT_UPSTREAM_RESOLVERS = "208.67.222.222,208.67.220.220"


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    # Cache Configuration
    redis_addr: str
    redis_password: str
    redis_db: int
    cache_ttl: int
    cache_key_prefix: str

    # Database Configuration
    db_host: str
    db_port: int
    db_name: str
    db_user: str
    db_password: str
    db_dsn: str | None
    db_table: str
    db_pool_size: int
    db_connect_timeout: int

    # Classification Configuration
    blocked_status: int
    sinkhole_a: str
    sinkhole_aaaa: str
    sinkhole_detection_ips: List[str]

    # Upstream Configuration
    upstream_resolvers: List[tuple[str, int]]
    resolver_attempt_timeout: float
    resolver_lifetime: float

    # Server Configuration
    listen_host: str
    listen_port: int
    response_ttl: int

    # Operational Configuration
    verbose: bool

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables.

        Raises:
            ValueError: If required variables are missing or invalid.

        Returns:
            Config: Validated configuration instance.
        """
        # Cache Configuration
        redis_addr = cls._get_required_env("REDIS_ADDR")
        redis_password = os.getenv("REDIS_PASSWORD", "")
        redis_db = int(os.getenv("REDIS_DB", "0"))
        if redis_db < 0:
            raise ValueError("REDIS_DB must be >= 0")

        cache_ttl = int(os.getenv("CACHE_TTL", "3600"))
        if not 1 <= cache_ttl <= 604800:
            raise ValueError("CACHE_TTL must be between 1 and 604800 seconds")
        cache_key_prefix = os.getenv("CACHE_KEY_PREFIX", "")

        # Database Configuration
        db_dsn = os.getenv("DB_DSN")
        if db_dsn:
            # DSN provided - extract host for logging only
            db_host = db_dsn.split("@")[-1].split(":")[0] if "@" in db_dsn else ""
            db_port = 3306
            db_name = ""
            db_user = ""
            db_password = ""
        else:
            db_host = cls._get_required_env("DB_HOST")
            db_port = int(os.getenv("DB_PORT", "3306"))
            db_name = cls._get_required_env("DB_NAME")
            db_user = cls._get_required_env("DB_USER")
            db_password = cls._get_required_env("DB_PASSWORD")

        db_table = os.getenv("DB_TABLE", "domains")
        if not re.match(r"^[A-Za-z_][A-Za-z0-9_]{0,63}$", db_table):
            raise ValueError("DB_TABLE must be a plain SQL identifier")

        db_pool_size = int(os.getenv("DB_POOL_SIZE", "8"))
        if not 1 <= db_pool_size <= 32:
            raise ValueError("DB_POOL_SIZE must be between 1 and 32")
        db_connect_timeout = int(os.getenv("DB_CONNECT_TIMEOUT", "2"))
        if not 1 <= db_connect_timeout <= 30:
            raise ValueError("DB_CONNECT_TIMEOUT must be between 1 and 30 seconds")

        # Classification Configuration
        blocked_status = int(os.getenv("BLOCKED_STATUS", os.getenv("STATUS", "1")))
        if blocked_status == 0:
            raise ValueError("BLOCKED_STATUS must be non-zero")

        sinkhole_a = os.getenv("SINKHOLE_A", "0.0.0.0")
        if not is_valid_ipv4(sinkhole_a):
            raise ValueError(f"SINKHOLE_A must be an IPv4 address, got {sinkhole_a}")
        sinkhole_aaaa = os.getenv("SINKHOLE_AAAA", "::")
        if not is_valid_ipv6(sinkhole_aaaa):
            raise ValueError(
                f"SINKHOLE_AAAA must be an IPv6 address, got {sinkhole_aaaa}"
            )

        detection_str = os.getenv(
            "SINKHOLE_DETECTION_IPS", ",".join(DEFAULT_SINKHOLE_DETECTION_IPS)
        )
        sinkhole_detection_ips = [
            ip.strip() for ip in detection_str.split(",") if ip.strip()
        ]
        if not sinkhole_detection_ips:
            raise ValueError("SINKHOLE_DETECTION_IPS must contain at least one address")
        for ip in sinkhole_detection_ips:
            if not (is_valid_ipv4(ip) or is_valid_ipv6(ip)):
                raise ValueError(f"Invalid sinkhole detection address: {ip}")

        # Upstream Configuration
        upstreams_str = os.getenv("UPSTREAM_RESOLVERS", DEFAULT_UPSTREAM_RESOLVERS)
        upstream_resolvers = [
            parse_nameserver(ns) for ns in upstreams_str.split(",") if ns.strip()
        ]
        if not upstream_resolvers:
            raise ValueError("UPSTREAM_RESOLVERS must contain at least one resolver")

        resolver_attempt_timeout = float(os.getenv("RESOLVER_ATTEMPT_TIMEOUT", "3"))
        resolver_lifetime = float(os.getenv("RESOLVER_LIFETIME", "5"))
        if not 0 < resolver_attempt_timeout <= 30:
            raise ValueError("RESOLVER_ATTEMPT_TIMEOUT must be between 0 and 30 seconds")
        if not resolver_attempt_timeout <= resolver_lifetime <= 60:
            raise ValueError(
                f"RESOLVER_LIFETIME ({resolver_lifetime}) must be >= "
                f"RESOLVER_ATTEMPT_TIMEOUT ({resolver_attempt_timeout}) and <= 60"
            )

        # Server Configuration
        listen_host = os.getenv("LISTEN_HOST", "0.0.0.0")
        listen_port = int(os.getenv("LISTEN_PORT", "53"))
        if not 1 <= listen_port <= 65535:
            raise ValueError("LISTEN_PORT must be between 1 and 65535")
        response_ttl = int(os.getenv("RESPONSE_TTL", "300"))
        if response_ttl < 0:
            raise ValueError("RESPONSE_TTL must be >= 0")

        # Operational Configuration
        verbose_str = os.getenv("VERBOSE", "false").lower()
        verbose = verbose_str in ("true", "1", "yes")

        return cls(
            redis_addr=redis_addr,
            redis_password=redis_password,
            redis_db=redis_db,
            cache_ttl=cache_ttl,
            cache_key_prefix=cache_key_prefix,
            db_host=db_host,
            db_port=db_port,
            db_name=db_name,
            db_user=db_user,
            db_password=db_password,
            db_dsn=db_dsn,
            db_table=db_table,
            db_pool_size=db_pool_size,
            db_connect_timeout=db_connect_timeout,
            blocked_status=blocked_status,
            sinkhole_a=sinkhole_a,
            sinkhole_aaaa=sinkhole_aaaa,
            sinkhole_detection_ips=sinkhole_detection_ips,
            upstream_resolvers=upstream_resolvers,
            resolver_attempt_timeout=resolver_attempt_timeout,
            resolver_lifetime=resolver_lifetime,
            listen_host=listen_host,
            listen_port=listen_port,
            response_ttl=response_ttl,
            verbose=verbose,
        )

    @staticmethod
    def _get_required_env(key: str) -> str:
        """Get required environment variable or raise ValueError.

        Args:
            key: Environment variable name.

        Returns:
            str: Environment variable value.

        Raises:
            ValueError: If environment variable is not set or empty.
        """
        value = os.getenv(key)
        if not value:
            raise ValueError(f"Required environment variable {key} is not set")
        return value

    def get_db_connection_string(self) -> str:
        """Build MySQL connection string.

        Returns:
            str: MySQL DSN connection string.
        """
        if self.db_dsn:
            return self.db_dsn

        return (
            f"mysql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    def get_sinkhole(self) -> AddressSet:
        """Address set answered for blocked domains (one literal per kind)."""
        return AddressSet(a=[self.sinkhole_a], aaaa=[self.sinkhole_aaaa])
