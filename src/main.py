"""Main entry point for the DNS classifier."""

import logging
import sys

from src.config import Config
from src.services.cache import RedisCache
from src.services.database import DatabaseService
from src.services.dns_server import create_server
from src.services.engine import DecisionEngine
from src.services.logger import setup_logging
from src.services.resolver import UpstreamResolver


logger = logging.getLogger(__name__)


def build_engine(config: Config) -> DecisionEngine:
    """Connect the stores and assemble the decision engine.

    Args:
        config: Application configuration.

    Returns:
        DecisionEngine: Engine wired to Redis, MySQL and the upstreams.

    Raises:
        redis.RedisError: If Redis stays unreachable after retries.
        mysql.connector.Error: If MySQL stays unreachable after retries.
    """
    cache = RedisCache.connect(
        config.redis_addr,
        password=config.redis_password,
        db=config.redis_db,
        key_prefix=config.cache_key_prefix,
    )

    database = DatabaseService(
        config.get_db_connection_string(),
        config.db_table,
        pool_size=config.db_pool_size,
        connect_timeout=config.db_connect_timeout,
    )
    database.ping()
    database.ensure_schema()
    logger.info(f"Connected to MySQL at {config.db_host} (table {config.db_table})")

    resolver = UpstreamResolver(
        upstreams=config.upstream_resolvers,
        sinkhole_detection_ips=config.sinkhole_detection_ips,
        attempt_timeout=config.resolver_attempt_timeout,
        lifetime=config.resolver_lifetime,
    )

    return DecisionEngine(
        cache=cache,
        database=database,
        resolver=resolver,
        blocked_status=config.blocked_status,
        sinkhole=config.get_sinkhole(),
        cache_ttl=config.cache_ttl,
    )


def main() -> int:
    """Main execution function.

    Returns:
        int: Exit code (0 on clean shutdown, 1 for fatal error).
    """
    setup_logging()
    logger.info("Starting DNS classifier")

    try:
        config = Config.from_env()
        setup_logging(verbose=config.verbose)
        logger.info(
            f"Configuration loaded: {len(config.upstream_resolvers)} upstream(s), "
            f"blocked status {config.blocked_status}"
        )

        engine = build_engine(config)
        server = create_server(
            engine, config.listen_host, config.listen_port, config.response_ttl
        )
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1

    with server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            logger.info("Shutting down")

    return 0


if __name__ == "__main__":
    sys.exit(main())
