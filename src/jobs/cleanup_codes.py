"""
Expired one-time code sweep.

Run once per invocation and exit; schedule it with cron or a platform
scheduler:

    python -m src.jobs.cleanup_codes

Verification re-checks expiry on every attempt, so this job only keeps
stale codes from lingering; skipping a run never lets a code verify late.
"""

import logging

from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresUserRepository
from src.config.log import configure_logging
from src.config.settings import get_settings

logger = logging.getLogger(__name__)


def run(pool: ConnectionPool) -> int:
    """Clear expired code slots using the given pool. Returns rows cleared."""
    return PostgresUserRepository(pool).clear_expired_codes()


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)

    pool = ConnectionPool(conninfo=settings.database_url, min_size=1, max_size=1)
    try:
        cleared = run(pool)
    finally:
        pool.close()
    logger.info("Expired code sweep finished: %d slot(s) cleared", cleared)


if __name__ == "__main__":
    main()
