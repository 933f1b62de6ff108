"""
PostgreSQL repository adapter - Implements UserRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 with raw SQL.

Concurrency Design - Single-Use Codes:
--------------------------------------
The one-time code lives in a slot on the user row (otp_code, otp_purpose,
otp_expires_at, otp_used). consume_code performs the whole check in the
WHERE clause of one UPDATE:

    code matches AND purpose matches AND NOT used AND expires_at > NOW()

Under READ COMMITTED a second concurrent UPDATE on the same row waits for
the first to commit, then re-evaluates the predicate against the new row
version (code cleared, used = TRUE) and matches zero rows. The affected row
count is therefore the serialization point; no application-level locking
is needed, so this holds across processes and hosts.

All timestamps (expiry, comparison) use database time via NOW() so that
clock skew between application instances cannot widen the code window.
"""

import logging
import uuid
from datetime import timedelta
from pathlib import Path
from typing import Any

from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from src.domain.ports import CodePurpose, User

logger = logging.getLogger(__name__)

_USER_COLUMNS = """
    id, fullname, email, password_hash, is_verified, profile_picture, bio,
    otp_code, otp_purpose, otp_expires_at, otp_used, created_at, updated_at
"""


def _to_user(row: dict[str, Any]) -> User:
    purpose = row["otp_purpose"]
    return User(
        id=str(row["id"]),
        fullname=row["fullname"],
        email=row["email"],
        password_hash=row["password_hash"],
        is_verified=row["is_verified"],
        profile_picture=row["profile_picture"],
        bio=row["bio"],
        otp_code=row["otp_code"],
        otp_purpose=CodePurpose(purpose) if purpose is not None else None,
        otp_expires_at=row["otp_expires_at"],
        otp_used=row["otp_used"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresUserRepository:
    """
    Implements UserRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def find_by_email(self, email: str) -> User | None:
        sql = f"SELECT {_USER_COLUMNS} FROM users WHERE email = %s"

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (email,))
            row = cursor.fetchone()
        return _to_user(row) if row is not None else None

    def find_by_id(self, user_id: str) -> User | None:
        try:
            parsed_id = uuid.UUID(user_id)
        except (ValueError, TypeError, AttributeError):
            return None

        sql = f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s"

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (parsed_id,))
            row = cursor.fetchone()
        return _to_user(row) if row is not None else None

    def create_user(self, fullname: str, email: str, password_hash: str) -> User | None:
        """
        Insert a new unverified user.

        ON CONFLICT DO NOTHING makes concurrent registrations for the same
        email safe: the UNIQUE constraint picks one winner and the losers
        get no row back.

        Returns:
            The created user, or None if the email already exists
        """
        sql = f"""
            INSERT INTO users (fullname, email, password_hash, is_verified)
            VALUES (%s, %s, %s, FALSE)
            ON CONFLICT (email) DO NOTHING
            RETURNING {_USER_COLUMNS}
        """

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (fullname, email, password_hash))
            row = cursor.fetchone()
            conn.commit()
        return _to_user(row) if row is not None else None

    def store_code(self, email: str, code: str, purpose: CodePurpose, ttl: timedelta) -> bool:
        """
        Overwrite the user's code slot.

        Any previously outstanding code, whatever its purpose, stops
        verifying the moment this commits.

        Returns:
            True if the user exists and was updated
        """
        sql = """
            UPDATE users
            SET otp_code = %s,
                otp_purpose = %s,
                otp_expires_at = NOW() + %s,
                otp_used = FALSE,
                updated_at = NOW()
            WHERE email = %s
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (code, purpose.value, ttl, email))
            conn.commit()
            return cursor.rowcount == 1

    def consume_code(self, email: str, code: str, purpose: CodePurpose) -> bool:
        """
        Atomically verify and consume a one-time code.

        Clears the slot and sets otp_used in the same statement that checks
        it. Exactly one of any number of concurrent callers sees rowcount 1.

        Returns:
            True if this call consumed the code
        """
        sql = """
            UPDATE users
            SET otp_code = NULL,
                otp_purpose = NULL,
                otp_expires_at = NULL,
                otp_used = TRUE,
                updated_at = NOW()
            WHERE email = %s
              AND otp_code = %s
              AND otp_purpose = %s
              AND otp_used = FALSE
              AND otp_expires_at > NOW()
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email, code, purpose.value))
            conn.commit()
            return cursor.rowcount == 1

    def mark_verified(self, email: str) -> User | None:
        sql = f"""
            UPDATE users
            SET is_verified = TRUE, updated_at = NOW()
            WHERE email = %s
            RETURNING {_USER_COLUMNS}
        """

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (email,))
            row = cursor.fetchone()
            conn.commit()
        return _to_user(row) if row is not None else None

    def update_password(self, email: str, password_hash: str) -> bool:
        sql = """
            UPDATE users
            SET password_hash = %s, updated_at = NOW()
            WHERE email = %s
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (password_hash, email))
            conn.commit()
            return cursor.rowcount == 1

    def clear_expired_codes(self) -> int:
        """
        Reset every code slot whose expiry has passed.

        Not required for correctness (consume_code re-checks expiry), it
        just keeps stale codes from lingering in the table.

        Returns:
            Number of user rows cleared
        """
        sql = """
            UPDATE users
            SET otp_code = NULL,
                otp_purpose = NULL,
                otp_expires_at = NULL,
                otp_used = FALSE
            WHERE otp_expires_at < NOW()
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql)
            conn.commit()
            return cursor.rowcount


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
