"""Pooled database connections for bill intake (psycopg2)."""

from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager

import psycopg2
from psycopg2 import pool as pg_pool

from bill_intake.errors import PersistenceFailure

logger = logging.getLogger(__name__)

DATABASE_URL = os.environ.get("DATABASE_URL")


class ConnectionPool:
    """
    Thread-safe pool shared by every service in the process.

    `connection()` hands out one connection for the duration of a `with` block,
    commits when the block finishes, rolls back on error and always returns the
    connection to the pool. Driver errors surface as PersistenceFailure.
    """

    def __init__(self, dsn: str | None = None, *, min_conn: int = 1, max_conn: int = 10):
        self._dsn = dsn
        self._min_conn = min_conn
        self._max_conn = max_conn
        self._pool: pg_pool.ThreadedConnectionPool | None = None
        self._lock = threading.Lock()

    def _resolve_dsn(self) -> str:
        # Read from the environment at call-time (not import-time); dotenv may load after imports.
        db_url = self._dsn or os.environ.get("DATABASE_URL") or DATABASE_URL
        if not db_url:
            raise PersistenceFailure("DATABASE_URL not configured")
        return db_url

    def _get_pool(self) -> pg_pool.ThreadedConnectionPool:
        if self._pool is not None:
            return self._pool
        with self._lock:
            if self._pool is not None:
                return self._pool
            try:
                self._pool = pg_pool.ThreadedConnectionPool(self._min_conn, self._max_conn, self._resolve_dsn())
            except psycopg2.Error as e:
                raise PersistenceFailure(f"Could not connect to database: {e}") from e
            logger.info("Database pool ready (min=%s max=%s)", self._min_conn, self._max_conn)
            return self._pool

    @contextmanager
    def connection(self):
        pool = self._get_pool()
        try:
            conn = pool.getconn()
        except (psycopg2.Error, pg_pool.PoolError) as e:
            raise PersistenceFailure(f"No database connection available: {e}") from e

        try:
            yield conn
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            raise PersistenceFailure(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            pool.putconn(conn)

    def close(self) -> None:
        with self._lock:
            if self._pool is not None:
                self._pool.closeall()
                self._pool = None


_default_pool: ConnectionPool | None = None
_default_pool_lock = threading.Lock()


def get_pool(cfg=None) -> ConnectionPool:
    """Process-wide pool, sized from the `database` config section on first use."""
    global _default_pool
    if _default_pool is not None:
        return _default_pool
    with _default_pool_lock:
        if _default_pool is None:
            db_cfg = (cfg or {}).get("database", {}) if isinstance(cfg, dict) else {}
            _default_pool = ConnectionPool(
                min_conn=int(db_cfg.get("pool_min", 1)),
                max_conn=int(db_cfg.get("pool_max", 10)),
            )
        return _default_pool
