"""
PostgreSQL access for the accounts, materials and log tables.

psycopg2 ThreadedConnectionPool, one per database URL, shared by every
PostgresClient built with that URL. Queries use %s placeholders and rows
come back as plain dicts.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, List, Tuple
from uuid import UUID

import psycopg2
import psycopg2.extras
import psycopg2.pool

logger = logging.getLogger(__name__)

Params = Tuple | Dict | None

# Type adapters are process-wide; register them with the first pool
_adapters_registered = False


def _adapt(value: Any) -> Any:
    """Stringify UUIDs, including inside lists, tuples and dicts."""
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (list, tuple)):
        return type(value)(_adapt(v) for v in value)
    if isinstance(value, dict):
        return {k: _adapt(v) for k, v in value.items()}
    return value


class PostgresClient:
    """
    Pooled PostgreSQL client.

    Usage:
        db = PostgresClient(database_url)
        row = db.execute_single("SELECT * FROM accounts WHERE email = %s", (email,))
        rows = db.execute_returning("DELETE FROM materials WHERE id = %s RETURNING id", (material_id,))
    """

    _connection_pools: Dict[str, psycopg2.pool.ThreadedConnectionPool] = {}
    _pools_lock = threading.RLock()

    def __init__(self, database_url: str, minconn: int = 2, maxconn: int = 20):
        self._database_url = database_url
        self._minconn = minconn
        self._maxconn = maxconn
        self._pool()

    def _pool(self) -> psycopg2.pool.ThreadedConnectionPool:
        """The shared pool for this URL, opened on first use."""
        global _adapters_registered

        with self._pools_lock:
            pool = self._connection_pools.get(self._database_url)
            if pool is not None:
                return pool

            pool = psycopg2.pool.ThreadedConnectionPool(
                minconn=self._minconn,
                maxconn=self._maxconn,
                dsn=self._database_url,
                connect_timeout=30,
            )
            if not _adapters_registered:
                psycopg2.extras.register_default_jsonb(globally=True)
                psycopg2.extras.register_uuid()
                _adapters_registered = True

            self._connection_pools[self._database_url] = pool
            logger.info(f"Opened connection pool ({self._minconn}-{self._maxconn} connections)")
            return pool

    @contextmanager
    def get_connection(self):
        """Borrow a connection; roll back if the block raises."""
        pool = self._pool()
        conn = pool.getconn()
        if conn is None:
            raise RuntimeError("Connection pool returned no connection")

        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        finally:
            pool.putconn(conn)

    def _run(self, query: str, params: Params, expect_rows: bool) -> List[Dict[str, Any]]:
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(query, _adapt(params))
                rows = [dict(r) for r in cur.fetchall()] if expect_rows or cur.description else []
                conn.commit()
        return rows

    def execute(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """Run a statement and commit. Rows if it produced any, else []."""
        return self._run(query, params, expect_rows=False)

    def execute_single(self, query: str, params: Params = None) -> Dict[str, Any] | None:
        """First row of execute(), or None."""
        rows = self.execute(query, params)
        return rows[0] if rows else None

    def execute_returning(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """INSERT/UPDATE/DELETE ... RETURNING; always fetches."""
        return self._run(query, params, expect_rows=True)

    def close(self) -> None:
        """Close this URL's pool. Other clients on the same URL lose it too."""
        with self._pools_lock:
            pool = self._connection_pools.pop(self._database_url, None)
        if pool is not None:
            pool.closeall()

    @classmethod
    def close_all_pools(cls) -> None:
        with cls._pools_lock:
            pools = list(cls._connection_pools.values())
            cls._connection_pools.clear()
        for pool in pools:
            pool.closeall()
