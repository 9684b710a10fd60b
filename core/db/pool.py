"""
Database Connection Pool Manager

Provides a thread-safe PostgreSQL connection pool for the forms database
with health checks and a direct-connection fallback when the pool is
exhausted.
"""

import threading
import time
import logging
from contextlib import contextmanager
from typing import Optional, Dict, Any

import psycopg2
from psycopg2 import pool

from utils.config import get_database_config, get_pool_config

logger = logging.getLogger(__name__)


class DatabasePool:
    """Thread-safe database connection pool manager."""

    def __init__(self, db_config: Optional[Dict[str, Any]] = None):
        """
        Initialize the database pool.

        Args:
            db_config: psycopg2 connection keyword arguments. Read from the
                environment when omitted.

        Raises:
            ValueError: If required configuration is missing
        """
        self.pool: Optional[pool.AbstractConnectionPool] = None
        self.pool_lock = threading.Lock()
        self.stats = {
            "connections_created": 0,
            "connections_used": 0,
            "connections_returned": 0,
            "pool_exhausted": 0,
            "fallback_connections": 0,
            "errors": 0
        }
        self.db_config = dict(db_config) if db_config else get_database_config()

    def initialize_pool(self, min_connections: int = 1, max_connections: int = 10) -> bool:
        """
        Initialize the connection pool.

        Args:
            min_connections: Minimum number of connections to maintain
            max_connections: Maximum number of connections allowed

        Returns:
            bool: True if pool was created successfully, False otherwise
        """
        try:
            with self.pool_lock:
                if self.pool is not None:
                    return True

                self.pool = psycopg2.pool.ThreadedConnectionPool(
                    min_connections,
                    max_connections,
                    **self.db_config
                )
                self.stats["connections_created"] = min_connections

            logger.info(
                f"Initialized forms pool with {min_connections}-{max_connections} connections"
            )
            return True

        except psycopg2.Error as e:
            logger.error(f"Failed to initialize forms pool: {e}")
            self.stats["errors"] += 1
            return False

    @contextmanager
    def get_connection(self):
        """
        Get a connection from the pool using context manager.

        Falls back to a direct connection when the pool is exhausted or was
        never initialized. Errors are logged and re-raised.

        Yields:
            psycopg2.connection: Database connection

        Example:
            >>> db_pool = DatabasePool()
            >>> with db_pool.get_connection() as conn:
            ...     cursor = conn.cursor()
            ...     cursor.execute("SELECT 1")
        """
        connection = None
        pooled = False
        start_time = time.time()

        try:
            if self.pool is not None:
                try:
                    connection = self.pool.getconn()
                    pooled = True
                    self.stats["connections_used"] += 1
                except pool.PoolError:
                    self.stats["pool_exhausted"] += 1
                    logger.warning("Forms pool exhausted, using fallback")

            if connection is None:
                self.stats["fallback_connections"] += 1
                connection = psycopg2.connect(**self.db_config)

            yield connection

        except Exception as e:
            self.stats["errors"] += 1
            elapsed = time.time() - start_time
            logger.error(f"Forms database error after {elapsed:.2f}s: {e}")
            raise

        finally:
            if connection is not None:
                try:
                    if pooled:
                        self.pool.putconn(connection)
                        self.stats["connections_returned"] += 1
                    else:
                        connection.close()
                except psycopg2.Error as e:
                    logger.warning(f"Error returning connection to pool: {e}")
                    self.stats["errors"] += 1

    def close_pool(self):
        """Close all connections in the pool."""
        with self.pool_lock:
            if self.pool is not None:
                self.pool.closeall()
                self.pool = None
                logger.info("Closed forms connection pool")

    def get_stats(self) -> Dict[str, Any]:
        stats = self.stats.copy()
        stats["pool_initialized"] = self.pool is not None
        return stats

    def health_check(self) -> bool:
        """
        Perform a health check on the pool.

        Returns:
            bool: True if a trivial query succeeds, False otherwise
        """
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cursor:
                    cursor.execute("SELECT 1")
                    return cursor.fetchone() is not None
        except psycopg2.Error as e:
            logger.error(f"Forms pool health check failed: {e}")
            return False


_forms_pool: Optional[DatabasePool] = None
_pool_lock = threading.Lock()


def get_pool() -> DatabasePool:
    """Get or lazily create the shared forms database pool."""
    global _forms_pool

    with _pool_lock:
        if _forms_pool is None:
            _forms_pool = DatabasePool()
            sizes = get_pool_config()
            _forms_pool.initialize_pool(sizes["min_connections"], sizes["max_connections"])
        return _forms_pool


@contextmanager
def get_forms_connection():
    """
    Get a forms database connection using context manager.

    Example:
        >>> with get_forms_connection() as conn:
        ...     cursor = conn.cursor()
        ...     cursor.execute("SELECT COUNT(*) FROM form_submissions")
    """
    with get_pool().get_connection() as conn:
        yield conn
