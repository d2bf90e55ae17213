"""
Database Connection Helpers

Provides scoped connections to the source MySQL database and the
destination SQLite file. Each connection is opened once per run and
released on every exit path, including fatal errors.
"""

import os
import sqlite3
from contextlib import contextmanager
from typing import Any, Iterator
import logging

import pymysql
import pymysql.cursors
from pymysql import OperationalError

logger = logging.getLogger(__name__)


@contextmanager
def mysql_connection(settings) -> Iterator[pymysql.connections.Connection]:
    """
    Context manager for a read-only connection to the source database.

    Uses an unbuffered server-side cursor class so that large result sets
    are streamed row by row instead of being loaded into memory.

    No connection pool: a run opens exactly one source connection and
    holds it until the copy finishes, so there is nothing to reuse.

    Args:
        settings: Settings object with DB_* values

    Yields:
        PyMySQL connection object

    Raises:
        OperationalError: If the server cannot be reached
    """
    try:
        conn = pymysql.connect(
            host=settings.DB_HOST,
            port=settings.DB_PORT,
            user=settings.DB_USER,
            password=settings.DB_PASSWORD,
            database=settings.DB_NAME,
            charset="utf8mb4",
            connect_timeout=settings.DB_CONNECT_TIMEOUT,
            cursorclass=pymysql.cursors.SSCursor,
            autocommit=True,
        )
    except OperationalError as e:
        logger.error(f"Failed to connect to MySQL at {settings.DB_HOST}: {e}")
        raise

    logger.info(f"Connected to MySQL at {settings.DB_HOST} as {settings.DB_USER}")

    try:
        with conn.cursor() as cursor:
            cursor.execute("SET SESSION TRANSACTION READ ONLY")
        yield conn
    finally:
        conn.close()
        logger.debug("MySQL connection closed")


@contextmanager
def sqlite_connection(path: str, erase: bool = True) -> Iterator[sqlite3.Connection]:
    """
    Context manager for the destination SQLite database.

    Args:
        path: Path to the SQLite file
        erase: Whether to delete an existing file first to start fresh

    Yields:
        sqlite3 connection object
    """
    if erase and os.path.exists(path):
        os.remove(path)
        logger.debug(f"Removed existing {path}")

    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    conn = sqlite3.connect(path)
    logger.info(f"Opened SQLite database at {path}")

    try:
        yield conn
    finally:
        conn.close()
        logger.debug("SQLite connection closed")


def fetch_scalar(conn: Any, query: str) -> Any:
    """
    Execute a query and return the first column of the first row.

    Works with any DB-API connection (PyMySQL or sqlite3).

    Args:
        conn: Open DB-API connection
        query: SQL query string

    Returns:
        Scalar value, or None if the query returned no rows
    """
    cursor = conn.cursor()
    try:
        cursor.execute(query)
        row = cursor.fetchone()
        # Drain unbuffered cursors so the connection is free for the next query
        cursor.fetchall()
        return row[0] if row else None
    finally:
        cursor.close()
