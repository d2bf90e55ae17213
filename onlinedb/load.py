"""
Data Loading into SQLite

Inserts translated rows into online.db, one multi-row INSERT and one
commit per batch.
"""

import logging
import sqlite3
from typing import Any, List, Sequence, Tuple

from onlinedb.schema import TableSpec

logger = logging.getLogger(__name__)

# Conservative SQLITE_MAX_VARIABLE_NUMBER for builds older than 3.32
SQLITE_MAX_VARIABLES = 999

PROGRESS_INTERVAL = 50


class BeatmapLoader:
    """
    Loads rows into a destination table.

    Duplicate primary keys fail the batch; they are never skipped.
    """

    def __init__(self, conn: sqlite3.Connection, table: TableSpec):
        """
        Initialize loader.

        Args:
            conn: Open SQLite connection with the schema already created
            table: Destination table
        """
        self.conn = conn
        self.table = table
        self.inserted = 0
        self.batches = 0

    @property
    def _columns_sql(self) -> str:
        return ", ".join(f"`{name}`" for name in self.table.column_names)

    @property
    def _row_placeholder(self) -> str:
        return "(" + ", ".join("?" for _ in self.table.columns) + ")"

    def build_insert(self, row_count: int) -> str:
        """
        Build a multi-row INSERT statement.

        Args:
            row_count: Number of VALUES tuples

        Returns:
            SQL string with one placeholder group per row
        """
        values = ", ".join(self._row_placeholder for _ in range(row_count))
        return f"INSERT INTO {self.table.name} ({self._columns_sql}) VALUES {values}"

    def insert_batch(self, rows: Sequence[Tuple[Any, ...]]) -> int:
        """
        Insert one batch and commit it.

        Batches too large for a single statement fall back to executemany
        within the same transaction.

        Args:
            rows: Parameter tuples in destination column order

        Returns:
            Number of rows inserted

        Raises:
            sqlite3.Error: On any write failure, including duplicate keys
        """
        if not rows:
            return 0

        try:
            if len(rows) * len(self.table.columns) <= SQLITE_MAX_VARIABLES:
                params: List[Any] = [value for row in rows for value in row]
                self.conn.execute(self.build_insert(len(rows)), params)
            else:
                self.conn.executemany(self.build_insert(1), rows)
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            logger.error(f"Failed to insert batch into {self.table.name}: {e}")
            raise

        previous = self.inserted
        self.inserted += len(rows)
        self.batches += 1

        if self.inserted // PROGRESS_INTERVAL > previous // PROGRESS_INTERVAL:
            logger.info(f"Copied {self.inserted} {self.table.label}...")

        return len(rows)
