"""
Source Data Extraction

Counts and streams filtered rows out of the osu! database.
Rows are bound to column names from the cursor description, never by position.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional

from db.connection import fetch_scalar
from onlinedb.schema import TableSpec
from onlinedb.validator import check_columns

logger = logging.getLogger(__name__)


def count_rows(conn: Any, table: TableSpec, where: str) -> int:
    """
    Count rows of a table matching the filter.

    Used against both the source and the destination database.

    Args:
        conn: Open DB-API connection
        table: Table to count
        where: Filter predicate

    Returns:
        Number of matching rows
    """
    query = f"SELECT COUNT({table.primary_key}) FROM {table.name} WHERE {where}"
    return int(fetch_scalar(conn, query) or 0)


class BeatmapExtractor:
    """
    Streams filtered rows from a source table in fixed-size batches.

    The cursor is forward-only; no ORDER BY is applied, so rows arrive in
    the source's natural order.
    """

    def __init__(self, conn: Any, table: TableSpec, where: str):
        """
        Initialize extractor.

        Args:
            conn: Open source connection
            table: Table to read
            where: Filter predicate
        """
        self.conn = conn
        self.table = table
        self.where = where

    @property
    def query(self) -> str:
        columns = ", ".join(f"`{name}`" for name in self.table.column_names)
        return f"SELECT {columns} FROM {self.table.name} WHERE {self.where}"

    def source_columns(self) -> List[str]:
        """
        Read the column names the source table currently has.

        Returns:
            Column names from a zero-row ``SELECT *``
        """
        cursor = self.conn.cursor()
        try:
            cursor.execute(f"SELECT * FROM {self.table.name} LIMIT 0")
            names = [description[0] for description in cursor.description]
            cursor.fetchall()
            return names
        finally:
            cursor.close()

    def iter_batches(self, batch_size: Optional[int] = None) -> Iterator[List[Dict[str, Any]]]:
        """
        Yield batches of records from the source table.

        Args:
            batch_size: Maximum records per batch; None or 0 yields
                every row in a single batch

        Yields:
            Lists of records keyed by column name. The last batch holds
            the remainder; nothing is yielded for an empty result.

        Raises:
            MissingColumnError: If the source lacks an expected column
        """
        # checked up front; the explicit column list would otherwise fail
        # inside the driver with an unknown-column error
        check_columns(self.table, self.source_columns())

        cursor = self.conn.cursor()
        try:
            logger.debug(f"Executing: {self.query}")
            cursor.execute(self.query)

            names = [description[0] for description in cursor.description]

            if not batch_size:
                rows = cursor.fetchall()
                if rows:
                    yield [dict(zip(names, row)) for row in rows]
                return

            while True:
                rows = cursor.fetchmany(batch_size)
                if not rows:
                    break
                yield [dict(zip(names, row)) for row in rows]
        finally:
            cursor.close()
