"""
Copy Consistency Checks

Guards the two places where a silent copy error could slip into a
published online.db: the shape of the source result set and the
row counts after copying.
"""

import logging
from typing import Iterable, List

logger = logging.getLogger(__name__)


class RowCountMismatchError(RuntimeError):
    """Raised when the destination row count differs from the source count."""

    def __init__(self, table: str, expected: int, actual: int):
        self.table = table
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Expected {expected} rows in {table}, but found {actual} in sqlite! Aborting"
        )


class MissingColumnError(RuntimeError):
    """Raised when the source result set lacks columns the destination needs."""

    def __init__(self, table: str, missing: List[str]):
        self.table = table
        self.missing = missing
        super().__init__(
            f"Source table {table} is missing columns: {', '.join(missing)}"
        )


class NullValueError(RuntimeError):
    """Raised when a source row holds NULL in a non-nullable destination column."""

    def __init__(self, table: str, column: str, key):
        self.table = table
        self.column = column
        self.key = key
        super().__init__(f"NULL {column} in {table} row {key}")


def check_columns(table, names: Iterable[str]) -> None:
    """
    Validate that a source result set carries every destination column.

    Args:
        table: TableSpec being copied
        names: Column names reported by the source cursor

    Raises:
        MissingColumnError: If any expected column is absent
    """
    available = set(names)
    missing = [name for name in table.column_names if name not in available]

    if missing:
        logger.error(f"Column check failed for {table.name}: missing {missing}")
        raise MissingColumnError(table.name, missing)


def verify_row_count(table: str, expected: int, actual: int) -> None:
    """
    Compare source and destination row counts.

    Args:
        table: Table name, for the error message
        expected: Matching row count in the source
        actual: Matching row count in the destination

    Raises:
        RowCountMismatchError: If the counts differ
    """
    if actual != expected:
        logger.error(f"Row count mismatch for {table}: mysql:{expected} sqlite:{actual}")
        raise RowCountMismatchError(table, expected, actual)

    logger.debug(f"Row count verified for {table}: {actual}")
