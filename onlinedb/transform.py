"""
Row Translation

Converts source records into destination parameter tuples in the
destination's column order, normalizing values SQLite cannot store natively.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Tuple

from onlinedb.schema import TableSpec
from onlinedb.validator import NullValueError

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_timestamp(value: Any) -> Any:
    """
    Serialize a timestamp to fixed ``YYYY-MM-DD HH:MM:SS`` text.

    Timezone-aware values are converted to UTC first. None and values
    that are already text pass through unchanged.
    """
    if value is None or isinstance(value, str):
        return value

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.strftime(TIMESTAMP_FORMAT)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).strftime(TIMESTAMP_FORMAT)

    raise TypeError(f"Cannot format {type(value).__name__} as timestamp: {value!r}")


def _convert(value: Any) -> Any:
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    return value


class RowTransformer:
    """
    Maps source records onto a destination table's column order.

    Nullable columns keep an explicit None rather than picking up the
    column default; None in any other column is rejected.
    """

    def __init__(self, table: TableSpec):
        self.table = table

    def to_row(self, record: Dict[str, Any]) -> Tuple[Any, ...]:
        """
        Translate one record.

        Args:
            record: Source record keyed by column name

        Returns:
            Tuple of values in destination column order

        Raises:
            NullValueError: If a non-nullable column is None
        """
        values = []
        for column in self.table.columns:
            value = record[column.name]
            if value is None:
                if not column.nullable:
                    raise NullValueError(self.table.name, column.name, record.get(self.table.primary_key))
                values.append(None)
            elif column.timestamp:
                values.append(format_timestamp(value))
            else:
                values.append(_convert(value))
        return tuple(values)

    def transform(self, records: List[Dict[str, Any]]) -> List[Tuple[Any, ...]]:
        """
        Translate a batch of records.

        Args:
            records: Source records

        Returns:
            List of destination parameter tuples
        """
        rows = [self.to_row(record) for record in records]
        logger.debug(f"Transformed {len(rows)} {self.table.label}")
        return rows
