"""
Copy Metrics

Per-table copy statistics collected during a generator run and used for
the run summary.
"""

import logging
from dataclasses import dataclass
from typing import List

logger = logging.getLogger(__name__)


@dataclass
class CopyMetrics:
    """Metrics for copying a single table."""
    table: str
    source_rows: int
    destination_rows: int
    inserted_rows: int
    batches: int
    duration_seconds: float

    @property
    def duration_ms(self) -> float:
        return self.duration_seconds * 1000

    @property
    def throughput(self) -> float:
        """Calculate rows per second."""
        if self.duration_seconds == 0:
            return 0.0
        return self.inserted_rows / self.duration_seconds

    @property
    def average_batch_size(self) -> float:
        if self.batches == 0:
            return 0.0
        return self.inserted_rows / self.batches


@dataclass
class RunMetrics:
    """Metrics for a complete generator run."""
    schema_version: int
    tables: List[CopyMetrics]
    duration_seconds: float = 0.0
    compressed_bytes: int = 0
    uncompressed_bytes: int = 0
    published: bool = False

    @property
    def total_rows(self) -> int:
        return sum(table.inserted_rows for table in self.tables)

    @property
    def compression_ratio(self) -> float:
        """Compressed size as a fraction of the SQLite file size."""
        if self.uncompressed_bytes == 0:
            return 0.0
        return self.compressed_bytes / self.uncompressed_bytes

    def log_summary(self) -> None:
        """Log run summary with all metrics."""
        logger.info(f"Schema version: {self.schema_version}")
        logger.info(f"Duration: {self.duration_seconds:.2f} seconds")
        for table in self.tables:
            logger.info(
                f"{table.table}: {table.inserted_rows} rows in {table.batches} batches "
                f"of {table.average_batch_size:.1f} avg, {table.duration_ms:.0f}ms "
                f"({table.throughput:.0f} rows/s)"
            )
        logger.info(f"Total rows copied: {self.total_rows}")
        if self.uncompressed_bytes:
            logger.info(
                f"Compressed {self.uncompressed_bytes} -> {self.compressed_bytes} bytes "
                f"({self.compression_ratio * 100:.1f}%)"
            )
        logger.info(f"Published: {'yes' if self.published else 'no'}")
