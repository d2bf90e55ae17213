"""
online.db Generator

Coordinates the complete generator run:
- Create the destination schema
- Copy each table of the schema version from MySQL to SQLite
- Verify row counts
- Compress and optionally publish the artifact
"""

import argparse
import logging
import os
import sys
import time
from typing import Any, Callable, List, Optional

from config.settings import Settings
from db.connection import mysql_connection, sqlite_connection
from onlinedb.extract import BeatmapExtractor, count_rows
from onlinedb.load import BeatmapLoader
from onlinedb.metrics import CopyMetrics, RunMetrics
from onlinedb.publish import Publisher
from onlinedb.schema import SchemaVersion, TableSpec, create_schema
from onlinedb.transform import RowTransformer
from onlinedb.validator import verify_row_count

logger = logging.getLogger(__name__)


def copy_table(
    source: Any,
    destination: Any,
    table: TableSpec,
    version: SchemaVersion,
    batch_size: Optional[int] = None,
) -> CopyMetrics:
    """
    Copy all rows of a table matching the version's filter.

    Args:
        source: Open source connection
        destination: Open SQLite connection with the schema created
        table: Table to copy
        version: Schema version providing the filter
        batch_size: Rows per insert; None or 0 inserts everything at once

    Returns:
        CopyMetrics for the table

    Raises:
        RowCountMismatchError: If verification is enabled and counts differ
    """
    total = count_rows(source, table, version.where)
    logger.info(f"Copying {total} {table.label}...")

    start = time.perf_counter()

    extractor = BeatmapExtractor(source, table, version.where)
    transformer = RowTransformer(table)
    loader = BeatmapLoader(destination, table)

    for records in extractor.iter_batches(batch_size):
        loader.insert_batch(transformer.transform(records))

    duration = time.perf_counter() - start
    total_sqlite = count_rows(destination, table, version.where)

    logger.info(
        f"Copied {table.label} in {duration * 1000:.0f}ms! "
        f"(mysql:{total} sqlite:{total_sqlite})"
    )

    if version.verify_counts:
        verify_row_count(table.name, total, total_sqlite)

    return CopyMetrics(
        table=table.name,
        source_rows=total,
        destination_rows=total_sqlite,
        inserted_rows=loader.inserted,
        batches=loader.batches,
        duration_seconds=duration,
    )


class Generator:
    """
    Runs one full refresh of online.db.

    Workflow:
    1. Open the source and a fresh destination database
    2. Create the schema
    3. Copy every table of the schema version
    4. Compress, upload and purge the cache
    """

    def __init__(
        self,
        settings: Settings,
        source_factory: Callable = mysql_connection,
        publisher: Optional[Publisher] = None,
        publish: bool = True,
    ):
        """
        Initialize generator.

        Args:
            settings: Configuration object
            source_factory: Callable returning a context manager that
                yields the source connection
            publisher: Publisher to use (default: built from settings)
            publish: Whether to upload when credentials are present
        """
        self.settings = settings
        self.source_factory = source_factory
        self.publisher = publisher or Publisher(settings)
        self.publish = publish
        self.version = SchemaVersion(settings.SCHEMA_VERSION)

    @property
    def batch_size(self) -> Optional[int]:
        if self.settings.BATCH_SIZE is None:
            return self.version.default_batch_size
        return self.settings.BATCH_SIZE or None

    def run(self) -> RunMetrics:
        """
        Execute the generator.

        Returns:
            RunMetrics for the run

        Raises:
            Exception: Any failure is fatal and propagates to the caller
        """
        start = time.perf_counter()
        logger.info("Starting generator...")
        logger.debug(f"Using {self.settings!r}")

        tables: List[CopyMetrics] = []

        with sqlite_connection(self.settings.SQLITE_PATH) as sqlite, \
                self.source_factory(self.settings) as mysql:
            create_schema(sqlite, self.version)
            logger.info("Created schema.")

            for table in self.version.tables:
                tables.append(copy_table(mysql, sqlite, table, self.version, self.batch_size))

        metrics = RunMetrics(schema_version=self.version.value, tables=tables)

        if self.publish:
            metrics.published = self.publisher.publish()
        else:
            self.publisher.compress()

        metrics.uncompressed_bytes = os.path.getsize(self.settings.SQLITE_PATH)
        metrics.compressed_bytes = os.path.getsize(self.settings.bz2_path)
        metrics.duration_seconds = time.perf_counter() - start

        logger.info("All done!")
        metrics.log_summary()

        return metrics


def setup_logging(log_file: str = "logs/onlinedb.log", level: str = "INFO") -> None:
    """
    Configure logging for the generator.

    Args:
        log_file: Path to log file
        level: Console log level name
    """
    directory = os.path.dirname(log_file)
    if directory:
        os.makedirs(directory, exist_ok=True)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # File handler
    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level.upper())
    console_handler.setFormatter(formatter)

    # Root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)


def _batch_size(value: str) -> int:
    size = int(value)
    if size < 0:
        raise argparse.ArgumentTypeError(f"batch size must be >= 0, got {size}")
    return size


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="onlinedb-generator",
        description="Generate the online.db beatmap snapshot.",
    )
    parser.add_argument(
        "--schema-version",
        type=int,
        choices=[v.value for v in SchemaVersion],
        help="schema version to generate (default: SCHEMA_VERSION or 3)",
    )
    parser.add_argument(
        "--batch-size",
        type=_batch_size,
        help="rows per insert, 0 for a single batch (default: per schema version)",
    )
    parser.add_argument("--output", help="SQLite output path (default: SQLITE_PATH)")
    parser.add_argument(
        "--no-publish",
        action="store_true",
        help="compress only, even if S3 credentials are set",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the generator."""
    args = parse_args(argv)

    try:
        settings = Settings()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    if args.schema_version is not None:
        settings.SCHEMA_VERSION = args.schema_version
    if args.batch_size is not None:
        settings.BATCH_SIZE = args.batch_size
    if args.output:
        settings.SQLITE_PATH = args.output

    setup_logging(settings.LOG_FILE, settings.LOG_LEVEL)

    try:
        Generator(settings, publish=not args.no_publish).run()
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
