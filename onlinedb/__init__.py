"""
online.db Generator Package

Builds a filtered SQLite snapshot of osu! beatmap metadata from the
live MySQL database and publishes it for client download.

Modules:
- schema: Destination table definitions per schema version
- extract: Filtered, batched reads from the source database
- transform: Row translation into destination column order
- validator: Column and row count consistency checks
- load: Batched inserts into SQLite
- publish: bzip2 compression, S3 upload and cache purge
- run_etl: Generator orchestration and CLI
"""

__version__ = "1.0.0"
__author__ = "ppy Pty Ltd"
