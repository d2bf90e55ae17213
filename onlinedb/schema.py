"""
Destination Schema Definitions

Fixed, hand-maintained table shapes for each online.db schema version.
The schema is never reflected off the source, so unexpected source
columns cannot leak into the published file.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Column:
    """A destination column and its SQLite DDL."""
    name: str
    ddl: str
    nullable: bool = False
    timestamp: bool = False


@dataclass(frozen=True)
class TableSpec:
    """A destination table copied from the source table of the same name."""
    name: str
    primary_key: str
    columns: Tuple[Column, ...]
    indexes: Tuple[str, ...] = field(default_factory=tuple)
    label: str = "rows"

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    def create_table_sql(self) -> str:
        definitions = [f"`{c.name}` {c.ddl}" for c in self.columns]
        definitions.append(f"PRIMARY KEY (`{self.primary_key}`)")
        body = ",\n    ".join(definitions)
        return f"CREATE TABLE `{self.name}` (\n    {body})"

    def create_index_sql(self) -> List[str]:
        return [
            f"CREATE INDEX `{column}` ON {self.name} (`{column}`)"
            for column in self.indexes
        ]


BEATMAP_INDEXES = ("beatmapset_id", "filename", "checksum", "user_id")

BEATMAPSETS_V2 = TableSpec(
    name="osu_beatmapsets",
    primary_key="beatmapset_id",
    label="beatmap sets",
    columns=(
        Column("beatmapset_id", "mediumint unsigned NOT NULL"),
        Column("submit_date", "timestamp NOT NULL", timestamp=True),
        Column("approved_date", "timestamp NULL DEFAULT NULL", nullable=True, timestamp=True),
        Column("approved", "tinyint NOT NULL DEFAULT '0'"),
    ),
)

BEATMAPS_V2 = TableSpec(
    name="osu_beatmaps",
    primary_key="beatmap_id",
    label="beatmaps",
    indexes=BEATMAP_INDEXES,
    columns=(
        Column("beatmap_id", "mediumint unsigned NOT NULL"),
        Column("beatmapset_id", "mediumint unsigned DEFAULT NULL", nullable=True),
        Column("user_id", "int unsigned NOT NULL DEFAULT '0'"),
        Column("filename", "varchar(150) DEFAULT NULL", nullable=True),
        Column("checksum", "varchar(32) DEFAULT NULL", nullable=True),
        Column("approved", "tinyint NOT NULL DEFAULT '0'"),
        Column("last_update", "timestamp NOT NULL DEFAULT CURRENT_TIMESTAMP", timestamp=True),
    ),
)

BEATMAPS_V3 = TableSpec(
    name="osu_beatmaps",
    primary_key="beatmap_id",
    label="beatmaps",
    indexes=BEATMAP_INDEXES,
    columns=(
        Column("beatmap_id", "mediumint unsigned NOT NULL"),
        Column("beatmapset_id", "mediumint unsigned DEFAULT NULL", nullable=True),
        Column("user_id", "int unsigned NOT NULL DEFAULT '0'"),
        Column("filename", "varchar(150) DEFAULT NULL", nullable=True),
        Column("checksum", "varchar(32) DEFAULT NULL", nullable=True),
        Column("version", "varchar(80) NOT NULL DEFAULT ''"),
        Column("total_length", "mediumint unsigned NOT NULL DEFAULT '0'"),
        Column("hit_length", "mediumint unsigned NOT NULL DEFAULT '0'"),
        Column("countTotal", "smallint unsigned NOT NULL DEFAULT '0'"),
        Column("countNormal", "smallint unsigned NOT NULL DEFAULT '0'"),
        Column("countSlider", "smallint unsigned NOT NULL DEFAULT '0'"),
        Column("countSpinner", "smallint unsigned NOT NULL DEFAULT '0'"),
        Column("diff_drain", "float unsigned NOT NULL DEFAULT '0'"),
        Column("diff_size", "float unsigned NOT NULL DEFAULT '0'"),
        Column("diff_overall", "float unsigned NOT NULL DEFAULT '0'"),
        Column("diff_approach", "float unsigned NOT NULL DEFAULT '0'"),
        Column("playmode", "tinyint unsigned NOT NULL DEFAULT '0'"),
        Column("approved", "tinyint NOT NULL DEFAULT '0'"),
        Column("last_update", "timestamp NOT NULL DEFAULT CURRENT_TIMESTAMP", timestamp=True),
        Column("difficultyrating", "float NOT NULL DEFAULT '0'"),
        Column("playcount", "int unsigned NOT NULL DEFAULT '0'"),
        Column("passcount", "int unsigned NOT NULL DEFAULT '0'"),
        Column("orphaned", "tinyint(1) NOT NULL DEFAULT '0'"),
        Column("youtube_preview", "varchar(50) DEFAULT NULL", nullable=True),
        Column("score_version", "tinyint NOT NULL DEFAULT '1'"),
        Column("deleted_at", "timestamp NULL DEFAULT NULL", nullable=True, timestamp=True),
        Column("bpm", "float DEFAULT NULL", nullable=True),
    ),
)


class SchemaVersion(IntEnum):
    """
    Published online.db schema versions.

    Each version fixes the table set, the row filter, the default insert
    batch size and whether row counts are verified after copying.
    """

    V2 = 2
    V3 = 3

    @property
    def tables(self) -> Tuple[TableSpec, ...]:
        return _VERSIONS[self]["tables"]

    @property
    def where(self) -> str:
        return _VERSIONS[self]["where"]

    @property
    def default_batch_size(self) -> Optional[int]:
        return _VERSIONS[self]["batch_size"]

    @property
    def verify_counts(self) -> bool:
        return _VERSIONS[self]["verify"]


_VERSIONS: Dict[SchemaVersion, dict] = {
    # only "permanent" states: ranked, approved, loved
    SchemaVersion.V2: {
        "tables": (BEATMAPSETS_V2, BEATMAPS_V2),
        "where": "approved IN (1, 2, 4)",
        "batch_size": 1,
        "verify": True,
    },
    # 18 rows x 27 columns stays under SQLite's 999 bound parameters
    SchemaVersion.V3: {
        "tables": (BEATMAPS_V3,),
        "where": "approved > 0 AND deleted_at IS NULL",
        "batch_size": 18,
        "verify": True,
    },
}


def create_schema(conn: sqlite3.Connection, version: SchemaVersion) -> None:
    """
    Create the schema inside the online.db SQLite database.

    Args:
        conn: Open, empty SQLite connection
        version: Schema version to create

    Raises:
        sqlite3.Error: If any DDL statement fails
    """
    logger.debug(f"Creating schema version {version.value}")

    try:
        conn.execute("CREATE TABLE `schema_version` (`number` smallint unsigned NOT NULL)")
        conn.execute("INSERT INTO `schema_version` (`number`) VALUES (?)", (version.value,))

        for table in version.tables:
            conn.execute(table.create_table_sql())
            for statement in table.create_index_sql():
                conn.execute(statement)
            logger.debug(f"Created table {table.name} with {len(table.indexes)} indexes")

        conn.commit()
    except sqlite3.Error as e:
        logger.error(f"Failed to create schema version {version.value}: {e}")
        raise
