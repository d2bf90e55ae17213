"""
Pytest configuration and fixtures for all tests.

A SQLite file stands in for the osu! MySQL database; the generator only
issues plain SELECT/COUNT queries against the source, which SQLite runs
unchanged.
"""
import sqlite3
from contextlib import contextmanager

import pytest

SOURCE_BEATMAPS_DDL = """
CREATE TABLE osu_beatmaps (
    beatmap_id INTEGER PRIMARY KEY,
    beatmapset_id INTEGER,
    user_id INTEGER NOT NULL,
    filename TEXT,
    checksum TEXT,
    version TEXT NOT NULL,
    total_length INTEGER NOT NULL,
    hit_length INTEGER NOT NULL,
    countTotal INTEGER NOT NULL,
    countNormal INTEGER NOT NULL,
    countSlider INTEGER NOT NULL,
    countSpinner INTEGER NOT NULL,
    diff_drain REAL NOT NULL,
    diff_size REAL NOT NULL,
    diff_overall REAL NOT NULL,
    diff_approach REAL NOT NULL,
    playmode INTEGER NOT NULL,
    approved INTEGER NOT NULL,
    last_update TEXT NOT NULL,
    difficultyrating REAL NOT NULL,
    playcount INTEGER NOT NULL,
    passcount INTEGER NOT NULL,
    orphaned INTEGER NOT NULL,
    youtube_preview TEXT,
    score_version INTEGER NOT NULL,
    deleted_at TEXT,
    bpm REAL,
    internal_notes TEXT
)
"""

SOURCE_BEATMAPSETS_DDL = """
CREATE TABLE osu_beatmapsets (
    beatmapset_id INTEGER PRIMARY KEY,
    user_id INTEGER NOT NULL,
    approved INTEGER NOT NULL,
    approved_date TEXT,
    submit_date TEXT NOT NULL
)
"""


def make_beatmap(beatmap_id, **overrides):
    """Build a source beatmap row with realistic defaults."""
    row = {
        "beatmap_id": beatmap_id,
        "beatmapset_id": 1000 + beatmap_id // 4,
        "user_id": 2,
        "filename": f"artist - title (mapper) [diff {beatmap_id}].osu",
        "checksum": f"{beatmap_id:032x}",
        "version": f"Insane {beatmap_id}",
        "total_length": 180,
        "hit_length": 170,
        "countTotal": 600,
        "countNormal": 400,
        "countSlider": 195,
        "countSpinner": 5,
        "diff_drain": 5.0,
        "diff_size": 4.0,
        "diff_overall": 8.0,
        "diff_approach": 9.0,
        "playmode": 0,
        "approved": 1,
        "last_update": "2021-03-04 05:06:07",
        "difficultyrating": 5.25,
        "playcount": 1234,
        "passcount": 321,
        "orphaned": 0,
        "youtube_preview": None,
        "score_version": 1,
        "deleted_at": None,
        "bpm": 180.0,
        "internal_notes": "not for publishing",
    }
    row.update(overrides)
    return row


def make_beatmapset(beatmapset_id, **overrides):
    row = {
        "beatmapset_id": beatmapset_id,
        "user_id": 2,
        "approved": 1,
        "approved_date": "2020-01-02 03:04:05",
        "submit_date": "2019-12-01 00:00:00",
    }
    row.update(overrides)
    return row


def insert_rows(conn, table, rows):
    for row in rows:
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        conn.execute(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", list(row.values()))
    conn.commit()


@pytest.fixture
def source_path(tmp_path):
    """Path to an empty source database with the osu! tables created."""
    path = tmp_path / "source.db"
    conn = sqlite3.connect(path)
    conn.execute(SOURCE_BEATMAPS_DDL)
    conn.execute(SOURCE_BEATMAPSETS_DDL)
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def source(source_path):
    """Open connection to the source database."""
    conn = sqlite3.connect(source_path)
    yield conn
    conn.close()


@pytest.fixture
def destination(tmp_path):
    """Open connection to an empty destination database."""
    conn = sqlite3.connect(tmp_path / "online.db")
    yield conn
    conn.close()


@pytest.fixture
def source_factory(source_path):
    """Stand-in for db.connection.mysql_connection."""
    @contextmanager
    def factory(settings):
        conn = sqlite3.connect(source_path)
        try:
            yield conn
        finally:
            conn.close()

    return factory


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """Settings pointing at a temporary output path with publishing disabled."""
    from config.settings import Settings

    for name in (
        "DB_HOST", "DB_PORT", "DB_NAME", "DB_USER", "DB_PASSWORD", "DB_CONNECT_TIMEOUT",
        "SCHEMA_VERSION", "BATCH_SIZE", "S3_KEY", "S3_SECRET", "S3_PROXY_CACHE_PURGE_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SQLITE_PATH", str(tmp_path / "out" / "online.db"))
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "onlinedb.log"))
    return Settings()
