"""
Unit Tests for Row Translation
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from onlinedb.schema import BEATMAPS_V2, BEATMAPS_V3
from onlinedb.transform import RowTransformer, format_timestamp
from onlinedb.validator import NullValueError

from conftest import make_beatmap


class TestFormatTimestamp:
    """Tests for timestamp normalization."""

    def test_naive_datetime(self):
        assert format_timestamp(datetime(2021, 3, 4, 5, 6, 7, 891)) == "2021-03-04 05:06:07"

    def test_aware_datetime_converted_to_utc(self):
        value = datetime(2021, 3, 4, 14, 6, 7, tzinfo=timezone(timedelta(hours=9)))
        assert format_timestamp(value) == "2021-03-04 05:06:07"

    def test_date(self):
        assert format_timestamp(date(2021, 3, 4)) == "2021-03-04 00:00:00"

    def test_none_and_text_pass_through(self):
        assert format_timestamp(None) is None
        assert format_timestamp("2021-03-04 05:06:07") == "2021-03-04 05:06:07"

    def test_rejects_other_types(self):
        with pytest.raises(TypeError):
            format_timestamp(1614834367)


class TestRowTransformer:
    """Tests for RowTransformer."""

    def test_values_follow_destination_order(self):
        record = make_beatmap(7, last_update=datetime(2021, 3, 4, 5, 6, 7))
        # shuffle key order to prove binding is by name
        shuffled = dict(reversed(list(record.items())))

        row = RowTransformer(BEATMAPS_V2).to_row(shuffled)

        assert row == (
            7,
            record["beatmapset_id"],
            2,
            record["filename"],
            record["checksum"],
            1,
            "2021-03-04 05:06:07",
        )

    def test_nulls_preserved(self):
        record = make_beatmap(
            1, beatmapset_id=None, filename=None, checksum=None, bpm=None,
            youtube_preview=None, deleted_at=None,
        )
        row = dict(zip(BEATMAPS_V3.column_names, RowTransformer(BEATMAPS_V3).to_row(record)))

        for name in ("beatmapset_id", "filename", "checksum", "bpm", "youtube_preview", "deleted_at"):
            assert row[name] is None

    @pytest.mark.parametrize("column", ["user_id", "last_update", "version"])
    def test_null_in_required_column_rejected(self, column):
        record = make_beatmap(12, **{column: None})

        with pytest.raises(NullValueError) as exc_info:
            RowTransformer(BEATMAPS_V3).to_row(record)

        error = exc_info.value
        assert (error.table, error.column, error.key) == ("osu_beatmaps", column, 12)

    def test_nullable_flags_match_ddl(self):
        for column in BEATMAPS_V3.columns:
            assert column.nullable == ("NOT NULL" not in column.ddl), column.name

    def test_driver_types_converted(self):
        record = make_beatmap(
            1,
            orphaned=True,
            bpm=Decimal("174.5"),
            checksum=b"d41d8cd98f00b204e9800998ecf8427e",
            deleted_at=datetime(2022, 1, 1),
        )
        row = dict(zip(BEATMAPS_V3.column_names, RowTransformer(BEATMAPS_V3).to_row(record)))

        assert row["orphaned"] == 1 and type(row["orphaned"]) is int
        assert row["bpm"] == 174.5 and type(row["bpm"]) is float
        assert row["checksum"] == "d41d8cd98f00b204e9800998ecf8427e"
        assert row["deleted_at"] == "2022-01-01 00:00:00"

    def test_extra_source_columns_ignored(self):
        row = RowTransformer(BEATMAPS_V3).to_row(make_beatmap(1))
        assert len(row) == 27
        assert "not for publishing" not in row

    def test_transform_batch(self):
        rows = RowTransformer(BEATMAPS_V2).transform([make_beatmap(i) for i in range(5)])
        assert [row[0] for row in rows] == [0, 1, 2, 3, 4]
