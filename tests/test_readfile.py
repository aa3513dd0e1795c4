"""
Tests for the dataset readers.
"""

import math
from datetime import date

import pytest

from moviematch.readfile import (
    ReadStats,
    catalog_records,
    credit_records,
    decode_names,
    format_float,
    parse_int,
    read_combined,
    read_movies_credits,
    read_movies_metadata,
    read_movies_ratio,
    read_ratings,
)
from moviematch.schema import METADATA_COMBINE_COLUMNS


class TestDecodeNames:
    """Test name extraction from list literals."""

    def test_single_quoted_records(self):
        value = "[{'name': 'Pixar Animation Studios', 'id': 3}, {'name': 'Disney', 'id': 2}]"
        assert decode_names(value) == ["Pixar Animation Studios", "Disney"]

    def test_none_values(self):
        value = "[{'cast_id': 14, 'name': 'Tom Hanks', 'profile_path': None}]"
        assert decode_names(value) == ["Tom Hanks"]

    def test_empty_list(self):
        assert decode_names("[]") == []
        assert decode_names("") == []

    def test_stops_at_first_bad_item(self):
        """An apostrophe inside a name breaks decoding; earlier names are kept."""
        value = "[{'name': 'Tom Hanks'}, {'name': 'Tim O'Brien'}, {'name': 'Joan Cusack'}]"
        assert decode_names(value) == ["Tom Hanks"]

    def test_records_without_name(self):
        assert decode_names("[{'id': 1}, {'name': 'Tim Allen'}]") == ["Tim Allen"]


class TestParsing:
    """Test cell parsers."""

    def test_parse_int(self):
        assert parse_int("30000000") == 30000000
        assert parse_int(" 12.0 ") == 12
        assert parse_int("") is None

    def test_parse_int_rejects_fraction(self):
        with pytest.raises(ValueError):
            parse_int("1.5")
        with pytest.raises(ValueError):
            parse_int("abc")

    def test_format_float(self):
        assert format_float(0.5) == "0.500000"
        assert format_float(None) == "NaN"
        assert format_float(math.nan) == "NaN"


class TestReadCsv:
    """Test header handling and row accounting."""

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("")
        with pytest.raises(ValueError, match="Empty file"):
            read_movies_credits(path, ReadStats(str(path)))

    def test_missing_column(self, tmp_path):
        path = tmp_path / "credits.csv"
        path.write_text("cast,id\n[],1\n")
        with pytest.raises(ValueError, match="Missing required column: crew"):
            read_movies_credits(path, ReadStats(str(path)))

    def test_missing_file(self, tmp_path):
        path = tmp_path / "missing.csv"
        with pytest.raises(OSError):
            read_movies_credits(path, ReadStats(str(path)))

    def test_short_row_recorded(self, tmp_path):
        path = tmp_path / "credits.csv"
        path.write_text("cast,crew,id\n[],[],1\n[]\n[],[],3\n")
        stats = ReadStats(str(path))

        credits = read_movies_credits(path, stats)

        assert sorted(credits) == ["1", "3"]
        assert stats.total_rows == 4
        assert list(stats.row_errors) == [2]
        assert "columns" in stats.row_errors[2]

    def test_summary(self, tmp_path):
        stats = ReadStats("ratings.csv", total_rows=5, row_errors={3: "bad rating"})
        assert stats.summary().splitlines() == [
            "A total of 5 rows were parsed from ratings.csv. 1 errors.",
            "Run tool with -v flag to get verbose error outputs.",
        ]
        assert "error on row 3: bad rating" in stats.summary(verbose=True)


class TestMetadata:
    """Test movies_metadata.csv reading."""

    def test_read_for_matching(self, metadata_file):
        stats = ReadStats(str(metadata_file))
        metadata = read_movies_metadata(metadata_file, stats)

        assert sorted(metadata) == ["100", "862", "863"]
        toy = metadata["862"]
        assert toy.title == "Toy Story"
        assert toy.production == ["Pixar Animation Studios"]
        assert toy.release_date == date(1995, 10, 30)
        assert toy.budget is None
        assert stats.row_errors == {}

    def test_read_for_combine(self, metadata_file):
        stats = ReadStats(str(metadata_file))
        metadata = read_movies_metadata(metadata_file, stats, columns=METADATA_COMBINE_COLUMNS)

        assert metadata["862"].budget == 30000000
        assert metadata["862"].revenue == 373554033
        assert metadata["100"].budget is None
        assert metadata["100"].release_date is None

    def test_bad_date_recorded(self, tmp_path):
        path = tmp_path / "movies_metadata.csv"
        path.write_text(
            "id,title,original_title,production_companies,release_date\n"
            "1,A,A,[],1995-13-45\n"
            "2,B,B,[],2001-01-01\n"
        )
        stats = ReadStats(str(path))

        metadata = read_movies_metadata(path, stats)

        assert list(metadata) == ["2"]
        assert 1 in stats.row_errors

    def test_catalog_records(self, metadata_file):
        metadata = read_movies_metadata(metadata_file, ReadStats(str(metadata_file)))
        records = catalog_records(metadata)

        toy = records["862"]
        assert toy.title == "toy story"
        assert toy.alternate_title == "toy story"
        assert toy.tokens == ("pixar animation studios", "1995")
        assert records["100"].tokens == ()


class TestCredits:
    """Test credits.csv reading."""

    def test_cast_then_crew(self, credits_file):
        credits = read_movies_credits(credits_file, ReadStats(str(credits_file)))
        records = credit_records(credits)

        assert records["862"].tokens == ("tom hanks", "tim allen", "don rickles")
        assert records["863"].tokens == ("tom hanks", "tim allen", "joan cusack")


class TestRatings:
    """Test ratings aggregation."""

    def test_duplicate_user_rejected(self, ratings_file):
        stats = ReadStats(str(ratings_file))
        ratings = read_ratings(ratings_file, stats)

        assert ratings["862"].number_of_ratings == 2
        assert ratings["862"].average == 4.5
        assert ratings["863"].average == 3.5
        assert list(stats.row_errors) == [3]
        assert "already seen" in stats.row_errors[3]

    def test_bad_rating_recorded(self, tmp_path):
        path = tmp_path / "ratings.csv"
        path.write_text("userId,movieId,rating\n1,5,good\n2,5,2.0\n")
        stats = ReadStats(str(path))

        ratings = read_ratings(path, stats)

        assert ratings["5"].average == 2.0
        assert 1 in stats.row_errors


class TestRatioAndCombined:
    """Test reading the outputs of the ratio and combine steps."""

    def test_read_ratio(self, tmp_path):
        path = tmp_path / "ratio.csv"
        path.write_text("id,budget,revenue,ratio\n862,30000000,373554033,12.451801\n863,1,2,\n")
        ratios = read_movies_ratio(path, ReadStats(str(path)))

        assert ratios["862"] == pytest.approx(12.451801)
        assert math.isnan(ratios["863"])

    def test_read_combined(self, tmp_path):
        path = tmp_path / "combined.csv"
        path.write_text(
            "id,title,url,abstract,score,budget,year,revenue,ratio,rating,production_companies\n"
            "862,Toy Story,https://x,abs,1.000000,30000000,1995-10-30,373554033,12.451801,4.500000,Pixar;Disney\n"
            "100,Anarchism,https://y,abs,0.140625,,,,NaN,NaN,\n"
        )
        stats = ReadStats(str(path))
        rows = read_combined(path, stats)

        toy = rows["862"]
        assert toy.movie_id == 862
        assert toy.year == date(1995, 10, 30)
        assert toy.production_companies == ["Pixar", "Disney"]
        assert toy.rating == 4.5

        anarchism = rows["100"]
        assert anarchism.budget is None
        assert anarchism.year is None
        assert math.isnan(anarchism.ratio)
        assert anarchism.production_companies == []
        assert stats.row_errors == {}
