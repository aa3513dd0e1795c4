"""
Tests for header validation.
"""

from moviematch.schema import CREDITS_COLUMNS, column_indices, validate_header


class TestValidateHeader:
    """Test required column checks."""

    def test_valid_header(self):
        assert validate_header(["cast", "crew", "id"], CREDITS_COLUMNS) == []

    def test_missing_column(self):
        errors = validate_header(["cast", "id"], CREDITS_COLUMNS)
        assert errors == ["Missing required column: crew"]

    def test_empty_header(self):
        assert validate_header([], CREDITS_COLUMNS) == ["Header row is empty"]

    def test_whitespace_ignored(self):
        assert validate_header([" cast", "crew ", "id"], CREDITS_COLUMNS) == []


class TestColumnIndices:
    """Test column index resolution."""

    def test_subset_of_columns(self):
        assert column_indices(["id", "revenue", "budget", "date"], ["id", "date"]) == {"id": 0, "date": 3}

    def test_all_columns(self):
        indices = column_indices(["id", "revenue", "budget", "date"], ["id", "date", "budget", "revenue"])
        assert indices == {"id": 0, "date": 3, "budget": 2, "revenue": 1}
