from typing import Dict, List, Sequence

METADATA_MATCH_COLUMNS = ["id", "title", "original_title", "production_companies", "release_date"]
METADATA_COMBINE_COLUMNS = [
    "id",
    "title",
    "budget",
    "revenue",
    "release_date",
    "production_companies",
    "original_title",
]
CREDITS_COLUMNS = ["id", "cast", "crew"]
RATIO_COLUMNS = ["id", "ratio"]
MATCHES_COLUMNS = ["id", "abstract", "url", "score"]
RATINGS_COLUMNS = ["movieId", "userId", "rating"]
COMBINED_COLUMNS = [
    "id",
    "title",
    "url",
    "abstract",
    "score",
    "budget",
    "year",
    "revenue",
    "ratio",
    "rating",
    "production_companies",
]
LOAD_COLUMNS = [
    "id",
    "title",
    "year",
    "rating",
    "budget",
    "revenue",
    "ratio",
    "production_companies",
    "url",
    "abstract",
]


def column_indices(header: Sequence[str], columns: Sequence[str]) -> Dict[str, int]:
    """Map each requested column to its position in ``header`` (last one wins on duplicates)."""
    wanted = set(columns)
    indices: Dict[str, int] = {}
    for i, name in enumerate(header):
        name = name.strip()
        if name in wanted:
            indices[name] = i
    return indices


def validate_header(header: Sequence[str], columns: Sequence[str]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    A header is valid when every requested column is present.
    """
    errors: List[str] = []
    if not header:
        errors.append("Header row is empty")
        return errors

    present = {h.strip() for h in header}
    for c in columns:
        if c not in present:
            errors.append(f"Missing required column: {c}")
    return errors
