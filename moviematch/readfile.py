"""
Tabular readers for the movie datasets.

Every reader takes a CSV file whose first row holds the column names, picks
the columns it needs by name and parses each data row with a row callback.
Row-level problems are recorded in ``ReadStats.row_errors`` and the row is
skipped; a missing file, an empty file or a missing column is fatal.
"""

import csv
import json
import math
import sys
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from .logger import get_logger
from .models import CatalogRecord, CreditRecord
from .normalize import normalize_text, normalize_tokens
from .schema import (
    CREDITS_COLUMNS,
    LOAD_COLUMNS,
    METADATA_MATCH_COLUMNS,
    RATINGS_COLUMNS,
    RATIO_COLUMNS,
    column_indices,
    validate_header,
)

# Cast and crew cells are far larger than the csv module's default limit.
csv.field_size_limit(min(sys.maxsize, 2**31 - 1))


@dataclass
class ReadStats:
    """Row counters and per-row errors for one input file. Each row keeps only its first error."""

    input_file: str
    total_rows: int = 0
    row_errors: Dict[int, str] = field(default_factory=dict)

    def add_error(self, message: str) -> None:
        self.row_errors.setdefault(self.total_rows, message)

    def summary(self, verbose: bool = False) -> str:
        lines = [
            f"A total of {self.total_rows} rows were parsed from {self.input_file}. "
            f"{len(self.row_errors)} errors."
        ]
        if verbose:
            lines.append("Parse errors:")
            for row, err in sorted(self.row_errors.items()):
                lines.append(f"error on row {row}: {err}")
        else:
            lines.append("Run tool with -v flag to get verbose error outputs.")
        return "\n".join(lines) + "\n"


ParseRowFn = Callable[[List[str], Dict[str, int], ReadStats], None]


def _next_row(reader, stats: ReadStats):
    """Return (row, ok). ``row`` is None at end of file; ``ok`` is False for an unparseable row."""
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return None, True
        except csv.Error as e:
            stats.add_error(f"could not parse line at {reader.line_num}: {e}")
            return [], False
        if row:
            return row, True


def read_csv(
    path: Path,
    stats: ReadStats,
    column_names: Sequence[str],
    parse_row: ParseRowFn,
) -> None:
    """
    Read a CSV file row by row.

    Args:
        path: CSV file with a header row
        stats: Collects row counts and row errors
        column_names: Columns the row callback needs; all must be in the header
        parse_row: Called with (row, indices, stats) for each parseable data row

    Raises:
        OSError: If the file cannot be opened
        ValueError: If the file is empty or a requested column is missing
    """
    logger = get_logger()
    logger.info(f"Reading columns {list(column_names)} from file {path}")

    with Path(path).open("r", encoding="utf-8", newline="") as f:
        reader = csv.reader(f)
        header, _ = _next_row(reader, stats)
        if not header:
            raise ValueError(f"Empty file: {path}")
        stats.total_rows += 1

        errors = validate_header(header, column_names)
        if errors:
            raise ValueError(f"{path}: {'; '.join(errors)}")
        indices = column_indices(header, column_names)

        while True:
            row, ok = _next_row(reader, stats)
            if row is None:
                break
            if ok:
                parse_row(row, indices, stats)
            stats.total_rows += 1


def row_values(row: List[str], indices: Dict[str, int], stats: ReadStats) -> Optional[Dict[str, str]]:
    values = {}
    for name, idx in indices.items():
        if idx >= len(row):
            stats.add_error(f"row has {len(row)} columns when at least {idx + 1} is expected")
            return None
        values[name] = row[idx]
    return values


def decode_names(value: str) -> List[str]:
    """
    Return the ``name`` entries of a list of records written as a Python literal.

    The source files use single quotes and ``None``; both are replaced before
    decoding. Items are decoded one at a time and extraction stops at the first
    item that still fails, keeping the names read so far.
    """
    text = (value or "").replace("'", '"').replace("None", '""').strip()
    if not text.startswith("["):
        return []

    decoder = json.JSONDecoder()
    names: List[str] = []
    pos = 1
    while pos < len(text):
        while pos < len(text) and text[pos] in " ,\t\r\n":
            pos += 1
        if pos >= len(text) or text[pos] == "]":
            break
        try:
            item, pos = decoder.raw_decode(text, pos)
        except json.JSONDecodeError:
            break
        if isinstance(item, dict):
            name = item.get("name")
            if isinstance(name, str) and name:
                names.append(name)
    return names


def parse_int(value: str) -> Optional[int]:
    """Parse an integer cell; empty means missing. Integral floats such as ``"12.0"`` are accepted."""
    value = value.strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        f = float(value)
        if not f.is_integer():
            raise ValueError(f"{value!r} is not an integer")
        return int(f)


def parse_float(value: str) -> float:
    """Parse a float cell; empty and ``NaN`` both mean missing (NaN)."""
    value = value.strip()
    if not value:
        return math.nan
    return float(value)


def parse_date(value: str) -> Optional[date]:
    value = value.strip()
    if not value:
        return None
    return datetime.strptime(value, "%Y-%m-%d").date()


def format_float(value: Optional[float]) -> str:
    if value is None or math.isnan(value):
        return "NaN"
    return f"{value:f}"


@dataclass
class MovieMetadata:
    title: str = ""
    original_title: str = ""
    production: List[str] = field(default_factory=list)
    release_date: Optional[date] = None
    budget: Optional[int] = None
    revenue: Optional[int] = None


def read_movies_metadata(
    path: Path,
    stats: ReadStats,
    columns: Sequence[str] = METADATA_MATCH_COLUMNS,
) -> Dict[str, MovieMetadata]:
    """Read ``movies_metadata.csv`` keyed by movie id."""
    res: Dict[str, MovieMetadata] = {}

    def parse_row(row, indices, stats):
        values = row_values(row, indices, stats)
        if values is None:
            return
        val = MovieMetadata(
            title=values.get("title", ""),
            original_title=values.get("original_title", ""),
            production=decode_names(values.get("production_companies", "")),
        )
        for name, parser in (("budget", parse_int), ("revenue", parse_int), ("release_date", parse_date)):
            if name not in values:
                continue
            try:
                setattr(val, name, parser(values[name]))
            except ValueError:
                stats.add_error(f"column has value {values[name]!r} which cannot be converted for {name}")
                return

        movie_id = values.get("id", "").strip()
        if movie_id:
            res[movie_id] = val

    read_csv(path, stats, columns, parse_row)
    return res


@dataclass
class MovieCredits:
    cast: List[str] = field(default_factory=list)
    crew: List[str] = field(default_factory=list)


def read_movies_credits(path: Path, stats: ReadStats) -> Dict[str, MovieCredits]:
    """Read ``credits.csv`` keyed by movie id."""
    res: Dict[str, MovieCredits] = {}

    def parse_row(row, indices, stats):
        values = row_values(row, indices, stats)
        if values is None:
            return
        movie_id = values["id"].strip()
        if movie_id:
            res[movie_id] = MovieCredits(
                cast=decode_names(values["cast"]),
                crew=decode_names(values["crew"]),
            )

    read_csv(path, stats, CREDITS_COLUMNS, parse_row)
    return res


def read_movies_ratio(path: Path, stats: ReadStats) -> Dict[str, float]:
    """Read the output of the ratio tool keyed by movie id."""
    res: Dict[str, float] = {}

    def parse_row(row, indices, stats):
        values = row_values(row, indices, stats)
        if values is None:
            return
        try:
            ratio = parse_float(values["ratio"])
        except ValueError:
            stats.add_error(f"column has value {values['ratio']!r} which cannot be converted to a float for ratio")
            return
        movie_id = values["id"].strip()
        if movie_id:
            res[movie_id] = ratio

    read_csv(path, stats, RATIO_COLUMNS, parse_row)
    return res


@dataclass
class RatingInfo:
    cumulative_rating: float = 0.0
    number_of_ratings: int = 0
    seen_users: set = field(default_factory=set)

    @property
    def average(self) -> float:
        if self.number_of_ratings == 0:
            return math.nan
        return self.cumulative_rating / self.number_of_ratings


def read_ratings(path: Path, stats: ReadStats) -> Dict[str, RatingInfo]:
    """Read ``ratings.csv`` and aggregate ratings per movie. A user counts once per movie."""
    res: Dict[str, RatingInfo] = {}

    def parse_row(row, indices, stats):
        values = row_values(row, indices, stats)
        if values is None:
            return
        try:
            rating = float(values["rating"])
        except ValueError:
            stats.add_error(f"column has value {values['rating']!r} which cannot be converted to a float for ratings")
            return

        movie_id = values["movieId"].strip()
        user_id = values["userId"].strip()
        if not user_id:
            stats.add_error("userID is empty")
            return
        if not movie_id:
            return

        info = res.setdefault(movie_id, RatingInfo())
        if user_id in info.seen_users:
            stats.add_error(f"userID {user_id!r} already seen for id {movie_id!r}")
            return
        info.seen_users.add(user_id)
        info.number_of_ratings += 1
        info.cumulative_rating += rating

    read_csv(path, stats, RATINGS_COLUMNS, parse_row)
    return res


@dataclass
class CombinedRow:
    movie_id: int
    title: str
    year: Optional[date]
    rating: float
    budget: Optional[int]
    revenue: Optional[int]
    ratio: float
    production_companies: List[str]
    url: str
    abstract: str


def read_combined(path: Path, stats: ReadStats) -> Dict[str, CombinedRow]:
    """Read the output of the combine step keyed by movie id."""
    res: Dict[str, CombinedRow] = {}

    def parse_row(row, indices, stats):
        values = row_values(row, indices, stats)
        if values is None:
            return
        try:
            combined = CombinedRow(
                movie_id=int(values["id"]),
                title=values["title"],
                year=parse_date(values["year"]),
                rating=parse_float(values["rating"]),
                budget=parse_int(values["budget"]),
                revenue=parse_int(values["revenue"]),
                ratio=parse_float(values["ratio"]),
                production_companies=[p for p in values["production_companies"].split(";") if p],
                url=values["url"],
                abstract=values["abstract"],
            )
        except ValueError as e:
            stats.add_error(f"could not convert row: {e}")
            return
        res[values["id"]] = combined

    read_csv(path, stats, LOAD_COLUMNS, parse_row)
    return res


def catalog_records(metadata: Dict[str, MovieMetadata]) -> Dict[str, CatalogRecord]:
    """Build normalized catalog records: company names then the release year as tokens."""
    records = {}
    for movie_id, md in metadata.items():
        tokens = normalize_tokens(md.production)
        if md.release_date is not None:
            tokens.append(f"{md.release_date.year}")
        records[movie_id] = CatalogRecord(
            movie_id=movie_id,
            title=normalize_text(md.title),
            alternate_title=normalize_text(md.original_title),
            tokens=tuple(tokens),
        )
    return records


def credit_records(credits: Dict[str, MovieCredits]) -> Dict[str, CreditRecord]:
    return {
        movie_id: CreditRecord(movie_id=movie_id, tokens=tuple(normalize_tokens(c.cast + c.crew)))
        for movie_id, c in credits.items()
    }
