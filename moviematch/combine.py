"""
Join matched movies with their metadata, ratio and average rating.

Only catalog records that received a match are written.
"""

import csv
from pathlib import Path
from typing import List

from .logger import get_logger
from .readfile import (
    ReadStats,
    format_float,
    read_movies_metadata,
    read_movies_ratio,
    read_ratings,
)
from .schema import COMBINED_COLUMNS, METADATA_COMBINE_COLUMNS
from .storage import load_matches


def combine(
    metadata_path: Path,
    ratio_path: Path,
    matches_path: Path,
    ratings_path: Path,
    output_path: Path,
) -> List[ReadStats]:
    """
    Write one combined row per matched movie to ``output_path``.

    Returns:
        The read statistics of the four inputs, in argument order
    """
    logger = get_logger()

    metadata_stats = ReadStats(str(metadata_path))
    metadata = read_movies_metadata(metadata_path, metadata_stats, columns=METADATA_COMBINE_COLUMNS)

    ratio_stats = ReadStats(str(ratio_path))
    ratios = read_movies_ratio(ratio_path, ratio_stats)

    matches_stats = ReadStats(str(matches_path))
    matches = load_matches(matches_path, matches_stats)

    ratings_stats = ReadStats(str(ratings_path))
    ratings = read_ratings(ratings_path, ratings_stats)

    written = 0
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(COMBINED_COLUMNS)
        for movie_id, info in sorted(metadata.items()):
            match = matches.get(movie_id)
            if match is None:
                continue
            rating = ratings.get(movie_id)
            writer.writerow([
                movie_id,
                info.title,
                match.url,
                match.abstract,
                format_float(match.score),
                "" if info.budget is None else info.budget,
                info.release_date.isoformat() if info.release_date else "",
                "" if info.revenue is None else info.revenue,
                format_float(ratios.get(movie_id)),
                format_float(rating.average if rating else None),
                ";".join(info.production),
            ])
            written += 1

    logger.info("Combine complete", output=str(output_path), rows=written)
    return [metadata_stats, ratio_stats, matches_stats, ratings_stats]
