import csv
from pathlib import Path
from typing import Dict, Any

from .models import MatchResult
from .readfile import ReadStats, row_values, parse_float, read_csv
from .schema import MATCHES_COLUMNS

OUTPUT_HEADER = ["id", "url", "score", "abstract"]


def update_match(results: Dict[str, MatchResult], movie_id: str, candidate: MatchResult) -> Dict[str, Any]:
    """Keep ``candidate`` only if it beats the stored score for ``movie_id``."""
    current = results.get(movie_id)
    if current is None:
        results[movie_id] = candidate
        return {"status": "new"}
    if candidate.score > current.score:
        results[movie_id] = candidate
        return {"status": "updated", "previous_score": current.score}
    return {"status": "kept", "score": current.score}


def save_matches(path: Path, results: Dict[str, MatchResult]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(OUTPUT_HEADER)
        for movie_id, res in sorted(results.items()):
            writer.writerow([movie_id, res.url, f"{res.score:f}", res.abstract])


def load_matches(path: Path, stats: ReadStats) -> Dict[str, MatchResult]:
    results: Dict[str, MatchResult] = {}

    def parse_row(row, indices, stats):
        values = row_values(row, indices, stats)
        if values is None:
            return
        try:
            score = parse_float(values["score"])
        except ValueError:
            stats.add_error(f"column has value {values['score']!r} which cannot be used as a float for score")
            return
        movie_id = values["id"].strip()
        if movie_id:
            results[movie_id] = MatchResult(score=score, url=values["url"], abstract=values["abstract"])

    read_csv(path, stats, MATCHES_COLUMNS, parse_row)
    return results
