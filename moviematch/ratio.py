"""
Revenue-to-budget ratio for every row of a movie dataset.

The output is the input CSV with a ``ratio`` column appended. Rows whose
budget or revenue is missing, not an integer or zero are left out and counted.
"""

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from .logger import get_logger
from .readfile import parse_int


@dataclass
class RatioStats:
    output_path: str
    total_rows: int = 0
    parsed_rows: int = 0
    budget_revenue_errors: List[str] = field(default_factory=list)
    parse_errors: List[str] = field(default_factory=list)

    def summary(self, verbose: bool = False) -> str:
        lines = [
            f"A total of {self.parsed_rows} out of {self.total_rows} rows analysed and saved in "
            f"{self.output_path}. {len(self.parse_errors)} parse errors and "
            f"{len(self.budget_revenue_errors)} revenue/budget errors."
        ]
        if verbose:
            lines.append("Parse errors:")
            lines.extend(f"error {i}: {e}" for i, e in enumerate(self.parse_errors, 1))
            lines.append("Budget/Revenue errors:")
            lines.extend(f"error {i}: {e}" for i, e in enumerate(self.budget_revenue_errors, 1))
        else:
            lines.append("Run tool with -v flag to get verbose error outputs.")
        return "\n".join(lines) + "\n"


def _column_index(value: str, label: str) -> int:
    try:
        idx = int(value)
    except ValueError:
        raise ValueError(f"could not get {label} column index from {value!r}")
    if idx < 0:
        raise ValueError("revenue/budget column index must not be negative")
    return idx


def process_header(reader, writer, revenue_column: str, budget_column: str, no_header: bool) -> Tuple[int, int]:
    """Resolve the revenue and budget column positions, copying the header to the output."""
    if no_header:
        return _column_index(revenue_column, "revenue"), _column_index(budget_column, "budget")

    header = next(reader, None)
    if not header:
        raise ValueError("empty file")

    revenue_idx = budget_idx = None
    for i, col in enumerate(header):
        if col == revenue_column:
            revenue_idx = i
        elif col == budget_column:
            budget_idx = i
    if revenue_idx is None:
        raise ValueError(f"revenue column {revenue_column!r} not found in header")
    if budget_idx is None:
        raise ValueError(f"budget column {budget_column!r} not found in header")

    writer.writerow(header + ["ratio"])
    return revenue_idx, budget_idx


def process_rows(reader, writer, revenue_idx: int, budget_idx: int, stats: RatioStats) -> None:
    while True:
        try:
            record = next(reader)
        except StopIteration:
            break
        except csv.Error as e:
            stats.total_rows += 1
            stats.parse_errors.append(f"could not parse line at {reader.line_num}: {e}")
            continue
        stats.total_rows += 1
        line = stats.total_rows

        if len(record) <= revenue_idx or len(record) <= budget_idx:
            stats.budget_revenue_errors.append(f"insufficient columns at line {line}")
            continue
        try:
            revenue = parse_int(record[revenue_idx])
            if revenue is None:
                raise ValueError("empty revenue")
        except ValueError:
            stats.budget_revenue_errors.append(f"could not convert revenue {record[revenue_idx]} at line {line}")
            continue
        try:
            budget = parse_int(record[budget_idx])
            if budget is None:
                raise ValueError("empty budget")
        except ValueError:
            stats.budget_revenue_errors.append(f"could not convert budget {record[budget_idx]} at line {line}")
            continue
        if revenue == 0 or budget == 0:
            stats.budget_revenue_errors.append(f"revenue/budget zero at line {line}")
            continue

        writer.writerow(record + [f"{revenue / budget:f}"])
        stats.parsed_rows += 1


def compute_ratios(
    input_path: Path,
    output_path: Path,
    revenue_column: str = "revenue",
    budget_column: str = "budget",
    no_header: bool = False,
) -> RatioStats:
    """
    Write ``input_path`` with a revenue/budget ``ratio`` column to ``output_path``.

    Args:
        input_path: Movie dataset CSV
        output_path: Destination CSV
        revenue_column: Column name, or index when ``no_header`` is set
        budget_column: Column name, or index when ``no_header`` is set
        no_header: Data starts on the first row

    Raises:
        ValueError: If the revenue/budget columns cannot be resolved
    """
    logger = get_logger()
    stats = RatioStats(output_path=str(output_path))

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with input_path.open("r", encoding="utf-8", newline="") as fin, \
            output_path.open("w", encoding="utf-8", newline="") as fout:
        reader = csv.reader(fin)
        writer = csv.writer(fout)
        revenue_idx, budget_idx = process_header(reader, writer, revenue_column, budget_column, no_header)
        process_rows(reader, writer, revenue_idx, budget_idx, stats)

    logger.info(
        "Ratio computation complete",
        input=str(input_path),
        output=str(output_path),
        parsed=stats.parsed_rows,
        total=stats.total_rows,
    )
    return stats
