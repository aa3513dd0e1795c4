import argparse
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .combine import combine
from .database import TopMovie, get_session, load_top_movies
from .env import env_int, env_str, load_env
from .features import build_features
from .logger import LOG_LEVELS, get_logger
from .matcher import match_corpus
from .ratio import compute_ratios
from .readfile import (
    ReadStats,
    catalog_records,
    credit_records,
    read_combined,
    read_movies_credits,
    read_movies_metadata,
)
from .storage import save_matches


def _require_file(path: Path) -> None:
    if not path.exists():
        raise SystemExit(f"Input file not found: {path}")


def cmd_match(args: argparse.Namespace) -> None:
    wiki_path = Path(args.wiki)
    metadata_path = Path(args.metadata)
    credits_path = Path(args.credits)
    output_path = Path(args.output)
    for p in (wiki_path, metadata_path, credits_path):
        _require_file(p)

    logger = get_logger()
    try:
        metadata_stats = ReadStats(str(metadata_path))
        metadata = read_movies_metadata(metadata_path, metadata_stats)
        print(metadata_stats.summary(args.verbose), end="")

        credits_stats = ReadStats(str(credits_path))
        credits = read_movies_credits(credits_path, credits_stats)
        print(credits_stats.summary(args.verbose), end="")

        features = build_features(catalog_records(metadata), credit_records(credits))

        def checkpoint(results):
            save_matches(output_path, results)
            print(f"{len(results)} films matched")

        results = match_corpus(
            wiki_path,
            features,
            queue_size=args.queue_size,
            candidate_queue_size=env_int("MOVIEMATCH_CANDIDATE_QUEUE_SIZE"),
            checkpoint=checkpoint,
            checkpoint_every=args.checkpoint_every,
        )
    except ValueError as e:
        raise SystemExit(str(e))

    save_matches(output_path, results)
    logger.log_metrics_summary()
    print(f"Done. {len(results)} films matched. Results saved in {output_path}")


def cmd_ratio(args: argparse.Namespace) -> None:
    input_path = Path(args.dataset)
    _require_file(input_path)
    try:
        stats = compute_ratios(
            input_path,
            Path(args.output),
            revenue_column=args.revenue_column,
            budget_column=args.budget_column,
            no_header=args.no_header,
        )
    except ValueError as e:
        raise SystemExit(f"could not get column indices for revenue/budget: {e}")
    print(stats.summary(args.verbose), end="")


def cmd_combine(args: argparse.Namespace) -> None:
    paths = [Path(args.metadata), Path(args.ratio), Path(args.matches), Path(args.ratings)]
    for p in paths:
        _require_file(p)
    try:
        all_stats = combine(*paths, Path(args.output))
    except ValueError as e:
        raise SystemExit(str(e))
    for stats in all_stats:
        print(stats.summary(args.verbose), end="")
    print(f"Combined data saved in {args.output}")


def cmd_load(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    _require_file(input_path)
    stats = ReadStats(str(input_path))
    try:
        rows = read_combined(input_path, stats)
    except ValueError as e:
        raise SystemExit(str(e))
    print(stats.summary(args.verbose), end="")

    try:
        inserted = load_top_movies(rows.values(), args.db, limit=args.limit)
    except SQLAlchemyError as e:
        raise SystemExit(f"could not load {input_path} into {args.db}: {e}")
    print(f"Loaded {inserted} movies into {args.db}")


def cmd_list(args: argparse.Namespace) -> None:
    if "://" not in args.db and not Path(args.db).exists():
        print(f"Database not found: {args.db}")
        return
    session = get_session(args.db)
    try:
        movies = session.query(TopMovie).order_by(TopMovie.ratio.desc()).limit(args.limit).all()
    finally:
        session.close()
    if not movies:
        print("No movies in database.")
        return
    print(f"Top {len(movies)} movies in {args.db}:\n")
    for m in movies:
        print(f"ID: {m.id}")
        print(f"  Title: {m.title}")
        print(f"  Year: {m.year}")
        print(f"  Ratio: {m.ratio}")
        print(f"  Rating: {m.rating}")
        print(f"  URL: {m.url}")
        print()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="moviematch", description="A tool for deriving movie analytics")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("-v", "--verbose", action="store_true", help="Output verbose row errors")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=env_str("MOVIEMATCH_LOG_LEVEL"),
        help="Log level (default: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command")

    mt = subparsers.add_parser("match", help="Match movies in the catalog with their encyclopedia page")
    mt.add_argument("wiki", help="Encyclopedia abstract dump (XML)")
    mt.add_argument("metadata", help="movies_metadata.csv")
    mt.add_argument("credits", help="credits.csv")
    mt.add_argument("--output", default="output_matching.csv", help="Output CSV (default: output_matching.csv)")
    mt.add_argument("--queue-size", type=int, default=env_int("MOVIEMATCH_QUEUE_SIZE"), help="Documents buffered between reader and matcher")
    mt.add_argument("--checkpoint-every", type=int, default=env_int("MOVIEMATCH_CHECKPOINT_EVERY"), help="Rewrite the output every N matched films (0 disables)")
    mt.set_defaults(func=cmd_match)

    rt = subparsers.add_parser("ratio", help="Calculate the ratio of revenue to budget for every movie")
    rt.add_argument("dataset", help="Movie dataset CSV")
    rt.add_argument("output", nargs="?", default="output.csv", help="Output CSV (default: output.csv)")
    rt.add_argument("-r", "--revenue-column", default="revenue", help="Column name/index to use for revenue")
    rt.add_argument("-b", "--budget-column", default="budget", help="Column name/index to use for budget")
    rt.add_argument("--no-header", action="store_true", help="Data starts from the first row, without any headers")
    rt.set_defaults(func=cmd_ratio)

    cb = subparsers.add_parser("combine", help="Combine matched movies with metadata, ratio and ratings")
    cb.add_argument("metadata", help="movies_metadata.csv")
    cb.add_argument("ratio", help="Output of the ratio command")
    cb.add_argument("matches", help="Output of the match command")
    cb.add_argument("ratings", help="ratings.csv")
    cb.add_argument("--output", default="output_combine.csv", help="Output CSV (default: output_combine.csv)")
    cb.set_defaults(func=cmd_combine)

    ld = subparsers.add_parser("load", help="Load combined data into the database")
    ld.add_argument("input", help="Output of the combine command")
    ld.add_argument("--db", default=env_str("MOVIEMATCH_DB"), help="SQLite path or database URL")
    ld.add_argument("--limit", type=int, default=1000, help="Maximum number of movies to load")
    ld.set_defaults(func=cmd_load)

    ls = subparsers.add_parser("list", help="List loaded movies by ratio")
    ls.add_argument("--db", default=env_str("MOVIEMATCH_DB"), help="SQLite path or database URL")
    ls.add_argument("--limit", type=int, default=20, help="Number of movies to show")
    ls.set_defaults(func=cmd_list)

    return parser


def main(argv=None):
    # Load .env if present (MOVIEMATCH_* settings)
    load_env()
    try:
        parser = build_parser()
    except ValueError as e:
        raise SystemExit(str(e))
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    try:
        get_logger(level=args.log_level, log_dir=Path(env_str("MOVIEMATCH_LOG_DIR")))
    except ValueError as e:
        raise SystemExit(str(e))

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
