"""
Database schema and connection management.

Uses SQLAlchemy; a plain path means a SQLite file, anything containing
``://`` is used as a database URL as is.
"""

import math
from pathlib import Path
from typing import Iterable, Tuple, Union

from sqlalchemy import BigInteger, Column, Date, Float, Integer, String, Text, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from .logger import get_logger
from .readfile import CombinedRow

Base = declarative_base()

DEFAULT_LOAD_LIMIT = 1000

Target = Union[str, Path]


class TopMovie(Base):
    """Matched movie with its financials and encyclopedia abstract."""

    __tablename__ = "topmovies"

    id = Column(Integer, primary_key=True)
    title = Column(Text)
    year = Column(Date)
    rating = Column(Float)
    budget = Column(BigInteger)
    revenue = Column(BigInteger)
    ratio = Column(Float)
    production_companies = Column(String)  # ';'-separated
    url = Column(Text)
    abstract = Column(Text)


def database_url(target: Target) -> str:
    target = str(target)
    if "://" in target:
        return target
    return f"sqlite:///{target}"


def init_database(target: Target) -> None:
    """
    Initialize database and create tables.

    Args:
        target: SQLite file path or database URL
    """
    if "://" not in str(target):
        Path(target).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(database_url(target))
    Base.metadata.create_all(engine)


def get_session(target: Target):
    """
    Get database session.

    Args:
        target: SQLite file path or database URL

    Returns:
        SQLAlchemy session
    """
    engine = create_engine(database_url(target))
    Session = sessionmaker(bind=engine)
    return Session()


def _ratio_key(row: CombinedRow) -> Tuple[int, float]:
    # NaN ratios sort last
    if row.ratio is None or math.isnan(row.ratio):
        return (1, 0.0)
    return (0, -row.ratio)


def _nullable(value):
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def load_top_movies(rows: Iterable[CombinedRow], target: Target, limit: int = DEFAULT_LOAD_LIMIT) -> int:
    """
    Replace the contents of the ``topmovies`` table with the rows of highest ratio.

    The old rows are deleted and the new ones inserted in a single transaction,
    so a failed load leaves the previous contents in place.

    Args:
        rows: Combined rows in any order
        target: SQLite file path or database URL
        limit: Maximum number of rows to insert

    Returns:
        Number of rows inserted

    Raises:
        SQLAlchemyError: If the load fails; nothing is changed
    """
    logger = get_logger()
    ordered = sorted(rows, key=_ratio_key)[:limit]

    init_database(target)
    session = get_session(target)
    inserted = 0
    try:
        replaced = session.query(TopMovie).delete()
        for row in ordered:
            movie = TopMovie(
                id=row.movie_id,
                title=row.title,
                year=row.year,
                rating=_nullable(row.rating),
                budget=row.budget,
                revenue=row.revenue,
                ratio=_nullable(row.ratio),
                production_companies=";".join(row.production_companies),
                url=row.url,
                abstract=row.abstract,
            )
            session.add(movie)
            inserted += 1
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Load failed, previous rows kept", target=str(target), error=str(e))
        raise
    finally:
        session.close()

    logger.info("Load complete", target=str(target), rows=inserted, replaced=replaced)
    return inserted
