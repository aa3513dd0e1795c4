"""
Feature sources for matching documents to catalog records.

Responsibilities:
- Propose candidate record ids for a document.
- Score a (document, record id) pair in [0, 1].

Non-Responsibilities:
- No averaging across sources.
- No result-table updates.

Invariant:
Unknown ids and records without comparison tokens score exactly 0.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Mapping, Sequence, Set

from .models import CatalogRecord, CreditRecord, Document
from .trie import PrefixIndex

TITLE_BIAS = 0.5


def token_overlap(tokens: Sequence[str], text: str) -> float:
    """Fraction of ``tokens`` that occur in ``text``; 0 when there are no tokens."""
    if not tokens:
        return 0.0
    found = sum(1 for t in tokens if t in text)
    return found / len(tokens)


class FeatureSource(ABC):
    """Candidate generation and pairwise relevance over one family of records."""

    name = "feature"

    @abstractmethod
    def most_relevant(self, doc: Document) -> Set[str]:
        """Return ids worth scoring for ``doc``. May be empty."""

    @abstractmethod
    def relevance(self, doc: Document, movie_id: str) -> float:
        """Score ``movie_id`` against ``doc`` in [0, 1]."""


class TitleFeatures(FeatureSource):
    """
    Titles and auxiliary tokens (production companies, release year).

    Candidates come from a prefix walk of the document title over every
    catalog title and distinct alternate title.
    """

    name = "title"

    def __init__(self, records: Iterable[CatalogRecord], title_bias: float = TITLE_BIAS):
        self.title_bias = title_bias
        self.records: Dict[str, CatalogRecord] = {}
        self.index = PrefixIndex()
        for record in records:
            self.records[record.movie_id] = record
            self.index.insert(record.title, record.movie_id)
            if record.alternate_title and record.alternate_title != record.title:
                self.index.insert(record.alternate_title, record.movie_id)

    def most_relevant(self, doc: Document) -> Set[str]:
        return set(self.index.candidates(doc.title))

    def title_score(self, doc: Document, record: CatalogRecord) -> float:
        # Longer titles cover more of the document title and score higher.
        for title in (record.title, record.alternate_title):
            if title and title in doc.title:
                return len(title) / len(doc.title)
        return 0.0

    def relevance(self, doc: Document, movie_id: str) -> float:
        record = self.records.get(movie_id)
        if record is None:
            return 0.0
        token_term = token_overlap(record.tokens, doc.abstract)
        title_term = self.title_score(doc, record)
        return (1 - self.title_bias) * token_term + self.title_bias * title_term


class CreditFeatures(FeatureSource):
    """Cast and crew names. Scores only; candidates come from the other sources."""

    name = "credits"

    def __init__(self, records: Iterable[CreditRecord]):
        self.records: Dict[str, CreditRecord] = {r.movie_id: r for r in records}

    def most_relevant(self, doc: Document) -> Set[str]:
        return set()

    def relevance(self, doc: Document, movie_id: str) -> float:
        record = self.records.get(movie_id)
        if record is None:
            return 0.0
        return token_overlap(record.tokens, doc.abstract)


def build_features(
    catalog: Mapping[str, CatalogRecord],
    credits: Mapping[str, CreditRecord],
) -> List[FeatureSource]:
    return [TitleFeatures(catalog.values()), CreditFeatures(credits.values())]
