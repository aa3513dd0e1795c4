"""
Match orchestrator.

Responsibilities:
- Fan candidate generation out to every feature source and collect the ids.
- Average each candidate's relevance over all sources and pick the best.
- Keep the best-scoring document per catalog record.

Non-Responsibilities:
- No parsing of the corpus or the catalog.
- No write-out of the result table.

Invariant:
A stored score is only ever replaced by a strictly greater one, and the
result table is touched only after candidate generation for the current
document has finished.
"""

import queue
import threading
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Sequence, Set, Tuple

from .features import FeatureSource
from .logger import StructuredLogger, get_logger
from .models import Document, MatchResult
from .storage import update_match
from .wiki import DEFAULT_QUEUE_SIZE, DocumentProducer

DEFAULT_CANDIDATE_QUEUE_SIZE = 100
DEFAULT_PROGRESS_EVERY = 1000
DEFAULT_CHECKPOINT_EVERY = 100

_GENERATION_DONE = object()

Checkpoint = Callable[[Dict[str, MatchResult]], None]


class Matcher:
    """
    Resolve documents to catalog records one document at a time.

    ``results`` maps a record id to the best ``MatchResult`` seen so far and is
    owned by the thread calling ``match_document``/``run``.
    """

    def __init__(
        self,
        features: Sequence[FeatureSource],
        candidate_queue_size: int = DEFAULT_CANDIDATE_QUEUE_SIZE,
        progress_every: int = DEFAULT_PROGRESS_EVERY,
        logger: Optional[StructuredLogger] = None,
    ):
        if not features:
            raise ValueError("At least one feature source is required")
        self.features = list(features)
        self.candidate_queue_size = candidate_queue_size
        self.progress_every = progress_every
        self.logger = logger or get_logger()
        self.results: Dict[str, MatchResult] = {}
        self.documents_processed = 0

    def _generate(self, feature: FeatureSource, doc: Document, out: "queue.Queue") -> None:
        try:
            for movie_id in feature.most_relevant(doc):
                out.put(movie_id)
        except Exception as e:
            self.logger.record_error(f"{feature.name}:{type(e).__name__}")
            self.logger.warning(
                "Candidate generation failed",
                feature=feature.name,
                title=doc.title,
                error=str(e),
            )

    def candidates(self, doc: Document) -> Set[str]:
        """
        Run ``most_relevant`` on every feature source concurrently and merge the ids.

        Each source gets its own thread writing into a bounded queue. A
        supervising thread joins them all before closing the queue, so the
        returned set is complete when this method returns.
        """
        out: "queue.Queue" = queue.Queue(maxsize=self.candidate_queue_size)
        workers = [
            threading.Thread(target=self._generate, args=(feature, doc, out), daemon=True)
            for feature in self.features
        ]
        for w in workers:
            w.start()

        def supervise():
            for w in workers:
                w.join()
            out.put(_GENERATION_DONE)

        supervisor = threading.Thread(target=supervise, daemon=True)
        supervisor.start()

        found: Set[str] = set()
        while True:
            item = out.get()
            if item is _GENERATION_DONE:
                break
            found.add(item)
        supervisor.join()
        return found

    def score(self, doc: Document, movie_id: str) -> float:
        """Average relevance over all feature sources; a source without data counts as 0."""
        total = 0.0
        for feature in self.features:
            try:
                total += feature.relevance(doc, movie_id)
            except Exception as e:
                self.logger.record_error(f"{feature.name}:{type(e).__name__}")
                self.logger.warning(
                    "Relevance scoring failed",
                    feature=feature.name,
                    movie_id=movie_id,
                    error=str(e),
                )
        return total / len(self.features)

    def best_candidate(self, doc: Document, candidates: Iterable[str]) -> Tuple[Optional[str], float]:
        """Highest average score; ties go to the smallest id."""
        best_id: Optional[str] = None
        best_score = 0.0
        for movie_id in sorted(candidates):
            s = self.score(doc, movie_id)
            if best_id is None or s > best_score:
                best_id = movie_id
                best_score = s
        return best_id, best_score

    def match_document(self, doc: Document) -> Optional[Dict]:
        """
        Match one document and update ``results``.

        Returns:
            None when nothing positive was found, otherwise the update outcome
            with ``movie_id``, ``score`` and ``status`` (new, updated or kept)
        """
        doc = doc.normalized()
        found = self.candidates(doc)
        best_id, best_score = self.best_candidate(doc, found)
        self.documents_processed += 1
        self.logger.record_document_matched(len(found))

        if best_id is None or best_score <= 0:
            return None

        outcome = update_match(
            self.results,
            best_id,
            MatchResult(score=best_score, url=doc.url, abstract=doc.abstract),
        )
        self.logger.record_match(outcome["status"])
        self.logger.debug(
            "Document matched",
            title=doc.title,
            movie_id=best_id,
            score=round(best_score, 6),
            status=outcome["status"],
        )
        return {"movie_id": best_id, "score": best_score, **outcome}

    def run(
        self,
        documents: Iterable[Document],
        checkpoint: Optional[Checkpoint] = None,
        checkpoint_every: int = DEFAULT_CHECKPOINT_EVERY,
    ) -> Dict[str, MatchResult]:
        """
        Match every document in order and return the result table.

        ``checkpoint`` is called with the table each time the number of matched
        records reaches a new multiple of ``checkpoint_every``.
        """
        last_checkpoint = len(self.results) // checkpoint_every if checkpoint_every > 0 else 0
        for doc in documents:
            outcome = self.match_document(doc)

            if self.progress_every > 0 and self.documents_processed % self.progress_every == 0:
                self.logger.info(
                    f"{self.documents_processed} documents processed, {len(self.results)} films matched"
                )

            if outcome is None or outcome["status"] != "new":
                continue
            if checkpoint is not None and checkpoint_every > 0:
                mark = len(self.results) // checkpoint_every
                if mark > last_checkpoint:
                    last_checkpoint = mark
                    checkpoint(self.results)

        return self.results


def match_corpus(
    wiki_path: Path,
    features: Sequence[FeatureSource],
    queue_size: int = DEFAULT_QUEUE_SIZE,
    candidate_queue_size: int = DEFAULT_CANDIDATE_QUEUE_SIZE,
    checkpoint: Optional[Checkpoint] = None,
    checkpoint_every: int = DEFAULT_CHECKPOINT_EVERY,
    logger: Optional[StructuredLogger] = None,
) -> Dict[str, MatchResult]:
    """
    Stream ``wiki_path`` through a producer thread and match every movie document.

    Raises:
        ValueError: If the corpus cannot be parsed
        OSError: If the corpus cannot be opened
    """
    logger = logger or get_logger()
    with Path(wiki_path).open("rb") as source:
        producer = DocumentProducer(source, maxsize=queue_size, logger=logger)
        producer.start()
        try:
            matcher = Matcher(features, candidate_queue_size=candidate_queue_size, logger=logger)
            results = matcher.run(producer.documents(), checkpoint=checkpoint, checkpoint_every=checkpoint_every)
        finally:
            # the producer must be done with the file before it is closed
            producer.close()

    logger.info(f"{len(results)} films matched from {matcher.documents_processed} documents")
    return results
