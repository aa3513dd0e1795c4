"""
Streaming reader for the encyclopedia abstract dump.

The dump is one XML document holding a ``<doc>`` element per article::

    <feed>
      <doc>
        <title>Wikipedia: Anarchism (film)</title>
        <url>https://en.wikipedia.org/wiki/Anarchism_(film)</url>
        <abstract>...</abstract>
        <links><sublink><anchor>Plot</anchor>...</sublink></links>
      </doc>
    </feed>

Documents are produced lazily in file order and each ``<doc>`` subtree is
released once it has been turned into a ``Document``.
"""

import queue
import threading
from pathlib import Path
from typing import IO, Iterator, Optional, Union
from xml.etree import ElementTree

from .logger import StructuredLogger, get_logger
from .models import Document
from .normalize import normalize_text

TAG_DOC = "doc"
TAG_TITLE = "title"
TAG_URL = "url"
TAG_ABSTRACT = "abstract"
TAG_ANCHOR = "anchor"

TITLE_PREFIX = "Wikipedia: "
FILM_MARKER = "(film)"
ANCHOR_MARKERS = ("plot", "cast", "production", "reception", "release")
MIN_ANCHOR_SCORE = 3

DEFAULT_QUEUE_SIZE = 1000


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def read_documents(source: Union[str, Path, IO[bytes]]) -> Iterator[Document]:
    """
    Yield one raw ``Document`` per ``<doc>`` element.

    Each finished ``<doc>`` is cleared and detached from its parent, so only
    the document being built is held in memory.

    Raises:
        ValueError: If the XML is malformed
    """
    title = url = abstract = ""
    anchors = []
    in_doc = False
    open_elements = []

    try:
        for event, elem in ElementTree.iterparse(source, events=("start", "end")):
            tag = _local(elem.tag)
            if event == "start":
                open_elements.append(elem)
                if tag == TAG_DOC:
                    title = url = abstract = ""
                    anchors = []
                    in_doc = True
                continue

            open_elements.pop()
            if not in_doc:
                continue
            text = elem.text or ""
            if tag == TAG_TITLE:
                title = text[len(TITLE_PREFIX):] if text.startswith(TITLE_PREFIX) else text
            elif tag == TAG_URL:
                url = text.strip()
            elif tag == TAG_ABSTRACT:
                abstract = text
            elif tag == TAG_ANCHOR:
                anchors.append(text)
            elif tag == TAG_DOC:
                in_doc = False
                elem.clear()
                if open_elements:
                    open_elements[-1].remove(elem)
                yield Document(title=title, abstract=abstract, anchors=tuple(anchors), url=url)
    except ElementTree.ParseError as e:
        raise ValueError(f"could not parse document stream: {e}") from e


def anchor_score(anchors) -> int:
    """Number of distinct section markers present across the normalized anchors."""
    return sum(1 for marker in ANCHOR_MARKERS if any(marker in a for a in anchors))


def is_movie(doc: Optional[Document]) -> bool:
    if doc is None:
        return False
    if FILM_MARKER in normalize_text(doc.title):
        return True
    anchors = [normalize_text(a) for a in doc.anchors]
    return anchor_score(anchors) > MIN_ANCHOR_SCORE


def read_movies(
    source: Union[str, Path, IO[bytes]],
    logger: Optional[StructuredLogger] = None,
) -> Iterator[Document]:
    """Yield only the documents the classifier accepts."""
    logger = logger or get_logger()
    for doc in read_documents(source):
        movie = is_movie(doc)
        logger.record_document_read(movie)
        if movie:
            yield doc


class _EndOfStream:
    pass


END_OF_STREAM = _EndOfStream()


class DocumentProducer(threading.Thread):
    """
    Parse the corpus on its own thread and push movie documents into a bounded queue.

    ``put`` blocks while the queue is full, so at most ``maxsize`` documents
    are in flight. The stream always ends with ``END_OF_STREAM``; a parse
    error is kept in ``error`` and re-raised by ``documents()``.
    """

    def __init__(
        self,
        source: Union[str, Path, IO[bytes]],
        maxsize: int = DEFAULT_QUEUE_SIZE,
        logger: Optional[StructuredLogger] = None,
    ):
        super().__init__(name="document-producer", daemon=True)
        self.source = source
        self.queue: "queue.Queue" = queue.Queue(maxsize=maxsize)
        self.logger = logger or get_logger()
        self.error: Optional[BaseException] = None
        self._stopping = threading.Event()

    def run(self):
        try:
            for doc in read_movies(self.source, logger=self.logger):
                if self._stopping.is_set():
                    break
                self.queue.put(doc)
        except Exception as e:
            self.error = e
            self.logger.error("Error reading document stream", error=str(e))
        finally:
            self.queue.put(END_OF_STREAM)

    def documents(self) -> Iterator[Document]:
        """Consume the queue in production order until the end of the stream."""
        while True:
            item = self.queue.get()
            if item is END_OF_STREAM:
                break
            yield item
        self.join()
        if self.error is not None:
            raise self.error

    def close(self) -> None:
        """Stop reading, discard queued documents and wait for the thread to exit."""
        self._stopping.set()
        if not self.is_alive() and self.queue.empty():
            return
        while self.queue.get() is not END_OF_STREAM:
            pass
        self.join()
