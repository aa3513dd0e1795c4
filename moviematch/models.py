"""Typed records shared by the readers, feature sources and the matcher."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from .normalize import normalize_text


@dataclass(frozen=True, slots=True)
class CatalogRecord:
    """Movie catalog entry reduced to the fields used for matching."""

    movie_id: str
    title: str
    alternate_title: str = ""
    tokens: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CreditRecord:
    """Cast and crew names for one catalog entry."""

    movie_id: str
    tokens: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Document:
    """One encyclopedia article: title, abstract, section anchors and URL."""

    title: str
    abstract: str = ""
    anchors: tuple[str, ...] = field(default_factory=tuple)
    url: str = ""

    def normalized(self) -> Document:
        """Return a copy with title, abstract and anchors normalized. The URL is kept as is."""
        return replace(
            self,
            title=normalize_text(self.title),
            abstract=normalize_text(self.abstract),
            anchors=tuple(normalize_text(a) for a in self.anchors),
        )


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Best document found so far for a catalog record."""

    score: float
    url: str
    abstract: str = ""
