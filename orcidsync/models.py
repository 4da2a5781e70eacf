from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .exceptions import NUMERIC_ERRORS
from .id_utils import normalize_doi, normalize_orcid
from .text_utils import coerce_year


class WorkSource(str, Enum):
    """
    Provenance tag stored with every work record.
    """
    ORCID = "ORCID"
    CROSSREF = "CrossRef"
    CROSSREF_AUTHOR = "CrossRef-author"


@dataclass(frozen=True)
class Researcher:
    """
    One entry of the mapping document: the store key, the display name used for
    logging and the author-search fallback, and the ORCID iD when known.
    """
    key: str
    name: str
    orcid: str = ""

    @classmethod
    def from_mapping(cls, key: str, entry: Dict[str, Any]) -> "Researcher":
        entry = entry if isinstance(entry, dict) else {}
        name = str(entry.get("name") or "").strip() or key
        return cls(key=key, name=name, orcid=normalize_orcid(entry.get("orcid")))


@dataclass
class WorkRecord:
    """
    A single publication in the shape the store keeps, whichever service it
    came from. The DOI is kept in canonical form and the year as an int.
    """
    title: str = ""
    authors: str = ""
    year: Optional[int] = None
    venue: str = ""
    doi: str = ""
    url: str = ""
    citations: int = 0
    source: WorkSource = WorkSource.ORCID
    id: Optional[int] = None

    def __post_init__(self):
        self.doi = normalize_doi(self.doi)
        self.year = coerce_year(self.year)
        self.source = WorkSource(self.source)
        try:
            self.citations = int(self.citations or 0)
        except NUMERIC_ERRORS:
            self.citations = 0

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize to the JSON object written to the store, leaving out an unset
        id or year.
        """
        out: Dict[str, Any] = {}
        if self.id is not None:
            out["id"] = self.id
        out["title"] = self.title
        out["authors"] = self.authors
        if self.year is not None:
            out["year"] = self.year
        out["venue"] = self.venue
        out["doi"] = self.doi
        out["url"] = self.url
        out["citations"] = self.citations
        out["source"] = self.source.value
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkRecord":
        """
        Read a stored record, tolerating the looser shapes left by older runs.
        """
        source = data.get("source") or WorkSource.ORCID.value
        try:
            source = WorkSource(source)
        except ValueError:
            source = WorkSource.ORCID
        return cls(
            title=str(data.get("title") or ""),
            authors=str(data.get("authors") or ""),
            year=data.get("year"),
            venue=str(data.get("venue") or ""),
            doi=data.get("doi") or "",
            url=str(data.get("url") or ""),
            citations=data.get("citations") or 0,
            source=source,
            id=data.get("id"),
        )


@dataclass
class ResearcherResult:
    """
    Outcome of syncing one researcher.
    """
    key: str
    added: int = 0
    candidates: int = 0
    skipped: bool = False
    failed: bool = False
    used_fallback: bool = False


@dataclass
class SyncSummary:
    """
    Totals for a whole run, reported at the end and returned to the CLI.
    """
    results: List[ResearcherResult] = field(default_factory=list)
    backup_path: Optional[str] = None
    saved: bool = False

    @property
    def total_added(self) -> int:
        return sum(r.added for r in self.results)

    @property
    def processed(self) -> int:
        return sum(1 for r in self.results if not r.skipped and not r.failed)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.skipped)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.failed)
