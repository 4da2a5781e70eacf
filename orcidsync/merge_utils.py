from __future__ import annotations

from dataclasses import fields, replace
from typing import Any, Dict, Iterable, List, Mapping, Union

from rapidfuzz.distance import Levenshtein

from .config import MAX_TITLE_DISTANCE
from .id_utils import normalize_doi
from .log_utils import logger, LogSource, LogCategory
from .models import WorkRecord, WorkSource
from .text_utils import normalize_title

PaperLike = Union[WorkRecord, Mapping[str, Any]]


def _get(paper: PaperLike, name: str) -> Any:
    if isinstance(paper, WorkRecord):
        return getattr(paper, name)
    return paper.get(name)


def is_identifiable(paper: PaperLike) -> bool:
    """
    A paper can only be recognized again on a later run through its DOI or a
    non-empty normalized title.
    """
    return bool(normalize_doi(_get(paper, "doi")) or normalize_title(_get(paper, "title")))


def already_exists(existing: Iterable[PaperLike], candidate: PaperLike,
                   threshold: int = MAX_TITLE_DISTANCE) -> bool:
    """
    Decide whether candidate duplicates one of the existing papers.

    With a DOI on the candidate only DOIs are compared, and titles play no part.
    Without one, normalized titles within threshold edits count as the same
    paper; existing papers with an empty normalized title never match.
    """
    cand_doi = normalize_doi(_get(candidate, "doi"))
    if cand_doi:
        return any(normalize_doi(_get(p, "doi")) == cand_doi for p in existing)

    cand_title = normalize_title(_get(candidate, "title"))
    for p in existing:
        title = normalize_title(_get(p, "title"))
        if not title:
            continue
        if Levenshtein.distance(cand_title, title, score_cutoff=threshold) <= threshold:
            return True
    return False


def merge_papers(store: Dict[str, Any], key: str, name: str, papers: Iterable[WorkRecord],
                 threshold: int = MAX_TITLE_DISTANCE) -> int:
    """
    Append the papers that are not already known to the researcher's entry in
    the store, creating the entry when needed. Each paper is checked against
    the list as it grows, so duplicates within one batch are dropped too.
    Papers with neither a DOI nor a usable title are never stored, since
    nothing could match them on the next run. Returns the number of papers
    added.
    """
    entry = store.get(key)
    if not isinstance(entry, dict):
        entry = {"name": name, "papers": []}
        store[key] = entry
    if not isinstance(entry.get("papers"), list):
        entry["papers"] = []
    entry.setdefault("name", name)

    existing: List[Dict[str, Any]] = entry["papers"]
    added = 0
    for paper in papers:
        if not is_identifiable(paper):
            logger.debug(f"Dropped work with neither DOI nor usable title: {_get(paper, 'title')!r}",
                         source=LogSource.STORE, category=LogCategory.SKIP)
            continue
        if already_exists(existing, paper, threshold):
            continue
        existing.append(paper.to_dict() if isinstance(paper, WorkRecord) else dict(paper))
        added += 1
    return added


def overlay_work(base: WorkRecord, enriched: WorkRecord) -> WorkRecord:
    """
    Lay Crossref metadata over an ORCID-derived record: every non-empty field of
    enriched wins, base fills the gaps, and the ORCID put-code is kept.
    """
    updates: Dict[str, Any] = {}
    for f in fields(WorkRecord):
        if f.name in ("id", "source"):
            continue
        value = getattr(enriched, f.name)
        if value not in (None, "", 0):
            updates[f.name] = value
    return replace(base, source=enriched.source or WorkSource.CROSSREF, **updates)
