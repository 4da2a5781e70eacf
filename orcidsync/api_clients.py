from __future__ import annotations

import time
import urllib.parse
from typing import Any, Dict, List, Optional

from .config import ORCID_BASE, CROSSREF_BASE, AUTHOR_SEARCH_ROWS, HTTP_TIMEOUT_DEFAULT
from .exceptions import NUMERIC_ERRORS, RecordNotFoundError
from .http_utils import handle_api_errors, http_get_json
from .id_utils import doi_url, external_id_list, find_doi_in_external_ids, normalize_doi, normalize_orcid
from .log_utils import logger, LogSource, LogCategory
from .models import WorkRecord, WorkSource
from .text_utils import (
    coerce_year,
    first_of,
    join_names,
    name_from_parts,
    safe_get_nested,
    year_from_date_parts,
)


# ============================================================================================
# ORCID API Integration
# ============================================================================================

def orcid_fetch_works(orcid_id: str, timeout: float = HTTP_TIMEOUT_DEFAULT) -> List[Dict[str, Any]]:
    """
    Fetch the work groups of an ORCID record. Each group bundles the summaries
    that different sources submitted for the same work. Raises when the listing
    cannot be fetched or decoded.
    """
    orcid_id = normalize_orcid(orcid_id)
    if not orcid_id:
        return []
    data = http_get_json(f"{ORCID_BASE}/{orcid_id}/works", timeout=timeout)
    if not isinstance(data, dict):
        raise ValueError(f"Unexpected ORCID works payload for {orcid_id}")
    groups = data.get("group") or []
    return [g for g in groups if isinstance(g, dict)]


@handle_api_errors(default_return=None, source=LogSource.ORCID)
def orcid_fetch_work_detail(orcid_id: str, put_code: Any, timeout: float = HTTP_TIMEOUT_DEFAULT) -> Optional[Dict[str, Any]]:
    """
    Fetch the full record of one work, which carries the contributor list the
    summaries lack. Failures are logged and give None so the summary can be
    used on its own.
    """
    if put_code in (None, ""):
        return None
    data = http_get_json(f"{ORCID_BASE}/{normalize_orcid(orcid_id)}/work/{put_code}", timeout=timeout)
    return data if isinstance(data, dict) else None


def iter_work_summaries(groups: List[Dict[str, Any]]):
    """
    Yield every work summary of every group, including the duplicate
    submissions within a group.
    """
    for group in groups:
        for summary in (group.get("work-summary") or []):
            if isinstance(summary, dict):
                yield summary


def _orcid_title(doc: Optional[Dict[str, Any]]) -> str:
    return str(safe_get_nested(doc, "title", "title", "value", default="") or "").strip()


def _orcid_year(doc: Optional[Dict[str, Any]]) -> Optional[int]:
    return coerce_year(safe_get_nested(doc, "publication-date", "year", "value"))


def _orcid_venue(doc: Optional[Dict[str, Any]]) -> str:
    return str(safe_get_nested(doc, "journal-title", "value", default="") or "").strip()


def _orcid_doi(doc: Optional[Dict[str, Any]]) -> str:
    return find_doi_in_external_ids(external_id_list(safe_get_nested(doc, "external-ids")))


def _orcid_url(doc: Optional[Dict[str, Any]]) -> str:
    return str(safe_get_nested(doc, "url", "value", default="") or "").strip()


def _orcid_authors(detail: Optional[Dict[str, Any]]) -> str:
    contributors = safe_get_nested(detail, "contributors", "contributor", default=[])
    if not isinstance(contributors, list):
        return ""
    names = [
        str(safe_get_nested(c, "credit-name", "value", default="") or "")
        for c in contributors
    ]
    return join_names(names)


def _put_code(doc: Optional[Dict[str, Any]]) -> Optional[int]:
    value = safe_get_nested(doc, "put-code")
    if value is None:
        return None
    try:
        return int(value)
    except NUMERIC_ERRORS:
        return None


def work_from_orcid(summary: Dict[str, Any], detail: Optional[Dict[str, Any]] = None) -> WorkRecord:
    """
    Map an ORCID work summary, and its detail record when one was fetched, to
    a WorkRecord. Every field is looked up in the detail first and then in the
    summary; authors only exist in the detail.
    """
    docs = [d for d in (detail, summary) if isinstance(d, dict)]

    def pick(getter):
        for d in docs:
            value = getter(d)
            if value:
                return value
        return None

    doi = pick(_orcid_doi) or ""
    return WorkRecord(
        id=pick(_put_code),
        title=pick(_orcid_title) or "",
        authors=_orcid_authors(detail),
        year=pick(_orcid_year),
        venue=pick(_orcid_venue) or "",
        doi=doi,
        url=pick(_orcid_url) or doi_url(doi),
        source=WorkSource.ORCID,
    )


def orcid_harvest_dois(groups: List[Dict[str, Any]]) -> List[str]:
    """
    Collect the distinct DOIs found anywhere in a works listing, at group level
    and in every summary, in the order they first appear.
    """
    seen: Dict[str, None] = {}
    for group in groups:
        ids = external_id_list(group.get("external-ids"))
        for ext in ids:
            d = find_doi_in_external_ids([ext])
            if d:
                seen.setdefault(d, None)
        for summary in (group.get("work-summary") or []):
            d = _orcid_doi(summary)
            if d:
                seen.setdefault(d, None)
    return list(seen)


def orcid_list_works(
        orcid_id: str,
        groups: Optional[List[Dict[str, Any]]] = None,
        fetch_details: bool = True,
        delay: float = 0.0,
) -> List[WorkRecord]:
    """
    Build one WorkRecord per work summary of an ORCID record, optionally
    enriched with the detail record. Pass groups to reuse a listing that was
    already fetched. Detail calls are followed by the given delay.
    """
    if groups is None:
        groups = orcid_fetch_works(orcid_id)

    works: List[WorkRecord] = []
    for summary in iter_work_summaries(groups):
        detail = None
        if fetch_details:
            detail = orcid_fetch_work_detail(orcid_id, summary.get("put-code"))
            if delay > 0:
                time.sleep(delay)
        works.append(work_from_orcid(summary, detail))
    return works


# ============================================================================================
# Crossref API Integration
# ============================================================================================

def work_from_crossref(message: Dict[str, Any], source: WorkSource = WorkSource.CROSSREF) -> WorkRecord:
    """
    Map a Crossref work message to a WorkRecord. The year is taken from the
    print date, then the online date, then the issued date.
    """
    authors = message.get("author") or []
    names = [name_from_parts(a) for a in authors if isinstance(a, dict)]

    year = None
    for key in ("published-print", "published-online", "issued"):
        year = year_from_date_parts(message.get(key))
        if year:
            break

    doi = normalize_doi(message.get("DOI"))
    return WorkRecord(
        title=first_of(message.get("title")),
        authors=join_names(names),
        year=year,
        venue=first_of(message.get("container-title")),
        doi=doi,
        url=str(message.get("URL") or "").strip() or doi_url(doi),
        citations=message.get("is-referenced-by-count") or 0,
        source=source,
    )


def crossref_fetch_by_doi(doi: str, timeout: float = HTTP_TIMEOUT_DEFAULT) -> WorkRecord:
    """
    Look up a DOI on Crossref. Raises when the request fails (a 404 included)
    or when the answer describes no work.
    """
    d = normalize_doi(doi)
    if not d:
        raise RecordNotFoundError("empty DOI")
    data = http_get_json(f"{CROSSREF_BASE}/{urllib.parse.quote(d)}", timeout=timeout)
    message = data.get("message") if isinstance(data, dict) else None
    if not isinstance(message, dict) or not message:
        raise RecordNotFoundError(f"Crossref has no record for {d}")
    return work_from_crossref(message, source=WorkSource.CROSSREF)


def crossref_search_by_author(
        author: str,
        rows: int = AUTHOR_SEARCH_ROWS,
        timeout: float = HTTP_TIMEOUT_DEFAULT,
) -> List[WorkRecord]:
    """
    Search Crossref for works by an author name, newest first, and map at most
    rows results. Used when ORCID gives nothing for a researcher.
    """
    if not author or not author.strip():
        return []
    params = {
        "query.author": author.strip(),
        "rows": rows,
        "sort": "published",
        "order": "desc",
    }
    data = http_get_json(CROSSREF_BASE, params=params, timeout=timeout)
    items = safe_get_nested(data, "message", "items", default=[])
    if not isinstance(items, list):
        return []
    logger.debug(f"Author search for '{author}' returned {len(items)} item(s)",
                 source=LogSource.CROSSREF, category=LogCategory.SEARCH)
    return [
        work_from_crossref(item, source=WorkSource.CROSSREF_AUTHOR)
        for item in items[:rows]
        if isinstance(item, dict)
    ]
