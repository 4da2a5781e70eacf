from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

from . import api_clients as api
from . import io_utils
from .config import EnrichmentStrategy, SyncConfig
from .exceptions import ALL_FETCH_ERRORS
from .http_utils import call_with_retry, set_contact_email
from .log_utils import logger, LogSource, LogCategory
from .merge_utils import merge_papers, overlay_work
from .models import Researcher, ResearcherResult, SyncSummary, WorkRecord
from .text_utils import author_in_text


def _pause(seconds: float) -> None:
    if seconds > 0:
        time.sleep(seconds)


def _lookup_doi(doi: str, config: SyncConfig) -> Optional[WorkRecord]:
    """
    Crossref lookup of one DOI under the Crossref retry policy, followed by the
    lookup delay. Failures are logged and give None.
    """
    try:
        return call_with_retry(api.crossref_fetch_by_doi, doi, policy=config.crossref_retry)
    except ALL_FETCH_ERRORS as e:
        logger.warn(f"Lookup failed for {doi}: {e}", source=LogSource.CROSSREF, category=LogCategory.WORK)
        return None
    finally:
        _pause(config.lookup_delay)


def enrich_per_work(researcher: Researcher, groups: List[Dict[str, Any]], config: SyncConfig) -> List[WorkRecord]:
    """
    Keep every ORCID work and overlay Crossref metadata on the ones with a DOI.
    A failed lookup leaves the ORCID-only record in place.
    """
    works = api.orcid_list_works(
        researcher.orcid,
        groups=groups,
        fetch_details=config.fetch_details,
        delay=config.lookup_delay,
    )
    with_doi = sum(1 for w in works if w.doi)
    logger.info(f"{len(works)} work(s) on ORCID, {with_doi} with DOI",
                source=LogSource.ORCID, category=LogCategory.FETCH)

    records: List[WorkRecord] = []
    enriched = 0
    for work in works:
        if not work.doi:
            records.append(work)
            continue
        found = _lookup_doi(work.doi, config)
        if found is None:
            records.append(work)
            continue
        records.append(overlay_work(work, found))
        enriched += 1
    if with_doi:
        logger.info(f"Enriched {enriched}/{with_doi} work(s)", source=LogSource.CROSSREF, category=LogCategory.WORK)
    return records


def harvest_then_lookup(researcher: Researcher, groups: List[Dict[str, Any]], config: SyncConfig) -> List[WorkRecord]:
    """
    Take only the DOIs from the ORCID listing and build every record from
    Crossref. DOIs Crossref cannot resolve are dropped.
    """
    dois = api.orcid_harvest_dois(groups)
    logger.info(f"{len(dois)} distinct DOI(s) on ORCID for {researcher.orcid}",
                source=LogSource.ORCID, category=LogCategory.FETCH)

    records: List[WorkRecord] = []
    for doi in dois:
        found = _lookup_doi(doi, config)
        if found is not None:
            records.append(found)
    if dois:
        logger.info(f"Resolved {len(records)}/{len(dois)} DOI(s)", source=LogSource.CROSSREF, category=LogCategory.WORK)
    return records


def author_search_fallback(researcher: Researcher, config: SyncConfig) -> List[WorkRecord]:
    """
    Search Crossref by the researcher's display name when ORCID produced no
    records. A failed search gives an empty list.
    """
    logger.info(f"ORCID empty; Crossref author search for '{researcher.name}'",
                source=LogSource.CROSSREF, category=LogCategory.SEARCH)
    try:
        results = api.crossref_search_by_author(researcher.name, rows=config.author_search_result_cap)
    except ALL_FETCH_ERRORS as e:
        logger.warn(f"Author search failed: {e}", source=LogSource.CROSSREF, category=LogCategory.ERROR)
        return []
    finally:
        _pause(config.lookup_delay)

    results = results[:config.author_search_result_cap]
    if config.fallback_require_author_match:
        kept = [w for w in results if author_in_text(researcher.name, w.authors)]
        logger.info(f"Kept {len(kept)}/{len(results)} result(s) naming {researcher.name}",
                    source=LogSource.CROSSREF, category=LogCategory.SEARCH)
        results = kept
    return results


def collect_candidates(researcher: Researcher, config: SyncConfig) -> List[WorkRecord]:
    """
    Produce the candidate records for one researcher with the configured
    enrichment strategy. Raises when the ORCID listing itself cannot be
    fetched.
    """
    try:
        groups = call_with_retry(api.orcid_fetch_works, researcher.orcid, policy=config.orcid_retry)
    finally:
        _pause(config.registry_delay)

    if config.enrichment_strategy == EnrichmentStrategy.PER_WORK:
        records = enrich_per_work(researcher, groups, config)
    else:
        records = harvest_then_lookup(researcher, groups, config)
    return records


def process_researcher(store: Dict[str, Any], researcher: Researcher, config: SyncConfig) -> ResearcherResult:
    """
    Sync one researcher into the store. A researcher without an ORCID iD is
    skipped; a failed ORCID listing is logged and leaves the store untouched.
    """
    result = ResearcherResult(key=researcher.key)
    logger.step(f"{researcher.name} ({researcher.key}, ORCID={researcher.orcid or 'N/A'})",
                source=LogSource.SYSTEM, category=LogCategory.RESEARCHER)

    if not researcher.orcid:
        logger.info("No ORCID iD; skipped", category=LogCategory.SKIP)
        result.skipped = True
        return result

    try:
        records = collect_candidates(researcher, config)
    except ALL_FETCH_ERRORS as e:
        logger.error(f"Fetch failed for {researcher.orcid}: {e}",
                     source=LogSource.ORCID, category=LogCategory.ERROR)
        result.failed = True
        return result

    if not records:
        records = author_search_fallback(researcher, config)
        result.used_fallback = True

    result.candidates = len(records)
    result.added = merge_papers(store, researcher.key, researcher.name, records,
                                threshold=config.title_distance_threshold)
    logger.success(f"Added {result.added} of {result.candidates} candidate(s)",
                   source=LogSource.STORE, category=LogCategory.MERGE)
    return result


def run_sync(mapping_path: str, store_path: str, config: Optional[SyncConfig] = None) -> SyncSummary:
    """
    Run the whole sync: read the mapping (raising MappingError when it is
    missing or empty), load the store, process each researcher in mapping
    order, then back up and rewrite the store unless this is a dry run.
    """
    config = config or SyncConfig()
    set_contact_email(config.contact_email)

    researchers = io_utils.read_mapping(mapping_path)
    logger.success(f"Mapping loaded: {len(researchers)} researcher(s)", category=LogCategory.PLAN)
    logger.info(f"Strategy: {config.enrichment_strategy.value}", category=LogCategory.PLAN)

    store = io_utils.load_store(store_path)
    summary = SyncSummary()
    for researcher in researchers:
        summary.results.append(process_researcher(store, researcher, config))

    if config.dry_run:
        logger.info("Dry run; store not written", source=LogSource.STORE, category=LogCategory.SAVE)
    else:
        summary.backup_path = io_utils.save_store(store_path, store, suffix=config.backup_suffix)
        summary.saved = True
        logger.success(f"Store written: {store_path}", source=LogSource.STORE, category=LogCategory.SAVE)

    logger.step(f"Done. Total new entries: {summary.total_added}", category=LogCategory.PLAN)
    logger.info(
        f"Researchers processed: {summary.processed}, skipped: {summary.skipped}, failed: {summary.failed}",
        category=LogCategory.PLAN,
    )
    return summary
