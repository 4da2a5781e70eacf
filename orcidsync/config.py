from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum

ORCID_BASE = "https://pub.orcid.org/v3.0"
CROSSREF_BASE = "https://api.crossref.org/works"
DOI_RESOLVER = "https://doi.org"

DEFAULT_MAPPING_FILE = "data/mapping.json"
DEFAULT_STORE_FILE = "data/publications.json"
BACKUP_SUFFIX = ".bak"

# contact address sent with every request so the public APIs can reach us
# before throttling; ORCIDSYNC_EMAIL overrides it without touching the code
DEFAULT_CONTACT_EMAIL = os.environ.get("ORCIDSYNC_EMAIL", "webmaster@example.org")
CLIENT_NAME = "orcidsync/1.0"

# wait after each researcher's ORCID work and after each Crossref call;
# ORCID is the stricter of the two so its delay must never be the shorter one
ORCID_DELAY_MS = 400
CROSSREF_DELAY_MS = 200

# two normalized titles this many edits apart (or fewer) are the same paper
MAX_TITLE_DISTANCE = 6

# rows requested from the Crossref author search when ORCID yields nothing
AUTHOR_SEARCH_ROWS = 50

# HTTP request configuration
# Default timeout for HTTP requests (in seconds)
HTTP_TIMEOUT_DEFAULT = 15.0

# transport-level retries handled by urllib3 for rate limiting and gateway errors
HTTP_BACKOFF_INITIAL = 0.5
HTTP_MAX_RETRIES = 1
HTTP_RETRY_STATUS_CODES = (429, 502, 503, 504)

# Valid year range for publications (four digits)
VALID_YEAR_MIN = 1000
VALID_YEAR_MAX = 9999


class EnrichmentStrategy(str, Enum):
    """
    How ORCID works are turned into stored records.

    PER_WORK keeps every ORCID work and overlays Crossref metadata on the ones
    carrying a DOI. HARVEST collects the DOIs only and builds each record from
    Crossref alone, dropping ORCID titles and authors.
    """
    PER_WORK = "per-work"
    HARVEST = "harvest"


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry for one class of external call: at most max_attempts tries,
    sleeping backoff_seconds between them.
    """
    max_attempts: int = 2
    backoff_seconds: float = 1.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff_seconds < 0:
            raise ValueError("backoff_seconds cannot be negative")


# listing failures are researcher-scoped and not retried; a single DOI lookup
# gets one more try after a short fixed wait
ORCID_RETRY = RetryPolicy(max_attempts=1, backoff_seconds=0.0)
CROSSREF_RETRY = RetryPolicy(max_attempts=2, backoff_seconds=1.0)


@dataclass
class SyncConfig:
    """
    Settings consumed by the sync pipeline. Defaults mirror the module
    constants above; the CLI overrides individual fields.
    """
    registry_delay_ms: int = ORCID_DELAY_MS
    lookup_delay_ms: int = CROSSREF_DELAY_MS
    title_distance_threshold: int = MAX_TITLE_DISTANCE
    author_search_result_cap: int = AUTHOR_SEARCH_ROWS
    enrichment_strategy: EnrichmentStrategy = EnrichmentStrategy.HARVEST
    fetch_details: bool = True
    contact_email: str = DEFAULT_CONTACT_EMAIL
    fallback_require_author_match: bool = False
    orcid_retry: RetryPolicy = field(default_factory=lambda: ORCID_RETRY)
    crossref_retry: RetryPolicy = field(default_factory=lambda: CROSSREF_RETRY)
    backup_suffix: str = BACKUP_SUFFIX
    dry_run: bool = False

    def __post_init__(self):
        self.enrichment_strategy = EnrichmentStrategy(self.enrichment_strategy)
        if self.registry_delay_ms < 0 or self.lookup_delay_ms < 0:
            raise ValueError("delays cannot be negative")
        if self.registry_delay_ms < self.lookup_delay_ms:
            raise ValueError(
                f"registry delay ({self.registry_delay_ms} ms) must not be shorter "
                f"than lookup delay ({self.lookup_delay_ms} ms)"
            )
        if self.title_distance_threshold < 0:
            raise ValueError("title_distance_threshold cannot be negative")
        if self.author_search_result_cap < 1:
            raise ValueError("author_search_result_cap must be at least 1")

    @property
    def registry_delay(self) -> float:
        return self.registry_delay_ms / 1000.0

    @property
    def lookup_delay(self) -> float:
        return self.lookup_delay_ms / 1000.0
