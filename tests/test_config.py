import pytest

from orcidsync.config import (
    AUTHOR_SEARCH_ROWS,
    CROSSREF_DELAY_MS,
    CROSSREF_RETRY,
    MAX_TITLE_DISTANCE,
    ORCID_DELAY_MS,
    EnrichmentStrategy,
    RetryPolicy,
    SyncConfig,
)


def test_registry_delay_not_shorter_than_lookup_delay():
    """
    ORCID is throttled at least as much as Crossref.
    """
    assert ORCID_DELAY_MS >= CROSSREF_DELAY_MS > 0


def test_default_sync_config():
    config = SyncConfig()
    assert config.registry_delay_ms == ORCID_DELAY_MS
    assert config.lookup_delay_ms == CROSSREF_DELAY_MS
    assert config.title_distance_threshold == MAX_TITLE_DISTANCE == 6
    assert config.author_search_result_cap == AUTHOR_SEARCH_ROWS
    assert config.enrichment_strategy is EnrichmentStrategy.HARVEST
    assert config.registry_delay == ORCID_DELAY_MS / 1000.0
    assert config.lookup_delay == CROSSREF_DELAY_MS / 1000.0


def test_strategy_accepts_plain_strings():
    assert SyncConfig(enrichment_strategy="per-work").enrichment_strategy is EnrichmentStrategy.PER_WORK
    with pytest.raises(ValueError):
        SyncConfig(enrichment_strategy="guess")


@pytest.mark.parametrize("overrides", [
    {"registry_delay_ms": 100, "lookup_delay_ms": 200},
    {"registry_delay_ms": -1, "lookup_delay_ms": 0},
    {"title_distance_threshold": -1},
    {"author_search_result_cap": 0},
])
def test_invalid_sync_config(overrides):
    with pytest.raises(ValueError):
        SyncConfig(**overrides)


def test_retry_policy_bounds():
    """
    A single DOI lookup gets exactly one re-attempt by default.
    """
    assert CROSSREF_RETRY.max_attempts == 2
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
    with pytest.raises(ValueError):
        RetryPolicy(backoff_seconds=-1)
