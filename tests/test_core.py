from unittest.mock import Mock, patch

import pytest
import requests

from orcidsync import http_utils, id_utils, text_utils
from orcidsync.config import RetryPolicy
from orcidsync.exceptions import RecordNotFoundError
from orcidsync.models import Researcher, WorkRecord, WorkSource

# ===== DOI NORMALIZATION =====

def test_doi_normalization():
    """
    Test DOI normalization across resolver prefixes and letter case.
    """
    test_cases = [
        ("https://DOI.org/10.1/ABC", "10.1/abc"),
        ("http://doi.org/10.1/abc", "10.1/abc"),
        ("https://dx.doi.org/10.1000/XYZ.123", "10.1000/xyz.123"),
        ("HTTP://DX.DOI.ORG/10.1/a", "10.1/a"),
        ("  10.1/Spaced  ", "10.1/spaced"),
        ("doi:10.1/Label", "10.1/label"),
        ("10.1/abc", "10.1/abc"),
        ("", ""),
        (None, ""),
    ]

    for input_val, expected in test_cases:
        output = id_utils.normalize_doi(input_val)
        assert output == expected, f"Expected '{expected}', got '{output}'"


def test_doi_normalization_is_idempotent():
    for raw in ["https://DOI.org/10.1/ABC", "10.1002/(SICI)1097", "https://dx.doi.org/10.5/X-Y"]:
        once = id_utils.normalize_doi(raw)
        assert id_utils.normalize_doi(once) == once


def test_doi_url():
    assert id_utils.doi_url("https://doi.org/10.1/FOO") == "https://doi.org/10.1/foo"
    assert id_utils.doi_url("") == ""


def test_orcid_normalization():
    assert id_utils.normalize_orcid("https://orcid.org/0000-0002-1825-009x") == "0000-0002-1825-009X"
    assert id_utils.normalize_orcid(" 0000-0000-0000-0001 ") == "0000-0000-0000-0001"
    assert id_utils.normalize_orcid(None) == ""


def test_find_doi_in_external_ids():
    """
    The DOI type is matched by substring, case-insensitively, and the id URL is
    used when the value is missing.
    """
    ids = [
        {"external-id-type": "eid", "external-id-value": "2-s2.0-1"},
        {"external-id-type": "DOI", "external-id-value": None,
         "external-id-url": {"value": "https://doi.org/10.9/URL"}},
    ]
    assert id_utils.find_doi_in_external_ids(ids) == "10.9/url"
    assert id_utils.find_doi_in_external_ids([{"external-id-type": "isbn", "external-id-value": "x"}]) == ""
    assert id_utils.find_doi_in_external_ids(None) == ""


def test_find_doi_tolerates_malformed_id_url():
    ids = [{"external-id-type": "doi", "external-id-value": "", "external-id-url": "https://doi.org/10.9/x"}]
    assert id_utils.find_doi_in_external_ids(ids) == ""

# ===== TITLE NORMALIZATION =====

def test_title_normalization():
    """
    Test title normalization: non-alphanumerics dropped, whitespace collapsed, lowercased.
    """
    test_cases = [
        ("Deep-Learning, 2021!", "deeplearning 2021"),
        ("Attention Is All You Need", "attention is all you need"),
        ("Title   Spaces  ", "title spaces"),
        ("BERT: Pre-training", "bert pretraining"),
        ("Café Society", "caf society"),
        ("", ""),
        (None, ""),
    ]

    for input_val, expected in test_cases:
        output = text_utils.normalize_title(input_val)
        assert output == expected, f"Expected '{expected}', got '{output}'"

# ===== NAMES AND YEARS =====

def test_person_name_helpers():
    assert text_utils.normalize_person_name("  José   GARCÍA ") == "jose garcia"
    assert text_utils.extract_last_name("Doe, Jane") == "doe"
    assert text_utils.extract_last_name("Jane van Doe") == "doe"
    assert text_utils.author_in_text("José García", "J. Garcia, A. Smith")
    assert not text_utils.author_in_text("Jane Doe", "John Doefield")
    assert not text_utils.author_in_text("", "Jane Doe")


def test_coerce_year():
    test_cases = [
        (2020, 2020),
        ("2020", 2020),
        ("2020-05-01", 2020),
        (" 1999 ", 1999),
        ("abc", None),
        (99, None),
        (None, None),
        ("", None),
        (True, None),
    ]
    for input_val, expected in test_cases:
        assert text_utils.coerce_year(input_val) == expected, f"coerce_year({input_val!r})"


def test_year_from_date_parts():
    assert text_utils.year_from_date_parts({"date-parts": [[2019, 5, 1]]}) == 2019
    assert text_utils.year_from_date_parts({"date-parts": [[None]]}) is None
    assert text_utils.year_from_date_parts({"date-parts": []}) is None
    assert text_utils.year_from_date_parts(None) is None


def test_first_of_and_join_names():
    assert text_utils.first_of(["", "Journal X", "Other"]) == "Journal X"
    assert text_utils.first_of("Plain") == "Plain"
    assert text_utils.first_of(None) == ""
    assert text_utils.join_names(["Jane Doe", "", "  ", "John Roe"]) == "Jane Doe, John Roe"

# ===== MODELS =====

def test_work_record_invariants():
    """
    DOIs are stored canonical and years as ints whatever the input shape.
    """
    work = WorkRecord(title="T", doi="https://doi.org/10.1/ABC", year="2020", citations=None)
    assert work.doi == "10.1/abc"
    assert work.year == 2020 and isinstance(work.year, int)
    assert work.citations == 0
    assert work.source is WorkSource.ORCID


def test_work_record_to_dict_omits_unset_fields():
    data = WorkRecord(title="T", source=WorkSource.CROSSREF).to_dict()
    assert "id" not in data
    assert "year" not in data
    assert data["source"] == "CrossRef"
    assert data["citations"] == 0

    data = WorkRecord(title="T", id=7, year=2001).to_dict()
    assert data["id"] == 7
    assert data["year"] == 2001


def test_work_record_from_dict_tolerates_old_shapes():
    work = WorkRecord.from_dict({"title": "Old", "year": "2015", "doi": "https://dx.doi.org/10.7/OLD",
                                 "source": "Scholar"})
    assert work.year == 2015
    assert work.doi == "10.7/old"
    assert work.source is WorkSource.ORCID
    assert WorkRecord.from_dict(work.to_dict()) == work


def test_researcher_from_mapping():
    r = Researcher.from_mapping("jdoe", {"name": " Jane Doe ", "orcid": "https://orcid.org/0000-0000-0000-0001"})
    assert r == Researcher(key="jdoe", name="Jane Doe", orcid="0000-0000-0000-0001")

    r = Researcher.from_mapping("anon", {})
    assert r.name == "anon"
    assert r.orcid == ""

# ===== HTTP =====

def test_default_headers_identify_client():
    http_utils.set_contact_email("lab@example.edu")
    try:
        headers = http_utils.default_headers()
        assert headers["Accept"] == "application/json"
        assert "mailto:lab@example.edu" in headers["User-Agent"]
    finally:
        http_utils.set_contact_email(None)


def test_http_get_json_decodes_body():
    resp = Mock(content=b'{"message": {"DOI": "10.1/x"}}', url="https://api.crossref.org/works/10.1/x")
    resp.raise_for_status.return_value = None
    with patch.object(http_utils._SESSION, "get", return_value=resp) as get:
        data = http_utils.http_get_json("https://api.crossref.org/works/10.1/x")
    assert data == {"message": {"DOI": "10.1/x"}}
    assert get.call_args.kwargs["headers"]["Accept"] == "application/json"


def test_http_get_json_rejects_invalid_json():
    resp = Mock(content=b"<html>nope</html>", url="https://example.org")
    resp.raise_for_status.return_value = None
    with patch.object(http_utils._SESSION, "get", return_value=resp):
        with pytest.raises(ValueError, match="Invalid JSON"):
            http_utils.http_get_json("https://example.org")


def test_call_with_retry_retries_once_then_succeeds():
    func = Mock(side_effect=[requests.exceptions.ConnectionError("reset"), "ok"])
    with patch.object(http_utils.time, "sleep") as sleep:
        result = http_utils.call_with_retry(func, "a", policy=RetryPolicy(max_attempts=2, backoff_seconds=1.5))
    assert result == "ok"
    assert func.call_count == 2
    sleep.assert_called_once_with(1.5)


def test_call_with_retry_gives_up_after_max_attempts():
    func = Mock(side_effect=requests.exceptions.Timeout("slow"))
    with patch.object(http_utils.time, "sleep"):
        with pytest.raises(requests.exceptions.Timeout):
            http_utils.call_with_retry(func, policy=RetryPolicy(max_attempts=2, backoff_seconds=0.1))
    assert func.call_count == 2


def test_call_with_retry_does_not_retry_not_found():
    not_found = requests.exceptions.HTTPError("404", response=Mock(status_code=404))
    func = Mock(side_effect=not_found)
    with pytest.raises(requests.exceptions.HTTPError):
        http_utils.call_with_retry(func, policy=RetryPolicy(max_attempts=3, backoff_seconds=0))
    assert func.call_count == 1

    func = Mock(side_effect=RecordNotFoundError("nothing"))
    with pytest.raises(RecordNotFoundError):
        http_utils.call_with_retry(func, policy=RetryPolicy(max_attempts=3, backoff_seconds=0))
    assert func.call_count == 1


def test_handle_api_errors_returns_default():
    @http_utils.handle_api_errors(default_return="fallback")
    def broken():
        raise requests.exceptions.ConnectionError("down")

    assert broken() == "fallback"


def test_handle_api_errors_covers_undecodable_body():
    @http_utils.handle_api_errors(default_return=None)
    def garbled():
        raise ValueError("Invalid JSON from 'https://pub.orcid.org/v3.0/x/work/7'")

    assert garbled() is None
