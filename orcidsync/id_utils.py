from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from .config import DOI_RESOLVER
from .text_utils import safe_get_nested


def normalize_doi(doi: Optional[str]) -> str:
    """
    Clean up a DOI string by removing resolver URL and "doi:" prefixes and
    lowercasing it, as DOIs are case-insensitive identifiers. Applying it to an
    already normalized DOI returns the same value.
    """
    if not doi:
        return ""
    d = str(doi).strip()
    # strip URL prefixes
    d = re.sub(r"^https?://(dx\.)?doi\.org/", "", d, flags=re.IGNORECASE)
    # remove "doi:" prefix
    d = re.sub(r"^doi:\s*", "", d, flags=re.IGNORECASE)
    return d.strip().lower()


def doi_url(doi: Optional[str]) -> str:
    """
    Build the resolver link for a DOI, or an empty string when there is none.
    """
    d = normalize_doi(doi)
    return f"{DOI_RESOLVER}/{d}" if d else ""


def normalize_orcid(orcid: Optional[str]) -> str:
    """
    Reduce an ORCID iD given as a bare identifier or a profile URL to the bare
    form, e.g. "https://orcid.org/0000-0002-1825-009x" -> "0000-0002-1825-009X".
    """
    if not orcid:
        return ""
    o = str(orcid).strip()
    o = re.sub(r"^https?://(www\.)?orcid\.org/", "", o, flags=re.IGNORECASE)
    return o.strip().strip("/").upper()


def find_doi_in_external_ids(external_ids: Any) -> str:
    """
    Return the first DOI in an ORCID external-id list, matching the id type by
    substring so variants such as "doi" and "DOI" are both accepted. Falls back
    to the id URL when the value is missing.
    """
    if not isinstance(external_ids, list):
        return ""
    for ext in external_ids:
        if not isinstance(ext, dict):
            continue
        id_type = str(ext.get("external-id-type") or "").lower()
        if "doi" not in id_type:
            continue
        value = ext.get("external-id-value")
        if not value:
            value = safe_get_nested(ext, "external-id-url", "value")
        return normalize_doi(value)
    return ""


def external_id_list(container: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Unwrap the {"external-id": [...]} envelope used by ORCID documents.
    """
    if not isinstance(container, dict):
        return []
    ids = container.get("external-id")
    return ids if isinstance(ids, list) else []
