from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from unidecode import unidecode

from .config import VALID_YEAR_MIN, VALID_YEAR_MAX
from .exceptions import DECODE_ERRORS, NUMERIC_ERRORS, PARSE_ERRORS


__all__ = [
    "normalize_title",
    "strip_accents",
    "normalize_person_name",
    "extract_last_name",
    "author_in_text",
    "join_names",
    "coerce_year",
    "year_from_date_parts",
    "safe_get_nested",
    "first_of",
    "name_from_parts",
]

_NON_TITLE_CHARS = re.compile(r"[^a-zA-Z0-9 ]")


def normalize_title(t: Optional[str]) -> str:
    """
    Normalize a title for comparison: drop every character outside
    [a-zA-Z0-9 ], collapse whitespace, and lowercase.
    """
    if not t:
        return ""
    s = _NON_TITLE_CHARS.sub("", str(t))
    return " ".join(s.split()).lower()


def strip_accents(s: str) -> str:
    """
    Remove accents and diacritics from a string so visually similar text from
    different locales can be compared more reliably.
    """
    try:
        return unidecode(s)
    except PARSE_ERRORS + DECODE_ERRORS:
        return s


def normalize_person_name(n: Optional[Any]) -> str:
    """
    Transliterate a person name to ASCII, collapse whitespace, and lowercase it.
    """
    if not n:
        return ""
    return " ".join(strip_accents(str(n)).split()).lower()


def extract_last_name(full_name: Optional[str]) -> str:
    """
    Pull the family name out of "Given Family" or "Family, Given" forms.
    """
    name = normalize_person_name(full_name)
    if not name:
        return ""
    if "," in name:
        return name.split(",", 1)[0].strip()
    return name.split()[-1]


def author_in_text(target_author: Optional[str], text: Any) -> bool:
    """
    Check whether the target author's family name appears as a word in a
    comma-joined author string.
    """
    last = extract_last_name(target_author)
    if not last or not text:
        return False
    haystack = normalize_person_name(text)
    return re.search(rf"\b{re.escape(last)}\b", haystack) is not None


def join_names(names: List[str]) -> str:
    """
    Join author names with ", ", skipping blanks.
    """
    return ", ".join(n.strip() for n in names if n and n.strip())


def coerce_year(value: Any) -> Optional[int]:
    """
    Turn a year given as an int or a string into a four-digit int, or None when
    it cannot be read or falls outside the valid range.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        year = int(str(value).strip()[:4]) if isinstance(value, str) else int(value)
    except NUMERIC_ERRORS:
        return None
    if VALID_YEAR_MIN <= year <= VALID_YEAR_MAX:
        return year
    return None


def year_from_date_parts(date_obj: Any) -> Optional[int]:
    """
    Read the year from a Crossref date object such as
    {"date-parts": [[2020, 5, 1]]}.
    """
    parts = safe_get_nested(date_obj, "date-parts")
    if not isinstance(parts, list) or not parts:
        return None
    first = parts[0]
    if not isinstance(first, list) or not first:
        return None
    return coerce_year(first[0])


def safe_get_nested(obj: Any, *keys: str, default=None) -> Any:
    """
    Safely get a nested dictionary value with null-safety, traversing multiple keys
    and returning a default if any key is missing.
    """
    current = obj
    for key in keys:
        if not isinstance(current, dict):
            return default
        current = current.get(key)
        if current is None:
            return default
    return current


def first_of(value: Any) -> str:
    """
    Return the first entry of a list-valued field (Crossref wraps titles and
    container titles in lists), or the value itself when it is a plain string.
    """
    if isinstance(value, list):
        for item in value:
            if item:
                return str(item).strip()
        return ""
    if isinstance(value, str):
        return value.strip()
    return ""


def name_from_parts(d: Dict[str, Any]) -> str:
    """
    Build a display name from a dictionary carrying given/family components.
    """
    given = str(d.get("given") or "").strip()
    family = str(d.get("family") or "").strip()
    return f"{given} {family}".strip()
