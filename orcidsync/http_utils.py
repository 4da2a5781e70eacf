from __future__ import annotations

import json
import time
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import (
    CLIENT_NAME,
    DEFAULT_CONTACT_EMAIL,
    HTTP_BACKOFF_INITIAL,
    HTTP_MAX_RETRIES,
    HTTP_RETRY_STATUS_CODES,
    HTTP_TIMEOUT_DEFAULT,
    RetryPolicy,
)
from .exceptions import ALL_API_ERRORS, ALL_FETCH_ERRORS
from .log_utils import logger, LogCategory

T = TypeVar('T')

# Global session for connection pooling
_SESSION = requests.Session()

# urllib3 only retries throttling and gateway statuses here; everything else
# is left to the per-call RetryPolicy
_RETRY_STRATEGY = Retry(
    total=HTTP_MAX_RETRIES,
    backoff_factor=HTTP_BACKOFF_INITIAL,
    status_forcelist=HTTP_RETRY_STATUS_CODES,
    allowed_methods=["GET"],
    respect_retry_after_header=True,
    raise_on_status=False,
)
_ADAPTER = HTTPAdapter(max_retries=_RETRY_STRATEGY)
_SESSION.mount("https://", _ADAPTER)
_SESSION.mount("http://", _ADAPTER)

_contact_email = DEFAULT_CONTACT_EMAIL


def set_contact_email(email: Optional[str]) -> None:
    """
    Set the contact address advertised in the User-Agent of every request.
    """
    global _contact_email
    _contact_email = (email or "").strip() or DEFAULT_CONTACT_EMAIL


def default_headers() -> Dict[str, str]:
    """
    Headers sent with every request: JSON content negotiation plus an
    identifying User-Agent with a contact address, as ORCID and Crossref ask of
    polite clients.
    """
    return {
        "Accept": "application/json",
        "User-Agent": f"{CLIENT_NAME} (mailto:{_contact_email})",
    }


def handle_api_errors(default_return=None, source: Optional[str] = None):
    """
    Decorator that logs a failed call, including a body that is not valid
    JSON, as a warning and returns a default value instead of raising.
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except ALL_FETCH_ERRORS as e:
                logger.warn(f"{func.__name__} failed: {e}", source=source, category=LogCategory.ERROR)
                return default_return
        return wrapper
    return decorator


def call_with_retry(func: Callable[..., T], *args, policy: RetryPolicy, **kwargs) -> T:
    """
    Call func up to policy.max_attempts times, sleeping policy.backoff_seconds
    between attempts. Only transport and decoding errors are retried; a 404 is
    a definite answer and is raised at once, as is anything else.
    """
    attempt = 1
    while True:
        try:
            return func(*args, **kwargs)
        except ALL_API_ERRORS as e:
            if attempt >= policy.max_attempts or _is_not_found(e):
                raise
            logger.debug(
                f"{getattr(func, '__name__', 'call')} failed ({e}); retry {attempt}/{policy.max_attempts - 1}",
                category=LogCategory.FETCH,
            )
            attempt += 1
            if policy.backoff_seconds > 0:
                time.sleep(policy.backoff_seconds)


def _is_not_found(exc: BaseException) -> bool:
    response = getattr(exc, "response", None)
    return response is not None and getattr(response, "status_code", None) == 404


def _decode_json_bytes(raw: bytes, url: str) -> Any:
    """
    Decode a UTF-8 JSON response, including a short preview of invalid data in
    error messages.
    """
    try:
        return json.loads(raw.decode("utf-8"))
    except json.JSONDecodeError as ex:
        preview = raw[:256].decode("utf-8", errors="replace")
        raise ValueError(f"Invalid JSON from {url!r}: {ex.msg} at pos {ex.pos}; preview={preview!r}") from ex


def http_get_json(
        url: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: float = HTTP_TIMEOUT_DEFAULT,
) -> Any:
    """
    GET a URL with the polite default headers and return the parsed JSON body.
    Raises requests errors for transport failures and non-2xx statuses, and
    ValueError for a body that is not JSON.
    """
    resp = _SESSION.get(url, params=params, headers=default_headers(), timeout=timeout)
    resp.raise_for_status()
    return _decode_json_bytes(resp.content, resp.url or url)
