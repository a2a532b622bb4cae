"""Client utilities for the Google Geocoding and Places web services."""

import logging
import random
import time
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)
_BASE_URL = "https://maps.googleapis.com/maps/api"

DEFAULT_TIMEOUT = 10
DEFAULT_MAX_RETRIES = 2
RETRY_DELAY_SECONDS = 1.0
HTTP_RETRY_TOTAL = 3
HTTP_BACKOFF_FACTOR = 0.5
HTTP_RETRY_STATUSES = (429, 500, 502, 503, 504)
DETAIL_FIELDS = "name,formatted_phone_number,formatted_address,website"

_SUCCESS_STATUSES = {"OK", "ZERO_RESULTS"}
# Reported in the JSON body with HTTP 200, so urllib3 never sees them.
_TRANSIENT_STATUSES = {"OVER_QUERY_LIMIT", "UNKNOWN_ERROR"}


def build_session(total: int = HTTP_RETRY_TOTAL, backoff_factor: float = HTTP_BACKOFF_FACTOR) -> requests.Session:
    """Session that retries connection errors and 429/5xx answers at the transport level."""
    session = requests.Session()
    retries = Retry(
        total=total,
        backoff_factor=backoff_factor,
        status_forcelist=HTTP_RETRY_STATUSES,
        allowed_methods=("GET",),
    )
    adapter = HTTPAdapter(max_retries=retries)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


_SESSION = build_session()


class GooglePlacesError(RuntimeError):
    """Raised when the Places API returns a non-successful response."""

    def __init__(self, message: str, status: Optional[str] = None, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status = status
        self.payload = payload or {}


class GooglePlacesAuthError(GooglePlacesError):
    """Raised when the API key is rejected (status REQUEST_DENIED)."""


def _get(
    path: str,
    params: Dict[str, Any],
    *,
    timeout: float = DEFAULT_TIMEOUT,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> Dict[str, Any]:
    """GET a Maps endpoint and return its JSON payload.

    Transport failures are retried by the session's adapter; ``max_retries``
    bounds the retries for OVER_QUERY_LIMIT and UNKNOWN_ERROR body statuses.
    """
    url = f"{_BASE_URL}/{path}"
    attempt = 0
    while True:
        attempt += 1
        try:
            response = _SESSION.get(url, params=params, timeout=timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            logger.error("%s request failed: %s", path, exc)
            raise GooglePlacesError(f"{path} request failed: {exc}") from exc

        status = payload.get("status")
        if status in _SUCCESS_STATUSES:
            return payload
        message = payload.get("error_message") or status or "unknown status"
        if status == "REQUEST_DENIED":
            logger.error("%s denied: error_message=%s", path, payload.get("error_message"))
            raise GooglePlacesAuthError(message, status=status, payload=payload)
        if status in _TRANSIENT_STATUSES and attempt <= max_retries:
            logger.warning("%s returned %s (attempt %s/%s)", path, status, attempt, max_retries + 1)
            time.sleep(RETRY_DELAY_SECONDS * attempt + random.uniform(0, 0.5))
            continue
        logger.error("%s failed: status=%s, error_message=%s", path, status, payload.get("error_message"))
        raise GooglePlacesError(message, status=status, payload=payload)


def geocode(address: str, api_key: str, **kwargs: Any) -> Dict[str, Any]:
    params = {"address": address, "key": api_key}
    return _get("geocode/json", params, **kwargs)


def text_search(
    query: str,
    api_key: str,
    location: Optional[str] = None,
    radius: Optional[int] = None,
    pagetoken: Optional[str] = None,
    language: Optional[str] = None,
    **kwargs: Any,
) -> Dict[str, Any]:
    params: Dict[str, Any] = {"query": query, "key": api_key}
    if location:
        params["location"] = location
    if radius:
        params["radius"] = radius
    if pagetoken:
        params["pagetoken"] = pagetoken
    if language:
        params["language"] = language
    return _get("place/textsearch/json", params, **kwargs)


def place_details(place_id: str, api_key: str, fields: str = DETAIL_FIELDS, **kwargs: Any) -> Dict[str, Any]:
    params = {"place_id": place_id, "key": api_key, "fields": fields}
    payload = _get("place/details/json", params, **kwargs)
    return payload.get("result", {})
