"""Multi-zone Google Places search around a geocoded origin.

The Places text search caps how many results a single query returns, so a
search for ``query`` within ``r`` meters is issued three times, at 0.33r,
0.66r and r. Hits are deduplicated by place id, filtered to the requested
radius using the haversine distance from the origin, enriched with contact
details and returned nearest first.
"""

from __future__ import annotations

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from vaiba.core.config import ConfigurationError, Settings, get_settings, require_api_key
from vaiba.core.geo import haversine_km, round_distance
from vaiba.etl.transform import parse_location, to_candidate, to_enriched_result
from vaiba.models import CandidatePlace, Coordinate, EnrichedResult, SearchRequest
from vaiba.vendors import google_places

logger = logging.getLogger(__name__)

ZONE_FACTORS = (0.33, 0.66, 1.0)
# A next_page_token is rejected by Google until it has been live for a short while.
PAGE_TOKEN_DELAY_SECONDS = 2.0
# Extra waits for a token still answered with INVALID_REQUEST before the zone gives up on it.
PAGE_TOKEN_RETRIES = 2


class SearchError(RuntimeError):
    """Base class for failures reported back to the caller."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.details = details


class ValidationError(SearchError):
    """Missing or malformed search input."""


class LocationNotFoundError(SearchError):
    """The geocoder returned no match for the origin name."""


class UpstreamError(SearchError):
    """Geocoding or a zone search failed."""

    def __init__(self, message: str, details: Any = None, status: Optional[str] = None):
        super().__init__(message, details=details)
        self.status = status


class SearchTimeoutError(UpstreamError):
    """The search exceeded its overall time budget."""


class _Deadline:
    def __init__(self, seconds: float):
        self._expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        return max(self._expires_at - time.monotonic(), 0.0)

    def check(self, stage: str) -> None:
        if self.remaining() <= 0:
            raise SearchTimeoutError(f"search timed out during {stage}")


def _is_blank(value: Any) -> bool:
    """None, false, 0 and whitespace-only strings all count as absent JSON input."""
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and value == 0:
        return True
    return not str(value).strip()


def validate_request(query: Any, origin_name: Any, radius_meters: Any) -> SearchRequest:
    """Check raw caller input and build a SearchRequest.

    Raises ValidationError with a ``{searchTerm, location, radius}`` details
    mapping when any field is absent, or when the radius is not a positive
    number.
    """
    missing = {
        "searchTerm": _is_blank(query),
        "location": _is_blank(origin_name),
        "radius": _is_blank(radius_meters),
    }
    if any(missing.values()):
        raise ValidationError("Missing required fields", details=missing)

    if isinstance(radius_meters, bool):
        raise ValidationError("radius must be numeric", details={"radius": radius_meters})
    try:
        radius = float(radius_meters)
    except (TypeError, ValueError):
        raise ValidationError("radius must be numeric", details={"radius": radius_meters}) from None
    if not math.isfinite(radius) or radius <= 0:
        raise ValidationError("radius must be positive", details={"radius": radius_meters})

    return SearchRequest(query=str(query).strip(), origin_name=str(origin_name).strip(), radius_meters=radius)


def _http_kwargs(settings: Settings) -> Dict[str, Any]:
    return {"timeout": settings.request_timeout, "max_retries": settings.max_retries}


def _call_upstream(stage: str, fn: Callable[..., Dict[str, Any]], *args: Any, **kwargs: Any) -> Dict[str, Any]:
    try:
        return fn(*args, **kwargs)
    except google_places.GooglePlacesAuthError as exc:
        logger.error("Google rejected the API key during %s", stage)
        raise ConfigurationError(f"Google Places API key was rejected: {exc}") from exc
    except Exception as exc:  # noqa: BLE001
        details = getattr(exc, "payload", None) or str(exc)
        raise UpstreamError(f"{stage} failed: {exc}", details=details, status=getattr(exc, "status", None)) from exc


def resolve_origin(origin_name: str, api_key: str, settings: Settings) -> Coordinate:
    payload = _call_upstream("geocoding", google_places.geocode, origin_name, api_key, **_http_kwargs(settings))
    results = payload.get("results") or []
    coordinate = parse_location(results[0]) if results else None
    if coordinate is None:
        raise LocationNotFoundError("Location not found", details=payload)
    logger.info("Resolved %s to %s", origin_name, coordinate.as_param())
    return coordinate


def zone_radii(radius_meters: float) -> List[int]:
    return [max(1, round(radius_meters * factor)) for factor in ZONE_FACTORS]


def fetch_zone(
    query: str,
    origin: Coordinate,
    radius: int,
    api_key: str,
    settings: Settings,
    deadline: _Deadline,
) -> List[Dict[str, Any]]:
    """Follow next_page_token for one zone, up to ``settings.max_pages`` pages.

    A continuation token that is still answered with INVALID_REQUEST after
    ``PAGE_TOKEN_RETRIES`` extra waits ends the zone with the pages already
    collected; an error on the first page aborts the search.
    """
    results: List[Dict[str, Any]] = []
    page_token: Optional[str] = None
    pages = 0
    token_retries = 0

    while True:
        deadline.check("zone search")
        try:
            payload = _call_upstream(
                "place search",
                google_places.text_search,
                query,
                api_key,
                location=origin.as_param(),
                radius=radius,
                pagetoken=page_token,
                language=settings.language,
                **_http_kwargs(settings),
            )
        except UpstreamError as exc:
            if not page_token or exc.status != "INVALID_REQUEST":
                raise
            if token_retries >= PAGE_TOKEN_RETRIES:
                logger.warning(
                    "Zone radius=%d page token never became valid; keeping %d results", radius, len(results)
                )
                break
            token_retries += 1
            time.sleep(PAGE_TOKEN_DELAY_SECONDS)
            continue

        token_retries = 0
        page_results = payload.get("results") or []
        results.extend(page_results)
        pages += 1
        logger.debug("Zone radius=%d page %d returned %d results", radius, pages, len(page_results))

        page_token = payload.get("next_page_token")
        if not page_token:
            break
        if pages >= settings.max_pages:
            logger.info("Zone radius=%d stopped at page cap %d with more results available", radius, pages)
            break
        time.sleep(PAGE_TOKEN_DELAY_SECONDS)

    return results


def deduplicate(zone_results: Sequence[Sequence[Dict[str, Any]]]) -> List[CandidatePlace]:
    """Merge zone hits in order, keeping the first occurrence of each place id."""
    seen: Dict[str, CandidatePlace] = {}
    for results in zone_results:
        for result in results:
            candidate = to_candidate(result)
            if candidate is None or candidate.external_id in seen:
                continue
            seen[candidate.external_id] = candidate
    return list(seen.values())


def search_zones(
    request: SearchRequest,
    origin: Coordinate,
    api_key: str,
    settings: Settings,
    deadline: _Deadline,
) -> List[CandidatePlace]:
    radii = zone_radii(request.radius_meters)
    logger.info("Starting multi-zone search: radii=%s", radii)

    executor = ThreadPoolExecutor(max_workers=len(radii))
    try:
        futures = [
            executor.submit(fetch_zone, request.query, origin, radius, api_key, settings, deadline)
            for radius in radii
        ]
        zone_results = [future.result(timeout=deadline.remaining()) for future in futures]
    except FutureTimeoutError as exc:
        raise SearchTimeoutError("search timed out during zone search") from exc
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    return deduplicate(zone_results)


def _enrich_one(
    candidate: CandidatePlace,
    distance_km: float,
    query: str,
    api_key: str,
    settings: Settings,
) -> Optional[EnrichedResult]:
    try:
        details = google_places.place_details(candidate.external_id, api_key, **_http_kwargs(settings))
    except Exception as exc:  # noqa: BLE001
        logger.warning("Failed to fetch details for %s (%s): %s", candidate.display_name, candidate.external_id, exc)
        return None
    return to_enriched_result(candidate, details, industry=query, distance_km=distance_km)


def within_radius(candidates: Sequence[CandidatePlace], origin: Coordinate, radius_km: float) -> List[Tuple[CandidatePlace, float]]:
    """Pair each candidate inside the radius with its rounded distance."""
    kept = []
    for candidate in candidates:
        distance = haversine_km(origin, candidate.coordinate)
        rounded = round_distance(distance)
        # The rounded value is what callers see, so it must not exceed the radius either;
        # e.g. 2.955 km rounds to 3.0 and is dropped for a 2960 m radius.
        if distance > radius_km or rounded > radius_km:
            continue
        kept.append((candidate, rounded))
    return kept


def enrich_candidates(
    request: SearchRequest,
    origin: Coordinate,
    candidates: Sequence[CandidatePlace],
    api_key: str,
    settings: Settings,
    deadline: _Deadline,
) -> List[EnrichedResult]:
    in_range = within_radius(candidates, origin, request.radius_km)
    logger.info("%d of %d places within %.1f km", len(in_range), len(candidates), request.radius_km)
    if not in_range:
        return []

    deadline.check("detail enrichment")
    executor = ThreadPoolExecutor(max_workers=min(settings.detail_workers, len(in_range)))
    try:
        futures = [
            executor.submit(_enrich_one, candidate, distance, request.query, api_key, settings)
            for candidate, distance in in_range
        ]
        enriched = [future.result(timeout=deadline.remaining()) for future in futures]
    except FutureTimeoutError as exc:
        raise SearchTimeoutError("search timed out during detail enrichment") from exc
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    return [result for result in enriched if result is not None]


def search(
    query: Any,
    origin_name: Any,
    radius_meters: Any,
    *,
    settings: Optional[Settings] = None,
) -> List[EnrichedResult]:
    """Find places matching ``query`` within ``radius_meters`` of ``origin_name``, nearest first."""
    request = validate_request(query, origin_name, radius_meters)
    settings = settings or get_settings()
    api_key = require_api_key(settings)
    deadline = _Deadline(settings.search_timeout_seconds)

    logger.info(
        "Searching query=%s location=%s radius=%sm",
        request.query,
        request.origin_name,
        request.radius_meters,
    )
    origin = resolve_origin(request.origin_name, api_key, settings)
    candidates = search_zones(request, origin, api_key, settings, deadline)
    logger.info("Found total of %d unique places before filtering", len(candidates))

    results = enrich_candidates(request, origin, candidates, api_key, settings, deadline)
    results.sort(key=lambda result: result.distance_km)
    logger.info("Returning %d places", len(results))
    return results
