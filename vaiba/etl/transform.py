"""Utilities for transforming Google Places responses into search results."""

import logging
from typing import Any, Dict, Optional

from vaiba.models import CandidatePlace, Coordinate, EnrichedResult

logger = logging.getLogger(__name__)


def parse_location(result: Dict[str, Any]) -> Optional[Coordinate]:
    location = (result.get("geometry") or {}).get("location") or {}
    lat = location.get("lat")
    lng = location.get("lng")
    if lat is None or lng is None:
        return None
    try:
        return Coordinate(latitude=float(lat), longitude=float(lng))
    except (TypeError, ValueError):
        return None


def to_candidate(result: Dict[str, Any]) -> Optional[CandidatePlace]:
    """Build a CandidatePlace from a text-search hit, or None if it lacks an id or location."""
    place_id = result.get("place_id")
    if not place_id:
        logger.debug("Skipping result without place_id: %s", result.get("name"))
        return None
    coordinate = parse_location(result)
    if coordinate is None:
        logger.debug("Skipping %s without geometry", place_id)
        return None
    return CandidatePlace(
        external_id=str(place_id),
        display_name=result.get("name") or "",
        coordinate=coordinate,
        formatted_address=result.get("formatted_address"),
    )


def to_enriched_result(
    candidate: CandidatePlace,
    details: Dict[str, Any],
    *,
    industry: str,
    distance_km: float,
) -> EnrichedResult:
    return EnrichedResult(
        name=candidate.display_name,
        industry=industry,
        distance_km=distance_km,
        coordinate=candidate.coordinate,
        phone_number=details.get("formatted_phone_number") or "",
        address=details.get("formatted_address") or candidate.formatted_address or "",
        website=details.get("website") or "",
    )


def to_response_item(result: EnrichedResult) -> Dict[str, Any]:
    """Serialize an EnrichedResult into the JSON shape the web client consumes."""
    return {
        "name": result.name,
        "industry": result.industry,
        "phoneNumber": result.phone_number,
        "email": "",
        "address": result.address,
        "website": result.website,
        "distance": result.distance_km,
        "coordinates": {
            "lat": result.coordinate.latitude,
            "lng": result.coordinate.longitude,
        },
    }
