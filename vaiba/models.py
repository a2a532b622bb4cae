"""Request-scoped data models for the proximity search."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class Coordinate:
    latitude: float
    longitude: float

    def as_param(self) -> str:
        """Render as the ``lat,lng`` string the Maps APIs expect."""
        return f"{self.latitude},{self.longitude}"


@dataclass(frozen=True, slots=True)
class SearchRequest:
    query: str
    origin_name: str
    radius_meters: float

    @property
    def radius_km(self) -> float:
        return self.radius_meters / 1000


@dataclass(frozen=True, slots=True)
class CandidatePlace:
    """A deduplicated text-search hit that has not been enriched yet."""

    external_id: str
    display_name: str
    coordinate: Coordinate
    formatted_address: Optional[str] = None


@dataclass(frozen=True, slots=True)
class EnrichedResult:
    """A nearby place with contact details and its distance from the origin."""

    name: str
    industry: str
    distance_km: float
    coordinate: Coordinate
    phone_number: str = ""
    address: str = ""
    website: str = ""
