from vaiba.etl import transform
from vaiba.models import CandidatePlace, Coordinate, EnrichedResult


def test_parse_location():
    assert transform.parse_location({"geometry": {"location": {"lat": 48.1, "lng": 11.5}}}) == Coordinate(48.1, 11.5)
    assert transform.parse_location({"geometry": {}}) is None
    assert transform.parse_location({}) is None


def test_to_candidate_skips_incomplete_results():
    assert transform.to_candidate({"name": "No id", "geometry": {"location": {"lat": 1, "lng": 2}}}) is None
    assert transform.to_candidate({"place_id": "p1", "name": "No geometry"}) is None

    candidate = transform.to_candidate(
        {
            "place_id": "p1",
            "name": "Praxis",
            "formatted_address": "Marienplatz 1",
            "geometry": {"location": {"lat": 48.1, "lng": 11.5}},
        }
    )
    assert candidate == CandidatePlace("p1", "Praxis", Coordinate(48.1, 11.5), "Marienplatz 1")


def test_to_enriched_result_uses_fallbacks():
    candidate = CandidatePlace("p1", "Praxis", Coordinate(48.1, 11.5), "Search address")

    result = transform.to_enriched_result(candidate, {}, industry="Zahnarzt", distance_km=1.2)
    assert result.address == "Search address"
    assert result.phone_number == ""
    assert result.website == ""

    result = transform.to_enriched_result(
        candidate,
        {"formatted_address": "Detail address", "formatted_phone_number": "089 123", "website": "https://x.de"},
        industry="Zahnarzt",
        distance_km=1.2,
    )
    assert result.address == "Detail address"
    assert result.phone_number == "089 123"
    assert result.website == "https://x.de"
    assert result.industry == "Zahnarzt"


def test_to_response_item_shape():
    result = EnrichedResult(
        name="Praxis",
        industry="Zahnarzt",
        distance_km=3.2,
        coordinate=Coordinate(48.15, 11.6),
        phone_number="089 123",
        address="Leopoldstr. 1",
        website="",
    )
    assert transform.to_response_item(result) == {
        "name": "Praxis",
        "industry": "Zahnarzt",
        "phoneNumber": "089 123",
        "email": "",
        "address": "Leopoldstr. 1",
        "website": "",
        "distance": 3.2,
        "coordinates": {"lat": 48.15, "lng": 11.6},
    }
