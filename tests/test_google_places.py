import pytest
import requests

from vaiba.vendors import google_places


class DummyResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError("http error")

    def json(self):
        return self._payload


class DummySession:
    def __init__(self):
        self.calls = []
        self.responses = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture(autouse=True)
def patch_session(monkeypatch):
    session = DummySession()
    monkeypatch.setattr(google_places, "_SESSION", session)
    monkeypatch.setattr(google_places.time, "sleep", lambda _: None)
    return session


def test_geocode_success(patch_session):
    patch_session.responses = [DummyResponse(payload={"status": "OK", "results": [{"geometry": {}}]})]
    payload = google_places.geocode("München", "key")
    assert payload["results"]
    url, params, timeout = patch_session.calls[0]
    assert url.endswith("/geocode/json")
    assert params == {"address": "München", "key": "key"}
    assert timeout == 10


def test_geocode_zero_results_is_not_an_error(patch_session):
    patch_session.responses = [DummyResponse(payload={"status": "ZERO_RESULTS", "results": []})]
    assert google_places.geocode("Nowhere", "key")["results"] == []


def test_text_search_passes_location_radius_and_token(patch_session):
    patch_session.responses = [DummyResponse(payload={"status": "OK", "results": []})]
    google_places.text_search(
        "pizza",
        "key",
        location="48.1,11.5",
        radius=1650,
        pagetoken="tok",
        language="de",
        timeout=5,
    )
    url, params, timeout = patch_session.calls[0]
    assert "textsearch" in url
    assert params["query"] == "pizza"
    assert params["location"] == "48.1,11.5"
    assert params["radius"] == 1650
    assert params["pagetoken"] == "tok"
    assert params["language"] == "de"
    assert timeout == 5


def test_text_search_omits_optional_params(patch_session):
    patch_session.responses = [DummyResponse(payload={"status": "OK", "results": []})]
    google_places.text_search("pizza", "key")
    _, params, _ = patch_session.calls[0]
    assert set(params) == {"query", "key"}


def test_text_search_error_status(patch_session):
    patch_session.responses = [DummyResponse(payload={"status": "INVALID_REQUEST", "error_message": "bad"})]
    with pytest.raises(google_places.GooglePlacesError) as excinfo:
        google_places.text_search("pizza", "key")
    assert excinfo.value.status == "INVALID_REQUEST"
    assert len(patch_session.calls) == 1


def test_request_denied_raises_auth_error(patch_session):
    patch_session.responses = [
        DummyResponse(payload={"status": "REQUEST_DENIED", "error_message": "The provided API key is invalid."})
    ]
    with pytest.raises(google_places.GooglePlacesAuthError):
        google_places.geocode("Berlin", "bad-key")


def test_transient_body_status_is_retried(patch_session):
    patch_session.responses = [
        DummyResponse(payload={"status": "OVER_QUERY_LIMIT"}),
        DummyResponse(payload={"status": "UNKNOWN_ERROR"}),
        DummyResponse(payload={"status": "OK", "results": [{"place_id": "1"}]}),
    ]
    payload = google_places.text_search("pizza", "key", max_retries=2)
    assert payload["results"] == [{"place_id": "1"}]
    assert len(patch_session.calls) == 3


def test_transient_body_status_gives_up_after_max_retries(patch_session):
    patch_session.responses = [DummyResponse(payload={"status": "OVER_QUERY_LIMIT"})] * 2
    with pytest.raises(google_places.GooglePlacesError) as excinfo:
        google_places.text_search("pizza", "key", max_retries=1)
    assert excinfo.value.status == "OVER_QUERY_LIMIT"
    assert len(patch_session.calls) == 2


def test_transport_errors_are_wrapped_without_manual_retry(patch_session):
    # Connection and 5xx retries happen inside the session's adapter.
    patch_session.responses = [requests.ConnectionError("down")]
    with pytest.raises(google_places.GooglePlacesError):
        google_places.place_details("pid", "key", max_retries=3)
    assert len(patch_session.calls) == 1


def test_http_error_status_is_wrapped(patch_session):
    patch_session.responses = [DummyResponse(status_code=503)]
    with pytest.raises(google_places.GooglePlacesError):
        google_places.geocode("Berlin", "key")
    assert len(patch_session.calls) == 1


def test_build_session_mounts_retrying_adapter():
    session = google_places.build_session(total=4, backoff_factor=0.2)

    for prefix in ("http://", "https://"):
        retries = session.get_adapter(f"{prefix}maps.googleapis.com").max_retries
        assert retries.total == 4
        assert retries.backoff_factor == 0.2
        assert set(retries.status_forcelist) == {429, 500, 502, 503, 504}
        assert "GET" in retries.allowed_methods


def test_place_details_success(patch_session):
    patch_session.responses = [DummyResponse(payload={"status": "OK", "result": {"name": "Acme"}})]
    result = google_places.place_details("pid", "key")
    assert result["name"] == "Acme"
    _, params, _ = patch_session.calls[0]
    assert params["fields"] == "name,formatted_phone_number,formatted_address,website"


def test_place_details_error(patch_session):
    patch_session.responses = [DummyResponse(payload={"status": "NOT_FOUND", "error_message": "gone"})]
    with pytest.raises(google_places.GooglePlacesError):
        google_places.place_details("pid", "key")
