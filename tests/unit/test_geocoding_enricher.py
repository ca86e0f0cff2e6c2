# tests/unit/test_geocoding_enricher.py

import httpx

from src.infrastructure.db.models import Event
from src.infrastructure.geocoding.geocoding_enricher import GeocodingEnricher, build_gmap_url


def _event() -> Event:
    return Event(
        event_name="Riverside Jazz Night",
        address="1 Harbor Way",
        city="Portland",
        state="OR",
        zip_code="97201",
    )


def _enricher(handler) -> GeocodingEnricher:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return GeocodingEnricher(client=client, api_key="test-key", url="https://geo.test/json")


def test_enrich_sets_coordinates_and_map_link():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200,
            json={"results": [{"geometry": {"location": {"lat": 45.51, "lng": -122.68}}}]},
        )

    event = _event()

    assert _enricher(handler).enrich(event) is True
    assert event.latitude == 45.51
    assert event.longitude == -122.68
    assert event.gmap_url == build_gmap_url("1 Harbor Way, Portland, OR, 97201")
    assert seen["params"] == {"address": "1 Harbor Way, Portland, OR, 97201", "key": "test-key"}


def test_gmap_url_keeps_commas_and_encodes_spaces():
    url = build_gmap_url("1 Harbor Way, Portland, OR, 97201")

    assert url == "https://www.google.com/maps/search/?api=1&query=1+Harbor+Way,+Portland,+OR,+97201"


def test_enrich_with_no_results_leaves_location_unset():
    event = _event()

    enriched = _enricher(lambda request: httpx.Response(200, json={"results": []})).enrich(event)

    assert enriched is False
    assert event.latitude is None
    assert event.gmap_url is None


def test_enrich_with_http_error_keeps_previous_location():
    event = _event()
    event.latitude, event.longitude = 1.0, 2.0

    enriched = _enricher(lambda request: httpx.Response(503)).enrich(event)

    assert enriched is False
    assert (event.latitude, event.longitude) == (1.0, 2.0)


def test_enrich_with_transport_error():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    assert _enricher(handler).enrich(_event()) is False


def test_enrich_without_api_key_makes_no_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    enricher = GeocodingEnricher(client=client, api_key="")

    assert enricher.enrich(_event()) is False
    assert calls == []


def test_enrich_with_malformed_url():
    def handler(request):
        raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")

    event = _event()

    assert _enricher(handler).enrich(event) is False
    assert event.gmap_url is None
