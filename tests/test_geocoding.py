import asyncio

import httpx

from core.rate_limit import TokenBucket
from worker.geocoding import (
    Geocoder,
    extract_street_name,
    intersection_queries,
    mentions_municipality,
)
from worker.verified_coordinates import get_verified_coordinates, is_within_bounds, normalize_for_lookup


def _geocoder(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return Geocoder(base_url="https://geocoder.test/search", limiter=TokenBucket.every(0), client=client)


def test_verified_table_wins_without_provider_call():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500)

    geocoder = _geocoder(handler)
    result = asyncio.run(geocoder.geocode("6700 Division Street & 2800 Jersey Ridge Road"))

    assert (result.latitude, result.longitude) == (41.5419, -90.5434)
    assert calls == []


def test_normalize_for_lookup_expands_abbreviations():
    assert normalize_for_lookup("6700 Division St. &  2800 Jersey Ridge Rd.") == normalize_for_lookup(
        "6700 division street & 2800 jersey ridge road"
    )
    assert get_verified_coordinates("4600 EASTERN AVE & 2100 MARQUETTE ST") is not None


def test_in_bounds_result_accepted():
    seen_queries = []

    def handler(request):
        seen_queries.append(request.url.params["q"])
        return httpx.Response(
            200,
            json=[{"lat": "41.5601", "lon": "-90.5713", "display_name": "Eastern Avenue, Davenport, Scott County, Iowa"}],
        )

    result = asyncio.run(_geocoder(handler).geocode("5800 Eastern Ave"))

    assert result.latitude == 41.5601
    assert result.longitude == -90.5713
    assert seen_queries == ["5800 Eastern Ave, Davenport, Scott County, Iowa, USA"]


def test_out_of_bounds_other_city_rejected():
    def handler(request):
        return httpx.Response(
            200,
            json=[{"lat": "28.1614", "lon": "-81.6017", "display_name": "Eastern Avenue, Davenport, Polk County, Florida"}],
        )

    assert asyncio.run(_geocoder(handler).geocode("5800 Eastern Ave")) is None


def test_name_match_accepted_outside_box():
    def handler(request):
        return httpx.Response(
            200,
            json=[{"lat": "41.6200", "lon": "-90.5800", "display_name": "Northwest Blvd, Davenport, Iowa 52806"}],
        )

    result = asyncio.run(_geocoder(handler).geocode("9000 Northwest Blvd"))
    assert result is not None
    assert result.latitude == 41.62


def test_provider_errors_become_none():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    assert asyncio.run(_geocoder(handler).geocode("5800 Eastern Ave")) is None

    def bad_status(request):
        return httpx.Response(503)

    assert asyncio.run(_geocoder(bad_status).geocode("5800 Eastern Ave")) is None


def test_intersection_tries_formulations_in_order():
    seen_queries = []

    def handler(request):
        q = request.url.params["q"]
        seen_queries.append(q)
        if q.startswith("intersection of"):
            return httpx.Response(200, json=[{"lat": "41.55", "lon": "-90.58", "display_name": "Davenport, Iowa"}])
        return httpx.Response(200, json=[])

    result = asyncio.run(_geocoder(handler).geocode("2600 Kimberly Rd & 1500 Brady St."))

    assert result.latitude == 41.55
    assert seen_queries == [
        "Kimberly Road and Brady Street, Davenport, Scott County, Iowa, USA",
        "intersection of Kimberly Road and Brady Street, Davenport, Iowa, USA",
    ]


def test_provider_calls_wait_on_limiter():
    waits = []

    async def fake_sleep(seconds):
        waits.append(seconds)
        now[0] += seconds

    now = [0.0]
    limiter = TokenBucket.every(1.0, clock=lambda: now[0], sleep=fake_sleep)

    def handler(request):
        return httpx.Response(200, json=[])

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    geocoder = Geocoder(base_url="https://geocoder.test/search", limiter=limiter, client=client)
    asyncio.run(geocoder.geocode("5800 Eastern Ave"))

    # two direct formulations: the first is free, the second waits one second
    assert waits == [1.0]


def test_query_helpers():
    assert extract_street_name("5800 Eastern Ave") == "Eastern Avenue"
    assert extract_street_name("1900 Brady St.") == "Brady Street"
    assert intersection_queries("5800 Eastern Ave") == []
    queries = intersection_queries("5800 Eastern Ave & 1900 Brady St.")
    assert queries[0] == "Eastern Avenue and Brady Street, Davenport, Scott County, Iowa, USA"
    assert queries[-1] == "1900 Brady St., Davenport, Scott County, Iowa"
    assert mentions_municipality("Brady St, Davenport, IA 52803")
    assert not mentions_municipality("Davenport, Florida")
    assert is_within_bounds(41.52, -90.57)
    assert not is_within_bounds(41.70, -90.57)
