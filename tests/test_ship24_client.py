"""
Tests for the Ship24 client endpoint fallbacks and error handling
"""

import asyncio
import json

import httpx
import pytest

from volunteer_portal.services.errors import TrackingError
from volunteer_portal.services.ship24_client import Ship24Client, error_message

BASE_URL = "https://ship24.test/public/v1"

DELIVERED_EVENT = {
    "eventId": "ev-9",
    "occurrenceDatetime": "2026-05-02T14:30:00Z",
    "status": "Delivered",
    "statusMilestone": "delivered",
}

def make_client(handler, api_key="test-key"):
    return Ship24Client(api_key=api_key, base_url=BASE_URL, transport=httpx.MockTransport(handler))

def test_track_package_with_events_on_create():
    calls = []

    def handler(request):
        calls.append((request.method, request.url.path))
        body = json.loads(request.content)
        assert body == {"trackingNumber": "9400100000000000000000", "courierCode": "us-post"}
        assert request.headers["Authorization"] == "Bearer test-key"
        return httpx.Response(200, json={"data": {"trackings": [{
            "shipment": {"statusMilestone": "delivered"},
            "events": [DELIVERED_EVENT],
        }]}})

    result = asyncio.run(make_client(handler).track_package("9400 1000 0000 0000 0000 00"))

    assert calls == [("POST", "/public/v1/trackers/track")]
    assert result["status"] == "Delivered"
    assert result["delivered_at"] == "2026-05-02T14:30:00Z"
    assert "data" in result["raw"]

def test_404_falls_back_to_search():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        if request.url.path.endswith("/trackers/track"):
            return httpx.Response(404, json={"errors": [{"message": "Not found"}]})
        return httpx.Response(200, json={"data": {"trackings": [{
            "shipment": {"statusMilestone": "in_transit"},
            "events": [],
        }]}})

    result = asyncio.run(make_client(handler).track_package("1Z999", "UPS"))

    assert calls == ["/public/v1/trackers/track", "/public/v1/tracking/search"]
    assert result["status"] == "In Transit"

def test_new_tracker_without_events_reads_results():
    calls = []

    def handler(request):
        calls.append((request.method, request.url.path))
        if request.url.path.endswith("/trackers/track"):
            return httpx.Response(201, json={"data": {"trackings": [{
                "tracker": {"trackerId": "trk-1"},
                "events": [],
            }]}})
        if request.url.path.endswith("/trackers/trk-1/results"):
            return httpx.Response(200, json={"data": {"trackings": [{
                "shipment": {"statusMilestone": "delivered"},
                "events": [DELIVERED_EVENT],
            }]}})
        return httpx.Response(500)

    result = asyncio.run(make_client(handler).track_package("9400111"))

    assert ("GET", "/public/v1/trackers/trk-1/results") in calls
    assert ("POST", "/public/v1/tracking/search") not in calls
    assert result["status"] == "Delivered"

def test_new_tracker_falls_back_to_search_when_results_empty():
    def handler(request):
        if request.url.path.endswith("/trackers/track"):
            return httpx.Response(201, json={"data": {"trackings": [{"tracker": {"trackerId": "trk-2"}}]}})
        if request.url.path.endswith("/results"):
            return httpx.Response(200, json={"data": {"trackings": [{"events": []}]}})
        return httpx.Response(200, json={"data": {"tracking": {
            "shipment": {},
            "events": [{"eventId": "a", "occurrenceDatetime": "2026-05-01T09:00:00Z",
                        "status": "USPS in possession of the item"}],
        }}})

    result = asyncio.run(make_client(handler).track_package("9400222"))

    assert result["status"] == "In Transit"

def test_new_tracker_with_no_events_anywhere_keeps_created_payload():
    def handler(request):
        if request.url.path.endswith("/trackers/track"):
            return httpx.Response(201, json={"data": {"trackings": [{"tracker": {"trackerId": "trk-3"}}]}})
        return httpx.Response(200, json={"data": {}})

    result = asyncio.run(make_client(handler).track_package("9400333"))

    assert result["status"] == "Unknown"
    assert result["raw"]["data"]["trackings"][0]["tracker"]["trackerId"] == "trk-3"

def test_error_uses_provider_message():
    def handler(request):
        return httpx.Response(400, json={"errors": [{"message": "Invalid tracking number"}]})

    with pytest.raises(TrackingError) as exc:
        asyncio.run(make_client(handler).track_package("bogus"))

    assert exc.value.message == "Invalid tracking number"
    assert exc.value.status_code == 502

def test_error_message_fallbacks():
    assert error_message(401, {}) == "Invalid API key."
    assert error_message(403, {}) == "Access denied. Check your Ship24 plan or API key."
    assert error_message(429, {}) == "Too many requests. Try again later."
    assert error_message(500, {}) == "Tracking unavailable (500)."
    assert error_message(400, {"message": "Bad courier"}) == "Bad courier"

def test_missing_api_key():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(TrackingError) as exc:
        asyncio.run(make_client(handler, api_key="").track_package("9400"))

    assert exc.value.message == "SHIP24_API_KEY is not set."

def test_blank_tracking_number():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(TrackingError) as exc:
        asyncio.run(make_client(handler).track_package("   "))

    assert exc.value.message == "Tracking number is required."

def test_network_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TrackingError) as exc:
        asyncio.run(make_client(handler).track_package("9400"))

    assert exc.value.message == "Failed to contact the tracking service."
