"""
Tests for Ship24 payload normalization
"""

from volunteer_portal.models.shipment import SHIPMENT_STATUSES
from volunteer_portal.services.tracking import (
    compute_status,
    get_events_from_status_raw,
    get_shipment_and_events,
    infer_milestone_from_status,
    map_status_milestone,
    merge_events,
    normalize_tracking_number,
    to_date_only,
)

IN_TRANSIT = {
    "eventId": "e1",
    "occurrenceDatetime": "2026-05-01T09:00:00Z",
    "status": "Departed USPS Regional Facility",
    "statusMilestone": "in_transit",
}
OUT_FOR_DELIVERY = {
    "eventId": "e2",
    "occurrenceDatetime": "2026-05-02T07:15:00Z",
    "status": "Out for Delivery",
    "statusMilestone": "out_for_delivery",
}
DELIVERED = {
    "eventId": "e3",
    "occurrenceDatetime": "2026-05-02T14:30:00Z",
    "status": "Delivered, In/At Mailbox",
    "statusMilestone": "delivered",
}

def test_map_status_milestone():
    assert map_status_milestone("delivered") == "Delivered"
    assert map_status_milestone("IN_TRANSIT") == "In Transit"
    assert map_status_milestone("pending") == "Pre-Shipment"
    assert map_status_milestone("failed_attempt") == "Out for Delivery"
    assert map_status_milestone("available_for_pickup") == "Out for Delivery"
    assert map_status_milestone("exception") == "Exception"
    assert map_status_milestone("something_new") == "Unknown"
    assert map_status_milestone(None) == "Unknown"

def test_infer_milestone_from_status_text():
    assert infer_milestone_from_status("USPS in possession of the item") == "in_transit"
    assert infer_milestone_from_status("Delivered, Front Door") == "delivered"
    assert infer_milestone_from_status("Out for Delivery") == "out_for_delivery"
    assert infer_milestone_from_status("Shipping Label Created") == "info_received"
    assert infer_milestone_from_status("Return to Sender") == "exception"
    assert infer_milestone_from_status("Processing") is None
    assert infer_milestone_from_status("") is None

def test_to_date_only():
    assert to_date_only("2026-05-03T00:00:00.000Z") == "2026-05-03"
    assert to_date_only("2026-05-03") == "2026-05-03"
    assert to_date_only("May 3") is None
    assert to_date_only(None) is None

def test_normalize_tracking_number():
    assert normalize_tracking_number("  9400 1000 0000\t0000 0000 00 ") == "9400100000000000000000"
    assert normalize_tracking_number("") == ""

def test_compute_status_prefers_shipment_milestone():
    shipment = {"statusMilestone": "in_transit", "estimatedDeliveryDate": "2026-05-04T00:00:00Z"}
    result = compute_status(shipment, [DELIVERED])

    assert result["status"] == "In Transit"
    assert result["expected_delivery_date"] == "2026-05-04"
    assert result["delivered_at"] == "2026-05-02T14:30:00Z"

def test_compute_status_uses_latest_event_regardless_of_order():
    result = compute_status({}, [DELIVERED, IN_TRANSIT, OUT_FOR_DELIVERY])

    assert result["status"] == "Delivered"
    assert result["delivered_at"] == "2026-05-02T14:30:00Z"

def test_compute_status_infers_from_text_when_milestone_missing():
    event = {"occurrenceDatetime": "2026-05-01T09:00:00Z", "status": "USPS in possession of the item"}

    assert compute_status(None, [event])["status"] == "In Transit"

def test_compute_status_without_data():
    assert compute_status(None, []) == {
        "status": "Unknown",
        "expected_delivery_date": None,
        "delivered_at": None,
    }

def test_get_shipment_and_events_trackings_shape():
    payload = {"data": {"trackings": [{
        "tracker": {"trackerId": "t-1"},
        "shipment": {"statusMilestone": "in_transit"},
        "events": [IN_TRANSIT],
    }]}}

    shipment, events = get_shipment_and_events(payload)
    assert shipment == {"statusMilestone": "in_transit"}
    assert events == [IN_TRANSIT]

def test_get_shipment_and_events_single_tracking_shape():
    payload = {"data": {"tracking": {"shipment": {"statusMilestone": "delivered"}, "events": [DELIVERED]}}}

    shipment, events = get_shipment_and_events(payload)
    assert shipment["statusMilestone"] == "delivered"
    assert events == [DELIVERED]

def test_get_shipment_and_events_nested_event_keys():
    payload = {"data": {"trackers": [{"shipment": {"events": [OUT_FOR_DELIVERY]}}]}}
    _, events = get_shipment_and_events(payload)
    assert events == [OUT_FOR_DELIVERY]

    payload = {"trackings": [{"trackingActivities": [IN_TRANSIT]}]}
    _, events = get_shipment_and_events(payload)
    assert events == [IN_TRANSIT]

def test_get_shipment_and_events_falls_back_to_data_events():
    payload = {"data": {"trackings": [{"tracker": {}}], "events": [IN_TRANSIT]}}

    _, events = get_shipment_and_events(payload)
    assert events == [IN_TRANSIT]

def test_get_shipment_and_events_empty_payload():
    assert get_shipment_and_events({}) == (None, [])
    assert get_shipment_and_events(None) == (None, [])

def test_merge_events_sorts_and_dedupes():
    merged = merge_events([OUT_FOR_DELIVERY], [DELIVERED, IN_TRANSIT, OUT_FOR_DELIVERY])

    assert [e["eventId"] for e in merged] == ["e1", "e2", "e3"]

def test_merge_events_is_idempotent():
    once = merge_events([IN_TRANSIT], [OUT_FOR_DELIVERY, DELIVERED])
    twice = merge_events(once, [OUT_FOR_DELIVERY, DELIVERED])

    assert twice == once

def test_merge_events_puts_undated_last():
    undated = {"eventId": "e0", "status": "Label printed"}
    merged = merge_events([undated], [IN_TRANSIT])

    assert [e["eventId"] for e in merged] == ["e1", "e0"]

def test_get_events_from_status_raw():
    raw = {"data": {"trackings": [{"events": [IN_TRANSIT, DELIVERED]}]}}
    assert get_events_from_status_raw(raw) == [IN_TRANSIT, DELIVERED]
    assert get_events_from_status_raw({"data": {"events": [IN_TRANSIT]}}) == [IN_TRANSIT]
    assert get_events_from_status_raw(None) == []

def test_every_mapped_status_is_a_shipment_status():
    milestones = ("info_received", "pending", "in_transit", "out_for_delivery", "failed_attempt",
                  "available_for_pickup", "delivered", "exception", "bogus")
    assert {map_status_milestone(m) for m in milestones} == set(SHIPMENT_STATUSES)

def test_merge_events_tolerates_unhashable_event_ids():
    odd = {"eventId": {"x": 1}, "occurrenceDatetime": "2026-05-03T08:00:00Z", "status": "Delivered"}
    listed = {"eventId": ["a"], "status": "Arrived"}

    merged = merge_events([odd], [IN_TRANSIT, odd, listed])

    assert merged[0] == IN_TRANSIT
    assert merged[1] == odd
    assert merged[-1] == listed
    assert len(merged) == 4
