"""
Normalization of Ship24 tracking payloads.

Ship24 returns the same information in several shapes depending on the
endpoint (create tracker, search, tracker results) and on the webhook. The
helpers here pull the shipment block and its events out of any of those
shapes and reduce them to one of the fixed shipment statuses.

Everything in this module is a pure function of its input.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

Payload = Dict[str, Any]
TrackingEvent = Dict[str, Any]

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_MILESTONE_TO_STATUS = {
    "info_received": "Pre-Shipment",
    "pending": "Pre-Shipment",
    "in_transit": "In Transit",
    "out_for_delivery": "Out for Delivery",
    "failed_attempt": "Out for Delivery",
    "available_for_pickup": "Out for Delivery",
    "delivered": "Delivered",
    "exception": "Exception",
}

# Checked in order; the first rule with a matching phrase wins
_STATUS_TEXT_RULES = (
    (("delivered", "delivery complete"), "delivered"),
    (("out for delivery",), "out_for_delivery"),
    (("in transit", "in possession", "accepted", "departed", "arrived"), "in_transit"),
    (("pre-shipment", "info received", "label"), "info_received"),
    (("exception", "return", "failed"), "exception"),
)

_EVENT_TIME_KEYS = ("occurrenceDatetime", "datetime", "occurrenceDateTime")


def map_status_milestone(milestone: Any) -> str:
    """Map a Ship24 statusMilestone to one of the shipment statuses."""
    if not milestone or not isinstance(milestone, str):
        return "Unknown"
    return _MILESTONE_TO_STATUS.get(milestone.lower(), "Unknown")


def infer_milestone_from_status(status: Any) -> Optional[str]:
    """Guess a milestone from free-text courier status such as "USPS in possession of the item"."""
    if not status or not isinstance(status, str):
        return None
    text = status.lower()
    for phrases, milestone in _STATUS_TEXT_RULES:
        if any(phrase in text for phrase in phrases):
            return milestone
    return None


def to_date_only(value: Any) -> Optional[str]:
    """Return the YYYY-MM-DD part of an ISO date or datetime string."""
    if not value or not isinstance(value, str):
        return None
    candidate = value.split("T")[0]
    return candidate if _DATE_ONLY.match(candidate) else None


def normalize_tracking_number(value: str) -> str:
    """Trim and remove all whitespace; couriers expect the bare number."""
    return re.sub(r"\s+", "", (value or "").strip())


def parse_timestamp(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def event_time(event: Any) -> Optional[str]:
    if not isinstance(event, dict):
        return None
    for key in _EVENT_TIME_KEYS:
        value = event.get(key)
        if value:
            return value
    return None


def _as_dict(value: Any) -> Payload:
    return value if isinstance(value, dict) else {}


def _nonempty_list(value: Any) -> Optional[list]:
    return value if isinstance(value, list) and value else None


def get_events_from_item(item: Any) -> List[TrackingEvent]:
    """Find the events list on a single tracking item, wherever this response put it."""
    item = _as_dict(item)
    for key in ("events", "trackingActivities", "activities"):
        events = _nonempty_list(item.get(key))
        if events:
            return events

    events = _nonempty_list(_as_dict(item.get("shipment")).get("events"))
    if events:
        return events

    for key in ("tracking", "result", "results", "data"):
        events = _nonempty_list(_as_dict(item.get(key)).get("events"))
        if events:
            return events
    return []


def first_tracking_item(payload: Any) -> Optional[Payload]:
    """data.trackings[0], data.trackers[0] or root trackings[0]."""
    payload = _as_dict(payload)
    data = _as_dict(payload.get("data"))
    for items in (data.get("trackings"), data.get("trackers"), payload.get("trackings")):
        items = _nonempty_list(items)
        if items:
            return _as_dict(items[0])
    return None


def get_shipment_and_events(payload: Any) -> Tuple[Optional[Payload], List[TrackingEvent]]:
    """Pull the shipment block and events out of any Ship24 response shape."""
    payload = _as_dict(payload)
    data = _as_dict(payload.get("data"))
    fallback_events = data.get("events") if isinstance(data.get("events"), list) else []

    single = data.get("tracking")
    if isinstance(single, dict) and single:
        events = get_events_from_item(single)
        return single.get("shipment") or data.get("shipment"), events or fallback_events

    first = first_tracking_item(payload)
    if first is not None:
        events = get_events_from_item(first)
        return first.get("shipment") or data.get("shipment"), events or fallback_events

    return data.get("shipment"), fallback_events


def _latest_event(events: List[TrackingEvent]) -> Optional[TrackingEvent]:
    latest = events[0] if events else None
    latest_time = parse_timestamp(event_time(latest))
    for event in events:
        current = parse_timestamp(event_time(event))
        if current and (latest_time is None or current > latest_time):
            latest, latest_time = event, current
    return latest


def compute_status(shipment: Any, events: List[TrackingEvent]) -> Dict[str, Optional[str]]:
    """Reduce a shipment block and its events to status, expected delivery date and delivered time.

    The shipment-level milestone wins; otherwise the chronologically latest
    event decides, by its own milestone or by its status text. Events may
    arrive in any order.
    """
    shipment = _as_dict(shipment)
    events = [e for e in (events or []) if isinstance(e, dict)]

    milestone = shipment.get("statusMilestone")
    if not milestone and events:
        latest = _latest_event(events) or {}
        milestone = latest.get("statusMilestone") or infer_milestone_from_status(latest.get("status"))

    expected = shipment.get("estimatedDeliveryDate") or shipment.get("expectedDeliveryDate")

    delivered_at = None
    for event in events:
        event_milestone = event.get("statusMilestone")
        if (
            isinstance(event_milestone, str)
            and event_milestone.lower() == "delivered"
            and event.get("occurrenceDatetime")
        ):
            delivered_at = event["occurrenceDatetime"]
            break

    return {
        "status": map_status_milestone(milestone),
        "expected_delivery_date": to_date_only(expected),
        "delivered_at": delivered_at,
    }


def get_events_from_status_raw(raw: Any) -> List[TrackingEvent]:
    """Events previously stored on a shipment's raw payload."""
    if not isinstance(raw, dict):
        return []
    first = first_tracking_item(raw) or first_tracking_item({"data": raw.get("data") or raw})
    if first is not None and isinstance(first.get("events"), list):
        return first["events"]
    data = _as_dict(raw.get("data") or raw)
    events = data.get("events")
    return events if isinstance(events, list) else []


def _event_id(event: Any) -> Optional[Any]:
    """eventId when it is a usable scalar key, else None."""
    if not isinstance(event, dict):
        return None
    event_id = event.get("eventId")
    if isinstance(event_id, bool) or not isinstance(event_id, (str, int)):
        return None
    return event_id if event_id != "" else None


def merge_events(existing: List[TrackingEvent], incoming: List[TrackingEvent]) -> List[TrackingEvent]:
    """Append incoming events not already present (by eventId) and sort oldest first.

    Events without a timestamp sort last. Re-delivering the same events
    leaves the result unchanged.
    """
    merged = list(existing)
    seen = {_event_id(e) for e in existing} - {None}
    for event in incoming:
        if not isinstance(event, dict):
            continue
        event_id = _event_id(event)
        if event_id is not None and event_id in seen:
            continue
        merged.append(event)
        if event_id is not None:
            seen.add(event_id)

    def sort_key(event):
        ts = parse_timestamp(event_time(event))
        return (ts is None, ts or datetime.min.replace(tzinfo=timezone.utc))

    return sorted(merged, key=sort_key)
