"""
Ship24 courier-tracking API client
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx

from volunteer_portal.core.config import settings
from volunteer_portal.services.errors import TrackingError
from volunteer_portal.services.tracking import (
    compute_status,
    first_tracking_item,
    get_shipment_and_events,
    normalize_tracking_number,
)

logger = logging.getLogger(__name__)

# Ship24 uses its own courier codes
CARRIER_TO_SHIP24_CODE = {
    "USPS": "us-post",
    "UPS": "ups",
    "FEDEX": "fedex",
    "DHL": "dhl",
}

TRACKERS_TRACK = "/trackers/track"
TRACKING_SEARCH = "/tracking/search"

_STATUS_FALLBACK_MESSAGES = {
    401: "Invalid API key.",
    403: "Access denied. Check your Ship24 plan or API key.",
    429: "Too many requests. Try again later.",
}


def _json(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _items_events(item: Any) -> Optional[List[Any]]:
    if isinstance(item, dict) and isinstance(item.get("events"), list) and item["events"]:
        return item["events"]
    return None


def _tracker_id(item: Optional[Dict[str, Any]]) -> Optional[str]:
    tracker = (item or {}).get("tracker")
    if isinstance(tracker, str):
        return tracker
    if isinstance(tracker, dict):
        return tracker.get("trackerId") or tracker.get("tracker_id") or tracker.get("id")
    return None


def error_message(status_code: int, body: Dict[str, Any]) -> str:
    """User-facing message for a failed Ship24 response."""
    errors = body.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict) and errors[0].get("message"):
        return errors[0]["message"]
    for key in ("message", "error"):
        if isinstance(body.get(key), str):
            return body[key]
    return _STATUS_FALLBACK_MESSAGES.get(status_code, f"Tracking unavailable ({status_code}).")


class Ship24Client:
    """Thin async wrapper over the Ship24 public API.

    ``transport`` lets tests swap in an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = (api_key if api_key is not None else settings.SHIP24_API_KEY) or ""
        self.base_url = (base_url or settings.SHIP24_API_BASE).rstrip("/")
        self.transport = transport
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key.strip()}",
        }

    async def _fill_empty_tracker(
        self, client: httpx.AsyncClient, body: Dict[str, Any], payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        """A freshly created tracker usually has no events yet: ask the results and search endpoints."""
        first = first_tracking_item(payload)
        tracker_id = _tracker_id(first)
        results_status = search_status = None

        if tracker_id:
            response = await client.get(
                f"/trackers/{quote(tracker_id, safe='')}/results",
                headers={"Authorization": self._headers()["Authorization"]},
            )
            results_status = response.status_code
            results = _json(response)
            data = results.get("data") if isinstance(results.get("data"), dict) else {}
            if _items_events(first_tracking_item(results)):
                return results
            if isinstance(data.get("events"), list) and data["events"]:
                return {"data": {"trackings": [{"shipment": data.get("shipment"), "events": data["events"]}]}}

        response = await client.post(TRACKING_SEARCH, headers=self._headers(), json=body)
        search_status = response.status_code
        search = _json(response)
        data = search.get("data") if isinstance(search.get("data"), dict) else {}
        item = first_tracking_item(search)
        if item is None:
            for key in ("tracking", "tracker"):
                if isinstance(data.get(key), dict):
                    item = data[key]
                    break
        if _items_events(item):
            return search
        if isinstance(data.get("events"), list) and data["events"]:
            return {"data": {"trackings": [{"shipment": data.get("shipment"), "events": data["events"]}]}}

        logger.info("Ship24 tracker %s has no events yet (results: %s, search: %s)",
                    tracker_id or "-", results_status, search_status)
        return payload

    async def fetch(self, tracking_number: str, carrier: str = "USPS") -> Tuple[int, Dict[str, Any]]:
        """Return the final (status_code, payload) after the endpoint fallbacks."""
        if not self.api_key.strip():
            raise TrackingError("SHIP24_API_KEY is not set.")

        normalized = normalize_tracking_number(tracking_number)
        if not normalized:
            raise TrackingError("Tracking number is required.")

        body = {
            "trackingNumber": normalized,
            "courierCode": CARRIER_TO_SHIP24_CODE.get(carrier, CARRIER_TO_SHIP24_CODE["USPS"]),
        }

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, transport=self.transport, timeout=self.timeout
            ) as client:
                response = await client.post(TRACKERS_TRACK, headers=self._headers(), json=body)
                payload = _json(response)

                # Per-call plans have no tracker endpoint
                if response.status_code == 404:
                    response = await client.post(TRACKING_SEARCH, headers=self._headers(), json=body)
                    payload = _json(response)
                    logger.info("Ship24 404 on %s, used %s (status %s)",
                                TRACKERS_TRACK, TRACKING_SEARCH, response.status_code)

                if response.status_code == 201 and not _items_events(first_tracking_item(payload)):
                    payload = await self._fill_empty_tracker(client, body, payload)
        except httpx.HTTPError as e:
            logger.warning("Ship24 request failed for %s: %s", normalized, e)
            raise TrackingError("Failed to contact the tracking service.")

        if not response.is_success:
            logger.warning("Ship24 error %s: %s", response.status_code, payload.get("errors"))
            raise TrackingError(error_message(response.status_code, payload))

        return response.status_code, payload

    async def track_package(self, tracking_number: str, carrier: str = "USPS") -> Dict[str, Any]:
        """Track a package and return its normalized status plus the raw payload."""
        _, payload = await self.fetch(tracking_number, carrier)
        shipment, events = get_shipment_and_events(payload)
        if not shipment and not events:
            data = payload.get("data")
            logger.warning("Ship24 response for %s had no shipment or events; data keys: %s",
                           tracking_number, list(data.keys()) if isinstance(data, dict) else [])
        computed = compute_status(shipment, events)
        return {**computed, "raw": payload}
