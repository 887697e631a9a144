"""
Shipment administration, tracking refresh and webhook ingestion
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from volunteer_portal.models import Profile, Shipment, Signup
from volunteer_portal.models.shipment import CARRIERS
from volunteer_portal.schemas.shipment import ShipmentCreate, ShipmentUpdate
from volunteer_portal.services.errors import ConflictError, NotFoundError, ValidationFailed
from volunteer_portal.services.repositories import EventRepo, ShipmentRepo
from volunteer_portal.services.ship24_client import Ship24Client
from volunteer_portal.services.tracking import (
    compute_status,
    get_events_from_status_raw,
    merge_events,
    normalize_tracking_number,
)

logger = logging.getLogger(__name__)


def _clean_carrier(value: Optional[str]) -> str:
    carrier = (value or "USPS").strip().upper()
    if carrier not in CARRIERS:
        raise ValidationFailed(f"Unsupported carrier. Use one of: {', '.join(CARRIERS)}.")
    return carrier


class ShippingService:
    """Service for shipments and their tracking status"""

    @staticmethod
    def _check_links(db: Session, event_id: Optional[int], to_signup_id: Optional[int]) -> None:
        if event_id is not None and not EventRepo.get_by_id(db, event_id):
            raise NotFoundError("Event not found.")
        if to_signup_id is not None:
            signup = db.query(Signup).filter(Signup.id == to_signup_id).first()
            if not signup:
                raise NotFoundError("Signup not found.")
            if event_id is not None and signup.event_id != event_id:
                raise ValidationFailed("Recipient signup belongs to a different event.")

    @staticmethod
    def create_shipment(db: Session, admin: Profile, data: ShipmentCreate) -> Shipment:
        tracking_number = (data.tracking_number or "").strip()
        if not tracking_number:
            raise ValidationFailed("Tracking number is required.")
        carrier = _clean_carrier(data.carrier)
        ShippingService._check_links(db, data.event_id, data.to_signup_id)

        if ShipmentRepo.get_by_tracking_number(db, tracking_number):
            raise ConflictError("A shipment with this tracking number already exists.")

        shipment = Shipment(
            tracking_number=tracking_number,
            carrier=carrier,
            event_id=data.event_id,
            to_signup_id=data.to_signup_id,
            from_profile_id=admin.id,
            notes=(data.notes or "").strip() or None,
        )
        db.add(shipment)
        db.commit()
        db.refresh(shipment)
        logger.info("Shipment %s created (%s %s)", shipment.id, carrier, tracking_number)
        return shipment

    @staticmethod
    def update_shipment(db: Session, shipment_id: int, data: ShipmentUpdate) -> Shipment:
        shipment = ShipmentRepo.get_by_id(db, shipment_id)
        if not shipment:
            raise NotFoundError("Shipment not found.")

        fields = data.model_fields_set
        event_id = data.event_id if "event_id" in fields else shipment.event_id
        to_signup_id = data.to_signup_id if "to_signup_id" in fields else shipment.to_signup_id
        ShippingService._check_links(db, event_id, to_signup_id)

        if "tracking_number" in fields:
            tracking_number = (data.tracking_number or "").strip()
            if not tracking_number:
                raise ValidationFailed("Tracking number is required.")
            other = ShipmentRepo.get_by_tracking_number(db, tracking_number)
            if other and other.id != shipment.id:
                raise ConflictError("A shipment with this tracking number already exists.")
            shipment.tracking_number = tracking_number
        if "carrier" in fields:
            shipment.carrier = _clean_carrier(data.carrier)
        if "notes" in fields:
            shipment.notes = (data.notes or "").strip() or None
        shipment.event_id = event_id
        shipment.to_signup_id = to_signup_id

        db.commit()
        db.refresh(shipment)
        return shipment

    @staticmethod
    def delete_shipment(db: Session, shipment_id: int) -> None:
        shipment = ShipmentRepo.get_by_id(db, shipment_id)
        if not shipment:
            raise NotFoundError("Shipment not found.")
        db.delete(shipment)
        db.commit()

    @staticmethod
    def list_shipments(db: Session, event_id: Optional[int] = None) -> List[Shipment]:
        return ShipmentRepo.list_all(db, event_id)

    @staticmethod
    async def refresh_shipment(db: Session, shipment_id: int, client: Optional[Ship24Client] = None) -> Shipment:
        """Fetch the latest tracking status. On failure the stored status is left untouched."""
        shipment = ShipmentRepo.get_by_id(db, shipment_id)
        if not shipment:
            raise NotFoundError("Shipment not found.")

        client = client or Ship24Client()
        result = await client.track_package(shipment.tracking_number, shipment.carrier)

        shipment.status = result["status"]
        shipment.status_raw = result["raw"]
        shipment.expected_delivery_date = result["expected_delivery_date"]
        shipment.delivered_at = result["delivered_at"]
        shipment.last_checked_at = datetime.utcnow()
        db.commit()
        db.refresh(shipment)
        logger.info("Shipment %s refreshed: %s", shipment.id, shipment.status)
        return shipment

    @staticmethod
    def find_by_tracking_number(db: Session, tracking_number: str) -> Optional[Shipment]:
        """Exact match first, then equality after whitespace normalization."""
        exact = ShipmentRepo.get_by_tracking_number(db, tracking_number)
        if exact:
            return exact
        normalized = normalize_tracking_number(tracking_number)
        for shipment in ShipmentRepo.list_all(db):
            if normalize_tracking_number(shipment.tracking_number) == normalized:
                return shipment
        return None

    @staticmethod
    def apply_webhook(db: Session, payload: Dict[str, Any]) -> int:
        """Merge pushed tracking events into stored shipments. Returns the number updated."""
        trackings = payload.get("trackings") if isinstance(payload, dict) else None
        if not isinstance(trackings, list):
            return 0

        updated = 0
        for item in trackings:
            if not isinstance(item, dict):
                continue
            tracker = item.get("tracker") if isinstance(item.get("tracker"), dict) else {}
            tracking_number = str(tracker.get("trackingNumber") or "").strip()
            if not normalize_tracking_number(tracking_number):
                continue

            shipment = ShippingService.find_by_tracking_number(db, tracking_number)
            if not shipment:
                logger.info("Webhook for unknown tracking number %s ignored", tracking_number)
                continue

            existing = get_events_from_status_raw(shipment.status_raw)
            incoming = item.get("events") if isinstance(item.get("events"), list) else []
            merged = merge_events(existing, incoming)
            computed = compute_status(item.get("shipment"), merged)

            shipment.status = computed["status"]
            shipment.status_raw = {
                "data": {
                    "trackings": [
                        {
                            "tracker": item.get("tracker"),
                            "shipment": item.get("shipment"),
                            "events": merged,
                        }
                    ]
                }
            }
            shipment.expected_delivery_date = computed["expected_delivery_date"]
            shipment.delivered_at = computed["delivered_at"]
            shipment.last_checked_at = datetime.utcnow()
            updated += 1
            logger.info("Webhook updated shipment %s: %s (%s events)",
                        shipment.id, shipment.status, len(merged))

        db.commit()
        return updated
